"""End-to-end tests of the commit gate against real git repositories."""

import logging
import os
import shutil

import pytest

from commitgate.exceptions import GitError, PolicyViolation, ToolError
from commitgate.gate import CommitGate
from commitgate.repository import Repository
from commitgate.tool_factory import ToolFactory
from commitgate.tools.cards import CardGenerator
from commitgate.tools.compressors import Compressor
from commitgate.tools.fonts import FontSubsetter

from .helpers import GitRepo, offline_config, set_mtime

pytestmark = pytest.mark.skipif(shutil.which("git") is None, reason="git is not installed")

CONFIG_TOML = """base_url = "https://example.com"

[extra]
stylesheets = []
"""

THEME_TOML = """name = "theme"

[extra]
stylesheets = []
"""

POST = """+++
title = "Hello"
date = "2024-01-01"
+++

First version.
"""


@pytest.fixture
def site(tmp_path):
    """A theme repository with one committed post."""
    site = GitRepo(tmp_path / "site")
    site.write("config.toml", CONFIG_TOML)
    site.write("theme.toml", THEME_TOML)
    site.write("content/blog/hello.md", POST)
    site.write("content/blog/_index.md", '+++\ntitle = "Blog"\ndate = 2024-01-01\n+++\n')
    site.add(".")
    site.commit("initial")
    return site


@pytest.fixture
def config(tmp_path):
    return offline_config(tmp_path)


def make_gate(site, config, tools=None, rewrite=True):
    repo = Repository(site.root)
    return CommitGate(repo, config, tools=tools, rewrite=rewrite)


def stage_post(site, content, relpath="content/blog/hello.md", mtime=(2024, 3, 5)):
    site.write(relpath, content)
    set_mtime(site.path(relpath), *mtime)
    site.add(relpath)


def test_body_change_sets_updated(site, config):
    stage_post(site, POST.replace("First version.", "Second version."))

    staged = make_gate(site, config).run()

    assert staged == ["content/blog/hello.md"]
    expected = '+++\ntitle = "Hello"\ndate = "2024-01-01"\nupdated = "2024-03-05"\n+++\n\nSecond version.\n'
    assert site.read("content/blog/hello.md") == expected
    # re-staged, nothing left behind in the working tree
    assert site.staged_content("content/blog/hello.md") == expected
    assert site.unstaged() == []


def test_existing_updated_is_replaced(site, config):
    post = POST.replace('date = "2024-01-01"\n', 'date = "2024-01-01"\nupdated = "2024-02-01"\n')
    site.write("content/blog/hello.md", post)
    site.add(".")
    site.commit("add updated")
    stage_post(site, post.replace("First version.", "Third version."))

    make_gate(site, config).run()

    text = site.read("content/blog/hello.md")
    assert 'updated = "2024-03-05"' in text
    assert text.count("updated") == 1


def test_front_matter_only_change_is_left_alone(site, config, caplog):
    changed = POST.replace('title = "Hello"', 'title = "Hello again"')
    stage_post(site, changed)

    with caplog.at_level(logging.DEBUG, logger="commitgate"):
        assert make_gate(site, config).run() == []
    assert "content/blog/hello.md: only front matter changed" in caplog.text
    assert site.read("content/blog/hello.md") == changed


def test_same_day_as_creation(site, config):
    changed = POST.replace("First version.", "Fixed a typo.")
    stage_post(site, changed, mtime=(2024, 1, 1))

    make_gate(site, config).run()

    assert "updated" not in site.read("content/blog/hello.md")


def test_index_pages_are_not_dated(site, config):
    changed = '+++\ntitle = "Blog"\ndate = 2024-01-01\n+++\nNew intro.\n'
    stage_post(site, changed, relpath="content/blog/_index.md")

    make_gate(site, config).run()

    assert site.read("content/blog/_index.md") == changed


def test_added_post_is_not_dated(site, config):
    stage_post(site, POST, relpath="content/blog/new.md")

    make_gate(site, config).run()

    assert "updated" not in site.read("content/blog/new.md")


def test_draft_is_refused(site, config):
    stage_post(site, POST.replace('date = "2024-01-01"\n', 'date = "2024-01-01"\ndraft = true\n'))

    with pytest.raises(PolicyViolation, match="is a draft"):
        make_gate(site, config).run()


def test_new_draft_is_refused(site, config):
    stage_post(site, '+++\ntitle = "Soon"\ndraft = true\n+++\n', relpath="content/blog/soon.md")

    with pytest.raises(PolicyViolation, match="soon.md is a draft"):
        make_gate(site, config).run()


def test_script_needs_minified_sibling(site, config):
    site.write("static/js/app.js", "var answer = 42;\n")
    site.add("static/js/app.js")

    with pytest.raises(PolicyViolation, match="no minified version"):
        make_gate(site, config).run()

    site.write("static/js/app.min.js", "var answer=42;")
    site.add("static/js/app.min.js")
    make_gate(site, config).run()


def test_config_sections_must_match(site, config):
    site.write("config.toml", CONFIG_TOML + "show_author = true\n")
    site.add("config.toml")

    with pytest.raises(PolicyViolation, match=r"\[extra\] sections"):
        make_gate(site, config).run()

    site.write("theme.toml", THEME_TOML + "show_author = false\n")
    site.add("theme.toml")
    make_gate(site, config).run()


def test_skipped_files(site, config):
    site.write("CHANGELOG.md", "- TODO: release notes\n")
    site.add("CHANGELOG.md")

    make_gate(site, config).run()


def test_deleted_files_are_ignored(site, config):
    site.git("rm", "-q", "content/blog/hello.md")

    assert make_gate(site, config).run() == []


def test_non_ascii_names_are_listed(site):
    site.write("content/blog/café.md", POST)
    site.add("content/blog/café.md")

    staged = Repository(site.root).staged_files()

    assert [(f.path, f.status) for f in staged] == [("content/blog/café.md", "A")]
    assert os.path.isfile(staged[0].abspath)


def test_non_ascii_draft_is_refused(site, config):
    stage_post(site, '+++\ntitle = "Café"\ndraft = true\n+++\n', relpath="content/blog/café.md")

    with pytest.raises(PolicyViolation, match="café.md is a draft"):
        make_gate(site, config).run()


def test_non_ascii_file_with_marker_is_refused(site, config):
    site.write("static/notes-é.txt", "TODO: finish\n")
    site.add("static/notes-é.txt")

    with pytest.raises(PolicyViolation, match="notes-é.txt contains 'TODO'"):
        make_gate(site, config).run()


def test_commented_draft_is_refused(site, config):
    stage_post(site, POST.replace('date = "2024-01-01"\n', 'date = "2024-01-01"\ndraft = true # not ready\n'))

    with pytest.raises(PolicyViolation, match="is a draft"):
        make_gate(site, config).run()


class FakeTools(ToolFactory):
    """Factory handing out test doubles instead of looking at PATH."""

    def __init__(self, config, compressor=None, card_generator=None, font_subsetter=None):
        super().__init__(config)
        self.compressor = compressor
        self.card_generator = card_generator
        self.font_subsetter = font_subsetter

    def get_compressor(self):
        return self.compressor or super().get_compressor()

    def get_card_generator(self):
        return self.card_generator or super().get_card_generator()

    def get_font_subsetter(self):
        return self.font_subsetter or super().get_font_subsetter()


class HalvingCompressor(Compressor):
    NAME = "halve"

    def __init__(self, root):
        super().__init__(command="halve", cwd=root)

    def is_available(self):
        return True

    def compress(self, path):
        full = os.path.join(self.cwd, path)
        with open(full, "rb") as f:
            data = f.read()
        with open(full, "wb") as f:
            f.write(data[: len(data) // 2])
        return True


def test_png_is_compressed_and_staged(site, config):
    site.write("static/img/logo.png", b"\x89PNG" + b"\x01" * 64)
    site.add("static/img/logo.png")
    tools = FakeTools(config, compressor=HalvingCompressor(site.root))

    staged = make_gate(site, config, tools=tools).run()

    assert staged == ["static/img/logo.png"]
    assert os.path.getsize(site.path("static/img/logo.png")) == 34
    assert site.unstaged() == []


def test_abort_restores_rewritten_files(site, config):
    original = b"\x89PNG" + b"\x01" * 64
    site.write("static/img/logo.png", original)
    site.write("static/notes.txt", "TODO: finish\n")
    site.add("static")
    tools = FakeTools(config, compressor=HalvingCompressor(site.root))

    with pytest.raises(PolicyViolation, match="static/notes.txt contains 'TODO'"):
        make_gate(site, config, tools=tools).run()

    with open(site.path("static/img/logo.png"), "rb") as f:
        assert f.read() == original


def test_check_mode_rewrites_nothing(site, config):
    changed = POST.replace("First version.", "Second version.")
    stage_post(site, changed)
    site.write("static/img/logo.png", b"\x89PNG" + b"\x01" * 64)
    site.add("static/img/logo.png")
    tools = FakeTools(config, compressor=HalvingCompressor(site.root))

    assert make_gate(site, config, tools=tools, rewrite=False).run() == []

    assert site.read("content/blog/hello.md") == changed
    assert os.path.getsize(site.path("static/img/logo.png")) == 68


class FakeSubsetter(FontSubsetter):
    def __init__(self, root, produce=True):
        super().__init__(command="subset", cwd=root)
        self.produce = produce
        self.calls = []

    def is_available(self):
        return True

    def subset(self, config_path, font_path, output_dir):
        self.calls.append((config_path, font_path, output_dir))
        if self.produce:
            path = os.path.join(self.cwd, self.output_file)
            os.makedirs(os.path.dirname(path), exist_ok=True)
            with open(path, "w") as f:
                f.write("@font-face {}\n")
        return self.output_file


def test_font_subset_follows_config(site, config):
    site.write("config.toml", CONFIG_TOML.replace("example.com", "example.org"))
    site.add("config.toml")
    subsetter = FakeSubsetter(site.root)

    staged = make_gate(site, config, tools=FakeTools(config, font_subsetter=subsetter)).run()

    assert subsetter.calls == [("config.toml", "static/fonts/Inter4.woff2", "static/")]
    assert staged == ["static/custom_subset.css"]
    assert "static/custom_subset.css" in site.git("diff", "--cached", "--name-only")


def test_font_subset_not_run_for_other_files(site, config):
    site.write("README.md", "Theme\n")
    site.add("README.md")
    subsetter = FakeSubsetter(site.root)

    make_gate(site, config, tools=FakeTools(config, font_subsetter=subsetter)).run()

    assert subsetter.calls == []


def test_font_subset_missing_tool_is_fine(site, config):
    site.write("config.toml", CONFIG_TOML.replace("example.com", "example.org"))
    site.add("config.toml")

    assert make_gate(site, config).run() == []


def test_font_subset_without_output_fails(site, config):
    site.write("config.toml", CONFIG_TOML.replace("example.com", "example.org"))
    site.add("config.toml")
    tools = FakeTools(config, font_subsetter=FakeSubsetter(site.root, produce=False))

    with pytest.raises(ToolError, match="did not produce"):
        make_gate(site, config, tools=tools).run()


class FakeCardGenerator(CardGenerator):
    def __init__(self, root):
        super().__init__(command="cards", cwd=root)
        self.calls = []

    def is_available(self):
        return True

    def generate(self, path):
        self.calls.append(path)
        image = "img/social_cards/" + os.path.basename(path).replace(".md", ".jpg")
        full = os.path.join(self.cwd, "static", image)
        os.makedirs(os.path.dirname(full), exist_ok=True)
        with open(full, "wb") as f:
            f.write(b"\xff\xd8")
        return image


def test_social_cards_generated_for_posts(site, config):
    stage_post(site, POST, relpath="content/blog/new.md")
    site.write("content/blog/_index.md", '+++\ntitle = "Posts"\ndate = 2024-01-01\n+++\n')
    site.add("content/blog/_index.md")
    generator = FakeCardGenerator(site.root)

    staged = make_gate(site, config, tools=FakeTools(config, card_generator=generator)).run()

    assert generator.calls == ["content/blog/new.md"]
    assert "static/img/social_cards/new.jpg" in staged
    assert "content/blog/new.md" in staged


def test_unreadable_file_restores_rewritten_files(site, config):
    original = b"\x89PNG" + b"\x01" * 64
    site.write("static/img/logo.png", original)
    site.write("zz/notes.md", b"+++\ntitle = \"Caf\xe9\"\n+++\n")
    site.add("static", "zz")
    tools = FakeTools(config, compressor=HalvingCompressor(site.root))

    with pytest.raises(PolicyViolation, match="zz/notes.md is not valid UTF-8"):
        make_gate(site, config, tools=tools).run()

    with open(site.path("static/img/logo.png"), "rb") as f:
        assert f.read() == original
    assert site.unstaged() == []


def test_failed_staging_restores_rewritten_files(site, config, monkeypatch):
    changed = POST.replace("First version.", "Second version.")
    stage_post(site, changed)
    gate = make_gate(site, config)
    run_git = gate.repo._run_git

    def run_git_without_add(*args, **kwargs):
        if args[0] == "add":
            raise GitError("git add failed: Unable to create '.git/index.lock': File exists.")
        return run_git(*args, **kwargs)

    monkeypatch.setattr(gate.repo, "_run_git", run_git_without_add)

    with pytest.raises(GitError, match="index.lock"):
        gate.run()

    assert site.read("content/blog/hello.md") == changed
    assert gate.repo.rewritten == []
