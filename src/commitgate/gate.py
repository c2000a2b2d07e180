"""The commit gate: everything that runs once per commit attempt."""

import logging
import os

from commitgate.checks import (
    check_config_parity,
    check_draft,
    check_forbidden_marker,
    check_minification,
    check_script_pairing,
    compress_png,
    is_skipped,
)
from commitgate.diff import DiffRegion
from commitgate.exceptions import CommitGateError, PolicyViolation, ToolError
from commitgate.frontmatter import MarkdownDocument, read_front_matter
from commitgate.tool_factory import ToolFactory
from commitgate.utils import last_modified_date, matches

log = logging.getLogger(__name__)


class CommitGate:
    """Validates the staged files and maintains content dates.

    The run is atomic: rewritten files are journalled by the repository handle
    and only staged once every step passed. Any error, including a failing
    `git add`, restores them before it propagates.

    Args:
        repo (Repository): The repository handle.
        config (Config): Settings.
        tools (ToolFactory): Source of external tools, built from `config` when omitted.
        rewrite (bool): When False, only validate: no compression, no date
            updates, no generated files and no staging.
    """

    def __init__(self, repo, config, tools=None, rewrite=True):
        self.repo = repo
        self.config = config
        self.tools = tools or ToolFactory(config, cwd=repo.root)
        self.rewrite = rewrite
        self._compressor = None
        self._minifiers = None

    @property
    def compressor(self):
        if self._compressor is None:
            self._compressor = self.tools.get_compressor()
        return self._compressor

    @property
    def minifiers(self):
        if self._minifiers is None:
            self._minifiers = self.tools.get_minifiers()
        return self._minifiers

    def is_index(self, staged):
        return matches(self.config.index_pattern, staged.path)

    def run(self):
        """Run every step over the staged files.

        Returns:
            list: Paths that were (re-)staged.

        Raises:
            CommitGateError: The commit must be aborted.
        """
        staged_files = self.repo.staged_files()
        if not staged_files:
            log.debug("Nothing staged")
            return []
        try:
            for staged in staged_files:
                self._apply(self.check_file, staged)
            if not self.rewrite:
                return []
            for staged in staged_files:
                self._apply(self.update_date, staged)
            self.generate_cards(staged_files)
            self.subset_font(staged_files)
            return self.repo.flush()
        except Exception:
            if self.repo.rewritten:
                log.debug("Aborting, restoring %s", ", ".join(self.repo.rewritten))
            self.repo.rollback()
            raise

    @staticmethod
    def _apply(step, staged):
        """Run one per-file step, reporting unreadable files as gate errors."""
        try:
            return step(staged)
        except UnicodeDecodeError:
            raise PolicyViolation(f"{staged.path} is not valid UTF-8") from None
        except OSError as e:
            raise CommitGateError(f"Cannot process {staged.path}: {e.strerror or e}") from None

    def check_file(self, staged):
        """Per-file checks, in order."""
        if is_skipped(staged, self.config):
            log.debug("Skipping %s", staged.path)
            return
        if not os.path.isfile(staged.abspath):
            log.warning("%s is staged but missing from the working tree, not checking it", staged.path)
            return
        if self.rewrite:
            compress_png(self.repo, staged, self.compressor)
        check_forbidden_marker(staged, self.config.forbidden_marker)
        check_script_pairing(self.repo, staged)
        check_minification(self.repo, staged, self.minifiers)
        check_config_parity(self.repo, staged, self.config)
        check_draft(staged)

    def update_date(self, staged):
        """Set `updated` on a modified content page whose body changed.

        Returns:
            bool: True when the file was rewritten.
        """
        if not staged.is_markdown or not staged.is_modified or self.is_index(staged):
            return False
        if not os.path.isfile(staged.abspath):
            return False
        front_matter = read_front_matter(staged.abspath)
        if front_matter is not None and front_matter.is_draft:
            raise PolicyViolation(f"{staged.path} is a draft")

        region = DiffRegion.from_diff(self.repo.staged_diff(staged.path))
        if not region.has_body_changes:
            if region.has_front_matter_changes:
                log.debug("%s: only front matter changed", staged.path)
            else:
                log.debug("%s: no content changes", staged.path)
            return False

        document = MarkdownDocument.load(staged.abspath)
        created = document.front_matter.date
        if created is None:
            log.warning("%s has no usable date field, not setting updated", staged.path)
            return False
        modified = last_modified_date(staged.abspath)
        if modified == created:
            log.debug("%s was created today, not setting updated", staged.path)
            return False

        original = document.dumps()
        document.front_matter.set_updated(modified.strftime(self.config.date_format))
        text = document.dumps()
        if text == original:
            return False
        self.repo.write(staged.path, text.encode("utf-8"))
        staged.invalidate()
        self.repo.stage(staged.path)
        log.info("Set updated = %s in %s", modified.strftime(self.config.date_format), staged.path)
        return True

    def generate_cards(self, staged_files):
        """Regenerate social media cards for staged content pages."""
        generator = self.tools.get_card_generator()
        if not generator.is_available():
            return []
        content_dir = self.config.get("social_cards.content_dir", "content").rstrip("/") + "/"
        static_dir = self.config.get("social_cards.static_dir", "static")
        images = []
        for staged in staged_files:
            if not staged.is_markdown or is_skipped(staged, self.config) or self.is_index(staged):
                continue
            if not staged.path.startswith(content_dir):
                continue
            # the generator records the card in the page's front matter
            self.repo.journal(staged.path)
            try:
                image = generator.generate(staged.path)
            except ToolError as e:
                raise ToolError(f"Failed to generate social media card for {staged.path}: {e}") from None
            staged.invalidate()
            self.repo.stage(staged.path)
            if not image:
                continue
            image_path = os.path.join(static_dir, image.lstrip("/"))
            if not self.repo.exists(image_path):
                raise ToolError(f"Social media card {image_path} for {staged.path} was not created")
            self.repo.stage(image_path)
            images.append(image_path)
            log.info("Generated social media card %s", image_path)
        return images

    def subset_font(self, staged_files):
        """Rebuild the font subset when the site configuration is committed."""
        config_file = self.config.get("font_subset.config", "config.toml")
        if not any(staged.path == config_file for staged in staged_files):
            return None
        subsetter = self.tools.get_font_subsetter()
        if not subsetter.is_available():
            log.info("%s not found, skipping font subsetting", subsetter.wanted)
            return None
        output = subsetter.subset(
            config_file,
            self.config.get("font_subset.font"),
            self.config.get("font_subset.output_dir"),
        )
        if not self.repo.exists(output):
            raise ToolError(f"Font subsetting did not produce {output}")
        self.repo.stage(output)
        return output
