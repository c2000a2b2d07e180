"""Per-file checks run on every staged file.

Each check either returns quietly or raises `PolicyViolation` (or `ToolError`
when an installed tool fails), which aborts the whole commit.
"""

import logging
import os

from commitgate.exceptions import PolicyViolation, ToolError
from commitgate.frontmatter import read_front_matter
from commitgate.utils import lines_from_marker

log = logging.getLogger(__name__)


def is_skipped(staged, config):
    """The hook itself and the changelog are exempt from every check."""
    return staged.path in config.skip


def compress_png(repo, staged, compressor):
    """Compress a staged PNG in place and queue it for re-staging.

    The original bytes are journalled, and put back when the tool produced a
    larger file, so a committed image never grows.

    Returns:
        bool: True when the image was run through the compressor.
    """
    if not staged.is_png or not compressor.is_available():
        return False
    repo.journal(staged.path)
    original = staged.content
    try:
        compressor.compress(staged.path)
    except ToolError as e:
        raise ToolError(f"Failed to compress {staged.path}: {e}") from None
    staged.invalidate()
    if len(staged.content) > len(original):
        log.debug("%s grew after compression, keeping the original", staged.path)
        repo.write(staged.path, original)
        staged.invalidate()
    else:
        log.info("Compressed %s: %d -> %d bytes", staged.path, len(original), len(staged.content))
    repo.stage(staged.path)
    return True


def check_forbidden_marker(staged, marker):
    if marker and marker.encode("utf-8") in staged.content:
        raise PolicyViolation(f"{staged.path} contains '{marker}'")


def check_script_pairing(repo, staged):
    """A non-minified script must come with its minified sibling."""
    if not staged.is_script or staged.is_minified_script:
        return
    if not repo.exists(staged.minified_sibling):
        raise PolicyViolation(f"{staged.path} has no minified version, expected {staged.minified_sibling}")


def check_minification(repo, staged, minifiers):
    """A committed `.min.js` must be at least as small as any minifier's output.

    The minifiers are fed the non-minified sibling when there is one, else the
    committed file itself. A minifier without output (`UnavailableMinifier`)
    does not count, so with no minifier installed the check passes.
    """
    if not staged.is_minified_script:
        return
    source = staged.source_sibling if repo.exists(staged.source_sibling) else staged.path
    sizes = {}
    for minifier in minifiers:
        try:
            output = minifier.minify(source)
        except ToolError as e:
            raise ToolError(f"Failed to minify {source}: {e}") from None
        if output is not None:
            sizes[minifier.NAME] = len(output)
    if not sizes:
        log.info("No minifier installed, not checking %s", staged.path)
        return
    committed = len(staged.content)
    best = min(sizes, key=sizes.get)
    log.debug("%s is %d bytes, minifiers produce %s", staged.path, committed, sizes)
    if committed > sizes[best]:
        raise PolicyViolation(
            f"{staged.path} is not optimally minified: {best} produces {sizes[best]} bytes, "
            f"the committed file has {committed} bytes"
        )


def check_config_parity(repo, staged, config):
    """The marked sections of the paired configuration files must have the same length."""
    pair = config.config_pair
    if staged.path not in pair:
        return
    marker = config.config_pair_marker
    counts = {}
    for path in pair:
        if not repo.exists(path):
            raise PolicyViolation(f"{path} is missing, it must be kept in sync with {staged.path}")
        count = lines_from_marker(repo.path(path), marker)
        if count is None:
            raise PolicyViolation(f"{path} has no {marker} section")
        counts[path] = count
    if len(set(counts.values())) > 1:
        summary = ", ".join(f"{path}: {count}" for path, count in counts.items())
        raise PolicyViolation(f"The {marker} sections of {' and '.join(pair)} differ in length ({summary} lines)")


def check_draft(staged):
    """Drafts must never be committed."""
    if not staged.is_markdown or not os.path.isfile(staged.abspath):
        return
    front_matter = read_front_matter(staged.abspath)
    if front_matter is not None and front_matter.is_draft:
        raise PolicyViolation(f"{staged.path} is a draft")
