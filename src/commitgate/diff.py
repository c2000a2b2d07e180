"""Split the staged changes of a content file into front matter and body changes."""

import logging
import re
from collections import namedtuple

from commitgate.frontmatter import is_delimiter

log = logging.getLogger(__name__)

_HUNK_RE = re.compile(r"^@@ -\d+(?:,\d+)? \+(?P<start>\d+)(?:,\d+)? @@")

# kind is "+" or "-"; lineno is the position in the staged version of the file
ChangedLine = namedtuple("ChangedLine", ["kind", "lineno", "text"])


class DiffRegion:
    """Changed lines of a staged file, partitioned by front matter boundary."""

    def __init__(self, front_matter=None, body=None):
        self.front_matter = front_matter or []
        self.body = body or []

    @property
    def has_body_changes(self):
        return bool(self.body)

    @property
    def has_front_matter_changes(self):
        return bool(self.front_matter)

    def __repr__(self):
        return f"DiffRegion(front_matter={len(self.front_matter)}, body={len(self.body)})"

    @classmethod
    def from_diff(cls, diff_text):
        """Partition a unified diff produced with full context.

        Delimiters are counted over the staged version of the file (context
        and added lines). Every change seen before the second delimiter
        belongs to the front matter.

        Args:
            diff_text (str): Output of `git diff --cached --unified=<n>` for one file.

        Returns:
            DiffRegion: Empty when the diff is empty.
        """
        region = cls()
        delimiters = 0
        lineno = 0
        in_hunk = False
        for line in diff_text.splitlines():
            m = _HUNK_RE.match(line)
            if m:
                in_hunk = True
                lineno = int(m.group("start"))
                continue
            if not in_hunk or line.startswith("\\"):
                # file headers, or "\ No newline at end of file"
                continue
            kind, text = line[:1], line[1:]
            if kind == "-":
                target = region.front_matter if delimiters < 2 else region.body
                target.append(ChangedLine(kind, lineno, text))
                continue
            if is_delimiter(text):
                if kind == "+":
                    region.front_matter.append(ChangedLine(kind, lineno, text))
                delimiters += 1
            elif kind == "+":
                target = region.front_matter if delimiters < 2 else region.body
                target.append(ChangedLine(kind, lineno, text))
            lineno += 1
        log.debug("%r", region)
        return region
