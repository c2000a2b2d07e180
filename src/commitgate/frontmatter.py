"""Front matter of Zola content files.

A content file starts with a TOML block between two ``+++`` lines::

    +++
    title = "Post"
    date = 2024-01-01
    draft = false

    [extra]
    social_media_card = "img/card.png"
    +++

    Body text.

The block is kept as an ordered list of lines so that serializing it back
reproduces everything that was not explicitly changed. Top-level
``key = value`` lines, those before the first ``[table]`` header, are exposed
as an ordered mapping of raw string values.
"""

import logging
import re
from collections import OrderedDict

from dateutil import parser

from commitgate.exceptions import FrontMatterError

log = logging.getLogger(__name__)

DELIMITER = "+++"

_KEY_VALUE_RE = re.compile(r"^\s*(?P<key>[A-Za-z0-9_-]+)\s*=\s*(?P<value>.*?)\s*$")
_TABLE_RE = re.compile(r"^\s*\[")


def is_delimiter(line):
    """Check whether a line (with or without its line ending) is a front matter delimiter."""
    return line.strip() == DELIMITER


def unquote(value):
    """Strip one level of TOML string quotes from a raw value."""
    if value is None:
        return None
    if len(value) >= 2 and value[0] == value[-1] and value[0] in ("'", '"'):
        return value[1:-1]
    return value


def strip_comment(value):
    """Split a raw value into the value proper and a trailing `# comment`.

    A `#` inside a quoted string is part of the value.

    Returns:
        tuple: (value, rest), where `rest` keeps the whitespace before the `#`.
    """
    quote = None
    index = 0
    while index < len(value):
        char = value[index]
        if quote:
            if char == "\\" and quote == '"':
                index += 1
            elif char == quote:
                quote = None
        elif char in ("'", '"'):
            quote = char
        elif char == "#":
            stripped = value[:index].rstrip()
            return stripped, value[len(stripped) :]
        index += 1
    return value, ""


def quote_like(reference, value):
    """Quote `value` the same way `reference` is quoted.

    `date = "2024-01-01"` gets `updated = "2024-03-05"`, while a bare TOML
    date gets a bare one.
    """
    if reference and reference[0] in ("'", '"'):
        return f"{reference[0]}{value}{reference[0]}"
    return value


class _Line:
    """A single front matter line, keyed when it is a top-level assignment."""

    __slots__ = ("raw", "key", "value", "comment")

    def __init__(self, raw, key=None, value=None, comment=""):
        self.raw = raw
        self.key = key
        self.value = value
        self.comment = comment


class FrontMatter:
    """Ordered record of a front matter block."""

    def __init__(self, lines=None, newline="\n"):
        self.newline = newline
        self._lines = []
        in_table = False
        for raw in lines or []:
            text = raw.rstrip("\r\n")
            if _TABLE_RE.match(text):
                in_table = True
            m = None if in_table else _KEY_VALUE_RE.match(text)
            if m:
                value, comment = strip_comment(m.group("value"))
                self._lines.append(_Line(raw, m.group("key"), value, comment))
            else:
                self._lines.append(_Line(raw))

    def _find(self, key):
        for index, line in enumerate(self._lines):
            if line.key == key:
                return index
        return None

    def __contains__(self, key):
        return self._find(key) is not None

    def get(self, key, default=None):
        """Raw value of the first top-level `key`, quotes included."""
        index = self._find(key)
        if index is None:
            return default
        return self._lines[index].value

    @property
    def fields(self):
        """Ordered mapping of top-level keys to raw values, first occurrence wins."""
        result = OrderedDict()
        for line in self._lines:
            if line.key is not None and line.key not in result:
                result[line.key] = line.value
        return result

    @property
    def is_draft(self):
        value = self.get("draft")
        return value is not None and unquote(value).strip().lower() == "true"

    @property
    def date(self):
        """The `date` field as a `datetime.date`, or None when absent or unparsable."""
        return self._parse_date("date")

    def _parse_date(self, key):
        value = unquote(self.get(key))
        if not value:
            return None
        try:
            return parser.parse(value).date()
        except (ValueError, OverflowError) as e:
            log.debug("Could not parse %s value %r: %s", key, value, e)
            return None

    def set(self, key, value, after=None):
        """Set a top-level field.

        An existing field is replaced in place, keeping its trailing comment,
        and left alone when the value is unchanged. A new field goes right
        after the first `after` field when there is one, else after the last
        top-level assignment.

        Args:
            key (str): Field name.
            value (str): Raw TOML value, quotes included.
            after (str): Field the new line is anchored to.
        """
        index = self._find(key)
        if index is not None:
            if self._lines[index].value == value:
                return
            comment = self._lines[index].comment
            self._lines[index] = _Line(f"{key} = {value}{comment}{self.newline}", key, value, comment)
            return
        new_line = _Line(f"{key} = {value}{self.newline}", key, value)
        anchor = self._find(after) if after else None
        if anchor is None:
            keyed = [i for i, line in enumerate(self._lines) if line.key is not None]
            anchor = keyed[-1] if keyed else -1
        self._lines.insert(anchor + 1, new_line)

    def set_updated(self, date_value):
        """Insert or update `updated` right after `date`.

        Args:
            date_value (str): Date text, e.g. `2024-03-05`; quoted like `date`.
        """
        self.set("updated", quote_like(self.get("date"), date_value), after="date")

    def dumps(self):
        """Serialize the block content, without delimiters."""
        return "".join(line.raw for line in self._lines)


class MarkdownDocument:
    """A content file split into front matter and body."""

    def __init__(self, front_matter, body, opening=DELIMITER + "\n", closing=DELIMITER + "\n"):
        self.front_matter = front_matter
        self.body = body
        self._opening = opening
        self._closing = closing

    @classmethod
    def loads(cls, text):
        """Split a document.

        Raises:
            FrontMatterError: When the text does not start with a complete block.
        """
        lines = text.splitlines(keepends=True)
        if not lines or not is_delimiter(lines[0]):
            raise FrontMatterError("No front matter block at the start of the file")
        for index in range(1, len(lines)):
            if is_delimiter(lines[index]):
                newline = "\r\n" if lines[0].endswith("\r\n") else "\n"
                front_matter = FrontMatter(lines[1:index], newline=newline)
                return cls(front_matter, "".join(lines[index + 1 :]), lines[0], lines[index])
        raise FrontMatterError("Front matter block is not closed")

    @classmethod
    def load(cls, path):
        with open(path, "r", encoding="utf-8", newline="") as f:
            text = f.read()
        try:
            return cls.loads(text)
        except FrontMatterError as e:
            raise FrontMatterError(f"{path}: {e}") from None

    def dumps(self):
        return self._opening + self.front_matter.dumps() + self._closing + self.body


def read_front_matter(path):
    """Front matter of a file, or None when it has none."""
    try:
        return MarkdownDocument.load(path).front_matter
    except FrontMatterError as e:
        log.debug("%s", e)
        return None
