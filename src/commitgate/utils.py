"""Utility functions for commitgate."""

import datetime
import logging
import os
import re
import shutil
from enum import Enum

log = logging.getLogger(__name__)

MARKDOWN_EXTENSIONS = (".md", ".markdown")
IMAGE_EXTENSIONS = (".png", ".jpg", ".jpeg", ".gif", ".webp", ".svg", ".avif", ".ico")
SCRIPT_EXTENSIONS = (".js",)
CONFIG_EXTENSIONS = (".toml",)
MINIFIED_SUFFIX = ".min"


class FileKind(Enum):
    """Coarse file-type classification of a staged path."""

    MARKDOWN = "markdown"
    IMAGE = "image"
    SCRIPT = "script"
    CONFIG = "config"
    OTHER = "other"


def classify(path):
    """Classify a path by its extension.

    Args:
        path (str): File path, relative or absolute.

    Returns:
        FileKind: The classification.
    """
    ext = os.path.splitext(path)[1].lower()
    if ext in MARKDOWN_EXTENSIONS:
        return FileKind.MARKDOWN
    if ext in IMAGE_EXTENSIONS:
        return FileKind.IMAGE
    if ext in SCRIPT_EXTENSIONS:
        return FileKind.SCRIPT
    if ext in CONFIG_EXTENSIONS:
        return FileKind.CONFIG
    return FileKind.OTHER


def is_minified(path):
    """Check whether a script path carries the minified suffix, e.g. `app.min.js`."""
    stem = os.path.splitext(path)[0]
    return stem.endswith(MINIFIED_SUFFIX)


def minified_name(path):
    """`js/app.js` -> `js/app.min.js`"""
    stem, ext = os.path.splitext(path)
    return f"{stem}{MINIFIED_SUFFIX}{ext}"


def source_name(path):
    """`js/app.min.js` -> `js/app.js`"""
    stem, ext = os.path.splitext(path)
    if stem.endswith(MINIFIED_SUFFIX):
        stem = stem[: -len(MINIFIED_SUFFIX)]
    return f"{stem}{ext}"


def last_modified_date(path):
    """Local calendar date of the file's last modification.

    Args:
        path (str): File path.

    Returns:
        datetime.date: mtime as a date.
    """
    return datetime.date.fromtimestamp(os.path.getmtime(path))


def lines_from_marker(path, marker):
    """Count the lines from the first `marker` line to the end of the file.

    The marker line itself is counted.

    Args:
        path (str): File path.
        marker (str): Exact line content to look for, e.g. `[extra]`.

    Returns:
        int: Number of lines, or None when the marker is missing.
    """
    with open(path, "r", encoding="utf-8") as f:
        lines = f.read().splitlines()
    for index, line in enumerate(lines):
        if line.strip() == marker:
            return len(lines) - index
    return None


def which(command):
    """Resolve a command name or path to an executable, or None."""
    if not command:
        return None
    return shutil.which(command)


def matches(pattern, path):
    """Search a path with a regular expression, using forward slashes."""
    return re.search(pattern, path.replace(os.sep, "/")) is not None
