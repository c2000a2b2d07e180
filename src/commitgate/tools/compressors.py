"""Lossless in-place PNG compressors."""

import logging

from commitgate.tools.base import BaseTool, UnavailableTool

log = logging.getLogger(__name__)


class Compressor(BaseTool):
    """Compresses an image file in place."""

    ARGS = ()

    def compress(self, path):
        """Compress `path` in place.

        Returns:
            bool: True when the tool ran.
        """
        self.run([*self.ARGS, path])
        return True


class OxipngCompressor(Compressor):
    NAME = "oxipng"
    DEFAULT_COMMAND = "oxipng"
    ARGS = ("--opt", "max", "--strip", "safe", "--quiet")


class OptipngCompressor(Compressor):
    NAME = "optipng"
    DEFAULT_COMMAND = "optipng"
    ARGS = ("-o7", "-strip", "all", "-quiet")


class UnavailableCompressor(UnavailableTool, Compressor):
    """No PNG compressor installed: images are committed as they are."""

    def compress(self, path):
        log.info("No PNG compressor found, not compressing %s", path)
        return False
