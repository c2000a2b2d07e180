"""Font subsetting driven by the site configuration."""

import logging

from commitgate.tools.base import BaseTool, UnavailableTool

log = logging.getLogger(__name__)


class FontSubsetter(BaseTool):
    """Builds a subset of a font holding only the glyphs the site title needs."""

    NAME = "subset_font"
    DEFAULT_COMMAND = "subset_font"

    def __init__(self, command=None, cwd=None, output_file="static/custom_subset.css"):
        super().__init__(command=command, cwd=cwd)
        self.output_file = output_file

    def subset(self, config_path, font_path, output_dir):
        """Run the subsetter.

        Returns:
            str: The generated stylesheet, relative to the repository root.
        """
        self.run(["-c", config_path, "-f", font_path, "-o", output_dir])
        return self.output_file


class UnavailableFontSubsetter(UnavailableTool, FontSubsetter):
    def subset(self, config_path, font_path, output_dir):
        log.info("%s not found, not updating the font subset", self.wanted or self.DEFAULT_COMMAND)
        return None
