"""Factory for external tools."""

import logging
from collections import OrderedDict

from commitgate.tools.cards import CardGenerator, UnavailableCardGenerator
from commitgate.tools.compressors import OptipngCompressor, OxipngCompressor, UnavailableCompressor
from commitgate.tools.fonts import FontSubsetter, UnavailableFontSubsetter
from commitgate.tools.minifiers import TerserMinifier, UglifyJSMinifier, UnavailableMinifier

log = logging.getLogger(__name__)


class ToolFactory:
    """
    Tools are listed in preference order. For every capability the gate gets
    either a working tool or its `Unavailable*` stand-in, never None.
    """

    COMPRESSORS = OrderedDict(
        {
            "oxipng": OxipngCompressor,
            "optipng": OptipngCompressor,
        }
    )

    MINIFIERS = OrderedDict(
        {
            "terser": TerserMinifier,
            "uglifyjs": UglifyJSMinifier,
        }
    )

    def __init__(self, config, cwd=None):
        self.config = config
        self.cwd = cwd

    def _select(self, registry, wanted):
        for name in wanted:
            tool_class = registry.get(name)
            if tool_class is None:
                log.warning("Unknown tool %s in configuration, ignoring", name)
                continue
            tool = tool_class(cwd=self.cwd)
            if tool.is_available():
                log.debug("Using %r", tool)
                yield tool
            else:
                log.debug("%s is not installed", name)

    def get_compressor(self):
        """First available PNG compressor."""
        for tool in self._select(self.COMPRESSORS, self.config.compressors):
            return tool
        return UnavailableCompressor(wanted=self.config.compressors, cwd=self.cwd)

    def get_minifiers(self):
        """Every available minifier, or a single `UnavailableMinifier`."""
        minifiers = list(self._select(self.MINIFIERS, self.config.minifiers))
        return minifiers or [UnavailableMinifier(wanted=self.config.minifiers, cwd=self.cwd)]

    def get_card_generator(self):
        command = self.config.get("social_cards.command")
        if not self.config.social_cards_enabled:
            log.debug("Social cards are disabled")
            return UnavailableCardGenerator(wanted=command, cwd=self.cwd)
        tool = CardGenerator(
            command=command,
            cwd=self.cwd,
            output_dir=self.config.get("social_cards.output_dir"),
            base_url=self.config.get("social_cards.base_url"),
        )
        if tool.is_available():
            return tool
        return UnavailableCardGenerator(wanted=command, cwd=self.cwd)

    def get_font_subsetter(self):
        command = self.config.get("font_subset.command")
        tool = FontSubsetter(
            command=command,
            cwd=self.cwd,
            output_file=self.config.get("font_subset.output_file"),
        )
        if tool.is_available():
            return tool
        return UnavailableFontSubsetter(wanted=command, cwd=self.cwd)
