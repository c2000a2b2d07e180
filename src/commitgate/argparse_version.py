"""Provides a custom argparse action to show the program's version and exit."""

import logging
from argparse import Action

from .__about__ import __version__
from .tool_factory import ToolFactory
from .tools.cards import CardGenerator
from .tools.fonts import FontSubsetter

log = logging.getLogger(__name__)


class VersionAction(Action):
    """Flag the program's version, with the external tools it can use, for display.

    The output depends on the configuration, so it is produced by
    `version_text` once every option, `-c` included, has been parsed.
    """

    def __init__(self, **kwargs):
        # Set default values if not provided in kwargs
        kwargs.setdefault("default", False)
        kwargs.setdefault("nargs", 0)
        kwargs.setdefault("help", "show program's version number and available tools, and exit")
        super().__init__(**kwargs)

    def __call__(self, parser, namespace, values, option_string=None):
        setattr(namespace, self.dest, True)


def version_text(parser, config, cwd=None):
    """Version line listing which external tools are installed."""
    tools = []
    for name, tool_class in list(ToolFactory.COMPRESSORS.items()) + list(ToolFactory.MINIFIERS.items()):
        tools.append((name, tool_class(cwd=cwd).is_available()))
    for tool in (
        CardGenerator(command=config.get("social_cards.command"), cwd=cwd),
        FontSubsetter(command=config.get("font_subset.command"), cwd=cwd),
    ):
        tools.append((tool.command, tool.is_available()))
    listing = ", ".join(f"{name} ({'found' if found else 'missing'})" for name, found in tools)
    return f"{parser.prog} {__version__}; tools: {listing}\n"
