"""JavaScript minifiers used to judge committed `.min.js` files."""

import logging

from commitgate.tools.base import BaseTool, UnavailableTool

log = logging.getLogger(__name__)


class Minifier(BaseTool):
    """Minifies a script and returns the result."""

    ARGS = ("--compress", "--mangle")

    def minify(self, path):
        """Minify `path`.

        Returns:
            bytes: The minified script.
        """
        return self.run([path, *self.ARGS])


class TerserMinifier(Minifier):
    NAME = "terser"
    DEFAULT_COMMAND = "terser"


class UglifyJSMinifier(Minifier):
    NAME = "uglifyjs"
    DEFAULT_COMMAND = "uglifyjs"


class UnavailableMinifier(UnavailableTool, Minifier):
    def minify(self, path):
        log.debug("No minifier found among %s for %s", self.wanted, path)
        return None
