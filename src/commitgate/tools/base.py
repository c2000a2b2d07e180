"""The base external tool class."""

import logging
import subprocess

from commitgate.exceptions import ToolError
from commitgate.utils import which

log = logging.getLogger(__name__)


class BaseTool:
    """An optional command-line tool.

    A tool is available when its command resolves to an executable. Callers
    never check for `FileNotFoundError`: they ask `is_available()` first, or
    get one of the `Unavailable*` variants from the factory.
    """

    NAME = None
    DEFAULT_COMMAND = None

    def __init__(self, command=None, cwd=None):
        self.command = command or self.DEFAULT_COMMAND
        self.cwd = cwd
        self._executable = None

    def __repr__(self):
        return f"{self.__class__.__name__}({self.command!r})"

    @property
    def executable(self):
        if self._executable is None:
            self._executable = which(self.command)
        return self._executable

    def is_available(self):
        return self.executable is not None

    def run(self, args, text=False):
        """Run the tool and return its stdout.

        Raises:
            ToolError: On a nonzero exit status.
        """
        cmd = [self.executable or self.command, *args]
        log.debug("Running %s", " ".join(cmd))
        try:
            result = subprocess.run(cmd, capture_output=True, text=text, cwd=self.cwd)
        except OSError as e:
            raise ToolError(f"{self.NAME} could not be started: {e}") from None
        if result.returncode != 0:
            stderr = result.stderr if text else result.stderr.decode("utf-8", errors="replace")
            raise ToolError(f"{self.NAME} failed with exit code {result.returncode}: {stderr.strip()}")
        return result.stdout


class UnavailableTool(BaseTool):
    """Stands in for a tool that is not installed."""

    NAME = "unavailable"

    def __init__(self, wanted=None, cwd=None):
        super().__init__(command=None, cwd=cwd)
        self.wanted = wanted

    def __repr__(self):
        return f"{self.__class__.__name__}({self.wanted!r})"

    def is_available(self):
        return False
