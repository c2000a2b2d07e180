"""Helper functions for tests."""
import datetime
import os
import subprocess
import sys
from contextlib import contextmanager

from commitgate.config import Config


@contextmanager
def captured_exit_code():
    """Capture the exit code of a function."""
    exit_code = None

    def mock_exit(code=0):
        """Mock the exit function."""
        nonlocal exit_code
        exit_code = code

    original_exit = sys.exit
    sys.exit = mock_exit
    try:
        yield lambda: exit_code
    finally:
        sys.exit = original_exit


def set_mtime(path, year, month, day):
    """Set a file's modification time to noon, local time, of the given day."""
    timestamp = datetime.datetime(year, month, day, 12, 0).timestamp()
    os.utime(path, (timestamp, timestamp))


def offline_config(tmp_path):
    """Default configuration with every external tool switched off."""
    config = Config(config_path=str(tmp_path / "no-such-config.yml"))
    config.set("tools.compressors", [])
    config.set("tools.minifiers", [])
    config.set("social_cards.enabled", False)
    config.set("font_subset.command", "commitgate-test-missing-subsetter")
    return config


class GitRepo:
    """A throwaway git repository for end-to-end tests."""

    def __init__(self, root):
        self.root = str(root)
        os.makedirs(self.root, exist_ok=True)
        self.git("init", "-q")
        self.git("config", "user.name", "Test")
        self.git("config", "user.email", "test@example.com")
        self.git("config", "commit.gpgsign", "false")

    def git(self, *args):
        result = subprocess.run(["git", *args], cwd=self.root, capture_output=True, encoding="utf-8", check=True)
        return result.stdout

    def path(self, relpath):
        return os.path.join(self.root, relpath)

    def write(self, relpath, content):
        path = self.path(relpath)
        os.makedirs(os.path.dirname(path), exist_ok=True)
        mode = "wb" if isinstance(content, bytes) else "w"
        with open(path, mode) as f:
            f.write(content)
        return path

    def read(self, relpath):
        with open(self.path(relpath), "r", encoding="utf-8") as f:
            return f.read()

    def add(self, *paths):
        self.git("add", "--", *paths)

    def commit(self, message="commit"):
        self.git("commit", "-q", "--no-verify", "-m", message)

    def staged_content(self, relpath):
        """Content of a file as it sits in the index."""
        return self.git("show", f":{relpath}")

    def unstaged(self):
        return self.git("diff", "--name-only").split()
