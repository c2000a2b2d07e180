"""Repository handle: the git index and working tree the gate operates on."""

import logging
import os
import subprocess
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from commitgate.exceptions import GitError
from commitgate.utils import FileKind, classify, is_minified, minified_name, source_name

log = logging.getLogger(__name__)

# Enough context lines for a staged diff to cover a whole content file
FULL_CONTEXT = 1000000


@dataclass
class StagedFile:
    """A file that is part of the pending commit."""

    path: str
    status: str
    root: str = ""
    kind: FileKind = field(init=False)
    _content: Optional[bytes] = field(default=None, init=False, repr=False)

    def __post_init__(self):
        self.kind = classify(self.path)

    @property
    def abspath(self):
        return os.path.join(self.root, self.path)

    @property
    def name(self):
        return os.path.basename(self.path)

    @property
    def is_added(self):
        return self.status == "A"

    @property
    def is_modified(self):
        return self.status == "M"

    @property
    def is_markdown(self):
        return self.kind is FileKind.MARKDOWN

    @property
    def is_png(self):
        return self.path.lower().endswith(".png")

    @property
    def is_script(self):
        return self.kind is FileKind.SCRIPT

    @property
    def is_minified_script(self):
        return self.is_script and is_minified(self.path)

    @property
    def minified_sibling(self):
        """Repository-relative path of the minified counterpart."""
        return minified_name(self.path)

    @property
    def source_sibling(self):
        """Repository-relative path of the non-minified counterpart."""
        return source_name(self.path)

    @property
    def content(self) -> bytes:
        """File content on disk, read once."""
        if self._content is None:
            with open(self.abspath, "rb") as f:
                self._content = f.read()
        return self._content

    def invalidate(self):
        """Forget the cached content after the file was rewritten."""
        self._content = None


class Repository:
    """Explicit handle on the working tree and the git index.

    Writes go through `write`, which journals the original bytes, and staging
    is deferred until `flush` so an aborted run can be undone with `rollback`.
    """

    def __init__(self, root: Optional[str] = None):
        self.root = os.path.abspath(root) if root else self._discover_root()
        self._journal: Dict[str, bytes] = {}
        self._pending: List[str] = []

    @staticmethod
    def _discover_root() -> str:
        try:
            result = subprocess.run(
                ["git", "rev-parse", "--show-toplevel"],
                capture_output=True,
                encoding="utf-8",
                errors="surrogateescape",
                check=False,
            )
        except FileNotFoundError:
            raise GitError("git is not found on PATH") from None
        if result.returncode != 0:
            raise GitError(f"Not inside a git repository: {result.stderr.strip()}")
        return result.stdout.strip()

    def _run_git(self, *args: str, check: bool = True) -> subprocess.CompletedProcess:
        """Run a git command in the repository."""
        log.debug("Running git %s", " ".join(args))
        try:
            result = subprocess.run(
                ["git", *args],
                capture_output=True,
                encoding="utf-8",
                errors="surrogateescape",
                cwd=self.root,
            )
        except FileNotFoundError:
            raise GitError("git is not found on PATH") from None
        if check and result.returncode != 0:
            raise GitError(f"git {args[0]} failed: {result.stderr.strip()}")
        return result

    def path(self, relpath: str) -> str:
        """Absolute path of a repository-relative path."""
        return os.path.join(self.root, relpath)

    def exists(self, relpath: str) -> bool:
        return os.path.isfile(self.path(relpath))

    def staged_files(self) -> List[StagedFile]:
        """Added and modified files of the pending commit, deletions excluded."""
        # -z keeps paths unquoted, status and path are separate fields
        result = self._run_git("diff", "--cached", "--name-status", "--no-renames", "--diff-filter=AM", "-z")
        fields = result.stdout.split("\0")
        staged = []
        for status, path in zip(fields[0::2], fields[1::2]):
            if not status or not path:
                continue
            staged.append(StagedFile(path=path, status=status[0], root=self.root))
        log.debug("%d staged files", len(staged))
        return staged

    def staged_diff(self, relpath: str, context: int = FULL_CONTEXT) -> str:
        """Unified diff between HEAD and the index for one file."""
        result = self._run_git(
            "diff",
            "--cached",
            "--no-color",
            "--no-ext-diff",
            f"--unified={context}",
            "--",
            relpath,
        )
        return result.stdout

    def journal(self, relpath: str) -> None:
        """Remember the original bytes of a file before it gets rewritten."""
        if relpath in self._journal:
            return
        with open(self.path(relpath), "rb") as f:
            self._journal[relpath] = f.read()

    def write(self, relpath: str, data: bytes) -> None:
        """Replace a file's content, journalling the original first."""
        self.journal(relpath)
        with open(self.path(relpath), "wb") as f:
            f.write(data)
        log.debug("Rewrote %s", relpath)

    @property
    def rewritten(self) -> List[str]:
        return list(self._journal)

    def stage(self, relpath: str) -> None:
        """Queue a path for `git add` once every check has passed."""
        if relpath not in self._pending:
            self._pending.append(relpath)

    @property
    def pending(self) -> List[str]:
        return list(self._pending)

    def flush(self) -> List[str]:
        """Stage every queued path.

        Returns:
            The staged paths.
        """
        staged = self._pending
        if staged:
            self._run_git("add", "--", *staged)
            log.info("Re-staged %s", ", ".join(staged))
        self._pending = []
        self._journal = {}
        return staged

    def rollback(self) -> None:
        """Restore every journalled file and drop queued staging."""
        for relpath, data in self._journal.items():
            with open(self.path(relpath), "wb") as f:
                f.write(data)
            log.info("Restored %s", relpath)
        self._journal = {}
        self._pending = []

    def hooks_dir(self) -> str:
        """Directory git runs hooks from, honouring core.hooksPath."""
        result = self._run_git("rev-parse", "--git-path", "hooks")
        hooks = result.stdout.strip()
        return hooks if os.path.isabs(hooks) else self.path(hooks)

    def set_config(self, key: str, value: str) -> None:
        self._run_git("config", key, value)
