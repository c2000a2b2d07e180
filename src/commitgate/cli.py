"""CLI entry point."""

import argparse
import logging
import os
import stat
import sys

from commitgate.argparse_version import VersionAction, version_text
from commitgate.config import Config, get_config
from commitgate.exceptions import CommitGateError, GitError
from commitgate.gate import CommitGate
from commitgate.repository import Repository

log = logging.getLogger("commitgate")

HOOK_MARKER = "# installed by commitgate"
HOOK_TEMPLATE = """#!/bin/sh
{marker}
exec "{python}" -m commitgate run
"""


def install_hook(repo, hooks_path=None, force=False):
    """Write the pre-commit shim.

    Args:
        repo (Repository): Repository to install into.
        hooks_path (str): Directory to put the hook in and point
            `core.hooksPath` to. The hook directory git already uses when None.
        force (bool): Overwrite a pre-commit hook that was not installed by us.

    Returns:
        int: Exit code
    """
    hooks_dir = repo.hooks_dir()
    if hooks_path:
        hooks_dir = hooks_path if os.path.isabs(hooks_path) else repo.path(hooks_path)
    hook = os.path.join(hooks_dir, "pre-commit")

    if os.path.exists(hook) and not force:
        with open(hook, "r", encoding="utf-8", errors="replace") as f:
            if HOOK_MARKER not in f.read():
                log.critical("%s already exists, use --force to replace it", hook)
                return sys.exit(1)

    os.makedirs(hooks_dir, exist_ok=True)
    with open(hook, "w", encoding="utf-8") as f:
        f.write(HOOK_TEMPLATE.format(marker=HOOK_MARKER, python=sys.executable))
    mode = os.stat(hook).st_mode
    os.chmod(hook, mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)

    if hooks_path:
        repo.set_config("core.hooksPath", os.path.relpath(hooks_dir, repo.root))
    print(f"Installed pre-commit hook: {hook}")
    return sys.exit(0)


def main(argv=None):
    """
    The entrypoint to CLI app.

    Args:
        argv: List of arguments, helps test CLI without resorting to subprocess module.
    """
    parser = argparse.ArgumentParser(
        description="Check and tidy the files of a commit. Meant to run as a git pre-commit hook.",
        prog="commitgate",
    )
    parser.add_argument(
        "action",
        nargs="?",
        default="run",
        help="Action to run. Default: run",
        choices=["run", "check", "install"],
    )
    parser.add_argument(
        "-c",
        "--config",
        dest="config",
        metavar="FILE",
        help="Configuration file. Default: .commitgate.yml in the repository, then the user config",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="count",
        default=0,
        help="Will give you an idea of what is happening under the hood, " "-vv to increase verbosity level",
    )
    parser.add_argument(
        "-q",
        "--quiet",
        dest="quiet",
        action="store_true",
        help="Suppress all non-error output",
    )
    parser.add_argument(
        "--hooks-path",
        dest="hooks_path",
        metavar="DIR",
        help="With install: put the hook in DIR and point core.hooksPath to it",
    )
    parser.add_argument(
        "-f",
        "--force",
        dest="force",
        action="store_true",
        help="With install: replace an existing pre-commit hook",
    )
    parser.add_argument("--version", dest="version", action=VersionAction)
    args = parser.parse_args(argv)

    if args.version:
        try:
            repo_root = Repository().root
        except GitError:
            repo_root = None
        sys.stdout.write(version_text(parser, Config(args.config, repo_root=repo_root), cwd=repo_root))
        return sys.exit(0)

    # instead of using root logger, we use
    logger = logging.getLogger("commitgate")
    # create console handler, it writes to stderr
    ch = logging.StreamHandler()
    fmt = "%(name)s - %(levelname)s - %(message)s" if args.verbose else "%(levelname)s: %(message)s"
    ch.setFormatter(logging.Formatter(fmt))
    logger.addHandler(ch)

    if args.quiet:
        logger.setLevel(logging.ERROR)
    elif args.verbose:
        logger.setLevel(logging.DEBUG)
        log.info("Verbose %s level output.", args.verbose)
    else:
        logger.setLevel(logging.INFO)

    try:
        try:
            repo = Repository()
        except CommitGateError as error:
            log.critical(str(error))
            return sys.exit(1)

        if args.action == "install":
            return install_hook(repo, hooks_path=args.hooks_path, force=args.force)

        config = get_config(args.config, repo.root)
        gate = CommitGate(repo, config, rewrite=args.action == "run")
        try:
            gate.run()
        except CommitGateError as error:
            log.critical(str(error))
            return sys.exit(1)
        return sys.exit(0)
    finally:
        logger.removeHandler(ch)
