# Author: PB
# Maintainer: PB
# Original date: 2025.07.04
# License: (c) HRDAG, 2025, GPL-2 or newer
#
# ------
# src/gitmarks/storage/git.py

"""
Git working-tree operations via the git CLI.

One GitManager drives the git root that holds every database's mirror
directory. All calls go through CommandExecutor, so a failing git command
raises CommandError carrying git's stderr.
"""

from pathlib import Path

import loguru

from gitmarks.system.exceptions import (
    GitmarksError,
    NothingToCommitError,
    RepoNotInitializedError,
)
from gitmarks.system.execution import CommandExecutor

logger = loguru.logger

_STATUS_LABELS = (("A", "Add"), ("D", "Del"), ("M", "Mod"))


class GitManager:
    """Wraps git CLI operations on a repository directory."""

    def __init__(self, repo_path: Path, command: str = "git") -> None:
        self.repo_path = Path(repo_path)
        self.command = command

    def _run(self, *args: str, check: bool = True):
        return CommandExecutor.run([self.command, *args], cwd=self.repo_path, check=check)

    def _output(self, *args: str) -> str:
        return CommandExecutor.output([self.command, *args], cwd=self.repo_path)

    def is_initialized(self) -> bool:
        return (self.repo_path / ".git").exists()

    def init(self, force: bool = False) -> None:
        """Create the repository.

        Raises:
            GitmarksError: If already initialized and force is False
        """
        if self.is_initialized() and not force:
            raise GitmarksError(f"Git repository already initialized: {self.repo_path}")
        self.repo_path.mkdir(parents=True, exist_ok=True)
        self._run("init")
        logger.info(f"Initialized git repository in {self.repo_path}")

    def _require_initialized(self) -> None:
        if not self.is_initialized():
            raise RepoNotInitializedError(f"Not a git repository: {self.repo_path}")

    def add_all(self) -> None:
        self._require_initialized()
        self._run("add", "-A")

    def commit(self, message: str) -> None:
        """Commit staged changes.

        Raises:
            NothingToCommitError: If nothing is staged
        """
        self._require_initialized()
        staged = self._run("diff", "--cached", "--quiet", check=False)
        if staged.returncode == 0:
            raise NothingToCommitError(f"Nothing to commit in {self.repo_path}")
        self._run("commit", "-m", message)
        logger.debug(f"Committed in {self.repo_path}: {message}")

    def has_commits(self) -> bool:
        return self._run("rev-parse", "--verify", "HEAD", check=False).returncode == 0

    def status(self) -> str:
        """Count staged changes as e.g. ``Add:2 Del:1 Mod:3``.

        Returns an empty string for a repository without commits.
        """
        self._require_initialized()
        if not self.has_commits():
            return ""

        counts = {code: 0 for code, _ in _STATUS_LABELS}
        for line in self._output("diff", "--cached", "--name-status").splitlines():
            fields = line.split()
            if len(fields) < 2:
                continue
            code = fields[0][:1]
            if code in counts:
                counts[code] += 1

        return " ".join(f"{label}:{counts[code]}" for code, label in _STATUS_LABELS if counts[code])

    def branch(self) -> str:
        """Current branch name, including an unborn branch in a fresh repository."""
        self._require_initialized()
        result = self._run("symbolic-ref", "--short", "HEAD", check=False)
        if result.returncode == 0:
            return result.stdout.decode("utf-8", errors="replace").strip()
        # detached HEAD
        return self._output("rev-parse", "--abbrev-ref", "HEAD")

    def remote(self) -> str:
        """Origin URL, or an empty string when none is configured."""
        self._require_initialized()
        result = self._run("config", "--get", "remote.origin.url", check=False)
        if result.returncode != 0:
            return ""
        return result.stdout.decode("utf-8", errors="replace").strip()

    def has_changes(self) -> bool:
        """True if the working tree has staged, unstaged or untracked changes."""
        self._require_initialized()
        return self._output("status", "--porcelain") != ""

    def has_upstream(self) -> bool:
        self._require_initialized()
        result = self._run("rev-parse", "--abbrev-ref", "--symbolic-full-name", "@{u}", check=False)
        return result.returncode == 0

    def has_unpushed_commits(self) -> bool:
        """True if HEAD is ahead of its upstream. False without an upstream."""
        if not self.has_upstream():
            return False
        return self._output("rev-list", "--count", "HEAD", "^@{u}") != "0"

    def clone(self, url: str) -> None:
        """Clone url into the repository directory."""
        self.repo_path.parent.mkdir(parents=True, exist_ok=True)
        CommandExecutor.run([self.command, "clone", url, str(self.repo_path)])
        logger.info(f"Cloned {url} into {self.repo_path}")

    def add_remote(self, url: str, force: bool = False) -> None:
        """Add origin, or repoint it when force is True."""
        self._require_initialized()
        if force and self.remote():
            self._run("remote", "set-url", "origin", url)
        else:
            self._run("remote", "add", "origin", url)

    def push(self) -> None:
        """Push the current branch, setting its upstream if it has none.

        Raises:
            GitmarksError: If no remote is configured
        """
        self._require_initialized()
        if not self._output("remote"):
            raise GitmarksError(f"No git remote configured in {self.repo_path}")
        if self.has_upstream():
            self._run("push")
        else:
            self._run("push", "--set-upstream", "origin", self.branch())

    def set_config_local(self, key: str, value: str) -> None:
        self._require_initialized()
        self._run("config", "--local", key, value)

