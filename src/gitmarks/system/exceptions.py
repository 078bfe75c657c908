# Author: PB
# Maintainer: PB
# Original date: 2025.07.02
# License: (c) HRDAG, 2025, GPL-2 or newer
#
# ------
# src/gitmarks/system/exceptions.py

"""
gitmarks-specific exception classes.

Every error raised by the sync engine derives from GitmarksError so callers
can catch engine failures without swallowing unrelated exceptions.
"""

from pathlib import Path
from typing import Optional, Sequence


class GitmarksError(Exception):
    """Base exception for all gitmarks errors."""
    pass


class ConfigError(GitmarksError):
    """Raised when configuration validation or loading fails."""
    pass


# === RECORD AND PATH ERRORS ===

class PathInvalidError(GitmarksError):
    """Raised when a record cannot be mapped to an on-disk location."""

    def __init__(self, message: str, url: str = None):
        self.url = url
        super().__init__(message)


class InvalidURLError(PathInvalidError):
    """Raised when a URL cannot be parsed into a domain component."""
    pass


class ChecksumMismatchError(GitmarksError):
    """Raised when a record's stored checksum disagrees with its content.

    This is data corruption. It is never repaired by regenerating the
    checksum, and a record that raised it must not reach the store.
    """

    def __init__(self, message: str, path: Optional[Path] = None,
                 expected: str = None, actual: str = None):
        self.path = path
        self.expected = expected
        self.actual = actual
        super().__init__(message)


class FileConflictError(GitmarksError):
    """Raised when a target file already exists and overwriting was not requested."""

    def __init__(self, message: str, path: Optional[Path] = None):
        self.path = path
        super().__init__(message)


# === REPOSITORY ERRORS ===

class RepoNotFoundError(GitmarksError):
    """Raised when a repository directory does not exist."""
    pass


class RepoNotInitializedError(GitmarksError):
    """Raised when an operation needs an initialized git repository."""
    pass


class RepoTrackedError(GitmarksError):
    """Raised when tracking a repository that is already tracked."""
    pass


class RepoNotTrackedError(GitmarksError):
    """Raised when an operation needs a tracked repository."""
    pass


class TrackerNotLoadedError(GitmarksError):
    """Raised when the tracker is used before load(). This is a programming error."""
    pass


class NothingToCommitError(GitmarksError):
    """Raised when a commit is requested on a clean working tree.

    Callers should treat this as success.
    """
    pass


# === EXTERNAL PROCESS ERRORS ===

class CommandError(GitmarksError):
    """Raised when an external command exits with a non-zero status."""

    def __init__(self, message: str, cmd: Sequence[str] = (), returncode: int = None,
                 stderr: str = ""):
        self.cmd = list(cmd)
        self.returncode = returncode
        self.stderr = stderr
        super().__init__(message)


class CommandNotFoundError(CommandError):
    """Raised when an external executable is not on PATH."""
    pass


class EncryptionError(GitmarksError):
    """Raised when encrypting or decrypting a record file fails."""

    def __init__(self, message: str, path: Optional[Path] = None):
        self.path = path
        super().__init__(message)


class NoFingerprintError(EncryptionError):
    """Raised when no key fingerprint is available for encryption."""
    pass


# === BATCH ERRORS ===

class ExportError(GitmarksError):
    """Raised when a batch export stops on a failing record.

    Files written before the failure stay on disk; `result` describes them.
    """

    def __init__(self, message: str, result=None, cause: Exception = None):
        self.result = result
        self.cause = cause
        super().__init__(message)


class BulkLoadError(GitmarksError):
    """Raised when at least one file failed during a bulk load.

    Carries the first captured error; no partial record list is returned.
    """

    def __init__(self, message: str, cause: Exception = None,
                 attempted: int = 0, loaded: int = 0):
        self.cause = cause
        self.attempted = attempted
        self.loaded = loaded
        super().__init__(message)
