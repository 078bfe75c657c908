# Author: PB
# Maintainer: PB
# Original date: 2025.07.04
# License: (c) HRDAG, 2025, GPL-2 or newer
#
# ------
# src/gitmarks/core/protocols.py

"""
Collaborator interfaces consumed by the sync engine.

The engine never talks to sqlite, git or gpg directly; it talks to objects
satisfying these protocols, so tests can substitute in-memory fakes.
"""

from pathlib import Path
from typing import Iterable, Protocol

from gitmarks.data.record import Bookmark


class RecordStore(Protocol):
    """Relational store holding the authoritative bookmark records."""

    @property
    def name(self) -> str:
        """Database file name, e.g. ``bookmarks.db``."""
        ...

    def count(self, table: str) -> int:
        """Number of rows in a table (``bookmarks`` or ``tags``)."""
        ...

    def count_favorites(self) -> int:
        ...

    def all(self) -> list[Bookmark]:
        """All records, ordered by id."""
        ...

    def by_url(self, url: str) -> Bookmark | None:
        ...

    def has(self, url: str) -> bool:
        """True if a record with this URL exists.

        Must not mutate the store.
        """
        ...

    def insert_many(self, records: Iterable[Bookmark]) -> list[Bookmark]:
        """Insert records in a single transaction.

        Returns:
            The inserted records with ids and checksums populated
        """
        ...


class VersionControl(Protocol):
    """External version-control process driving a working tree."""

    def init(self, force: bool = False) -> None:
        ...

    def is_initialized(self) -> bool:
        ...

    def add_all(self) -> None:
        ...

    def commit(self, message: str) -> None:
        """Commit staged changes.

        Raises:
            NothingToCommitError: If nothing is staged
        """
        ...

    def status(self) -> str:
        """Short summary of staged changes, e.g. ``Add:2 Mod:1``."""
        ...

    def branch(self) -> str:
        ...

    def remote(self) -> str:
        """Origin URL, or an empty string when no remote is configured."""
        ...

    def has_changes(self) -> bool:
        ...

    def push(self) -> None:
        ...

    def set_config_local(self, key: str, value: str) -> None:
        ...


class EncryptionTransform(Protocol):
    """External encryption process applied to record payloads."""

    def is_initialized(self, root: Path) -> bool:
        """True if root carries a key marker and files must be encrypted."""
        ...

    def recipient(self, root: Path) -> str:
        """Key fingerprint files under root are encrypted to."""
        ...

    def encrypt(self, path: Path, data: bytes, recipient: str) -> None:
        """Encrypt data and write it to path."""
        ...

    def decrypt(self, path: Path) -> bytes:
        """Decrypt the file at path. The first call may prompt for a secret."""
        ...
