# Author: PB
# Maintainer: PB
# Original date: 2025.07.07
# License: (c) HRDAG, 2025, GPL-2 or newer
#
# ------
# tests/fixtures/collaborators.py

"""In-memory stand-ins for the record store and git."""

from pathlib import Path
from typing import Iterable

from gitmarks.data.record import Bookmark
from gitmarks.system.exceptions import NothingToCommitError


class MockRecordStore:
    """In-memory RecordStore keyed by URL."""

    def __init__(self, records: Iterable[Bookmark] = (), name: str = "bookmarks.db"):
        self._name = name
        self._records: dict[str, Bookmark] = {}
        self.inserted: list[Bookmark] = []
        self.insert_many(records)
        self.inserted.clear()

    @property
    def name(self) -> str:
        return self._name

    def count(self, table: str) -> int:
        if table == "bookmarks":
            return len(self._records)
        if table == "tags":
            return len({tag for record in self._records.values() for tag in record.tags})
        raise ValueError(table)

    def count_favorites(self) -> int:
        return sum(1 for record in self._records.values() if record.favorite)

    def all(self) -> list[Bookmark]:
        return sorted(self._records.values(), key=lambda record: record.id)

    def by_url(self, url: str):
        return self._records.get(url)

    def has(self, url: str) -> bool:
        return url in self._records

    def insert_many(self, records: Iterable[Bookmark]) -> list[Bookmark]:
        out = []
        for record in records:
            stored = record.refreshed(id=len(self._records) + 1)
            self._records[stored.url] = stored
            out.append(stored)
        self.inserted.extend(out)
        return out


class MockGit:
    """Records git calls; the working tree is 'dirty' until committed."""

    def __init__(self, repo_path: Path, initialized: bool = True):
        self.repo_path = repo_path
        self.initialized = initialized
        self.dirty = True
        self.staged = False
        self.commits: list[str] = []
        self.config: dict[str, str] = {}
        self.pushed = 0
        self.status_text = "Add:2"

    def init(self, force: bool = False) -> None:
        self.initialized = True

    def is_initialized(self) -> bool:
        return self.initialized

    def add_all(self) -> None:
        self.staged = self.dirty

    def commit(self, message: str) -> None:
        if not self.staged:
            raise NothingToCommitError("nothing staged")
        self.commits.append(message)
        self.staged = False
        self.dirty = False

    def status(self) -> str:
        return self.status_text

    def branch(self) -> str:
        return "main"

    def remote(self) -> str:
        return ""

    def has_changes(self) -> bool:
        return self.dirty

    def push(self) -> None:
        self.pushed += 1

    def set_config_local(self, key: str, value: str) -> None:
        self.config[key] = value


def make_bookmark(url: str, **fields) -> Bookmark:
    fields.setdefault("title", f"Title of {url}")
    fields.setdefault("created_at", "2025-07-01T10:00:00Z")
    return Bookmark(url=url, **fields)


