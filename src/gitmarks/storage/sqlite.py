# Author: PB
# Maintainer: PB
# Original date: 2025.07.05
# License: (c) HRDAG, 2025, GPL-2 or newer
#
# ------
# src/gitmarks/storage/sqlite.py

"""
SQLite-backed bookmark store.

The database is the authoritative copy of the records; the git repository
mirrors it. Records read from here always carry a checksum computed from
their current row content.
"""

from __future__ import annotations

import sqlite3
from pathlib import Path
from typing import Final, Iterable

import loguru

from gitmarks.data.record import Bookmark
from gitmarks.system.exceptions import GitmarksError

logger = loguru.logger

COUNTABLE_TABLES: Final = frozenset({"bookmarks", "tags"})

SCHEMA: Final = """
CREATE TABLE IF NOT EXISTS bookmarks (
    id          INTEGER PRIMARY KEY AUTOINCREMENT,
    url         TEXT    NOT NULL UNIQUE,
    title       TEXT    NOT NULL DEFAULT '',
    "desc"      TEXT    NOT NULL DEFAULT '',
    created_at  TEXT    NOT NULL DEFAULT '',
    last_visit  TEXT    NOT NULL DEFAULT '',
    updated_at  TEXT    NOT NULL DEFAULT '',
    visit_count INTEGER NOT NULL DEFAULT 0,
    favorite    INTEGER NOT NULL DEFAULT 0,
    checksum    TEXT    NOT NULL DEFAULT ''
);
CREATE TABLE IF NOT EXISTS tags (
    id   INTEGER PRIMARY KEY AUTOINCREMENT,
    name TEXT    NOT NULL UNIQUE
);
CREATE TABLE IF NOT EXISTS bookmark_tags (
    bookmark_id INTEGER NOT NULL REFERENCES bookmarks(id) ON DELETE CASCADE,
    tag_id      INTEGER NOT NULL REFERENCES tags(id) ON DELETE CASCADE,
    PRIMARY KEY (bookmark_id, tag_id)
);
"""

_SELECT: Final = """
SELECT b.id, b.url, b.title, b."desc", b.created_at, b.last_visit, b.updated_at,
       b.visit_count, b.favorite, group_concat(t.name, ',') AS tags
FROM bookmarks b
LEFT JOIN bookmark_tags bt ON bt.bookmark_id = b.id
LEFT JOIN tags t ON t.id = bt.tag_id
"""


class SQLiteStore:
    """Bookmark database with ``bookmarks``, ``tags`` and ``bookmark_tags`` tables."""

    def __init__(self, db_path: Path | str) -> None:
        self.db_path = Path(db_path)
        self._conn = self.connect()

    def connect(self) -> sqlite3.Connection:
        """Open the database, creating the schema if needed."""
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        conn = sqlite3.connect(self.db_path)
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA foreign_keys = ON")
        conn.executescript(SCHEMA)
        return conn

    @property
    def name(self) -> str:
        return self.db_path.name

    def close(self) -> None:
        if self._conn is not None:
            self._conn.close()
            self._conn = None

    def __enter__(self) -> SQLiteStore:
        return self

    def __exit__(self, *args: object) -> None:
        self.close()

    def count(self, table: str) -> int:
        if table not in COUNTABLE_TABLES:
            raise GitmarksError(f"Unknown table: {table!r}")
        return self._conn.execute(f"SELECT COUNT(*) FROM {table}").fetchone()[0]

    def count_favorites(self) -> int:
        return self._conn.execute("SELECT COUNT(*) FROM bookmarks WHERE favorite = 1").fetchone()[0]

    def all(self) -> list[Bookmark]:
        rows = self._conn.execute(f"{_SELECT} GROUP BY b.id ORDER BY b.id").fetchall()
        return [_row_to_bookmark(row) for row in rows]

    def by_url(self, url: str) -> Bookmark | None:
        row = self._conn.execute(f"{_SELECT} WHERE b.url = ? GROUP BY b.id", (url,)).fetchone()
        return _row_to_bookmark(row) if row else None

    def has(self, url: str) -> bool:
        row = self._conn.execute("SELECT 1 FROM bookmarks WHERE url = ?", (url,)).fetchone()
        return row is not None

    def insert_many(self, records: Iterable[Bookmark]) -> list[Bookmark]:
        """Insert records in one transaction; ids are assigned by the database.

        Returns:
            The inserted records with their new ids and matching checksums

        Raises:
            sqlite3.IntegrityError: If a URL already exists; nothing is inserted
        """
        inserted: list[Bookmark] = []
        with self._conn:
            for record in records:
                cur = self._conn.execute(
                    """
                    INSERT INTO bookmarks
                        (url, title, "desc", created_at, last_visit, updated_at,
                         visit_count, favorite)
                    VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                    """,
                    (
                        record.url,
                        record.title,
                        record.desc,
                        record.created_at,
                        record.last_visit,
                        record.updated_at,
                        record.visit_count,
                        int(record.favorite),
                    ),
                )
                stored = record.refreshed(id=cur.lastrowid)
                self._link_tags(stored.id, stored.tags)
                self._conn.execute(
                    "UPDATE bookmarks SET checksum = ? WHERE id = ?", (stored.checksum, stored.id)
                )
                inserted.append(stored)

        logger.debug(f"Inserted {len(inserted)} records into {self.name}")
        return inserted

    def _link_tags(self, bookmark_id: int, tags: list[str]) -> None:
        for tag in tags:
            self._conn.execute("INSERT OR IGNORE INTO tags (name) VALUES (?)", (tag,))
            self._conn.execute(
                """
                INSERT OR IGNORE INTO bookmark_tags (bookmark_id, tag_id)
                SELECT ?, id FROM tags WHERE name = ?
                """,
                (bookmark_id, tag),
            )


def _row_to_bookmark(row: sqlite3.Row) -> Bookmark:
    record = Bookmark(
        id=row["id"],
        url=row["url"],
        title=row["title"],
        desc=row["desc"],
        tags=row["tags"] or "",
        created_at=row["created_at"],
        last_visit=row["last_visit"],
        updated_at=row["updated_at"],
        visit_count=row["visit_count"],
        favorite=bool(row["favorite"]),
    )
    return record.with_checksum()
