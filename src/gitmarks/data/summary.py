# Author: PB
# Maintainer: PB
# Original date: 2025.07.05
# License: (c) HRDAG, 2025, GPL-2 or newer
#
# ------
# src/gitmarks/data/summary.py

"""
The sync manifest (summary.json) written at the root of each repository.

A manifest built from live state describes the current local truth; the
copy persisted in the repository describes the last committed sync. The
two are compared with SyncManifest.drift().
"""

from __future__ import annotations

import platform
import socket
from datetime import datetime, UTC
from pathlib import Path
from typing import Any, Final

import loguru
import orjson
from pydantic import BaseModel, Field

from gitmarks import __version__
from gitmarks.data.paths import SUMMARY_FILENAME
from gitmarks.data.record import CHECKSUM_LENGTH, HASH_ALGORITHM, generate_hash

logger = loguru.logger

CONFLICT_RESOLUTION: Final = "checksum"

# Fields that do not describe repository content
_DRIFT_IGNORED: Final = frozenset({"last_sync", "checksum", "client_info"})

__all__ = [
    "CONFLICT_RESOLUTION",
    "ClientInfo",
    "RepoStats",
    "SUMMARY_FILENAME",
    "SyncManifest",
]


class RepoStats(BaseModel):
    dbname: str = ""
    bookmarks: int = 0
    tags: int = 0
    favorites: int = 0

    def line(self) -> str:
        """Human summary such as '3 bookmarks, 2 tags'."""
        parts = []
        if self.bookmarks > 0:
            parts.append(f"{self.bookmarks} bookmarks")
        if self.tags > 0:
            parts.append(f"{self.tags} tags")
        if self.favorites > 0:
            parts.append(f"{self.favorites} favorites")
        return ", ".join(parts) if parts else "no bookmarks"


class ClientInfo(BaseModel):
    hostname: str = ""
    platform: str = ""
    architecture: str = ""
    app_version: str = ""

    @classmethod
    def current(cls, app_version: str = __version__) -> "ClientInfo":
        """Describe the machine this process runs on."""
        return cls(
            hostname=socket.gethostname(),
            platform=platform.system().lower(),
            architecture=platform.machine(),
            app_version=app_version,
        )


class SyncManifest(BaseModel):
    """Sync metadata and aggregate statistics for one repository."""
    git_branch: str = ""
    git_remote: str = ""
    last_sync: str = ""
    conflict_resolution: str = CONFLICT_RESOLUTION
    hash_algorithm: str = HASH_ALGORITHM
    stats: RepoStats = Field(default_factory=RepoStats)
    client_info: ClientInfo = Field(default_factory=ClientInfo)
    checksum: str = ""

    def generate_checksum(self) -> str:
        """Digest over everything except last_sync and the checksum itself.

        Fields are concatenated without separators, matching summary.json
        files already in existing repositories.
        """
        parts = [
            self.git_branch,
            self.git_remote,
            self.conflict_resolution,
            self.hash_algorithm,
            self.stats.dbname,
            str(self.stats.bookmarks),
            str(self.stats.tags),
            str(self.stats.favorites),
            self.client_info.hostname,
            self.client_info.platform,
            self.client_info.architecture,
            self.client_info.app_version,
        ]
        return generate_hash("".join(parts), CHECKSUM_LENGTH)

    def refresh_checksum(self) -> "SyncManifest":
        self.checksum = self.generate_checksum()
        return self

    def verify_checksum(self) -> bool:
        return self.checksum == self.generate_checksum()

    def stamp(self, when: datetime | None = None) -> "SyncManifest":
        """Set last_sync (RFC 3339) to when, or now."""
        when = when or datetime.now(UTC)
        self.last_sync = when.isoformat(timespec="seconds")
        return self

    def drift(self, other: "SyncManifest") -> dict[str, tuple[Any, Any]]:
        """Fields whose values differ from other, as {field: (ours, theirs)}.

        Nested stats are reported as ``stats.<field>``.
        """
        ours = self._flatten()
        theirs = other._flatten()
        return {
            key: (ours.get(key), theirs.get(key))
            for key in sorted(ours.keys() | theirs.keys())
            if ours.get(key) != theirs.get(key)
        }

    def _flatten(self) -> dict[str, Any]:
        flat: dict[str, Any] = {}
        for key, value in self.model_dump(exclude=set(_DRIFT_IGNORED)).items():
            if isinstance(value, dict):
                for sub_key, sub_value in value.items():
                    flat[f"{key}.{sub_key}"] = sub_value
            else:
                flat[key] = value
        return flat

    def to_json(self) -> bytes:
        return orjson.dumps(self.model_dump(), option=orjson.OPT_INDENT_2) + b"\n"

    def save(self, path: Path) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(self.to_json())
        logger.debug(f"Wrote manifest {path} (checksum {self.checksum})")

    @classmethod
    def load(cls, path: Path) -> "SyncManifest":
        """Read a persisted manifest.

        Raises:
            FileNotFoundError: If path does not exist
            orjson.JSONDecodeError, pydantic.ValidationError: If it is malformed
        """
        manifest = cls.model_validate(orjson.loads(path.read_bytes()))
        if not manifest.verify_checksum():
            logger.warning(f"Manifest {path} checksum does not match its content")
        return manifest
