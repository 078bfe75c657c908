# Author: PB
# Maintainer: PB
# Original date: 2025.07.05
# License: (c) HRDAG, 2025, GPL-2 or newer
#
# ------
# src/gitmarks/core/tracker.py

"""
Persistent list of the repositories that take part in sync.

Each repository is identified by the hash of its database's absolute path.
The list lives in ``.tracked.json`` at the git root, as a JSON array.

Lifecycle: a tracker starts unloaded. load() reads the file once; every
other operation requires a prior load() and raises TrackerNotLoadedError
otherwise.
"""

from pathlib import Path
from typing import Final

import loguru
import orjson

from gitmarks.data.record import hash_path
from gitmarks.system.exceptions import GitmarksError, TrackerNotLoadedError

logger = loguru.logger

TRACKER_FILENAME: Final = ".tracked.json"


def repo_id(db_path: Path) -> str:
    """Stable identifier of the repository mirroring db_path."""
    return hash_path(str(Path(db_path).expanduser().resolve()))


class RepositoryTracker:

    def __init__(self, git_root: Path) -> None:
        self.filename = Path(git_root) / TRACKER_FILENAME
        self._ids: list[str] = []
        self._loaded = False

    @property
    def loaded(self) -> bool:
        return self._loaded

    def load(self) -> "RepositoryTracker":
        """Read the tracker file. Calling it again is a no-op."""
        if self._loaded:
            return self

        if self.filename.exists():
            data = orjson.loads(self.filename.read_bytes())
            if not isinstance(data, list) or not all(isinstance(item, str) for item in data):
                raise GitmarksError(f"Tracker file {self.filename} must hold a JSON array of strings")
            self._ids = data
            logger.debug(f"Loaded {len(data)} tracked repositories from {self.filename}")

        self._loaded = True
        return self

    def _require_loaded(self, operation: str) -> None:
        if not self._loaded:
            raise TrackerNotLoadedError(f"Tracker {operation}() called before load()")

    def track(self, identifier: str) -> "RepositoryTracker":
        self._require_loaded("track")
        self._ids.append(identifier)
        return self

    def untrack(self, identifier: str) -> "RepositoryTracker":
        self._require_loaded("untrack")
        self._ids = [item for item in self._ids if item != identifier]
        return self

    def contains(self, identifier: str) -> bool:
        self._require_loaded("contains")
        return identifier in self._ids

    def tracked(self) -> list[str]:
        self._require_loaded("tracked")
        return list(self._ids)

    def save(self) -> None:
        """Persist the list, dropping duplicates but keeping first-seen order."""
        self._require_loaded("save")
        self._ids = list(dict.fromkeys(self._ids))
        self.filename.parent.mkdir(parents=True, exist_ok=True)
        self.filename.write_bytes(orjson.dumps(self._ids, option=orjson.OPT_INDENT_2) + b"\n")
        logger.debug(f"Saved {len(self._ids)} tracked repositories to {self.filename}")

    def __contains__(self, identifier: str) -> bool:
        return self.contains(identifier)

    def __len__(self) -> int:
        self._require_loaded("len")
        return len(self._ids)
