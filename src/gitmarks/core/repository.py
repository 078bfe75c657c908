# Author: PB
# Maintainer: PB
# Original date: 2025.07.06
# License: (c) HRDAG, 2025, GPL-2 or newer
#
# ------
# src/gitmarks/core/repository.py

"""
Repository: the on-disk, version-controlled mirror of one bookmark database.

Layout under the git root:

    <git-root>/
        .git/
        .tracked.json          tracker list
        .gpg-id                present when records are encrypted
        <db-name>/
            <domain>/<url-hash>.json|.gpg
            summary.json

A Repository ties together the record store, the git working tree, the
tracker and the manifest for one database. It owns one tracker per
instance; encryption sessions are created per operation.
"""

from __future__ import annotations

import shutil
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Iterable, Optional

import loguru

from gitmarks.config.manager import SyncConfig, load_merged_config
from gitmarks.core.conflicts import ExportResult, RecordWriter
from gitmarks.core.dedup import deduplicate
from gitmarks.core.protocols import EncryptionTransform, RecordStore, VersionControl
from gitmarks.core.tracker import RepositoryTracker, repo_id
from gitmarks.core.walker import BulkWalker
from gitmarks.data.codec import RecordCodec
from gitmarks.data.paths import SUMMARY_FILENAME, PathResolver
from gitmarks.data.record import Bookmark
from gitmarks.data.summary import ClientInfo, RepoStats, SyncManifest
from gitmarks.storage.git import GitManager
from gitmarks.storage.gpg import (
    FINGERPRINT_FILENAME,
    GIT_DIFF_CONFIG,
    GITATTRIBUTES_FILENAME,
    GpgTransform,
    open_session,
)
from gitmarks.storage.sqlite import SQLiteStore
from gitmarks.system.exceptions import (
    CommandError,
    GitmarksError,
    NothingToCommitError,
    RepoNotFoundError,
    RepoNotInitializedError,
    RepoNotTrackedError,
    RepoTrackedError,
)
from gitmarks.system.progress import LoadProgressReporter

logger = loguru.logger


@dataclass(frozen=True)
class Location:
    """Every path and name derived from a database path."""
    name: str       # database name without extensions, e.g. "bookmarks"
    dbname: str     # database file name, e.g. "bookmarks.db"
    db_path: Path
    git_root: Path
    path: Path      # git_root / name
    id: str         # tracker identifier

    @classmethod
    def from_db_path(cls, db_path: Path, git_root: Optional[Path] = None) -> "Location":
        db_path = Path(db_path).expanduser().resolve()
        dbname = db_path.name
        name = dbname.split(".")[0] or db_path.stem
        root = Path(git_root).expanduser() if git_root else db_path.parent / "git"
        return cls(
            name=name,
            dbname=dbname,
            db_path=db_path,
            git_root=root,
            path=root / name,
            id=repo_id(db_path),
        )


class Repository:
    """Git mirror of one bookmark database."""

    def __init__(
        self,
        location: Location,
        store: RecordStore,
        git: VersionControl,
        tracker: RepositoryTracker,
        transform: Optional[EncryptionTransform] = None,
        config: Optional[SyncConfig] = None,
    ) -> None:
        self.loc = location
        self.store = store
        self.git = git
        self.tracker = tracker
        self.transform = transform
        self.config = config or SyncConfig()
        self._owned_store: Optional[SQLiteStore] = None

    @classmethod
    def open(
        cls,
        db_path: Path,
        config: Optional[SyncConfig] = None,
        store: Optional[RecordStore] = None,
        git: Optional[VersionControl] = None,
        transform: Optional[EncryptionTransform] = None,
    ) -> "Repository":
        """Build the repository for db_path, loading its tracker.

        Raises:
            RepoNotFoundError: If no store is given and db_path does not exist
        """
        if config is None:
            config = load_merged_config()
        loc = Location.from_db_path(db_path, config.git_root)

        owned = None
        if store is None:
            if not loc.db_path.is_file():
                raise RepoNotFoundError(f"Database not found: {loc.db_path}")
            store = owned = SQLiteStore(loc.db_path)
        if git is None:
            git = GitManager(loc.git_root, command=config.git_command)
        if transform is None:
            transform = GpgTransform(command=config.gpg_command)

        try:
            tracker = RepositoryTracker(loc.git_root).load()
        except Exception:
            if owned is not None:
                owned.close()
            raise
        logger.debug(f"Opened repository {loc.name} at {loc.path}")
        repo = cls(loc, store, git, tracker, transform=transform, config=config)
        repo._owned_store = owned
        return repo

    def close(self) -> None:
        """Close the database connection if this repository opened it."""
        if self._owned_store is not None:
            self._owned_store.close()
            self._owned_store = None

    def __enter__(self) -> "Repository":
        return self

    def __exit__(self, *args: object) -> None:
        self.close()

    # ---- encoding helpers ----

    @property
    def is_encrypted(self) -> bool:
        return self.transform is not None and self.transform.is_initialized(self.loc.git_root)

    def _codec(self) -> RecordCodec:
        return RecordCodec(open_session(self.transform, self.loc.git_root))

    def _progress(self) -> Optional[LoadProgressReporter]:
        return LoadProgressReporter() if self.config.progress else None

    def _writer(self, codec: Optional[RecordCodec] = None, path: Optional[Path] = None) -> RecordWriter:
        codec = codec or self._codec()
        return RecordWriter(PathResolver(path or self.loc.path, codec.extension), codec, self._progress())

    # ---- records ----

    def write(self, records: Iterable[Bookmark], force: Optional[bool] = None) -> ExportResult:
        """Export records, skipping files whose content is unchanged.

        Raises:
            ExportError: On the first failing record
        """
        if force is None:
            force = self.config.force
        return self._writer().write_all(records, force=force)

    def add(self, records: Iterable[Bookmark]) -> ExportResult:
        return self.write(records)

    def update(self, old: Bookmark, new: Bookmark) -> ExportResult:
        """Replace old's file with new's; the URL, and so the path, may change.

        The new file is written before the old one is removed.
        """
        result = self.add([new])
        if old.url != new.url:
            self.remove([old])
        return result

    def remove(self, records: Iterable[Bookmark]) -> int:
        return self._writer().remove_all(records)

    def read(self) -> list[Bookmark]:
        """Load every record file of this repository.

        Raises:
            RepoNotFoundError: If the repository directory does not exist
            BulkLoadError: If any file is unreadable or corrupt
        """
        walker = BulkWalker(self._codec(), self.config.pool_size, self._progress())
        return walker.load_all(self.loc.path)

    def records(self) -> list[Bookmark]:
        return self.store.all()

    def export(self) -> ExportResult:
        """Write every record of the database."""
        return self.write(self.records())

    def import_into(self, store: RecordStore) -> list[Bookmark]:
        """Load this repository and insert records whose URL is new to store."""
        loaded = sorted(self.read(), key=lambda record: record.id)
        fresh = deduplicate(store, loaded)
        if not fresh:
            logger.info(f"No new bookmarks to import from {self.loc.name}")
            return []
        inserted = store.insert_many(fresh)
        logger.info(f"Imported {len(inserted)} bookmarks from {self.loc.name}")
        return inserted

    # ---- manifest ----

    @property
    def summary_path(self) -> Path:
        return self.loc.path / SUMMARY_FILENAME

    def stats(self) -> RepoStats:
        return RepoStats(
            dbname=self.store.name,
            bookmarks=self.store.count("bookmarks"),
            tags=self.store.count("tags"),
            favorites=self.store.count_favorites(),
        )

    def stats_line(self) -> str:
        return self.stats().line()

    def write_stats(self) -> SyncManifest:
        """Refresh the stats in summary.json, keeping every other field."""
        if self.summary_path.exists():
            logger.debug(f"Updating manifest {self.summary_path}")
            manifest = SyncManifest.load(self.summary_path)
        else:
            logger.debug(f"Creating manifest {self.summary_path}")
            manifest = SyncManifest()

        manifest.stats = self.stats()
        manifest.refresh_checksum()
        manifest.save(self.summary_path)
        return manifest

    def summary(self) -> SyncManifest:
        """Manifest computed from current local state. Never read from disk."""
        manifest = SyncManifest(
            git_branch=self.git.branch(),
            git_remote=self.git.remote(),
            stats=self.stats(),
            client_info=ClientInfo.current(self.config.app_version),
        )
        return manifest.stamp().refresh_checksum()

    def last_sync_state(self) -> Optional[SyncManifest]:
        """Manifest as last persisted, or None before the first write."""
        if not self.summary_path.exists():
            return None
        return SyncManifest.load(self.summary_path)

    def drift(self) -> dict[str, tuple[Any, Any]]:
        """Differences between current state and the persisted manifest.

        Values are ``(current, persisted)``.
        """
        persisted = self.last_sync_state() or SyncManifest()
        return self.summary().drift(persisted)

    # ---- version control ----

    def commit(self, message: str) -> bool:
        """Write stats and commit all changes as ``[db] message (status)``.

        Returns:
            False when the working tree was clean
        """
        if not self.git.is_initialized():
            raise RepoNotInitializedError(f"Git repository not initialized: {self.loc.git_root}")

        self.write_stats()
        if not self.git.has_changes():
            logger.debug(f"No changes to commit for {self.loc.dbname}")
            return False

        self.git.add_all()
        try:
            status = self.git.status()
        except CommandError as e:
            logger.debug(f"Could not summarize status: {e}")
            status = ""

        text = f"[{self.loc.dbname}] {message.lower()}"
        if status:
            text = f"{text} ({status})"
        return self._commit_staged(text)

    def _commit_staged(self, text: str) -> bool:
        try:
            self.git.commit(text)
        except NothingToCommitError:
            logger.debug(f"Nothing staged for {self.loc.dbname}")
            return False
        logger.info(f"Committed: {text}")
        return True

    def push(self) -> bool:
        """Record the current state in summary.json, commit and push."""
        self.summary().save(self.summary_path)
        committed = self.commit("sync")
        self.git.push()
        return committed

    # ---- tracking ----

    @property
    def is_tracked(self) -> bool:
        return self.tracker.contains(self.loc.id)

    def track(self) -> None:
        if self.is_tracked:
            raise RepoTrackedError(f"Repository already tracked: {self.loc.name}")
        self.tracker.track(self.loc.id).save()

    def untrack(self) -> None:
        if not self.is_tracked:
            raise RepoNotTrackedError(f"Repository not tracked: {self.loc.name}")
        self.tracker.untrack(self.loc.id).save()

    def track_and_commit(self) -> bool:
        """Export the database, start tracking it and commit."""
        if self.is_tracked:
            raise RepoTrackedError(f"Repository already tracked: {self.loc.name}")
        if not self.git.is_initialized():
            self.git.init()
        self.export()
        self.track()
        return self.commit("new tracking")

    def untrack_and_remove(self, message: str) -> bool:
        """Stop tracking and delete the repository directory from git."""
        self.untrack()
        if self.loc.path.exists():
            shutil.rmtree(self.loc.path)
        self.git.add_all()
        return self._commit_staged(f"[{self.loc.dbname}] {message}")

    def drop(self, message: str) -> bool:
        """Delete every record file, keeping summary.json, and commit."""
        if self.loc.path.is_dir():
            _remove_record_files(self.loc.path)
        return self.commit(message)

    # ---- encryption ----

    def init_encryption(self) -> bool:
        """Switch the git root to encrypted records and commit.

        Plaintext records of every repository under the git root are
        re-written encrypted so each repository keeps a single mode. If any
        encrypted write fails, the encrypted files and the marker are
        removed again and the plaintext files are left untouched.
        """
        if self.transform is None:
            raise GitmarksError("No encryption transform configured")
        if self.is_encrypted:
            raise GitmarksError(f"Encryption already initialized in {self.loc.git_root}")
        if not self.git.is_initialized():
            raise RepoNotInitializedError(f"Git repository not initialized: {self.loc.git_root}")

        plain = RecordCodec()
        repos = _repository_dirs(self.loc.git_root)
        loaded = {path: BulkWalker(plain, self.config.pool_size).load_all(path) for path in repos}

        self.transform.init(self.loc.git_root)
        encrypted: Optional[RecordCodec] = None
        try:
            encrypted = self._codec()
            for path, records in loaded.items():
                self._writer(encrypted, path).write_all(records, force=True)
        except GitmarksError:
            logger.error(f"Encryption failed, restoring plaintext state in {self.loc.git_root}")
            if encrypted is not None:
                for path, records in loaded.items():
                    self._writer(encrypted, path).remove_all(records)
            _clear_encryption_marker(self.loc.git_root)
            raise

        # Plaintext goes only once every encrypted copy exists
        for path, records in loaded.items():
            self._writer(plain, path).remove_all(records)
        for key, value in GIT_DIFF_CONFIG.items():
            self.git.set_config_local(key, value)

        return self.commit("GPG repo initialized")

    def __repr__(self) -> str:
        return f"Repository(name={self.loc.name!r}, path={str(self.loc.path)!r})"


def _remove_record_files(root: Path) -> None:
    """Delete everything under root except summary.json, pruning empty dirs."""
    for path in sorted(root.rglob("*"), reverse=True):
        if path.is_dir():
            if not any(path.iterdir()):
                path.rmdir()
        elif path.name != SUMMARY_FILENAME:
            path.unlink()


def _clear_encryption_marker(git_root: Path) -> None:
    for name in (FINGERPRINT_FILENAME, GITATTRIBUTES_FILENAME):
        (git_root / name).unlink(missing_ok=True)


def _repository_dirs(git_root: Path) -> list[Path]:
    """Directories under git_root that hold a repository manifest."""
    if not git_root.is_dir():
        return []
    return sorted(
        child for child in git_root.iterdir()
        if child.is_dir() and not child.name.startswith(".") and (child / SUMMARY_FILENAME).is_file()
    )


def read_repository(
    path: Path,
    transform: Optional[EncryptionTransform] = None,
    max_workers: Optional[int] = None,
) -> list[Bookmark]:
    """Load the records of a repository directory outside any database.

    The directory's parent is taken as the git root when checking for
    encryption, as it is for repositories created by this package.
    """
    path = Path(path)
    codec = RecordCodec(open_session(transform, path.parent))
    return BulkWalker(codec, max_workers).load_all(path)


def clone_repositories(git: GitManager, url: str) -> list[Path]:
    """Clone url into git.repo_path and list the repositories it contains."""
    git.clone(url)
    found = _repository_dirs(git.repo_path)
    logger.info(f"Found {len(found)} repositories in {url}")
    return found
