# Author: PB
# Maintainer: PB
# Original date: 2025.07.04
# License: (c) HRDAG, 2025, GPL-2 or newer
#
# ------
# src/gitmarks/core/conflicts.py

"""
Write-conflict resolution and sequential export of records to disk.

An existing file is only rewritten when its content actually differs from
the record being exported, so re-exporting an unchanged database produces
no filesystem writes and no spurious version-control diffs.
"""

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Iterable, Optional

import loguru

from gitmarks.data.codec import RecordCodec
from gitmarks.data.paths import PathResolver
from gitmarks.data.record import Bookmark
from gitmarks.system.exceptions import (
    ChecksumMismatchError,
    EncryptionError,
    ExportError,
    FileConflictError,
    GitmarksError,
)
from gitmarks.system.progress import LoadProgressReporter

logger = loguru.logger


class WriteDecision(Enum):
    SKIP = "skip"
    WRITE = "write"
    ERROR = "error"


@dataclass(frozen=True)
class Resolution:
    decision: WriteDecision
    reason: str
    error: Optional[Exception] = None


class ConflictResolver:
    """Decides whether a candidate record should overwrite an existing file.

    Policy:
        - no file: write
        - force: write
        - same checksum on disk: skip
        - different checksum on disk: write (last writer wins)
        - path is not a regular file, or the file is corrupt: error
    """

    def __init__(self, codec: RecordCodec) -> None:
        self.codec = codec

    def resolve_write(self, path: Path, candidate: Bookmark, force: bool = False) -> Resolution:
        if not path.exists():
            return Resolution(WriteDecision.WRITE, "new file")

        if not path.is_file():
            error = FileConflictError(f"Not a regular file: {path}", path=path)
            return Resolution(WriteDecision.ERROR, str(error), error)

        if force:
            return Resolution(WriteDecision.WRITE, "forced")

        try:
            existing = self.codec.load(path)
        except (ChecksumMismatchError, EncryptionError, OSError) as e:
            return Resolution(WriteDecision.ERROR, f"existing file unreadable: {e}", e)

        if existing.checksum == candidate.compute_checksum():
            return Resolution(WriteDecision.SKIP, "unchanged")
        return Resolution(WriteDecision.WRITE, "content changed")


@dataclass
class ExportResult:
    written: int = 0
    skipped: int = 0
    paths: list[Path] = field(default_factory=list)

    @property
    def changed(self) -> bool:
        return self.written > 0


class RecordWriter:
    """Exports records one at a time through the conflict resolver."""

    def __init__(
        self,
        paths: PathResolver,
        codec: RecordCodec,
        progress: Optional[LoadProgressReporter] = None,
    ) -> None:
        self.paths = paths
        self.codec = codec
        self.resolver = ConflictResolver(codec)
        self.progress = progress

    def write_all(self, records: Iterable[Bookmark], force: bool = False) -> ExportResult:
        """Write records, skipping files whose content is unchanged.

        The first failure aborts the batch. Files already written stay on
        disk; re-running is safe since unchanged files are skipped.

        Raises:
            ExportError: Wrapping the first failure, with the partial result
        """
        records = list(records)
        result = ExportResult()
        if self.progress:
            self.progress.start(f"Exporting to {self.paths.root.name}", total=len(records))

        for record in records:
            try:
                self._write_one(record, force, result)
            except (GitmarksError, OSError) as e:
                if self.progress:
                    self.progress.fail(f"Export failed at {record.url}")
                raise ExportError(
                    f"Export failed at {record.url} after {result.written} written: {e}",
                    result=result,
                    cause=e,
                ) from e
            if self.progress:
                self.progress.advance()

        if self.progress:
            self.progress.finish(f"{result.written} written, {result.skipped} unchanged")
        logger.debug(f"Export to {self.paths.root}: {result.written} written, {result.skipped} skipped")
        return result

    def _write_one(self, record: Bookmark, force: bool, result: ExportResult) -> None:
        path = self.paths.resolve(record)
        resolution = self.resolver.resolve_write(path, record, force)

        if resolution.decision is WriteDecision.SKIP:
            logger.debug(f"Skip {record.url}: {resolution.reason}")
            result.skipped += 1
            return
        if resolution.decision is WriteDecision.ERROR:
            if resolution.error is not None:
                raise resolution.error
            raise FileConflictError(resolution.reason, path=path)

        self.codec.store(path, record)
        result.written += 1
        result.paths.append(path)

    def remove_all(self, records: Iterable[Bookmark]) -> int:
        """Delete the files of records, pruning emptied domain directories.

        Returns:
            Number of files removed
        """
        removed = 0
        for record in records:
            path = self.paths.resolve(record)
            try:
                path.unlink()
            except FileNotFoundError:
                logger.debug(f"Already gone: {path}")
                continue
            removed += 1
            self._prune(path.parent)
        return removed

    def _prune(self, directory: Path) -> None:
        if directory == self.paths.root or not directory.is_dir():
            return
        if not any(directory.iterdir()):
            directory.rmdir()
            logger.debug(f"Removed empty directory {directory}")
