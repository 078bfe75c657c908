# Author: PB
# Maintainer: PB
# Original date: 2025.07.06
# License: (c) HRDAG, 2025, GPL-2 or newer
#
# ------
# src/gitmarks/core/walker.py

"""
Concurrent bulk loading of a repository's record files.

The directory walk is sequential; each file's read, decrypt and decode runs
as an independent task on a bounded thread pool. Individual failures do not
stop the walk. The first failure is kept, every dispatched task is drained,
and then that failure is raised so callers never see a partial result.

Encrypted repositories load in two phases. Phase 1 decrypts the first file
synchronously, which is where gpg-agent may prompt for the passphrase.
Phase 2 fans the remaining files out to the pool, relying on the agent
having cached the secret. Phase 2 never starts before phase 1 succeeds.
"""

import os
import threading
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import Iterator, Optional

import loguru

from gitmarks.data.codec import RecordCodec
from gitmarks.data.paths import SUMMARY_FILENAME
from gitmarks.data.record import Bookmark
from gitmarks.system.exceptions import BulkLoadError, RepoNotFoundError
from gitmarks.system.progress import LoadProgressReporter

logger = loguru.logger


def default_pool_size() -> int:
    return (os.cpu_count() or 1) * 2


class FirstErrorTracker:
    """Mutex-guarded cell holding the first error reported to it.

    When several workers fail concurrently the one that takes the lock first
    wins, which is not necessarily the one that failed first.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._error: Optional[BaseException] = None

    def set(self, error: BaseException) -> bool:
        """Record error if none is held yet. Returns True if it was kept."""
        with self._lock:
            if self._error is None:
                self._error = error
                return True
            return False

    def get(self) -> Optional[BaseException]:
        with self._lock:
            return self._error


class BulkWalker:
    """Loads every record file under a root with a bounded worker pool."""

    def __init__(
        self,
        codec: RecordCodec,
        max_workers: Optional[int] = None,
        progress: Optional[LoadProgressReporter] = None,
    ) -> None:
        self.codec = codec
        self.max_workers = max_workers or default_pool_size()
        self.progress = progress

    def iter_files(self, root: Path, errors: Optional[FirstErrorTracker] = None) -> Iterator[Path]:
        """Yield candidate record files in a stable order.

        Hidden directories such as ``.git`` are skipped. Directory read
        errors go to errors when given, otherwise they are raised.
        """
        def on_error(error: OSError) -> None:
            if errors is None:
                raise error
            logger.debug(f"Walk error under {root}: {error}")
            errors.set(error)

        extension = self.codec.extension
        for dirpath, dirnames, filenames in os.walk(root, onerror=on_error):
            dirnames[:] = sorted(d for d in dirnames if not d.startswith("."))
            for filename in sorted(filenames):
                if filename == SUMMARY_FILENAME or not filename.endswith(extension):
                    continue
                path = Path(dirpath) / filename
                if path.is_file():
                    yield path

    def load_all(self, root: Path) -> list[Bookmark]:
        """Load and verify every record under root.

        Returns:
            All records, in no particular order

        Raises:
            RepoNotFoundError: If root is not a directory
            BulkLoadError: If any file failed; carries the first error
        """
        root = Path(root)
        if not root.is_dir():
            raise RepoNotFoundError(f"Repository not found: {root}")

        errors = FirstErrorTracker()
        results: list[Bookmark] = []
        results_lock = threading.Lock()
        attempted = 0

        if self.progress:
            self.progress.start(f"Loading {root.name}")

        files = self.iter_files(root, errors)

        if self.codec.encrypted:
            first = next(files, None)
            if first is not None:
                attempted += 1
                try:
                    results.append(self.codec.prime(first))
                except Exception as e:
                    if self.progress:
                        self.progress.fail(f"Could not decrypt {first.name}")
                    raise BulkLoadError(
                        f"Failed to load first encrypted file {first}: {e}",
                        cause=e,
                        attempted=attempted,
                        loaded=0,
                    ) from e
                if self.progress:
                    self.progress.advance()

        slots = threading.BoundedSemaphore(self.max_workers)
        executor = ThreadPoolExecutor(max_workers=self.max_workers, thread_name_prefix="gitmarks-load")
        try:
            for path in files:
                slots.acquire()
                attempted += 1
                future = executor.submit(self._load_one, path, results, results_lock, errors)
                future.add_done_callback(lambda _: slots.release())
        finally:
            # Drain everything already dispatched, even after a failure
            executor.shutdown(wait=True)

        error = errors.get()
        if error is not None:
            if self.progress:
                self.progress.fail(f"Loading {root.name} failed")
            raise BulkLoadError(
                f"Failed to load {root}: {error}",
                cause=error if isinstance(error, Exception) else None,
                attempted=attempted,
                loaded=len(results),
            ) from error

        if self.progress:
            self.progress.finish(f"Loaded {len(results)} records from {root.name}")
        logger.debug(f"Loaded {len(results)} records from {root} with {self.max_workers} workers")
        return results

    def _load_one(
        self,
        path: Path,
        results: list[Bookmark],
        results_lock: threading.Lock,
        errors: FirstErrorTracker,
    ) -> None:
        try:
            record = self.codec.load(path)
        except Exception as e:
            logger.debug(f"Failed to load {path}: {e}")
            errors.set(e)
            return

        with results_lock:
            results.append(record)
        if self.progress:
            self.progress.advance()
