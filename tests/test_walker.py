# Author: PB
# Maintainer: PB
# Original date: 2025.07.07
# License: (c) HRDAG, 2025, GPL-2 or newer
#
# ------
# tests/test_walker.py

import threading
import time
from concurrent.futures import ThreadPoolExecutor

import pytest

from gitmarks.core.conflicts import RecordWriter
from gitmarks.core.walker import BulkWalker, FirstErrorTracker
from gitmarks.data.codec import RecordCodec
from gitmarks.data.paths import PathResolver
from gitmarks.data.record import Bookmark
from gitmarks.system.exceptions import (
    BulkLoadError,
    ChecksumMismatchError,
    EncryptionError,
    RepoNotFoundError,
)


def populate(root, count, codec=None):
    codec = codec or RecordCodec()
    records = [
        Bookmark(id=i, url=f"https://site{i % 3}.example/{i}", title=f"t{i}")
        for i in range(1, count + 1)
    ]
    RecordWriter(PathResolver(root, codec.extension), codec).write_all(records)
    return records


class CountingSession:
    """Session whose decrypts are plain reads, counting calls and concurrency."""

    def __init__(self, fail_prime=False, fail_after_prime=False):
        self.fail_prime = fail_prime
        self.fail_after_prime = fail_after_prime
        self.primed = False
        self.primes = 0
        self.decrypts = 0
        self.decrypts_before_prime = 0
        self._lock = threading.Lock()

    def encrypt(self, path, data):
        path.write_bytes(data)

    def prime(self, path):
        self.primes += 1
        if self.fail_prime:
            raise EncryptionError("bad passphrase", path=path)
        data = path.read_bytes()
        self.primed = True
        return data

    def decrypt(self, path):
        with self._lock:
            self.decrypts += 1
            if not self.primed:
                self.decrypts_before_prime += 1
        if self.fail_after_prime:
            raise EncryptionError("agent died", path=path)
        return path.read_bytes()


class TestFirstErrorTracker:
    def test_keeps_first(self):
        tracker = FirstErrorTracker()
        first, second = ValueError("a"), ValueError("b")
        assert tracker.get() is None
        assert tracker.set(first) is True
        assert tracker.set(second) is False
        assert tracker.get() is first

    def test_concurrent_sets_keep_exactly_one(self):
        tracker = FirstErrorTracker()
        errors = [ValueError(str(i)) for i in range(50)]
        with ThreadPoolExecutor(max_workers=8) as pool:
            kept = list(pool.map(tracker.set, errors))
        assert kept.count(True) == 1
        assert tracker.get() in errors


class TestBulkWalker:
    def test_loads_everything(self, tmp_path):
        records = populate(tmp_path, 25)
        loaded = BulkWalker(RecordCodec(), max_workers=4).load_all(tmp_path)
        assert sorted(r.url for r in loaded) == sorted(r.url for r in records)
        assert all(r.verify_checksum() for r in loaded)

    def test_ignores_summary_hidden_dirs_and_other_extensions(self, tmp_path):
        populate(tmp_path, 3)
        (tmp_path / "summary.json").write_text("{}")
        (tmp_path / ".git").mkdir()
        (tmp_path / ".git" / "x.json").write_text("{}")
        (tmp_path / "notes.txt").write_text("hi")
        loaded = BulkWalker(RecordCodec(), max_workers=2).load_all(tmp_path)
        assert len(loaded) == 3

    def test_empty_root(self, tmp_path):
        assert BulkWalker(RecordCodec()).load_all(tmp_path) == []

    def test_missing_root(self, tmp_path):
        with pytest.raises(RepoNotFoundError):
            BulkWalker(RecordCodec()).load_all(tmp_path / "missing")

    def test_one_corrupt_file_fails_the_whole_load(self, tmp_path):
        populate(tmp_path, 10)
        victim = sorted(tmp_path.rglob("*.json"))[4]
        victim.write_bytes(victim.read_bytes().replace(b"t", b"T", 1))

        with pytest.raises(BulkLoadError) as exc_info:
            BulkWalker(RecordCodec(), max_workers=3).load_all(tmp_path)

        error = exc_info.value
        assert isinstance(error.cause, ChecksumMismatchError)
        assert error.attempted == 10
        assert error.loaded == 9

    def test_pool_bound_is_respected(self, tmp_path):
        populate(tmp_path, 20)
        active = 0
        peak = 0
        lock = threading.Lock()

        class SlowCodec(RecordCodec):
            def load(self, path):
                nonlocal active, peak
                with lock:
                    active += 1
                    peak = max(peak, active)
                time.sleep(0.01)
                try:
                    return super().load(path)
                finally:
                    with lock:
                        active -= 1

        loaded = BulkWalker(SlowCodec(), max_workers=3).load_all(tmp_path)
        assert len(loaded) == 20
        assert 1 <= peak <= 3

    def test_default_pool_size(self):
        walker = BulkWalker(RecordCodec())
        assert walker.max_workers >= 2


class TestEncryptedWalk:
    def test_primes_once_before_fan_out(self, tmp_path):
        session = CountingSession()
        codec = RecordCodec(session)
        populate(tmp_path, 12, codec)

        loaded = BulkWalker(codec, max_workers=4).load_all(tmp_path)

        assert len(loaded) == 12
        assert session.primes == 1
        assert session.decrypts == 11
        assert session.decrypts_before_prime == 0

    def test_failed_prime_aborts_without_fan_out(self, tmp_path):
        session = CountingSession(fail_prime=True)
        codec = RecordCodec(session)
        populate(tmp_path, 5, codec)

        with pytest.raises(BulkLoadError) as exc_info:
            BulkWalker(codec, max_workers=4).load_all(tmp_path)

        assert isinstance(exc_info.value.cause, EncryptionError)
        assert exc_info.value.attempted == 1
        assert session.decrypts == 0

    def test_failures_after_prime_are_drained_and_reported(self, tmp_path):
        session = CountingSession(fail_after_prime=True)
        codec = RecordCodec(session)
        populate(tmp_path, 6, codec)

        with pytest.raises(BulkLoadError) as exc_info:
            BulkWalker(codec, max_workers=2).load_all(tmp_path)

        assert exc_info.value.attempted == 6
        assert exc_info.value.loaded == 1
        assert session.decrypts == 5
