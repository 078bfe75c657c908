# Author: PB
# Maintainer: PB
# Original date: 2025.07.07
# License: (c) HRDAG, 2025, GPL-2 or newer
#
# ------
# tests/test_summary.py

from datetime import datetime, timezone

import orjson
import pytest

from gitmarks.data.summary import (
    CONFLICT_RESOLUTION,
    ClientInfo,
    RepoStats,
    SyncManifest,
)
from gitmarks.data.record import generate_hash


@pytest.fixture
def manifest() -> SyncManifest:
    return SyncManifest(
        git_branch="main",
        git_remote="git@example.com:me/marks.git",
        stats=RepoStats(dbname="bookmarks.db", bookmarks=10, tags=4, favorites=2),
        client_info=ClientInfo(hostname="box", platform="linux", architecture="x86_64", app_version="0.4.0"),
    ).refresh_checksum()


class TestChecksum:
    def test_identical_stats_identical_checksum(self, manifest):
        again = manifest.model_copy(deep=True)
        again.stats = RepoStats(dbname="bookmarks.db", bookmarks=10, tags=4, favorites=2)
        assert again.refresh_checksum().checksum == manifest.checksum

    def test_bookmark_count_changes_checksum(self, manifest):
        changed = manifest.model_copy(deep=True)
        changed.stats.bookmarks += 1
        assert changed.generate_checksum() != manifest.checksum

    def test_last_sync_not_covered(self, manifest):
        stamped = manifest.model_copy(deep=True).stamp()
        assert stamped.generate_checksum() == manifest.checksum

    def test_fields_are_concatenated(self, manifest):
        joined = (
            "main" "git@example.com:me/marks.git" "checksum" "SHA-256"
            "bookmarks.db" "10" "4" "2"
            "box" "linux" "x86_64" "0.4.0"
        )
        assert manifest.checksum == generate_hash(joined, 12)

    def test_existing_manifest_loads_without_warning(self, manifest, tmp_path, log_messages):
        path = tmp_path / "summary.json"
        manifest.save(path)
        SyncManifest.load(path)
        assert not any("does not match" in m for m in log_messages)

    def test_defaults(self):
        blank = SyncManifest()
        assert blank.conflict_resolution == CONFLICT_RESOLUTION == "checksum"
        assert blank.hash_algorithm == "SHA-256"
        assert len(blank.refresh_checksum().checksum) == 12
        assert blank.verify_checksum()


class TestPersistence:
    def test_save_and_load(self, manifest, tmp_path):
        path = tmp_path / "repo" / "summary.json"
        manifest.stamp(datetime(2025, 7, 1, 12, 0, tzinfo=timezone.utc)).save(path)
        loaded = SyncManifest.load(path)
        assert loaded == manifest
        assert loaded.last_sync == "2025-07-01T12:00:00+00:00"

    def test_schema_keys(self, manifest, tmp_path):
        path = tmp_path / "summary.json"
        manifest.save(path)
        data = orjson.loads(path.read_bytes())
        assert set(data) == {
            "git_branch", "git_remote", "last_sync", "conflict_resolution",
            "hash_algorithm", "stats", "client_info", "checksum",
        }
        assert set(data["stats"]) == {"dbname", "bookmarks", "tags", "favorites"}
        assert set(data["client_info"]) == {"hostname", "platform", "architecture", "app_version"}

    def test_load_warns_on_bad_checksum(self, manifest, tmp_path, log_messages):
        path = tmp_path / "summary.json"
        manifest.model_copy(update={"checksum": "nope"}).save(path)
        SyncManifest.load(path)
        assert any("does not match" in m for m in log_messages)


class TestDrift:
    def test_no_drift(self, manifest):
        assert manifest.drift(manifest.model_copy(deep=True)) == {}

    def test_ignores_sync_time_and_client(self, manifest):
        other = manifest.model_copy(deep=True).stamp()
        other.client_info.hostname = "elsewhere"
        other.refresh_checksum()
        assert manifest.drift(other) == {}

    def test_reports_changed_fields(self, manifest):
        other = manifest.model_copy(deep=True)
        other.stats.bookmarks = 11
        other.git_branch = "dev"
        assert manifest.drift(other) == {
            "git_branch": ("main", "dev"),
            "stats.bookmarks": (10, 11),
        }


class TestStatsLine:
    def test_line(self):
        assert RepoStats(bookmarks=3, tags=2, favorites=1).line() == "3 bookmarks, 2 tags, 1 favorites"
        assert RepoStats(bookmarks=3).line() == "3 bookmarks"
        assert RepoStats().line() == "no bookmarks"

    def test_client_info_current(self):
        info = ClientInfo.current("9.9.9")
        assert info.app_version == "9.9.9"
        assert info.platform == info.platform.lower()
        assert info.hostname
