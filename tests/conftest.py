# Author: PB
# Maintainer: PB
# Original date: 2025.07.07
# License: (c) HRDAG, 2025, GPL-2 or newer
#
# ------
# tests/conftest.py

"""
Shared test fixtures for the gitmarks test suite.

Repositories built here use the in-memory store and git from
tests/fixtures/collaborators.py, so engine tests run without sqlite files
or a git binary.
"""

import pytest
from loguru import logger

from gitmarks.config.manager import SyncConfig
from gitmarks.core.repository import Location, Repository
from gitmarks.core.tracker import RepositoryTracker
from gitmarks.data.record import Bookmark
from tests.fixtures.collaborators import MockGit, MockRecordStore, make_bookmark


@pytest.fixture
def bookmark_factory():
    return make_bookmark


@pytest.fixture
def sample_records() -> list[Bookmark]:
    return [
        make_bookmark("https://example.com/one", id=1, tags="python,code"),
        make_bookmark("https://example.com/two", id=2, tags=["docs"], favorite=True),
        make_bookmark("https://other.org/", id=3, desc="another site"),
    ]


@pytest.fixture
def sync_config() -> SyncConfig:
    return SyncConfig(progress=False, workers=4)


@pytest.fixture
def mock_store(sample_records) -> MockRecordStore:
    return MockRecordStore(sample_records)


@pytest.fixture
def make_repository(tmp_path, sync_config):
    """Build a Repository over tmp_path with mock collaborators."""
    def _make(store=None, git=None, transform=None) -> Repository:
        db_path = tmp_path / "bookmarks.db"
        loc = Location.from_db_path(db_path)
        store = store if store is not None else MockRecordStore()
        git = git if git is not None else MockGit(loc.git_root)
        tracker = RepositoryTracker(loc.git_root).load()
        return Repository(loc, store, git, tracker, transform=transform, config=sync_config)
    return _make


@pytest.fixture
def log_messages():
    """Collect loguru messages emitted during a test."""
    messages: list[str] = []
    handler_id = logger.add(lambda message: messages.append(str(message)), level="DEBUG", format="{level}: {message}")
    yield messages
    logger.remove(handler_id)
