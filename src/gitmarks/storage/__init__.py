# Author: PB
# Maintainer: PB
# Original date: 2025.07.05
# License: (c) HRDAG, 2025, GPL-2 or newer
#
# ------
# src/gitmarks/storage/__init__.py

"""
Storage layer for gitmarks.

Concrete collaborators behind the engine's protocols: the git CLI, gpg,
and the SQLite bookmark database.
"""

from gitmarks.storage.git import GitManager
from gitmarks.storage.gpg import EncryptionSession, GpgTransform, open_session
from gitmarks.storage.sqlite import SQLiteStore

__all__ = [
    "EncryptionSession",
    "GitManager",
    "GpgTransform",
    "SQLiteStore",
    "open_session",
]
