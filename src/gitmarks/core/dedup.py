# Author: PB
# Maintainer: PB
# Original date: 2025.07.04
# License: (c) HRDAG, 2025, GPL-2 or newer
#
# ------
# src/gitmarks/core/dedup.py

from typing import Iterable

import loguru

from gitmarks.core.protocols import RecordStore
from gitmarks.data.record import Bookmark

logger = loguru.logger


def deduplicate(store: RecordStore, candidates: Iterable[Bookmark]) -> list[Bookmark]:
    """Drop candidates whose URL already exists in store.

    The store is only queried, never modified. Relative order of the kept
    candidates is preserved. Duplicates inside candidates themselves are not
    collapsed here; the store's unique URL constraint handles those on insert.
    """
    kept: list[Bookmark] = []
    skipped = 0
    for candidate in candidates:
        if store.has(candidate.url):
            logger.warning(f"Skipping duplicate bookmark: {candidate.url}")
            skipped += 1
            continue
        kept.append(candidate)

    if skipped:
        logger.warning(f"Skipped {skipped} duplicate bookmarks")
    return kept
