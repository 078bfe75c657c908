# Author: PB
# Maintainer: PB
# Original date: 2025.07.02
# License: (c) HRDAG, 2025, GPL-2 or newer
#
# ------
# src/gitmarks/data/paths.py

from pathlib import Path, PurePosixPath
from typing import Final

from gitmarks.data.record import Bookmark, hash_url, url_domain

JSON_EXTENSION: Final = ".json"
GPG_EXTENSION: Final = ".gpg"
SUMMARY_FILENAME: Final = "summary.json"


class PathResolver:
    """Maps a record to its content-addressed file under a repository root.

    The location is a pure function of the URL:

        root / domain / hash(url) + extension

    so the same record lands on the same file on every machine, and one URL
    can never own two files.
    """

    def __init__(self, root: Path, extension: str = JSON_EXTENSION) -> None:
        self.root = Path(root)
        self.extension = extension

    def relative(self, record: Bookmark) -> PurePosixPath:
        """Path of the record file relative to the repository root.

        Raises:
            InvalidURLError: If the URL has no domain component
        """
        return PurePosixPath(url_domain(record.url)) / f"{hash_url(record.url)}{self.extension}"

    def resolve(self, record: Bookmark) -> Path:
        """Absolute path of the record file."""
        return self.root / self.relative(record)

    def is_record_file(self, path: Path) -> bool:
        """True for files this resolver could have produced."""
        return path.suffix == self.extension and path.name != SUMMARY_FILENAME

    def __repr__(self) -> str:
        return f"PathResolver(root={str(self.root)!r}, extension={self.extension!r})"
