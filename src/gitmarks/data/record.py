# Author: PB
# Maintainer: PB
# Original date: 2025.07.02
# License: (c) HRDAG, 2025, GPL-2 or newer
#
# ------
# src/gitmarks/data/record.py

"""
Bookmark record model and the hashing helpers shared by the sync engine.

A record's checksum covers every persisted field except the checksum
itself, so any change to a record file is detectable on load.
"""

from __future__ import annotations

import base64
import hashlib
import re
from typing import Any, Final
from urllib.parse import urlsplit

import orjson
from pydantic import BaseModel, ConfigDict, Field, field_validator

from gitmarks.system.exceptions import InvalidURLError

HASH_ALGORITHM: Final = "SHA-256"
URL_HASH_LENGTH: Final = 12
CHECKSUM_LENGTH: Final = 12

_WWW_PREFIX: Final = "www."
_TAG_SEPARATORS = re.compile(r"[,\s]+")


def generate_hash(value: str, length: int) -> str:
    """SHA-256 of value, URL-safe base64 without padding, truncated to length."""
    digest = hashlib.sha256(value.encode("utf-8")).digest()
    return base64.urlsafe_b64encode(digest).decode("ascii").rstrip("=")[:length]


def hash_url(url: str) -> str:
    """Filename stem for a record: hash of the exact URL string."""
    return generate_hash(url, URL_HASH_LENGTH)


def hash_path(path: str) -> str:
    """Full hex SHA-256 of a filesystem path, used as a stable repository id."""
    return hashlib.sha256(path.encode("utf-8")).hexdigest()


def url_domain(url: str) -> str:
    """Extract the directory bucket for a URL.

    The host is lower-cased, any port is dropped and a leading ``www.`` is
    stripped; existing mirrors use this layout, so it must not change.
    Scheme-less input such as ``a.com/1`` is read as host + path.

    Raises:
        InvalidURLError: If the URL is empty or has no host
    """
    if not url or not url.strip():
        raise InvalidURLError("URL is empty", url=url)

    raw = url.strip()
    try:
        parts = urlsplit(raw if "://" in raw or raw.startswith("//") else f"//{raw}")
        host = parts.hostname
    except ValueError as e:
        raise InvalidURLError(f"Cannot parse URL {url!r}: {e}", url=url) from e

    if not host:
        raise InvalidURLError(f"URL has no domain component: {url!r}", url=url)

    host = host.lower()
    if host.startswith(_WWW_PREFIX):
        host = host[len(_WWW_PREFIX):]
    if not host:
        raise InvalidURLError(f"URL has no domain component: {url!r}", url=url)
    return host


def parse_tags(value: Any) -> list[str]:
    """Normalize tags to a sorted list of unique, non-empty names."""
    if value is None:
        return []
    if isinstance(value, str):
        items = _TAG_SEPARATORS.split(value)
    elif isinstance(value, (list, tuple, set, frozenset)):
        items = []
        for item in value:
            if not isinstance(item, str):
                raise ValueError(f"tag must be a string, got {type(item).__name__}")
            items.extend(_TAG_SEPARATORS.split(item))
    else:
        raise ValueError(f"tags must be a string or a list of strings, got {type(value).__name__}")
    return sorted({item for item in items if item})


class Bookmark(BaseModel):
    """A bookmark as stored in the database and mirrored to disk."""
    model_config = ConfigDict(extra="forbid")

    id: int = 0
    url: str
    title: str = ""
    desc: str = ""
    tags: list[str] = Field(default_factory=list)
    created_at: str = ""
    last_visit: str = ""
    updated_at: str = ""
    visit_count: int = 0
    favorite: bool = False
    checksum: str = ""

    @field_validator("tags", mode="before")
    @classmethod
    def normalize_tags(cls, value: Any) -> list[str]:
        return parse_tags(value)

    def content(self) -> dict[str, Any]:
        """Every field covered by the checksum."""
        return self.model_dump(exclude={"checksum"})

    def compute_checksum(self) -> str:
        canonical = orjson.dumps(self.content(), option=orjson.OPT_SORT_KEYS)
        return generate_hash(canonical.decode("utf-8"), CHECKSUM_LENGTH)

    def verify_checksum(self) -> bool:
        return bool(self.checksum) and self.checksum == self.compute_checksum()

    def with_checksum(self) -> Bookmark:
        """Return this record with its checksum populated if it was empty."""
        if self.checksum:
            return self
        return self.model_copy(update={"checksum": self.compute_checksum()})

    def refreshed(self, **changes: Any) -> Bookmark:
        """Return an edited copy with a checksum matching the new content."""
        data = self.model_dump()
        data.update(changes)
        data["checksum"] = ""
        edited = Bookmark.model_validate(data)
        return edited.model_copy(update={"checksum": edited.compute_checksum()})

    def domain(self) -> str:
        return url_domain(self.url)

    def hash_url(self) -> str:
        return hash_url(self.url)

    def tags_line(self) -> str:
        """Tags as the comma-terminated string used by the database."""
        if not self.tags:
            return ""
        return ",".join(self.tags) + ","

    def __str__(self) -> str:
        return f"{self.id} {self.url}"
