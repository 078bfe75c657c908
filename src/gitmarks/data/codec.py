# Author: PB
# Maintainer: PB
# Original date: 2025.07.02
# License: (c) HRDAG, 2025, GPL-2 or newer
#
# ------
# src/gitmarks/data/codec.py

"""
Serialization of bookmark records to and from their on-disk payloads.

Every decode re-validates the embedded checksum. A payload that cannot be
parsed, that has missing or unknown keys, or whose checksum disagrees with
its content is corrupt and raises ChecksumMismatchError.
"""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING, Optional

import loguru
import orjson
from pydantic import ValidationError

from gitmarks.data.paths import GPG_EXTENSION, JSON_EXTENSION
from gitmarks.data.record import Bookmark
from gitmarks.system.exceptions import ChecksumMismatchError

if TYPE_CHECKING:
    from gitmarks.storage.gpg import EncryptionSession

logger = loguru.logger

WIRE_FIELDS: frozenset[str] = frozenset(Bookmark.model_fields)


class RecordCodec:
    """Encodes records to canonical JSON and routes them through encryption.

    With no session the codec reads and writes plaintext ``.json`` files.
    With an EncryptionSession the same canonical bytes are encrypted on
    store and decrypted on load, and files use the ``.gpg`` extension.
    """

    def __init__(self, session: Optional["EncryptionSession"] = None) -> None:
        self.session = session

    @property
    def encrypted(self) -> bool:
        return self.session is not None

    @property
    def extension(self) -> str:
        return GPG_EXTENSION if self.encrypted else JSON_EXTENSION

    def encode(self, record: Bookmark) -> bytes:
        """Canonical indented JSON with the checksum populated.

        Raises:
            ChecksumMismatchError: If the record carries a stale checksum
        """
        if record.checksum:
            actual = record.compute_checksum()
            if actual != record.checksum:
                raise ChecksumMismatchError(
                    f"Refusing to encode {record.url}: checksum {record.checksum} "
                    f"does not match content ({actual})",
                    expected=record.checksum,
                    actual=actual,
                )
        else:
            record = record.with_checksum()

        return orjson.dumps(record.model_dump(), option=orjson.OPT_INDENT_2) + b"\n"

    def decode(self, payload: bytes, source: Optional[Path] = None) -> Bookmark:
        """Parse a payload and verify its checksum.

        Raises:
            ChecksumMismatchError: On any malformed or tampered payload
        """
        where = str(source) if source is not None else "<payload>"

        try:
            data = orjson.loads(payload)
        except orjson.JSONDecodeError as e:
            raise ChecksumMismatchError(f"Corrupt record {where}: {e}", path=source) from e

        if not isinstance(data, dict):
            raise ChecksumMismatchError(f"Corrupt record {where}: not a JSON object", path=source)

        missing = WIRE_FIELDS - data.keys()
        if missing:
            raise ChecksumMismatchError(
                f"Corrupt record {where}: missing fields {sorted(missing)}", path=source
            )

        try:
            record = Bookmark.model_validate(data, strict=True)
        except ValidationError as e:
            raise ChecksumMismatchError(f"Corrupt record {where}: {e}", path=source) from e

        actual = record.compute_checksum()
        if record.checksum != actual:
            raise ChecksumMismatchError(
                f"Checksum mismatch in {where}: stored {record.checksum!r}, computed {actual!r}",
                path=source,
                expected=record.checksum,
                actual=actual,
            )
        return record

    def store(self, path: Path, record: Bookmark) -> None:
        """Write a record to path, creating its domain directory."""
        payload = self.encode(record)
        path.parent.mkdir(parents=True, exist_ok=True)
        if self.session is not None:
            self.session.encrypt(path, payload)
        else:
            path.write_bytes(payload)
        logger.debug(f"Stored {record.url} -> {path}")

    def load(self, path: Path) -> Bookmark:
        """Read and verify the record stored at path."""
        if self.session is not None:
            payload = self.session.decrypt(path)
        else:
            payload = path.read_bytes()
        return self.decode(payload, source=path)

    def prime(self, path: Path) -> Bookmark:
        """Load the first file of a batch.

        In encrypted mode this is the call that may prompt for the secret;
        it must complete before concurrent loads start.
        """
        if self.session is not None:
            return self.decode(self.session.prime(path), source=path)
        return self.load(path)
