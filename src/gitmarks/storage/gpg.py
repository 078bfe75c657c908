# Author: PB
# Maintainer: PB
# Original date: 2025.07.05
# License: (c) HRDAG, 2025, GPL-2 or newer
#
# ------
# src/gitmarks/storage/gpg.py

"""
At-rest encryption of record files with gpg.

A repository is encrypted when its git root holds a non-empty ``.gpg-id``
file naming the key fingerprint. Passphrase caching is left to gpg-agent;
the engine only guarantees that the first decrypt of a batch runs alone.
"""

import threading
from pathlib import Path
from typing import Final, Optional

import loguru

from gitmarks.system.exceptions import CommandError, EncryptionError, NoFingerprintError
from gitmarks.system.execution import CommandExecutor

logger = loguru.logger

FINGERPRINT_FILENAME: Final = ".gpg-id"
GITATTRIBUTES_FILENAME: Final = ".gitattributes"
GITATTRIBUTES_CONTENT: Final = "*.gpg diff=gpg\n"

# Local git config so `git diff` shows decrypted record content
GIT_DIFF_CONFIG: Final = {
    "diff.gpg.textconv": "gpg --no-tty --decrypt",
    "diff.gpg.binary": "true",
}

_ENCRYPT_ARGS: Final = ("--quiet", "--yes", "--compress-algo=none", "--no-encrypt-to", "--batch")

# Field index of the fingerprint in `gpg --with-colons` fpr records
_FPR_FIELD: Final = 9


class GpgTransform:
    """Encrypts and decrypts record payloads by shelling out to gpg."""

    def __init__(self, command: str = "gpg") -> None:
        self.command = command

    def is_initialized(self, root: Path) -> bool:
        marker = Path(root) / FINGERPRINT_FILENAME
        return marker.is_file() and marker.read_text(encoding="utf-8").strip() != ""

    def recipient(self, root: Path) -> str:
        """Fingerprint stored in root's ``.gpg-id``.

        Raises:
            NoFingerprintError: If the marker is missing or empty
        """
        marker = Path(root) / FINGERPRINT_FILENAME
        if not marker.is_file():
            raise NoFingerprintError(f"No {FINGERPRINT_FILENAME} file in {root}", path=marker)
        fingerprint = marker.read_text(encoding="utf-8").strip()
        if not fingerprint:
            raise NoFingerprintError(f"Empty {FINGERPRINT_FILENAME} in {root}", path=marker)
        return fingerprint

    def fingerprint(self) -> str:
        """First key fingerprint in the user's keyring."""
        output = CommandExecutor.output([self.command, "--list-keys", "--with-colons"])
        for line in output.splitlines():
            if line.startswith("fpr:"):
                fields = line.split(":")
                if len(fields) > _FPR_FIELD and fields[_FPR_FIELD]:
                    return fields[_FPR_FIELD]
        raise NoFingerprintError("No key fingerprint found in gpg keyring")

    def init(self, root: Path) -> str:
        """Mark root as encrypted with the first available key.

        Writes ``.gpg-id`` and ``.gitattributes``.

        Returns:
            The fingerprint written
        """
        CommandExecutor.which(self.command)
        root = Path(root)
        root.mkdir(parents=True, exist_ok=True)
        fingerprint = self.fingerprint()
        (root / FINGERPRINT_FILENAME).write_text(fingerprint + "\n", encoding="utf-8")
        (root / GITATTRIBUTES_FILENAME).write_text(GITATTRIBUTES_CONTENT, encoding="utf-8")
        logger.info(f"Initialized gpg encryption in {root} for key {fingerprint}")
        return fingerprint

    def encrypt(self, path: Path, data: bytes, recipient: str) -> None:
        if not recipient:
            raise NoFingerprintError("No recipient given for encryption", path=path)
        try:
            CommandExecutor.run(
                [self.command, *_ENCRYPT_ARGS, "-e", "-r", recipient, "-o", str(path)],
                input=data,
            )
        except CommandError as e:
            raise EncryptionError(f"gpg encrypt failed for {path}: {e.stderr}", path=path) from e

    def decrypt(self, path: Path) -> bytes:
        try:
            result = CommandExecutor.run([self.command, "--quiet", "-d", str(path)])
        except CommandError as e:
            raise EncryptionError(f"gpg decrypt failed for {path}: {e.stderr}", path=path) from e
        return result.stdout


class EncryptionSession:
    """Per-operation encryption state for one repository.

    Reads the recipient once, and tracks whether the first decrypt (which
    may prompt for a passphrase) has happened. Created for each bulk
    operation and passed to the codec; nothing is cached at module level.
    """

    def __init__(self, transform: GpgTransform, root: Path) -> None:
        self.transform = transform
        self.root = Path(root)
        self.recipient = transform.recipient(self.root)
        self._primed = False
        self._lock = threading.Lock()

    @property
    def primed(self) -> bool:
        return self._primed

    def prime(self, path: Path) -> bytes:
        """Decrypt the first file of a batch, before any concurrent decrypts."""
        with self._lock:
            data = self.transform.decrypt(path)
            self._primed = True
        logger.debug(f"Encryption session primed with {path}")
        return data

    def encrypt(self, path: Path, data: bytes) -> None:
        self.transform.encrypt(path, data, self.recipient)

    def decrypt(self, path: Path) -> bytes:
        if not self._primed:
            logger.debug(f"Decrypting {path} before the session was primed")
        return self.transform.decrypt(path)


def open_session(transform: Optional[GpgTransform], root: Path) -> Optional[EncryptionSession]:
    """EncryptionSession for root when it is marked encrypted, else None."""
    if transform is None or not transform.is_initialized(root):
        return None
    return EncryptionSession(transform, root)
