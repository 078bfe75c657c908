# Author: PB
# Maintainer: PB
# Original date: 2025.07.04
# License: (c) HRDAG, 2025, GPL-2 or newer
#
# ------
# src/gitmarks/system/execution.py

"""
Thin wrapper around subprocess for the external tools the engine drives.

git and gpg are always invoked through CommandExecutor so failures surface
as CommandError with the command line, exit status and stderr attached.
"""

import shutil
import subprocess
from pathlib import Path
from typing import Optional, Sequence

import loguru

from gitmarks.system.exceptions import CommandError, CommandNotFoundError, RepoNotFoundError

logger = loguru.logger


class CommandExecutor:
    """Runs external commands with consistent logging and error mapping."""

    @staticmethod
    def which(name: str) -> str:
        """Return the absolute path of an executable.

        Raises:
            CommandNotFoundError: If the executable is not on PATH
        """
        found = shutil.which(name)
        if found is None:
            raise CommandNotFoundError(f"Command not found: {name}", cmd=[name])
        return found

    @staticmethod
    def run(
        cmd: Sequence[str],
        cwd: Optional[Path] = None,
        input: Optional[bytes] = None,
        check: bool = True,
    ) -> subprocess.CompletedProcess:
        """Run a command and capture its output as bytes.

        Args:
            cmd: Command and arguments
            cwd: Working directory
            input: Bytes fed to stdin
            check: Raise CommandError on non-zero exit

        Returns:
            The completed process

        Raises:
            RepoNotFoundError: If cwd is given but is not a directory
            CommandNotFoundError: If the executable does not exist
            CommandError: If check is True and the command fails
        """
        cmd = [str(part) for part in cmd]
        logger.debug(f"Running: {' '.join(cmd)}" + (f" (cwd={cwd})" if cwd else ""))

        # subprocess reports a missing cwd as FileNotFoundError too
        if cwd is not None and not Path(cwd).is_dir():
            raise RepoNotFoundError(f"Working directory not found: {cwd}")

        try:
            result = subprocess.run(
                cmd,
                cwd=cwd,
                input=input,
                capture_output=True,
            )
        except FileNotFoundError as e:
            raise CommandNotFoundError(f"Command not found: {cmd[0]}", cmd=cmd) from e

        if check and result.returncode != 0:
            stderr = result.stderr.decode("utf-8", errors="replace").strip()
            logger.debug(f"Command failed ({result.returncode}): {stderr}")
            raise CommandError(
                f"{' '.join(cmd)} failed with exit code {result.returncode}: {stderr}",
                cmd=cmd,
                returncode=result.returncode,
                stderr=stderr,
            )
        return result

    @staticmethod
    def output(cmd: Sequence[str], cwd: Optional[Path] = None) -> str:
        """Run a command and return its stripped stdout as text."""
        result = CommandExecutor.run(cmd, cwd=cwd)
        return result.stdout.decode("utf-8", errors="replace").strip()
