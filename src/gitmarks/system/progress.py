# Author: PB
# Maintainer: PB
# Original date: 2025.07.06
# License: (c) HRDAG, 2025, GPL-2 or newer
#
# ------
# src/gitmarks/system/progress.py

"""
Progress reporting for bulk record operations.

Provides Rich-based progress for loading, decrypting and exporting record
files, plus a final success/failure line.
"""

import threading
from typing import Optional

from rich.console import Console
from rich.progress import Progress, SpinnerColumn, TextColumn, BarColumn, MofNCompleteColumn


class LoadProgressReporter:
    """Per-item progress for bulk loads and exports with Rich UI.

    advance() may be called from worker threads.
    """

    def __init__(self, console: Optional[Console] = None, verbose: bool = True) -> None:
        self.console = console or Console(stderr=True)
        self.verbose = verbose
        self.progress: Optional[Progress] = None
        self.task = None
        self.completed = 0
        self._lock = threading.Lock()

    def start(self, description: str, total: Optional[int] = None) -> None:
        """Start the progress display."""
        self.completed = 0
        if not self.verbose:
            return

        self.progress = Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            BarColumn(),
            MofNCompleteColumn(),
            console=self.console,
            transient=True,
        )
        self.progress.start()
        self.task = self.progress.add_task(f"[cyan]{description}", total=total)

    def advance(self) -> None:
        """Count one processed item."""
        with self._lock:
            self.completed += 1
            if self.progress is not None and self.task is not None:
                self.progress.update(self.task, advance=1)

    def finish(self, message: str) -> None:
        """Stop the display and report success."""
        self._stop()
        if self.verbose:
            self.console.print(f"[green]✓[/green] {message}")

    def fail(self, message: str) -> None:
        """Stop the display and report failure."""
        self._stop()
        if self.verbose:
            self.console.print(f"[red]✗[/red] {message}")

    def _stop(self) -> None:
        if self.progress:
            self.progress.stop()
            self.progress = None
            self.task = None
