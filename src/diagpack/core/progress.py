#!/usr/bin/env python3
"""
DIAGPACK PROGRESS TRACKER
-------------------------
Step counter against a precomputed total, rendered as a single evolving
status line. Status lines printed through the same Console land above the
live bar, never inside it.

Author: DiagPack Team
Date: 2026-10-18
"""

import logging
from contextlib import contextmanager
from typing import Iterator, Optional

from rich.console import Console
from rich.progress import Progress, TaskID, TextColumn

logger = logging.getLogger("diagpack.progress")

BAR_SEGMENTS = 20


class ProgressTracker:
    """
    Owns one rich Progress display per phase. `init` resets the counter,
    `step` advances it (clamped at the total), `complete` forces 100%.
    """

    def __init__(self, console: Console):
        self.console = console
        self.total = 1
        self.current = 0
        self._progress: Optional[Progress] = None
        self._task: Optional[TaskID] = None

    def init(self, total: int, label: str = "Collecting"):
        self._stop()
        # A namespace with nothing in it still needs a non-zero denominator
        self.total = max(1, int(total))
        self.current = 0
        logger.debug(f"Progress initialised: {label} ({self.total} steps)")

        self._progress = Progress(
            TextColumn("Progress:"),
            TextColumn("{task.fields[bar]}", markup=False),
            TextColumn("[dim]{task.description}[/dim]"),
            console=self.console,
            auto_refresh=False,
            transient=False,
        )
        self._task = self._progress.add_task(label, total=self.total, bar=self.render_bar())
        self._progress.start()
        self._render(label)

    def step(self, label: str = ""):
        self.advance(1, label)

    def advance(self, steps: int, label: str = ""):
        if steps <= 0:
            return
        if self.current + steps > self.total:
            logger.debug(f"Progress over-stepped ({self.current}+{steps} > {self.total}); clamping")
        self.current = min(self.current + steps, self.total)
        self._render(label)

    def complete(self, label: str = "Done"):
        self.current = self.total
        self._render(label)
        self._stop()

    def extend(self, extra: int):
        """Raises the total for work discovered after `init`."""
        if extra <= 0:
            return
        self.total += extra
        logger.debug(f"Progress total raised by {extra} to {self.total}")
        if self._progress is not None and self._task is not None:
            self._progress.update(self._task, total=self.total)
        self._render("")

    @contextmanager
    def paused(self) -> Iterator[None]:
        """Suspends the live bar while something else owns the terminal (a prompt)."""
        if self._progress is None:
            yield
            return
        progress = self._progress
        progress.stop()
        # Left stopped if the prompt raised (e.g. the user aborted)
        yield
        progress.start()
        progress.refresh()

    @property
    def percent(self) -> int:
        return self.current * 100 // self.total

    def render_bar(self) -> str:
        """Plain-text form of the bar, e.g. `[██████░░░░…] 30% (3/10)`."""
        filled = self.current * BAR_SEGMENTS // self.total
        bar = "█" * filled + "░" * (BAR_SEGMENTS - filled)
        return f"[{bar}] {self.percent}% ({self.current}/{self.total})"

    def _render(self, label: str):
        if self._progress is None or self._task is None:
            return
        kwargs = {"completed": self.current, "bar": self.render_bar()}
        if label:
            kwargs["description"] = label
        self._progress.update(self._task, **kwargs)
        self._progress.refresh()

    def close(self):
        self._stop()

    def _stop(self):
        if self._progress is not None:
            self._progress.stop()
        self._progress = None
        self._task = None
