#!/usr/bin/env python3
"""
DIAGPACK COLLECTOR BASE
-----------------------
Shared plumbing for platform collectors: every phase step goes through
the SafeExecutor and advances the ProgressTracker by exactly one, so the
running count always lands on the total computed up front.

Author: DiagPack Team
Date: 2026-10-18
"""

import logging
from contextlib import nullcontext
from pathlib import Path
from typing import Any, Callable, List, Optional

from diagpack.cli.formatter import DiagFormatter
from diagpack.core.executor import SafeExecutor
from diagpack.core.models import CollectionTask, GuardResult, Outcome, RunConfig
from diagpack.core.progress import ProgressTracker
from diagpack.rules.guard import LargeCollectionGuard

logger = logging.getLogger("diagpack.collectors")


class PlatformCollector:
    """
    Fixed sequence of collect-and-record steps for one platform.
    Subclasses implement `preflight`, `count_steps` and `_collect`.
    """

    name = "platform"

    def __init__(self, config: RunConfig, executor: SafeExecutor, tracker: ProgressTracker,
                 guard: LargeCollectionGuard, formatter: Optional[DiagFormatter] = None):
        self.config = config
        self.executor = executor
        self.tracker = tracker
        self.guard = guard
        self.formatter = formatter or executor.formatter

    @property
    def output_dir(self) -> Path:
        return self.config.output_dir

    def required_tools(self) -> List[str]:
        return []

    def preflight(self):
        """Fatal checks that must pass before the output directory exists."""

    def count_steps(self) -> int:
        raise NotImplementedError

    def collect(self):
        self.formatter.info(f"Starting {self.name} diagnostic collection...")
        self.tracker.init(self.count_steps(), f"{self.name} collection")
        try:
            self._collect()
            self.tracker.complete()
        finally:
            self.tracker.close()
        self.formatter.success(f"{self.name.capitalize()} diagnostic information gathered successfully")

    def _collect(self):
        raise NotImplementedError

    def step(self, description: str, filename: str, operation: Callable[[], Any],
             advisory: bool = False, stderr_name: Optional[str] = None) -> Outcome:
        """One task, one progress tick."""
        outcome = self.run(description, filename, operation, advisory=advisory, stderr_name=stderr_name)
        self.tracker.step(description)
        return outcome

    def run(self, description: str, filename: str, operation: Callable[[], Any],
            advisory: bool = False, stderr_name: Optional[str] = None) -> Outcome:
        task = CollectionTask(
            description=description,
            output_path=self.output_dir / filename,
            operation=operation,
            stderr_path=self.output_dir / stderr_name if stderr_name else None,
            advisory=advisory,
        )
        return self.executor.run_task(task)

    def gate(self, kind: str, items: List[str], ceiling: int, preset: bool,
             per_item: Callable[[str], None]) -> GuardResult:
        """
        Runs `per_item` over what the Guard lets through (one tick each) and
        then ticks once for every item it held back.
        """
        interactive = self.config.guard_interactive(preset)
        # Only an interactive prompt needs the terminal to itself
        prompting = interactive and len(items) > ceiling
        with self.tracker.paused() if prompting else nullcontext():
            result = self.guard.apply(kind, items, ceiling, interactive)

        if not result.selected and items:
            self.formatter.info(f"Skipping {kind} collection due to large deployment")

        for item in result.selected:
            per_item(item)
            self.tracker.step(item)

        self.tracker.advance(result.skipped, f"{result.skipped} {kind} skipped")
        logger.info(f"{kind}: {len(result.selected)} collected, {result.skipped} skipped")
        return result
