#!/usr/bin/env python3
"""
DIAGPACK LARGE-COLLECTION GUARD - Throttling Policy
---------------------------------------------------
Decides what happens when a namespace or host holds more pods/containers
than the configured ceiling: collect everything, collect the first N,
skip the resource kind, or stop the run.

Which N items are kept is delegated to a SelectionStrategy so that an
ordering other than enumeration order can be plugged in without touching
the decision logic.

Author: DiagPack Team
Date: 2026-10-18
"""

import logging
from typing import Callable, Dict, List, Optional, Sequence

from diagpack.cli.formatter import DiagFormatter
from diagpack.core.errors import UserCancelled
from diagpack.core.models import GuardDecision, GuardResult

logger = logging.getLogger("diagpack.guard")

# Menu number -> decision. Empty input means the recommended choice.
CHOICES: Dict[str, GuardDecision] = {
    "1": GuardDecision.PROCEED_ALL,
    "2": GuardDecision.TRUNCATE,
    "3": GuardDecision.SKIP,
    "4": GuardDecision.ABORT,
}
DEFAULT_CHOICE = "2"


class SelectionStrategy:
    """Chooses which `limit` items survive truncation."""

    def select(self, items: Sequence[str], limit: int) -> List[str]:
        raise NotImplementedError


class FirstInOrder(SelectionStrategy):
    """
    Keeps the first `limit` items exactly as the platform listed them.
    No re-sorting and no preference for unhealthy resources.
    """

    def select(self, items: Sequence[str], limit: int) -> List[str]:
        return list(items)[:limit]


class LargeCollectionGuard:

    def __init__(self, formatter: Optional[DiagFormatter] = None,
                 strategy: Optional[SelectionStrategy] = None,
                 prompt: Optional[Callable[[str], str]] = None):
        self.formatter = formatter or DiagFormatter()
        self.strategy = strategy or FirstInOrder()
        self._prompt = prompt or self.formatter.console.input

    def decide(self, kind: str, observed: int, ceiling: int, interactive: bool) -> GuardDecision:
        if observed <= ceiling:
            return GuardDecision.PROCEED_ALL

        self.formatter.warning(f"Large deployment detected: {observed} {kind} found (limit: {ceiling})")

        if not interactive:
            logger.info(f"Non-interactive run: truncating {kind} to {ceiling}")
            self.formatter.info(f"Limiting collection to first {ceiling} {kind}")
            return GuardDecision.TRUNCATE

        self._show_menu(kind, ceiling)
        while True:
            choice = self._prompt(f"Choose an option [{DEFAULT_CHOICE}]: ").strip() or DEFAULT_CHOICE
            decision = CHOICES.get(choice)
            if decision is not None:
                break
            self.formatter.console.print("Invalid option. Please choose 1, 2, 3, or 4.")

        logger.info(f"Guard decision for {observed} {kind}: {decision.value}")
        if decision is GuardDecision.PROCEED_ALL:
            self.formatter.warning(f"Proceeding with all {observed} {kind} - this may take a very long time")
        elif decision is GuardDecision.TRUNCATE:
            self.formatter.info(f"Limiting collection to first {ceiling} {kind}")
        elif decision is GuardDecision.SKIP:
            self.formatter.info(f"Skipping {kind} collection")
        else:
            self.formatter.info("Exiting. You can adjust limits with --max-pods or --max-containers.")
            raise UserCancelled(f"Collection of {observed} {kind} aborted by user")
        return decision

    def apply(self, kind: str, items: Sequence[str], ceiling: int, interactive: bool) -> GuardResult:
        """Decision plus the concrete items to collect and how many were left out."""
        items = list(items)
        decision = self.decide(kind, len(items), ceiling, interactive)

        if decision is GuardDecision.PROCEED_ALL:
            selected = items
        elif decision is GuardDecision.TRUNCATE:
            selected = self.strategy.select(items, ceiling)
            self.formatter.info(f"Processing first {len(selected)} {kind} out of {len(items)} total")
        else:
            selected = []

        return GuardResult(decision, selected, len(items) - len(selected))

    def _show_menu(self, kind: str, ceiling: int):
        self.formatter.console.print(
            f"\nThis deployment has a large number of {kind} which could:\n"
            "  - Take a very long time to collect (potentially hours)\n"
            "  - Create very large diagnostic files (potentially GBs)\n"
            "  - Consume significant system resources\n\n"
            "Options:\n"
            f"  1) Continue with all {kind} (not recommended)\n"
            f"  2) Collect only the first {ceiling} {kind} (recommended)\n"
            f"  3) Skip {kind} collection entirely\n"
            "  4) Exit and adjust limits\n",
            highlight=False,
        )
