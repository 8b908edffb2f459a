#!/usr/bin/env python3
"""
DIAGPACK SAFE EXECUTOR - Collect and Record
-------------------------------------------
Runs one collection operation, persists whatever it produced (or the error
it raised) at the task's output path, and records the outcome. A failing
resource never aborts the run: errors stop at this boundary.

Author: DiagPack Team
Date: 2026-10-18
"""

import logging
from pathlib import Path
from typing import Any, Callable, Optional, Tuple

from diagpack.cli.formatter import DiagFormatter
from diagpack.core.models import CollectionTask, Outcome, OutcomeStatus, RunReport
from diagpack.platform.runner import CommandResult

logger = logging.getLogger("diagpack.executor")


def _to_bytes(data: Any) -> bytes:
    if data is None:
        return b""
    if isinstance(data, bytes):
        return data
    return str(data).encode("utf-8")


class SafeExecutor:
    """Executes CollectionTasks one at a time and appends each Outcome to the RunReport."""

    def __init__(self, report: RunReport, formatter: Optional[DiagFormatter] = None):
        self.report = report
        self.formatter = formatter or DiagFormatter()

    def execute(self, operation: Callable[[], Any], output_path: Path, description: str = "",
                stderr_path: Optional[Path] = None, advisory: bool = False) -> Outcome:
        output_path = Path(output_path)
        description = description or output_path.name

        # Parent directories first, so even a failure leaves its trace on disk
        output_path.parent.mkdir(parents=True, exist_ok=True)
        if stderr_path is not None:
            Path(stderr_path).parent.mkdir(parents=True, exist_ok=True)

        try:
            main, err = self._split(operation(), stderr_path is not None)
        except Exception as e:
            error_text = str(e) or e.__class__.__name__
            captured = _to_bytes(getattr(e, "output", b""))
            if captured and not captured.endswith(b"\n"):
                captured += b"\n"
            status = OutcomeStatus.WARNING if advisory else OutcomeStatus.FAILURE
            logger.info(f"{description} failed: {error_text}")
            try:
                self._write(output_path, captured + error_text.encode("utf-8") + b"\n")
            except OSError as write_err:
                error_text += f" (could not write {output_path}: {write_err})"
            return self._record(Outcome(status, description, output_path, error_text))

        try:
            self._write(output_path, main)
            if stderr_path is not None:
                self._write(Path(stderr_path), err)
        except OSError as e:
            return self.record_failure(description, f"Could not write {output_path}: {e}")

        logger.debug(f"Saved to: {output_path}")
        return self._record(Outcome(OutcomeStatus.SUCCESS, description, output_path))

    def run_task(self, task: CollectionTask) -> Outcome:
        return self.execute(task.operation, task.output_path, task.description,
                            stderr_path=task.stderr_path, advisory=task.advisory)

    def record_warning(self, description: str, detail: Optional[str] = None) -> Outcome:
        """Advisory with no artifact, e.g. a named secret that does not exist."""
        logger.info(f"{description}: {detail}" if detail else description)
        return self._record(Outcome(OutcomeStatus.WARNING, description, None, detail))

    def record_success(self, description: str, output_path: Optional[Path] = None) -> Outcome:
        return self._record(Outcome(OutcomeStatus.SUCCESS, description, output_path))

    def record_failure(self, description: str, detail: str) -> Outcome:
        logger.info(f"{description} failed: {detail}")
        return self._record(Outcome(OutcomeStatus.FAILURE, description, None, detail))

    def _record(self, outcome: Outcome) -> Outcome:
        self.report.record(outcome)
        self.formatter.outcome(outcome)
        return outcome

    @staticmethod
    def _split(result: Any, separate_stderr: bool) -> Tuple[bytes, bytes]:
        if isinstance(result, CommandResult):
            if separate_stderr:
                return result.stdout, result.stderr
            return result.output, b""
        return _to_bytes(result), b""

    @staticmethod
    def _write(path: Path, content: bytes):
        path.write_bytes(content)
