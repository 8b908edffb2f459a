#!/usr/bin/env python3
"""
DIAGPACK ERRORS - Failure Taxonomy
----------------------------------
Fatal conditions abort the whole run and map to exit status 1.
UserCancelled is a clean early exit (status 0).
Per-item failures never appear here: they are captured by the
SafeExecutor and recorded in the RunReport instead.

Author: DiagPack Team
Date: 2026-10-18
"""

from typing import List


class DiagError(Exception):
    """Base class for every error raised by diagpack."""


class FatalError(DiagError):
    """Aborts the run. Nothing downstream is meaningful after one of these."""

    exit_code = 1


class ValidationError(FatalError):
    """A user-supplied value failed validation."""

    def __init__(self, field: str, message: str):
        self.field = field
        self.message = message
        super().__init__(f"{field}: {message}")


class MissingToolError(FatalError):
    def __init__(self, tools: List[str]):
        self.tools = list(tools)
        super().__init__(f"Missing required tools: {', '.join(self.tools)}")


class PlatformUnavailable(FatalError):
    """Cluster, namespace or daemon cannot be reached."""


class OutputError(FatalError):
    """The output directory could not be prepared."""


class ArchiveError(FatalError):
    """The output directory could not be compressed."""


class UserCancelled(DiagError):
    """The user chose to stop. Not a failure."""

    exit_code = 0
