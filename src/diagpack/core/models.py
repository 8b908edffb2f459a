#!/usr/bin/env python3
"""
DIAGPACK CORE MODELS
--------------------
Defines the fundamental data structures shared by every phase of a
diagnostic run: the validated configuration, the unit of collection work,
and the per-task outcome log that becomes the summary file.

Author: DiagPack Team
Date: 2026-10-18
"""

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Callable, List, Optional

DEFAULT_NAMESPACE = "anomalo"
DEFAULT_LOG_LINES = 250
DEFAULT_MAX_PODS = 50
DEFAULT_MAX_CONTAINERS = 50
DEFAULT_SECRET_NAME = "anomalo-env-secrets"
LOG_LINES_ADVISORY_THRESHOLD = 10000


class DeploymentType(str, Enum):
    KUBERNETES = "kubernetes"
    DOCKER = "docker"


@dataclass(frozen=True)
class RunConfig:
    """
    The validated, immutable parameters of one run.

    Built once by DiagValidator and then passed explicitly to every
    component. Nothing mutates it afterwards.
    """
    deployment_type: DeploymentType
    domain: str                            # Normalized host, e.g. anomalo.example.com
    output_dir: Path                       # Absolute path of the uncompressed tree
    namespace: str = ""                    # Empty for docker deployments
    log_lines: int = DEFAULT_LOG_LINES
    max_pods: int = DEFAULT_MAX_PODS
    max_containers: int = DEFAULT_MAX_CONTAINERS
    pods_limit_preset: bool = False        # Ceiling came from a flag or settings file
    containers_limit_preset: bool = False
    interactive: bool = True
    include_secret: Optional[str] = None   # Opt-in secret body collection
    overwrite: bool = False
    health_connect_timeout: float = 30.0
    health_total_timeout: float = 60.0

    @property
    def health_check_url(self) -> str:
        return f"https://{self.domain}/health_check?metrics=1"

    @property
    def archive_path(self) -> Path:
        return self.output_dir.with_name(self.output_dir.name + ".zip")

    def guard_interactive(self, preset: bool) -> bool:
        """A preset ceiling means automation: the Guard must not block."""
        return self.interactive and not preset


class OutcomeStatus(str, Enum):
    SUCCESS = "success"
    FAILURE = "failure"
    WARNING = "warning"


@dataclass
class Outcome:
    status: OutcomeStatus
    description: str
    output_path: Optional[Path] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.status is OutcomeStatus.SUCCESS

    @property
    def icon(self) -> str:
        return {
            OutcomeStatus.SUCCESS: "✓",
            OutcomeStatus.FAILURE: "✗",
            OutcomeStatus.WARNING: "!",
        }[self.status]


@dataclass
class CollectionTask:
    """
    One named unit of work, produced just-in-time per resource instance.

    `operation` is a zero-argument callable into a platform client. It
    returns bytes, str or a CommandResult, or raises.
    """
    description: str
    output_path: Path
    operation: Callable[[], Any]
    stderr_path: Optional[Path] = None     # Split stderr into a second sink
    advisory: bool = False                 # Failure is a warning, not a Failure


class GuardDecision(str, Enum):
    PROCEED_ALL = "proceed_all"
    TRUNCATE = "truncate"
    SKIP = "skip"
    ABORT = "abort"


@dataclass
class GuardResult:
    decision: GuardDecision
    selected: List[str] = field(default_factory=list)
    skipped: int = 0


@dataclass
class RunReport:
    """Append-only log of task outcomes. Flushed to the summary file at run end."""
    outcomes: List[Outcome] = field(default_factory=list)

    def record(self, outcome: Outcome) -> Outcome:
        self.outcomes.append(outcome)
        return outcome

    def _count(self, status: OutcomeStatus) -> int:
        return sum(1 for o in self.outcomes if o.status is status)

    @property
    def successes(self) -> int:
        return self._count(OutcomeStatus.SUCCESS)

    @property
    def failures(self) -> int:
        return self._count(OutcomeStatus.FAILURE)

    @property
    def warnings(self) -> int:
        return self._count(OutcomeStatus.WARNING)

    def summary_lines(self) -> List[str]:
        lines = []
        for o in self.outcomes:
            line = f"  {o.icon} {o.description}"
            detail = (o.error or "").strip()
            if detail:
                # Last line of command output is usually the actual error
                line += f" ({detail.splitlines()[-1]})"
            lines.append(line)
        return lines
