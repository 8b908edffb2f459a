#!/usr/bin/env python3
"""
DIAGPACK VALIDATOR - The Gatekeeper
-----------------------------------
Normalizes and validates raw user input exactly once, before anything
touches the cluster or the filesystem. Produces an immutable RunConfig
or raises ValidationError naming the offending field.

Author: DiagPack Team
Date: 2026-10-18
"""

import os
import re
import logging
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Any, Callable, Optional

from diagpack.cli.formatter import DiagFormatter
from diagpack.core.errors import UserCancelled, ValidationError
from diagpack.core.models import (
    DEFAULT_LOG_LINES,
    DEFAULT_MAX_CONTAINERS,
    DEFAULT_MAX_PODS,
    LOG_LINES_ADVISORY_THRESHOLD,
    DeploymentType,
    RunConfig,
)

logger = logging.getLogger("diagpack.validator")

NAMESPACE_PATTERN = re.compile(r"^[A-Za-z0-9-]+$")
DOMAIN_PATTERN = re.compile(r"^[A-Za-z0-9.-]+\.[A-Za-z]{2,}$")
DIGITS_PATTERN = re.compile(r"^[0-9]+$")
OUTPUT_PREFIX = "anomalo_diag_"


@dataclass
class RawInputs:
    """Unvalidated values as gathered from flags, settings file and wizard."""
    deployment_type: Optional[str] = None
    namespace: Optional[str] = None
    domain: Optional[str] = None
    output: Optional[str] = None
    log_lines: Any = DEFAULT_LOG_LINES
    max_pods: Any = DEFAULT_MAX_PODS
    max_containers: Any = DEFAULT_MAX_CONTAINERS
    pods_limit_preset: bool = False
    containers_limit_preset: bool = False
    interactive: bool = True
    include_secret: Optional[str] = None
    overwrite: bool = False
    health_connect_timeout: Any = 30.0
    health_total_timeout: Any = 60.0


def normalize_domain(raw: str) -> str:
    """
    `https://www.anomalo.example.com/` -> `anomalo.example.com`.
    Scheme first, then one trailing slash, then a leading `www.`.
    """
    domain = (raw or "").strip()
    for scheme in ("http://", "https://"):
        if domain.startswith(scheme):
            domain = domain[len(scheme):]
            break
    if domain.endswith("/"):
        domain = domain[:-1]
    if domain.startswith("www."):
        domain = domain[len("www."):]
    return domain


def default_output_name(now: Optional[datetime] = None) -> str:
    return OUTPUT_PREFIX + (now or datetime.now()).strftime("%Y%m%d_%H%M%S")


class DiagValidator:
    """
    Enforces input integrity. The `confirm` callback is only consulted for
    interactive runs whose output directory already exists.
    """

    def __init__(self, formatter: Optional[DiagFormatter] = None,
                 confirm: Optional[Callable[[str], bool]] = None,
                 cwd: Optional[Path] = None):
        self.formatter = formatter or DiagFormatter()
        self.confirm = confirm or self._console_confirm
        self.cwd = Path(cwd) if cwd else Path.cwd()

    def validate(self, raw: RawInputs) -> RunConfig:
        deployment_type = self.validate_type(raw.deployment_type)
        namespace = self.validate_namespace(raw.namespace, deployment_type)
        domain = self.validate_domain(raw.domain)
        log_lines = self.validate_positive_int("logs", raw.log_lines)
        max_pods = self.validate_positive_int("max_pods", raw.max_pods)
        max_containers = self.validate_positive_int("max_containers", raw.max_containers)

        if log_lines > LOG_LINES_ADVISORY_THRESHOLD:
            self.formatter.warning(f"Log lines is very large ({log_lines}). This may create very large files.")

        output_dir, overwrite = self.validate_output(raw.output, raw.interactive, raw.overwrite)

        config = RunConfig(
            deployment_type=deployment_type,
            domain=domain,
            output_dir=output_dir,
            namespace=namespace,
            log_lines=log_lines,
            max_pods=max_pods,
            max_containers=max_containers,
            pods_limit_preset=raw.pods_limit_preset,
            containers_limit_preset=raw.containers_limit_preset,
            interactive=raw.interactive,
            include_secret=(raw.include_secret or None) if deployment_type is DeploymentType.KUBERNETES else None,
            overwrite=overwrite,
            health_connect_timeout=self.validate_timeout("health_connect_timeout", raw.health_connect_timeout),
            health_total_timeout=self.validate_timeout("health_total_timeout", raw.health_total_timeout),
        )
        logger.info(f"Validated configuration: {config}")
        return config

    def validate_type(self, value: Optional[str]) -> DeploymentType:
        try:
            return DeploymentType((value or "").strip().lower())
        except ValueError:
            raise ValidationError("type", f"Invalid deployment type: {value}. Must be 'kubernetes' or 'docker'.")

    def validate_namespace(self, value: Optional[str], deployment_type: DeploymentType) -> str:
        if deployment_type is DeploymentType.DOCKER:
            return ""
        namespace = (value or "").strip()
        if not namespace:
            raise ValidationError("namespace", "Namespace is required for Kubernetes deployments.")
        if not NAMESPACE_PATTERN.match(namespace):
            raise ValidationError(
                "namespace",
                f"Invalid namespace format: {namespace}. Must contain only alphanumeric characters and hyphens."
            )
        return namespace

    def validate_domain(self, value: Optional[str]) -> str:
        if not value or not value.strip():
            raise ValidationError("domain", "Base domain is required.")
        domain = normalize_domain(value)
        if not DOMAIN_PATTERN.match(domain):
            raise ValidationError(
                "domain",
                f"Invalid domain format: {domain}. Examples: anomalo.your-domain.com, my-anomalo.company.com"
            )
        self.formatter.info(f"Using normalized domain: {domain}")
        return domain

    def validate_positive_int(self, field: str, value: Any) -> int:
        # bool is an int subclass; True must not slip through as 1
        if isinstance(value, bool):
            raise ValidationError(field, f"Must be a positive integer. Got: {value}")
        if isinstance(value, int):
            number = value
        else:
            text = str(value).strip() if value is not None else ""
            if not DIGITS_PATTERN.match(text):
                raise ValidationError(field, f"Must be a positive integer. Got: {value}")
            number = int(text)
        if number < 1:
            raise ValidationError(field, f"Must be at least 1. Got: {value}")
        return number

    def validate_timeout(self, field: str, value: Any) -> float:
        try:
            seconds = float(value)
        except (TypeError, ValueError):
            raise ValidationError(field, f"Must be a number of seconds. Got: {value}")
        if seconds <= 0:
            raise ValidationError(field, f"Must be greater than zero. Got: {value}")
        return seconds

    def validate_output(self, value: Optional[str], interactive: bool, overwrite: bool):
        """Returns (absolute output path, overwrite confirmed)."""
        raw = (value or "").strip()
        path = Path(raw).expanduser() if raw else Path(default_output_name())
        if not path.is_absolute():
            path = self.cwd / path
        # Collapse `..` without resolving symlinks
        path = Path(os.path.normpath(str(path)))

        if not path.parent.is_dir():
            raise ValidationError("output", f"Parent directory does not exist: {path.parent}")

        if path.exists() and not overwrite:
            if not interactive:
                raise ValidationError(
                    "output", f"Output directory already exists: {path} (use --overwrite to replace it)"
                )
            self.formatter.warning(f"Output directory already exists: {path}")
            if not self.confirm(f"Do you want to overwrite {path}?"):
                raise UserCancelled("Exiting without overwriting existing directory.")
            overwrite = True

        if raw:
            self.formatter.info(f"Using custom output directory: {path}")
        return path, overwrite

    def _console_confirm(self, question: str) -> bool:
        choice = self.formatter.console.input(f"[bold yellow]{question} (y/N): [/bold yellow]")
        return choice.strip().lower() in ("y", "yes")
