#!/usr/bin/env python3
"""
DIAGPACK ENGINE - The Session Orchestrator
------------------------------------------
DiagnosticSession drives one collection run end to end:
tool check -> pre-flight -> output directory -> platform collector ->
health-check fetch -> summary -> zip archive -> cleanup.

Fatal errors propagate to the caller untouched. A process-level hook
removes the uncompressed output directory whenever the run ends before
the archive is written, so half-collected trees (and any secrets in
them) are never left behind.

Author: DiagPack Team
Date: 2026-10-18
"""

import atexit
import time
import shutil
import logging
import zipfile
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Callable, List, Optional

import requests

from diagpack.cli.formatter import DiagFormatter
from diagpack.collectors.base import PlatformCollector
from diagpack.collectors.docker import DockerCollector
from diagpack.collectors.kubernetes import KubernetesCollector
from diagpack.core.errors import ArchiveError, MissingToolError, OutputError
from diagpack.core.executor import SafeExecutor
from diagpack.core.models import DeploymentType, RunConfig, RunReport
from diagpack.core.progress import ProgressTracker
from diagpack.platform.docker import DockerClient
from diagpack.platform.kubectl import KubectlClient
from diagpack.platform.runner import CommandRunner
from diagpack.rules.guard import LargeCollectionGuard

logger = logging.getLogger("diagpack.engine")

SUMMARY_FILENAME = "diagnostic_summary.txt"
METRICS_FILENAME = "metrics.json"
SUMMARY_EXTENSIONS = (".txt", ".yaml", ".json")
EMPTY_METRICS = b"{}\n"
# Single-byte reads return as soon as anything arrives, so a trickling server
# cannot hold one read open past the deadline
HEALTH_READ_CHUNK = 1
# health fetch, summary, archive
FINAL_STEPS = 3


class HealthCheckDeadline(requests.Timeout):
    """The health endpoint kept sending past the total-time ceiling."""


@dataclass
class SessionResult:
    archive_path: Path
    report: RunReport


class DiagnosticSession:
    """
    Principal orchestrator for one diagnostic run.
    Holds the explicit RunConfig + RunReport pair; no module-level state.
    """

    def __init__(self, config: RunConfig, formatter: Optional[DiagFormatter] = None,
                 runner: Optional[CommandRunner] = None,
                 guard: Optional[LargeCollectionGuard] = None,
                 http: Optional[requests.Session] = None,
                 clock: Callable[[], float] = time.monotonic):
        self.config = config
        self.formatter = formatter or DiagFormatter()
        self.runner = runner or CommandRunner()
        self.report = RunReport()
        self.executor = SafeExecutor(self.report, self.formatter)
        self.tracker = ProgressTracker(self.formatter.console)
        self.guard = guard or LargeCollectionGuard(self.formatter)
        self.http = http or requests.Session()
        self.clock = clock
        self.collector = self._build_collector()

        self._archived = False
        self._created_output = False

    def _build_collector(self) -> PlatformCollector:
        args = (self.config, self.executor, self.tracker, self.guard, self.formatter)
        if self.config.deployment_type is DeploymentType.KUBERNETES:
            return KubernetesCollector(*args, kubectl=KubectlClient(self.runner))
        return DockerCollector(*args, docker=DockerClient(self.runner))

    # --- Lifecycle ---

    def run(self) -> SessionResult:
        try:
            self.check_required_tools()
            self.collector.preflight()
            self.prepare_output_dir()

            self.collector.collect()

            self.tracker.init(FINAL_STEPS, "Finalizing")
            self.fetch_health_metrics()
            self.tracker.step("Health check")
            self.write_summary()
            self.tracker.step("Summary")
            archive = self.create_archive()
            self.tracker.step("Archive")
            self.tracker.complete()
        finally:
            self.tracker.close()
            self.cleanup()

        self.formatter.print_final(str(archive), self.report)
        return SessionResult(archive, self.report)

    def check_required_tools(self):
        missing: List[str] = [t for t in self.collector.required_tools() if not self.runner.available(t)]
        if missing:
            raise MissingToolError(missing)
        logger.debug(f"Required tools present: {self.collector.required_tools()}")

    def prepare_output_dir(self):
        out = self.config.output_dir
        self.formatter.info(f"Creating output directory: {out}")
        try:
            if out.exists() and self.config.overwrite:
                logger.info(f"Replacing existing output directory {out}")
                if out.is_dir():
                    shutil.rmtree(out)
                else:
                    out.unlink()
            out.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise OutputError(f"Failed to create output directory: {out} ({e})")

        self._created_output = True
        atexit.register(self.cleanup)

    def cleanup(self):
        """Removes the uncompressed tree. Safe to call more than once."""
        if not self._created_output:
            return
        out = self.config.output_dir
        if out.is_dir():
            if not self._archived:
                self.formatter.info(f"Cleaning up temporary directory: {out}")
            shutil.rmtree(out, ignore_errors=True)
        self._created_output = False
        atexit.unregister(self.cleanup)

    # --- Final phases ---

    def fetch_health_metrics(self) -> bool:
        url = self.config.health_check_url
        target = self.config.output_dir / METRICS_FILENAME
        ceiling = self.config.health_total_timeout
        self.formatter.info("Fetching health check metrics...")
        deadline = self.clock() + ceiling
        try:
            # The read timeout only bounds the gap between bytes; the deadline bounds the whole fetch
            with self.http.get(url, timeout=(self.config.health_connect_timeout, ceiling),
                               stream=True) as response:
                body = bytearray()
                for chunk in response.iter_content(chunk_size=HEALTH_READ_CHUNK):
                    body.extend(chunk)
                    if self.clock() > deadline:
                        raise HealthCheckDeadline(f"Health check did not complete within {ceiling:g}s")
            # Body is kept verbatim whatever the status code or content type
            target.write_bytes(bytes(body))
        except requests.RequestException as e:
            logger.info(f"Health check fetch failed: {e}")
            target.write_bytes(EMPTY_METRICS)
            self.executor.record_warning(
                f"Failed to fetch metrics data from {url} (continuing anyway)", str(e)
            )
            return False

        if not response.ok:
            logger.info(f"Health check returned HTTP {response.status_code}")
        self.executor.record_success(f"Metrics data fetched from {url}", target)
        return True

    def write_summary(self) -> Path:
        self.formatter.info("Creating diagnostic summary...")
        out = self.config.output_dir
        summary = out / SUMMARY_FILENAME

        lines = [
            "Anomalo Diagnostic Collection Summary",
            "=====================================",
            f"Collection Date: {datetime.now().strftime('%a %b %d %H:%M:%S %Y')}",
            f"Deployment Type: {self.config.deployment_type.value}",
            f"Base Domain: {self.config.domain}",
        ]
        if self.config.deployment_type is DeploymentType.KUBERNETES:
            lines.append(f"Namespace: {self.config.namespace}")
        lines.append(f"Output Directory: {out}")
        lines.append(
            f"Results: {self.report.successes} collected, "
            f"{self.report.failures} failed, {self.report.warnings} warnings"
        )
        lines.append("Collection Results:")
        lines.extend(self.report.summary_lines())
        lines.append("Files Collected:")
        lines.extend(self.collected_files(include=[SUMMARY_FILENAME]))

        summary.write_text("\n".join(lines) + "\n", encoding="utf-8")
        return summary

    def collected_files(self, include: Optional[List[str]] = None) -> List[str]:
        """Sorted relative paths of every collected artifact."""
        out = self.config.output_dir
        names = {
            str(p.relative_to(out))
            for p in out.rglob("*")
            if p.is_file() and p.suffix in SUMMARY_EXTENSIONS
        }
        names.update(include or [])
        return sorted(names)

    def create_archive(self) -> Path:
        out = self.config.output_dir
        archive = self.config.archive_path
        self.formatter.info("Compressing diagnostic data...")
        try:
            with zipfile.ZipFile(archive, "w", compression=zipfile.ZIP_DEFLATED) as zf:
                zf.write(out, arcname=out.name)
                for path in sorted(out.rglob("*")):
                    zf.write(path, arcname=str(Path(out.name) / path.relative_to(out)))
        except (OSError, zipfile.BadZipFile) as e:
            if archive.exists():
                archive.unlink()
            raise ArchiveError(f"Failed to compress output directory: {e}")

        self._archived = True
        self.formatter.success(f"Output directory compressed into {archive}")
        return archive
