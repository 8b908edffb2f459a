#!/usr/bin/env python3
"""
DIAGPACK DOCKER COLLECTOR
-------------------------
Host information, daemon listings, then per-container logs and
inspection data. Logs and inspection are gated by the Guard
independently, so a user may e.g. take every inspect but only some logs.

Author: DiagPack Team
Date: 2026-10-18
"""

import logging
from typing import List, Optional

from diagpack.collectors.base import PlatformCollector
from diagpack.collectors.host import HOST_PROBES, HostProbe, choose_command
from diagpack.core.errors import PlatformUnavailable
from diagpack.platform.docker import DockerClient
from diagpack.platform.runner import CommandError, CommandRunner

logger = logging.getLogger("diagpack.collectors.docker")

# 6 host probes, 5 listings, system df, version
BASELINE_STEPS = len(HOST_PROBES) + 7

LISTINGS = (
    ("Running containers", "running_containers.txt", ("ps",)),
    ("All containers", "all_containers.txt", ("ps", "-a")),
    ("All images", "all_images.txt", ("images",)),
    ("All volumes", "all_volumes.txt", ("volume", "ls")),
    ("All networks", "all_networks.txt", ("network", "ls")),
    ("Docker system disk usage", "docker_system_df.txt", ("system", "df")),
    ("Docker version information", "docker_version.txt", ("version",)),
)


class DockerCollector(PlatformCollector):
    name = "docker"

    def __init__(self, *args, docker: Optional[DockerClient] = None, **kwargs):
        super().__init__(*args, **kwargs)
        self.docker = docker or DockerClient()
        self._containers: Optional[List[str]] = None

    def required_tools(self) -> List[str]:
        return [self.docker.tool]

    def count_steps(self) -> int:
        self._containers = self._list_containers()
        # logs and inspect each take one step per container
        return BASELINE_STEPS + 2 * len(self._containers or [])

    def _list_containers(self) -> Optional[List[str]]:
        try:
            return self.docker.container_names()
        except CommandError as e:
            logger.info(f"Listing containers failed: {e}")
            return None

    def _collect(self):
        self._collect_host_info()
        self._check_daemon()

        for description, filename, args in LISTINGS:
            self.step(description, filename, lambda args=args: self.docker.run(*args))

        if self._containers is None:
            # The daemon answered `docker info`, so one more attempt is worthwhile
            self._containers = self._list_containers()
            if self._containers is None:
                self.executor.record_warning("Could not list containers")
                self._containers = []
            else:
                self.tracker.extend(2 * len(self._containers))

        self.formatter.info("Gathering container logs...")
        self.gate("containers", self._containers, self.config.max_containers,
                  self.config.containers_limit_preset, self._collect_logs)

        self.formatter.info("Gathering container inspection data...")
        self.gate("containers", self._containers, self.config.max_containers,
                  self.config.containers_limit_preset, self._collect_inspect)

        self._drop_empty_files()

    def _collect_host_info(self):
        self.formatter.info("Gathering host system information...")
        runner = self.docker.runner
        for probe in HOST_PROBES:
            self._probe_host(probe, runner)
            self.tracker.step(probe.description)
        self.formatter.success("Host system information gathered")

    def _probe_host(self, probe: HostProbe, runner: CommandRunner):
        command, fell_back = choose_command(probe, runner)
        if not fell_back:
            self.run(probe.description, probe.filename, lambda: runner.run(command))
            return

        self.formatter.warning(f"{probe.primary[0]} not available, trying alternative...")

        def alternative():
            if command is None:
                # Recorded as a warning with the placeholder text as the file body
                raise RuntimeError(probe.unavailable)
            return runner.run(command)

        self.run(f"{probe.description} (alternative)", probe.filename, alternative, advisory=True)

    def _check_daemon(self):
        self.formatter.info("Checking Docker connection...")
        if not self.docker.daemon_reachable():
            raise PlatformUnavailable(
                "Cannot connect to the Docker daemon. "
                "Make sure Docker is running and you have permission to access it."
            )
        self.formatter.success("Docker connection verified")

    def _collect_logs(self, name: str):
        self.run(f"Logs for container {name}", f"logs_{name}_stdout.txt",
                 lambda: self.docker.logs(name, self.config.log_lines),
                 stderr_name=f"logs_{name}_stderr.txt")

    def _collect_inspect(self, name: str):
        self.run(f"Inspection data for container {name}", f"inspect_{name}.txt",
                 lambda: self.docker.inspect(name))

    def _drop_empty_files(self):
        removed = 0
        for path in sorted(self.output_dir.rglob("*")):
            if path.is_file() and path.stat().st_size == 0:
                path.unlink()
                removed += 1
        if removed:
            logger.info(f"Removed {removed} empty file(s) from {self.output_dir}")
