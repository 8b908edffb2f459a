#!/usr/bin/env python3
"""
DIAGPACK DOCKER CLIENT
----------------------
Thin wrapper over the docker CLI, one method per invocation.

Author: DiagPack Team
Date: 2026-10-18
"""

from typing import List

from diagpack.platform.runner import CommandResult, PlatformClient


class DockerClient(PlatformClient):
    tool = "docker"

    def daemon_reachable(self) -> bool:
        return self.succeeds("info")

    def container_names(self) -> List[str]:
        return self.lines("ps", "-a", "--format", "{{.Names}}")

    def logs(self, name: str, tail: int) -> CommandResult:
        # stdout and stderr stay separate; the collector writes them to two files
        return self.run("logs", "-n", str(tail), name)

    def inspect(self, name: str) -> CommandResult:
        return self.run("inspect", name)
