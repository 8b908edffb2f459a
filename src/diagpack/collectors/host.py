#!/usr/bin/env python3
"""
DIAGPACK HOST INFO
------------------
OS, CPU, memory, disk and network details of the machine running the
Docker daemon. Each probe falls back to an alternate command when the
primary tool is missing (Linux first, then macOS/BSD), and falls back
again to a placeholder text. Never fatal.

Author: DiagPack Team
Date: 2026-10-18
"""

import logging
from dataclasses import dataclass
from typing import Optional, Tuple

from diagpack.platform.runner import CommandRunner

logger = logging.getLogger("diagpack.collectors.host")


@dataclass(frozen=True)
class HostProbe:
    description: str
    filename: str
    primary: Tuple[str, ...]
    fallback: Optional[Tuple[str, ...]] = None
    unavailable: str = "Information not available"


HOST_PROBES = (
    HostProbe("Host OS and kernel version", "host_os_kernel.txt", ("uname", "-a")),
    HostProbe("Host CPU information", "host_cpu_info.txt", ("lscpu",),
              ("sysctl", "-n", "machdep.cpu.brand_string"), "CPU info not available"),
    HostProbe("Host memory information", "host_memory_info.txt", ("free", "-h"),
              ("vm_stat",), "Memory info not available"),
    HostProbe("Host disk usage", "host_disk_usage.txt", ("df", "-h")),
    HostProbe("Host network interfaces", "host_network_interfaces.txt", ("ip", "a"),
              ("ifconfig",), "Network info not available"),
    HostProbe("Host routing table", "host_routing_table.txt", ("ip", "route"),
              ("netstat", "-rn"), "Routing info not available"),
)


def choose_command(probe: HostProbe, runner: CommandRunner) -> Tuple[Optional[Tuple[str, ...]], bool]:
    """Returns (command to run or None, whether a fallback was used)."""
    if probe.fallback is None or runner.available(probe.primary[0]):
        return probe.primary, False
    if runner.available(probe.fallback[0]):
        return probe.fallback, True
    return None, True
