#!/usr/bin/env python3
"""
DIAGPACK DOCKER COLLECTOR SUITE
-------------------------------
Host probes with their fallbacks, daemon listings and Guard-gated
per-container logs and inspection data.
"""

import pytest

from conftest import FakeRunner, docker_host, make_config, scripted
from diagpack.collectors.docker import BASELINE_STEPS, DockerCollector
from diagpack.collectors.host import HOST_PROBES, choose_command
from diagpack.core.errors import PlatformUnavailable
from diagpack.core.executor import SafeExecutor
from diagpack.core.models import DeploymentType, OutcomeStatus, RunReport
from diagpack.core.progress import ProgressTracker
from diagpack.platform.docker import DockerClient
from diagpack.platform.runner import CommandResult
from diagpack.rules.guard import LargeCollectionGuard


class CountingTracker(ProgressTracker):

    def complete(self, label="Done"):
        self.before_complete = self.current
        super().complete(label)


def build(tmp_path, runner, formatter, prompt=None, **overrides):
    config = make_config(tmp_path / "out", DeploymentType.DOCKER, **overrides)
    report = RunReport()
    tracker = CountingTracker(formatter.console)
    guard = LargeCollectionGuard(formatter, prompt=prompt or scripted())
    collector = DockerCollector(config, SafeExecutor(report, formatter), tracker, guard, formatter,
                                docker=DockerClient(runner))
    return collector, report, tracker


def files(tmp_path):
    return sorted(p.name for p in (tmp_path / "out").iterdir())


def test_baseline_counts_host_probes_and_listings():
    assert BASELINE_STEPS == 13


def test_large_container_set_is_truncated_for_logs_and_inspect(tmp_path, formatter):
    containers = [f"svc-{i:02d}" for i in range(60)]
    runner = docker_host(FakeRunner(), containers)
    prompt = scripted("", "")
    collector, report, tracker = build(tmp_path, runner, formatter, prompt=prompt)

    collector.collect()

    names = files(tmp_path)
    stdout_logs = [n for n in names if n.endswith("_stdout.txt")]
    inspects = [n for n in names if n.startswith("inspect_")]
    assert stdout_logs == [f"logs_svc-{i:02d}_stdout.txt" for i in range(50)]
    assert inspects == [f"inspect_svc-{i:02d}.txt" for i in range(50)]
    assert len(prompt.prompts) == 2

    assert tracker.total == 13 + 120
    assert tracker.before_complete == tracker.total
    assert report.failures == 0


def test_host_and_daemon_listings_are_written(tmp_path, formatter):
    runner = docker_host(FakeRunner(), ["web"])
    collector, _, _ = build(tmp_path, runner, formatter)
    collector.collect()

    names = files(tmp_path)
    for probe in HOST_PROBES:
        assert probe.filename in names
    for expected in ["running_containers.txt", "all_containers.txt", "all_images.txt", "all_volumes.txt",
                     "all_networks.txt", "docker_system_df.txt", "docker_version.txt"]:
        assert expected in names
    assert (tmp_path / "out" / "logs_web_stdout.txt").read_text() == "web started\n"


def test_empty_stderr_logs_are_dropped(tmp_path, formatter):
    runner = docker_host(FakeRunner(), ["web", "worker"])
    runner.on("docker", "logs", "-n", "250", "worker", stdout="ready\n", stderr="warning: slow disk\n")
    collector, _, _ = build(tmp_path, runner, formatter)
    collector.collect()

    names = files(tmp_path)
    assert "logs_web_stderr.txt" not in names
    assert (tmp_path / "out" / "logs_worker_stderr.txt").read_text() == "warning: slow disk\n"


def test_host_probe_fallbacks(tmp_path, formatter, console_buffer):
    runner = docker_host(FakeRunner(tools=("docker", "uname", "df", "sysctl", "vm_stat")), ["web"])
    runner.on("sysctl", "-n", "machdep.cpu.brand_string", stdout="Apple M2")
    runner.on("vm_stat", stdout="Pages free: 1024")
    collector, report, tracker = build(tmp_path, runner, formatter)
    collector.collect()

    out = tmp_path / "out"
    assert (out / "host_cpu_info.txt").read_text() == "Apple M2"
    assert (out / "host_memory_info.txt").read_text() == "Pages free: 1024"
    assert "Network info not available" in (out / "host_network_interfaces.txt").read_text()
    assert "Routing info not available" in (out / "host_routing_table.txt").read_text()
    assert "lscpu not available, trying alternative" in console_buffer.getvalue()

    assert report.failures == 0
    assert [o.description for o in report.outcomes if o.status is OutcomeStatus.WARNING] == [
        "Host network interfaces (alternative)", "Host routing table (alternative)"]
    assert tracker.before_complete == tracker.total


def test_choose_command_prefers_primary(runner):
    runner.tools = {"lscpu", "sysctl"}
    cpu = HOST_PROBES[1]
    assert choose_command(cpu, runner) == (("lscpu",), False)
    runner.tools = {"sysctl"}
    assert choose_command(cpu, runner) == (("sysctl", "-n", "machdep.cpu.brand_string"), True)
    runner.tools = set()
    assert choose_command(cpu, runner) == (None, True)


def test_unreachable_daemon_is_fatal(tmp_path, formatter):
    runner = docker_host(FakeRunner(), ["web"])
    runner.on("docker", "info", stderr="Cannot connect to the Docker daemon", code=1)
    collector, _, _ = build(tmp_path, runner, formatter)

    with pytest.raises(PlatformUnavailable, match="Docker daemon"):
        collector.collect()
    # host information is gathered before the daemon check
    assert "host_os_kernel.txt" in files(tmp_path)
    assert "running_containers.txt" not in files(tmp_path)


def test_separate_decisions_for_logs_and_inspect(tmp_path, formatter):
    containers = [f"c{i}" for i in range(4)]
    runner = docker_host(FakeRunner(), containers)
    collector, _, tracker = build(tmp_path, runner, formatter, prompt=scripted("3", "1"), max_containers=2)
    collector.collect()

    names = files(tmp_path)
    assert not [n for n in names if n.startswith("logs_")]
    assert len([n for n in names if n.startswith("inspect_")]) == 4
    assert tracker.before_complete == tracker.total == BASELINE_STEPS + 8


def test_containers_found_on_relist_raise_the_total(tmp_path, formatter):
    runner = docker_host(FakeRunner(), ["web", "worker", "db"])
    listing = ("docker", "ps", "-a", "--format", "{{.Names}}")
    attempts = []

    def flaky_listing(args):
        attempts.append(args)
        if len(attempts) == 1:
            return CommandResult(args, 1, b"", b"Cannot connect to the Docker daemon\n")
        return CommandResult(args, 0, b"web\nworker\ndb\n", b"")

    runner.responses[listing] = flaky_listing
    collector, report, tracker = build(tmp_path, runner, formatter)
    collector.collect()

    assert len(attempts) == 2
    assert tracker.total == BASELINE_STEPS + 6
    assert tracker.before_complete == tracker.total
    assert len([n for n in files(tmp_path) if n.startswith("inspect_")]) == 3
    assert report.warnings == 0
