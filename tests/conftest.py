"""
Shared fixtures: a CommandRunner that replays canned kubectl/docker output,
a quiet formatter and helpers to build RunConfigs.
"""

import io
from pathlib import Path
from typing import Callable, Dict, Iterable, List, Optional, Tuple, Union

import pytest
import requests
from rich.console import Console

from diagpack.cli.formatter import DiagFormatter
from diagpack.core.models import DeploymentType, RunConfig
from diagpack.platform.kubectl import NAME_JSONPATH
from diagpack.platform.runner import CommandResult, CommandRunner

Response = Union[CommandResult, Callable[[Tuple[str, ...]], CommandResult]]


class FakeRunner(CommandRunner):
    """Answers commands from a table; anything unknown exits 1."""

    def __init__(self, tools: Iterable[str] = ("kubectl", "docker", "uname", "lscpu", "free", "df", "ip")):
        self.tools = set(tools)
        self.responses: Dict[Tuple[str, ...], Response] = {}
        self.calls: List[Tuple[str, ...]] = []

    def on(self, *args: str, stdout: str = "", stderr: str = "", code: int = 0):
        self.responses[tuple(args)] = CommandResult(tuple(args), code, stdout.encode(), stderr.encode())
        return self

    def capture(self, args):
        args = tuple(args)
        self.calls.append(args)
        response = self.responses.get(args)
        if response is None:
            return CommandResult(args, 1, b"", f"unexpected command: {' '.join(args)}\n".encode())
        if callable(response):
            return response(args)
        return response

    def available(self, tool: str) -> bool:
        return tool in self.tools


class FakeResponse:
    def __init__(self, content: bytes = b'{"status": "ok"}', status_code: int = 200):
        self.content = content
        self.status_code = status_code
        self.closed = False

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.closed = True

    def iter_content(self, chunk_size=1):
        for i in range(0, len(self.content), chunk_size):
            yield self.content[i:i + chunk_size]

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 400


class FakeHttp:
    """Stands in for requests.Session.get."""

    def __init__(self, response: Optional[FakeResponse] = None, error: Optional[Exception] = None):
        self.response = response or FakeResponse()
        self.error = error
        self.requests: List[Tuple[str, object]] = []

    def get(self, url, timeout=None, stream=False):
        self.requests.append((url, timeout))
        if self.error is not None:
            raise self.error
        return self.response


def kube_cluster(runner: FakeRunner, namespace: str = "anomalo",
                 pods: Optional[Dict[str, str]] = None, configmaps: Iterable[str] = (),
                 secrets: Iterable[str] = ("default-token",)) -> FakeRunner:
    """Registers a healthy cluster whose namespace holds the given pods (name -> phase)."""
    pods = pods or {}
    ns = namespace
    runner.on("kubectl", "cluster-info", stdout="Kubernetes control plane is running")
    runner.on("kubectl", "get", "namespace", ns, stdout=f"{ns}   Active")
    runner.on("kubectl", "get", "pods", "-n", ns, "-o", NAME_JSONPATH, stdout="".join(p + "\n" for p in pods))
    runner.on("kubectl", "get", "configmaps", "-n", ns, "-o", NAME_JSONPATH,
              stdout="".join(c + "\n" for c in configmaps))
    runner.on("kubectl", "get", "secrets", "-n", ns, "-o", NAME_JSONPATH,
              stdout="".join(s + "\n" for s in secrets))
    runner.on("kubectl", "get", "all", "-n", ns, "-o", "wide", stdout="NAME READY STATUS")
    runner.on("kubectl", "get", "events", "-n", ns, "--sort-by=.lastTimestamp", stdout="LAST SEEN TYPE")
    runner.on("kubectl", "get", "nodes", "-o", "wide", stdout="node-1 Ready")
    runner.on("kubectl", "top", "nodes", stdout="node-1 250m 12%")
    runner.on("kubectl", "get", "deployments", "-n", ns, "-o", "yaml", stdout="kind: List")
    runner.on("kubectl", "get", "services", "-n", ns, "-o", "wide", stdout="svc")
    runner.on("kubectl", "get", "ingress", "-n", ns, "-o", "wide", stdout="ing")
    runner.on("kubectl", "get", "pv,pvc", "-n", ns, stdout="pvc")
    for pod, phase in pods.items():
        runner.on("kubectl", "get", "pod", pod, "-n", ns, "-o", "jsonpath={.status.phase}", stdout=phase)
        runner.on("kubectl", "logs", pod, "-n", ns, "--all-containers=true", "--tail=250",
                  stdout=f"log line from {pod}\n")
        runner.on("kubectl", "describe", "pod", pod, "-n", ns, stdout=f"Name: {pod}\nStatus: {phase}\n")
    for cm in configmaps:
        runner.on("kubectl", "get", f"configmap/{cm}", "-n", ns, "-o", "yaml", stdout=f"kind: ConfigMap\nname: {cm}\n")
    return runner


def docker_host(runner: FakeRunner, containers: Iterable[str] = ()) -> FakeRunner:
    containers = list(containers)
    runner.on("uname", "-a", stdout="Linux host 6.1.0")
    runner.on("lscpu", stdout="Architecture: x86_64")
    runner.on("free", "-h", stdout="Mem: 16Gi")
    runner.on("df", "-h", stdout="/dev/sda1 100G")
    runner.on("ip", "a", stdout="1: lo")
    runner.on("ip", "route", stdout="default via 10.0.0.1")
    runner.on("docker", "info", stdout="Server Version: 24.0")
    runner.on("docker", "ps", stdout="CONTAINER ID")
    runner.on("docker", "ps", "-a", stdout="CONTAINER ID")
    runner.on("docker", "ps", "-a", "--format", "{{.Names}}", stdout="".join(c + "\n" for c in containers))
    runner.on("docker", "images", stdout="REPOSITORY")
    runner.on("docker", "volume", "ls", stdout="DRIVER")
    runner.on("docker", "network", "ls", stdout="NETWORK ID")
    runner.on("docker", "system", "df", stdout="TYPE TOTAL")
    runner.on("docker", "version", stdout="Client: 24.0")
    for name in containers:
        runner.on("docker", "logs", "-n", "250", name, stdout=f"{name} started\n", stderr="")
        runner.on("docker", "inspect", name, stdout=f'[{{"Name": "/{name}"}}]')
    return runner


def make_config(output_dir: Path, deployment_type: DeploymentType = DeploymentType.KUBERNETES,
                **overrides) -> RunConfig:
    values = dict(
        deployment_type=deployment_type,
        domain="anomalo.example.com",
        output_dir=output_dir,
        namespace="anomalo" if deployment_type is DeploymentType.KUBERNETES else "",
    )
    values.update(overrides)
    return RunConfig(**values)


def scripted(*answers: str) -> Callable[[str], str]:
    """Prompt function returning the given answers in order."""
    queue = list(answers)
    prompts: List[str] = []

    def prompt(text: str) -> str:
        prompts.append(text)
        if not queue:
            raise AssertionError(f"Unexpected prompt: {text}")
        return queue.pop(0)

    prompt.prompts = prompts
    return prompt


@pytest.fixture
def console_buffer() -> io.StringIO:
    return io.StringIO()


@pytest.fixture
def formatter(console_buffer) -> DiagFormatter:
    return DiagFormatter(Console(file=console_buffer, force_terminal=False, width=120))


@pytest.fixture
def runner() -> FakeRunner:
    return FakeRunner()


@pytest.fixture
def timeout_error() -> Exception:
    return requests.exceptions.ConnectTimeout("connect timed out")
