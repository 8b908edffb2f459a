#!/usr/bin/env python3
"""
DIAGPACK KUBECTL CLIENT
-----------------------
Thin wrapper over the kubectl binary. Each method maps to exactly one
kubectl invocation and either returns its result or raises CommandError.

Author: DiagPack Team
Date: 2026-10-18
"""

from typing import List

from diagpack.platform.runner import CommandResult, PlatformClient

NAME_JSONPATH = "jsonpath={range .items[*]}{.metadata.name}{'\\n'}{end}"


class KubectlClient(PlatformClient):
    tool = "kubectl"

    def cluster_reachable(self) -> bool:
        return self.succeeds("cluster-info")

    def namespace_exists(self, namespace: str) -> bool:
        return self.succeeds("get", "namespace", namespace)

    def list_namespaces(self) -> List[str]:
        return self.lines("get", "namespaces", "--no-headers", "-o", "custom-columns=:metadata.name")

    def list_names(self, kind: str, namespace: str) -> List[str]:
        """Names of every `kind` object in `namespace`, in API order."""
        return self.lines("get", kind, "-n", namespace, "-o", NAME_JSONPATH)

    def names_output(self, kind: str, namespace: str) -> CommandResult:
        return self.run("get", kind, "-n", namespace, "-o", NAME_JSONPATH)

    def get(self, resource: str, namespace: str = "", output: str = "") -> CommandResult:
        args = ["get", resource]
        if namespace:
            args += ["-n", namespace]
        if output:
            args += ["-o", output]
        return self.run(*args)

    def events(self, namespace: str) -> CommandResult:
        return self.run("get", "events", "-n", namespace, "--sort-by=.lastTimestamp")

    def top_nodes(self) -> CommandResult:
        return self.run("top", "nodes")

    def pod_phase(self, pod: str, namespace: str) -> str:
        return self.run("get", "pod", pod, "-n", namespace, "-o", "jsonpath={.status.phase}").text().strip()

    def describe_pod(self, pod: str, namespace: str) -> CommandResult:
        return self.run("describe", "pod", pod, "-n", namespace)

    def pod_logs(self, pod: str, namespace: str, tail: int) -> CommandResult:
        return self.run("logs", pod, "-n", namespace, "--all-containers=true", f"--tail={tail}")

    def secret_exists(self, name: str, namespace: str) -> bool:
        return self.succeeds("get", "secret", name, "-n", namespace)
