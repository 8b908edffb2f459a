#!/usr/bin/env python3
"""
DIAGPACK KUBERNETES COLLECTOR
-----------------------------
Dumps namespace state through kubectl:
1. Cluster-wide views (resources, events, nodes, node metrics)
2. Per-pod logs (Running) or descriptions (anything else), Guard-gated
3. Namespace config objects (deployments, services, ingress, storage)
4. Config map names and bodies
5. Secret names, and one secret body only when explicitly requested

Author: DiagPack Team
Date: 2026-10-18
"""

import logging
from typing import List, Optional

from diagpack.collectors.base import PlatformCollector
from diagpack.core.errors import PlatformUnavailable
from diagpack.platform.kubectl import KubectlClient
from diagpack.platform.runner import CommandError

logger = logging.getLogger("diagpack.collectors.kubernetes")

# all, events, nodes, node metrics, deployments, services, ingress, storage,
# configmap names, secret names, secret body
BASELINE_STEPS = 11
RUNNING_PHASE = "Running"


class KubernetesCollector(PlatformCollector):
    name = "kubernetes"

    def __init__(self, *args, kubectl: Optional[KubectlClient] = None, **kwargs):
        super().__init__(*args, **kwargs)
        self.kubectl = kubectl or KubectlClient()
        self.namespace = self.config.namespace
        self._pods: Optional[List[str]] = None
        self._configmaps: Optional[List[str]] = None

    def required_tools(self) -> List[str]:
        return [self.kubectl.tool]

    def preflight(self):
        self.formatter.info("Checking kubectl connection and namespace access...")

        if not self.kubectl.cluster_reachable():
            raise PlatformUnavailable(
                "Cannot connect to the Kubernetes cluster. "
                "Make sure kubectl is configured and you have access to the cluster."
            )

        if not self.kubectl.namespace_exists(self.namespace):
            try:
                available = ", ".join(self.kubectl.list_namespaces()) or "(none)"
            except CommandError:
                available = "(could not list namespaces)"
            raise PlatformUnavailable(
                f"Namespace '{self.namespace}' does not exist or you don't have access to it. "
                f"Available namespaces: {available}"
            )

        self.formatter.success("kubectl connection and namespace access verified")

    def count_steps(self) -> int:
        self._pods = self._list("pods")
        self._configmaps = self._list("configmaps")
        return BASELINE_STEPS + len(self._pods or []) + len(self._configmaps or [])

    def _list(self, kind: str) -> Optional[List[str]]:
        try:
            return self.kubectl.list_names(kind, self.namespace)
        except CommandError as e:
            logger.info(f"Listing {kind} failed: {e}")
            return None

    def _collect(self):
        ns = self.namespace
        kubectl = self.kubectl
        self.formatter.info(f"Gathering Kubernetes diagnostic information for namespace: {ns}")

        self.step(f"All resources in {ns} namespace", f"all_resources_{ns}.txt",
                  lambda: kubectl.get("all", ns, "wide"))
        self.step(f"Events in {ns} namespace", f"events_{ns}.txt", lambda: kubectl.events(ns))
        self.step("Cluster nodes information", "nodes.txt", lambda: kubectl.get("nodes", output="wide"))
        self._collect_node_metrics()

        self._collect_pods()

        self.step("Deployment configurations", f"deployments_config_{ns}.yaml",
                  lambda: kubectl.get("deployments", ns, "yaml"))
        self.step(f"Services in {ns} namespace", f"services_{ns}.txt",
                  lambda: kubectl.get("services", ns, "wide"))
        self.step(f"Ingress in {ns} namespace", f"ingress_{ns}.txt",
                  lambda: kubectl.get("ingress", ns, "wide"))
        self.step(f"Storage resources in {ns} namespace", f"storage_{ns}.txt",
                  lambda: kubectl.get("pv,pvc", ns))

        self._collect_configmaps()
        self._collect_secrets()

    def _collect_node_metrics(self):
        # metrics-server is optional; its absence is worth a warning, not a failure
        outcome = self.run("Node metrics", "node_metrics.txt", self.kubectl.top_nodes, advisory=True)
        if not outcome.ok:
            self.formatter.warning("Node metrics not available (metrics-server may not be installed)")
        self.tracker.step("Node metrics")

    def _collect_pods(self):
        self.formatter.info("Gathering pod information and logs...")
        if self._pods is None:
            self.executor.record_warning(f"Could not list pods in namespace: {self.namespace}")
            return

        self.gate("pods", self._pods, self.config.max_pods, self.config.pods_limit_preset, self._collect_pod)

    def _collect_pod(self, pod: str):
        ns = self.namespace
        try:
            phase = self.kubectl.pod_phase(pod, ns)
        except CommandError as e:
            self.executor.record_failure(f"Status lookup for pod {pod}", str(e))
            return

        if phase != RUNNING_PHASE:
            self.run(f"Pod description for {pod} ({phase or 'Unknown'})", f"describe_{pod}.txt",
                     lambda: self.kubectl.describe_pod(pod, ns))
        else:
            lines = self.config.log_lines
            self.run(f"Logs for pod {pod}", f"logs_{pod}_last{lines}.txt",
                     lambda: self.kubectl.pod_logs(pod, ns, lines))

    def _collect_configmaps(self):
        ns = self.namespace
        self.step(f"ConfigMap names in {ns} namespace", f"configmaps_{ns}.txt",
                  lambda: self.kubectl.names_output("configmaps", ns))

        self.formatter.info("Gathering all ConfigMap values...")
        if self._configmaps is None:
            self.executor.record_warning(f"Could not list ConfigMaps in namespace: {ns}")
            return

        for name in self._configmaps:
            self.step(f"ConfigMap {name}", f"{name}_configmap.yaml",
                      lambda name=name: self.kubectl.get(f"configmap/{name}", ns, "yaml"))

    def _collect_secrets(self):
        ns = self.namespace
        self.step(f"Secret names in {ns} namespace", f"secrets_{ns}.txt",
                  lambda: self.kubectl.names_output("secrets", ns))

        secret = self.config.include_secret
        if not secret:
            logger.debug("Secret body collection not requested")
        elif self.kubectl.secret_exists(secret, ns):
            self.formatter.warning(f"Collecting values from Secret '{secret}' (contains sensitive data)")
            self.run(f"Secret {secret} values", f"{secret}_secret.yaml",
                     lambda: self.kubectl.get(f"secret/{secret}", ns, "yaml"))
        else:
            self.executor.record_warning(f"Secret '{secret}' not found in namespace '{ns}'")
        self.tracker.step("Secrets")
