"""Health of the node the pod is scheduled on."""
from __future__ import annotations

from poddoctor.analyzers.base import Analyzer
from poddoctor.k8s_client import SignalSource
from poddoctor.models import Issue, NodeHealth, PodSnapshot, Severity


def node_issues(node: NodeHealth) -> list[Issue]:
    issues: list[Issue] = []
    name = node.name
    if not node.ready:
        issues.append(Issue(
            severity=Severity.critical,
            category="node",
            title=f"Node {name} is not ready",
            description="The node where this pod is running is not in Ready state",
            details={"node": name},
        ))
    if node.memory_pressure:
        issues.append(Issue(
            severity=Severity.warning,
            category="node",
            title=f"Node {name} has memory pressure",
            description="The node is experiencing memory pressure, which may cause pod evictions",
            details={"node": name, "condition": "MemoryPressure"},
        ))
    if node.disk_pressure:
        issues.append(Issue(
            severity=Severity.warning,
            category="node",
            title=f"Node {name} has disk pressure",
            description="The node is running low on disk space",
            details={"node": name, "condition": "DiskPressure"},
        ))
    if node.pid_pressure:
        issues.append(Issue(
            severity=Severity.warning,
            category="node",
            title=f"Node {name} has PID pressure",
            description="The node is running low on process IDs",
            details={"node": name, "condition": "PIDPressure"},
        ))
    if node.network_unavailable:
        issues.append(Issue(
            severity=Severity.critical,
            category="node",
            title=f"Node {name} network unavailable",
            description="The node's network is not properly configured",
            details={"node": name, "condition": "NetworkUnavailable"},
        ))
    return issues


class NodeAnalyzer(Analyzer):
    name = "node"

    def analyze(self, pod: PodSnapshot, source: SignalSource) -> list[Issue]:
        if not pod.is_scheduled:
            return []
        return node_issues(source.get_node_health(pod.node_name))
