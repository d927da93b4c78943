"""Resource requests/limits and QoS class of each container."""
from __future__ import annotations

from decimal import Decimal

from kubernetes.utils import parse_quantity

from poddoctor.analyzers.base import Analyzer
from poddoctor.k8s_client import SignalSource
from poddoctor.models import ContainerSpec, Issue, PodSnapshot, ResourceRequirements, Severity

MIN_MEMORY_LIMIT = "64Mi"
MIN_CPU_LIMIT = "50m"


def _quantity(values: dict[str, str], key: str) -> Decimal | None:
    raw = values.get(key)
    if raw is None or raw == "":
        return None
    q = parse_quantity(raw)
    return q if q != 0 else None


def is_guaranteed(resources: ResourceRequirements) -> bool:
    """Requests equal limits for both CPU and memory."""
    cpu_limit = _quantity(resources.limits, "cpu")
    mem_limit = _quantity(resources.limits, "memory")
    if cpu_limit is None or mem_limit is None:
        return False
    return (
        _quantity(resources.requests, "cpu") == cpu_limit
        and _quantity(resources.requests, "memory") == mem_limit
    )


def is_burstable(resources: ResourceRequirements) -> bool:
    return bool(resources.requests or resources.limits) and not is_guaranteed(resources)


def qos_class(resources: ResourceRequirements) -> str:
    if is_guaranteed(resources):
        return "Guaranteed"
    if is_burstable(resources):
        return "Burstable"
    return "BestEffort"


def container_resource_issues(container: ContainerSpec) -> list[Issue]:
    issues: list[Issue] = []
    name = container.name
    res = container.resources

    if not res.limits:
        issues.append(Issue(
            severity=Severity.warning,
            category="resources",
            title=f"No resource limits for {name}",
            description="Container has no resource limits set, which may lead to resource contention",
            details={
                "container": name,
                "recommendation": "Set CPU and memory limits to prevent resource starvation",
            },
        ))
    if not res.requests:
        issues.append(Issue(
            severity=Severity.info,
            category="resources",
            title=f"No resource requests for {name}",
            description="Container has no resource requests set, which may affect scheduling",
            details={
                "container": name,
                "recommendation": "Set resource requests for better scheduling decisions",
            },
        ))

    mem_limit = _quantity(res.limits, "memory")
    if mem_limit is not None:
        if mem_limit < parse_quantity(MIN_MEMORY_LIMIT):
            issues.append(Issue(
                severity=Severity.warning,
                category="resources",
                title=f"Low memory limit for {name}",
                description="Memory limit is very low and may cause OOMKill",
                details={
                    "container": name,
                    "memory_limit": res.limits["memory"],
                    "minimum_recommended": MIN_MEMORY_LIMIT,
                },
            ))
        mem_request = _quantity(res.requests, "memory")
        if mem_request is not None and mem_request > mem_limit:
            issues.append(Issue(
                severity=Severity.warning,
                category="resources",
                title=f"Memory request > limit for {name}",
                description="Memory request exceeds limit, request will be set to limit",
                details={
                    "container": name,
                    "memory_request": res.requests["memory"],
                    "memory_limit": res.limits["memory"],
                },
            ))

    cpu_limit = _quantity(res.limits, "cpu")
    if cpu_limit is not None:
        if cpu_limit < parse_quantity(MIN_CPU_LIMIT):
            issues.append(Issue(
                severity=Severity.warning,
                category="resources",
                title=f"Very low CPU limit for {name}",
                description="CPU limit is very low and may cause severe throttling",
                details={
                    "container": name,
                    "cpu_limit": res.limits["cpu"],
                    "minimum_recommended": MIN_CPU_LIMIT,
                },
            ))
        cpu_request = _quantity(res.requests, "cpu")
        if cpu_request is not None and cpu_request > cpu_limit:
            issues.append(Issue(
                severity=Severity.warning,
                category="resources",
                title=f"CPU request > limit for {name}",
                description="CPU request exceeds limit, request will be set to limit",
                details={
                    "container": name,
                    "cpu_request": res.requests["cpu"],
                    "cpu_limit": res.limits["cpu"],
                },
            ))

    if qos_class(res) == "BestEffort":
        issues.append(Issue(
            severity=Severity.warning,
            category="resources",
            title=f"BestEffort QoS for {name}",
            description="Container has BestEffort QoS class and will be first to be evicted under memory pressure",
            details={"container": name, "qos_class": "BestEffort"},
        ))
    return issues


class ResourceAnalyzer(Analyzer):
    name = "resources"

    def analyze(self, pod: PodSnapshot, source: SignalSource) -> list[Issue]:
        issues: list[Issue] = []
        for container in [*pod.containers, *pod.init_containers]:
            issues.extend(container_resource_issues(container))
        return issues
