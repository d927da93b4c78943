"""Pod snapshot builders and an in-memory signal source for tests."""
from __future__ import annotations

import threading
import time
from datetime import datetime, timezone

from poddoctor.errors import PodNotFoundError, SignalSourceError
from poddoctor.models import (
    ContainerSpec,
    ContainerState,
    ContainerStatus,
    EventRecord,
    NodeHealth,
    PodCondition,
    PodSnapshot,
    Probe,
    ResourceRequirements,
    RunningState,
    TerminatedState,
    WaitingState,
)

GOOD_RESOURCES = ResourceRequirements(
    requests={"cpu": "250m", "memory": "256Mi"},
    limits={"cpu": "250m", "memory": "256Mi"},
)
GOOD_LIVENESS = Probe(initial_delay_seconds=15, period_seconds=10, timeout_seconds=3, failure_threshold=3)
GOOD_READINESS = Probe(initial_delay_seconds=5, period_seconds=10, timeout_seconds=3, failure_threshold=3)


def container(name: str = "app", **kwargs) -> ContainerSpec:
    """A well-configured container unless overridden."""
    kwargs.setdefault("image", f"registry.local/{name}:1.0")
    kwargs.setdefault("resources", GOOD_RESOURCES)
    kwargs.setdefault("liveness_probe", GOOD_LIVENESS)
    kwargs.setdefault("readiness_probe", GOOD_READINESS)
    return ContainerSpec(name=name, **kwargs)


def bare_container(name: str = "app") -> ContainerSpec:
    return ContainerSpec(name=name, image=f"registry.local/{name}:1.0")


def running(name: str = "app", ready: bool = True, restart_count: int = 0, last: TerminatedState | None = None) -> ContainerStatus:
    return ContainerStatus(
        name=name,
        image=f"registry.local/{name}:1.0",
        ready=ready,
        restart_count=restart_count,
        state=ContainerState(running=RunningState(started_at=datetime(2024, 1, 1, tzinfo=timezone.utc))),
        last_state=ContainerState(terminated=last),
    )


def waiting(name: str = "app", reason: str = "CrashLoopBackOff", message: str = "", restart_count: int = 0,
            last: TerminatedState | None = None) -> ContainerStatus:
    return ContainerStatus(
        name=name,
        image=f"registry.local/{name}:1.0",
        ready=False,
        restart_count=restart_count,
        state=ContainerState(waiting=WaitingState(reason=reason, message=message)),
        last_state=ContainerState(terminated=last),
    )


def terminated(name: str = "app", exit_code: int = 1, reason: str = "Error", message: str = "") -> ContainerStatus:
    return ContainerStatus(
        name=name,
        ready=False,
        state=ContainerState(terminated=TerminatedState(reason=reason, exit_code=exit_code, message=message)),
    )


def oom(exit_code: int = 137) -> TerminatedState:
    return TerminatedState(reason="OOMKilled", exit_code=exit_code)


def pod(name: str = "web-0", namespace: str = "default", **kwargs) -> PodSnapshot:
    """A healthy, scheduled, running pod unless overridden."""
    kwargs.setdefault("node_name", "node-1")
    kwargs.setdefault("phase", "Running")
    kwargs.setdefault("containers", [container()])
    kwargs.setdefault("container_statuses", [running()])
    kwargs.setdefault("created_at", datetime(2024, 1, 1, tzinfo=timezone.utc))
    return PodSnapshot(name=name, namespace=namespace, **kwargs)


def condition(type_: str, status: str, reason: str = "", message: str = "") -> PodCondition:
    return PodCondition(type=type_, status=status, reason=reason, message=message)


def warning_event(reason: str, message: str = "", count: int = 1) -> EventRecord:
    return EventRecord(
        type="Warning",
        reason=reason,
        message=message,
        count=count,
        last_seen=datetime(2024, 1, 1, 12, 30, 0, tzinfo=timezone.utc),
        source="kubelet",
    )


class FakeSignalSource:
    """In-memory SignalSource.

    ``logs`` maps (pod, container, previous) -> text; a missing key raises
    SignalSourceError like an unavailable log stream. ``fail`` names methods
    that must raise. ``delay`` makes get_pod sleep so concurrency can be observed.
    """

    def __init__(
        self,
        pods: list[PodSnapshot] | None = None,
        logs: dict[tuple[str, str, bool], str] | None = None,
        events: dict[str, list[EventRecord]] | None = None,
        nodes: dict[str, NodeHealth] | None = None,
        fail: set[str] | None = None,
        delay: float = 0.0,
    ) -> None:
        self.pods = {(p.namespace, p.name): p for p in (pods or [])}
        self.logs = logs or {}
        self.events = events or {}
        self.nodes = nodes or {}
        self.fail = fail or set()
        self.delay = delay
        self.calls: list[tuple] = []
        self._lock = threading.Lock()
        self.in_flight = 0
        self.max_in_flight = 0

    def _check(self, method: str) -> None:
        with self._lock:
            self.calls.append((method,))
        if method in self.fail:
            raise SignalSourceError(f"{method} failed")

    def get_pod(self, namespace: str, name: str) -> PodSnapshot:
        with self._lock:
            self.in_flight += 1
            self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            if self.delay:
                time.sleep(self.delay)
            self._check("get_pod")
            if (namespace, name) not in self.pods:
                raise PodNotFoundError(namespace, name)
            return self.pods[(namespace, name)]
        finally:
            with self._lock:
                self.in_flight -= 1

    def get_pod_logs(self, namespace: str, name: str, container: str, tail_lines: int, previous: bool = False) -> str:
        self._check("get_pod_logs")
        with self._lock:
            self.calls.append(("logs", name, container, tail_lines, previous))
        key = (name, container, previous)
        if key not in self.logs:
            raise SignalSourceError(f"no logs for {key}")
        return self.logs[key]

    def get_pod_events(self, namespace: str, name: str) -> list[EventRecord]:
        self._check("get_pod_events")
        return list(self.events.get(name, []))

    def get_node_health(self, node_name: str) -> NodeHealth:
        self._check("get_node_health")
        if node_name not in self.nodes:
            return NodeHealth(name=node_name, ready=True)
        return self.nodes[node_name]

    def list_pods(self, namespace: str, label_selector: str | None = None) -> list[PodSnapshot]:
        self._check("list_pods")
        out = [p for (ns, _), p in self.pods.items() if ns == namespace]
        if label_selector:
            key, _, value = label_selector.partition("=")
            out = [p for p in out if p.labels.get(key) == value]
        return out

    def list_all_pods(self) -> list[PodSnapshot]:
        self._check("list_all_pods")
        return list(self.pods.values())

    def list_namespaces(self) -> list[str]:
        self._check("list_namespaces")
        return sorted({ns for ns, _ in self.pods})
