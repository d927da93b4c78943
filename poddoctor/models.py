"""Pydantic models for the diagnosis engine and API requests/responses."""
from __future__ import annotations

from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import NamedTuple

from pydantic import BaseModel, ConfigDict, Field


class Severity(str, Enum):
    critical = "critical"
    warning = "warning"
    info = "info"


class PodStatus(str, Enum):
    Healthy = "Healthy"
    CrashLoopBackOff = "CrashLoopBackOff"
    ImagePullBackOff = "ImagePullBackOff"
    Pending = "Pending"
    OOMKilled = "OOMKilled"
    Evicted = "Evicted"
    Error = "Error"
    Terminating = "Terminating"
    Unknown = "Unknown"
    NotReady = "NotReady"
    Initializing = "Initializing"
    CreateContainerError = "CreateContainerError"
    CreateContainerConfigError = "CreateContainerConfigError"


class _Frozen(BaseModel):
    model_config = ConfigDict(frozen=True)


# --- Pod snapshot ---


class WaitingState(_Frozen):
    reason: str = ""
    message: str = ""


class RunningState(_Frozen):
    started_at: datetime | None = None


class TerminatedState(_Frozen):
    reason: str = ""
    message: str = ""
    exit_code: int = 0
    started_at: datetime | None = None
    finished_at: datetime | None = None


class ContainerState(_Frozen):
    """At most one of waiting/running/terminated is set."""
    waiting: WaitingState | None = None
    running: RunningState | None = None
    terminated: TerminatedState | None = None

    @property
    def name(self) -> str:
        if self.running is not None:
            return "running"
        if self.waiting is not None:
            return "waiting"
        if self.terminated is not None:
            return "terminated"
        return ""


class ContainerStatus(_Frozen):
    name: str
    image: str = ""
    ready: bool = False
    restart_count: int = 0
    state: ContainerState = Field(default_factory=ContainerState)
    last_state: ContainerState = Field(default_factory=ContainerState)


class ResourceRequirements(_Frozen):
    # Raw quantity strings as written in the pod spec, e.g. {"cpu": "250m", "memory": "128Mi"}
    requests: dict[str, str] = Field(default_factory=dict)
    limits: dict[str, str] = Field(default_factory=dict)


class Probe(_Frozen):
    # 0 means "not set"
    initial_delay_seconds: int = 0
    period_seconds: int = 0
    timeout_seconds: int = 0
    failure_threshold: int = 0
    success_threshold: int = 0


class ContainerSpec(_Frozen):
    name: str
    image: str = ""
    resources: ResourceRequirements = Field(default_factory=ResourceRequirements)
    liveness_probe: Probe | None = None
    readiness_probe: Probe | None = None
    startup_probe: Probe | None = None


class PodCondition(_Frozen):
    type: str
    status: str
    reason: str = ""
    message: str = ""


class ContainerSummary(_Frozen):
    name: str
    image: str = ""
    ready: bool = False
    restart_count: int = 0
    state: str = ""
    reason: str = ""
    message: str = ""
    exit_code: int = 0


class PodSnapshot(_Frozen):
    """Read-only view of one pod at diagnosis time."""

    name: str
    namespace: str
    node_name: str = ""
    labels: dict[str, str] = Field(default_factory=dict)
    phase: str = ""
    reason: str = ""
    message: str = ""
    pod_ip: str = ""
    created_at: datetime | None = None
    deletion_requested: bool = False
    conditions: list[PodCondition] = Field(default_factory=list)
    containers: list[ContainerSpec] = Field(default_factory=list)
    init_containers: list[ContainerSpec] = Field(default_factory=list)
    container_statuses: list[ContainerStatus] = Field(default_factory=list)
    init_container_statuses: list[ContainerStatus] = Field(default_factory=list)

    @property
    def is_scheduled(self) -> bool:
        return bool(self.node_name)

    @property
    def restarts(self) -> int:
        return sum(cs.restart_count for cs in self.container_statuses)

    @property
    def age(self) -> timedelta | None:
        if self.created_at is None:
            return None
        created = self.created_at
        if created.tzinfo is None:
            created = created.replace(tzinfo=timezone.utc)
        return datetime.now(timezone.utc) - created

    def container_summaries(self) -> list[ContainerSummary]:
        """One summary per declared container, merged with its status when reported."""
        statuses = {cs.name: cs for cs in self.container_statuses}
        out: list[ContainerSummary] = []
        for c in self.containers:
            cs = statuses.get(c.name)
            if cs is None:
                out.append(ContainerSummary(name=c.name, image=c.image))
                continue
            reason = message = ""
            exit_code = 0
            if cs.state.waiting is not None:
                reason, message = cs.state.waiting.reason, cs.state.waiting.message
            elif cs.state.terminated is not None and cs.state.running is None:
                reason, message = cs.state.terminated.reason, cs.state.terminated.message
                exit_code = cs.state.terminated.exit_code
            out.append(ContainerSummary(
                name=c.name,
                image=c.image,
                ready=cs.ready,
                restart_count=cs.restart_count,
                state=cs.state.name,
                reason=reason,
                message=message,
                exit_code=exit_code,
            ))
        return out


class PodRef(NamedTuple):
    namespace: str
    name: str


# --- Signals ---


class EventRecord(_Frozen):
    type: str = "Normal"  # Normal | Warning
    reason: str = ""
    message: str = ""
    count: int = 0
    first_seen: datetime | None = None
    last_seen: datetime | None = None
    source: str = ""


class NodeHealth(_Frozen):
    name: str
    ready: bool = False
    memory_pressure: bool = False
    disk_pressure: bool = False
    pid_pressure: bool = False
    network_unavailable: bool = False


# --- Diagnosis ---


class Issue(_Frozen):
    severity: Severity
    category: str  # container, resources, probes, scheduling, node, logs, events, health, storage
    title: str
    description: str = ""
    details: dict[str, str] = Field(default_factory=dict)

    @property
    def is_critical(self) -> bool:
        return self.severity == Severity.critical


class Recommendation(_Frozen):
    priority: int  # lower = more urgent
    title: str
    description: str = ""
    command: str | None = None


class Diagnosis(_Frozen):
    pod: PodSnapshot
    status: PodStatus = PodStatus.Unknown
    issues: list[Issue] = Field(default_factory=list)
    events: list[EventRecord] = Field(default_factory=list)
    node: NodeHealth | None = None
    recommendations: list[Recommendation] = Field(default_factory=list)
    diagnosed_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    def has_critical_issues(self) -> bool:
        return any(i.is_critical for i in self.issues)

    def is_healthy(self) -> bool:
        return not self.issues and self.status == PodStatus.Healthy

    def issue_counts(self) -> dict[str, int]:
        counts = {s.value: 0 for s in Severity}
        for issue in self.issues:
            counts[issue.severity.value] += 1
        return counts


# --- API ---


class HealthResponse(BaseModel):
    status: str = "ok"
    kube_connected: bool = False


class PodRefItem(BaseModel):
    namespace: str
    name: str


class DiagnoseRequest(BaseModel):
    namespace: str = Field("default", min_length=1)
    name: str = Field(..., min_length=1)


class DiagnoseResponse(BaseModel):
    diagnosis: Diagnosis
    summary_markdown: str = ""


class ScanRequest(BaseModel):
    scope: str = "namespace"  # "namespace" | "cluster"
    namespace: str | None = None
    label_selector: str | None = None
    only_unhealthy: bool = False
    concurrency: int | None = Field(None, ge=1, le=50)


class ScanResponse(BaseModel):
    diagnoses: list[Diagnosis] = Field(default_factory=list)
    counts: dict[str, int] = Field(default_factory=dict)
    summary_markdown: str = ""
    duration_ms: int = 0
