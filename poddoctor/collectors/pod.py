"""Translate Kubernetes Pod and Event objects into engine snapshots."""
from __future__ import annotations

import logging
from typing import Any

from poddoctor.models import (
    ContainerSpec,
    ContainerState,
    ContainerStatus,
    EventRecord,
    PodCondition,
    PodSnapshot,
    Probe,
    ResourceRequirements,
    RunningState,
    TerminatedState,
    WaitingState,
)

logger = logging.getLogger(__name__)


def _probe(probe: Any) -> Probe | None:
    if probe is None:
        return None
    return Probe(
        initial_delay_seconds=probe.initial_delay_seconds or 0,
        period_seconds=probe.period_seconds or 0,
        timeout_seconds=probe.timeout_seconds or 0,
        failure_threshold=probe.failure_threshold or 0,
        success_threshold=probe.success_threshold or 0,
    )


def _resources(res: Any) -> ResourceRequirements:
    if res is None:
        return ResourceRequirements()
    return ResourceRequirements(
        requests={k: str(v) for k, v in (res.requests or {}).items()},
        limits={k: str(v) for k, v in (res.limits or {}).items()},
    )


def _container_spec(c: Any) -> ContainerSpec:
    return ContainerSpec(
        name=c.name,
        image=c.image or "",
        resources=_resources(getattr(c, "resources", None)),
        liveness_probe=_probe(getattr(c, "liveness_probe", None)),
        readiness_probe=_probe(getattr(c, "readiness_probe", None)),
        startup_probe=_probe(getattr(c, "startup_probe", None)),
    )


def _container_state(state: Any) -> ContainerState:
    if not state:
        return ContainerState()
    waiting = running = terminated = None
    if state.waiting:
        waiting = WaitingState(reason=state.waiting.reason or "", message=state.waiting.message or "")
    if state.running:
        running = RunningState(started_at=state.running.started_at)
    if state.terminated:
        t = state.terminated
        terminated = TerminatedState(
            reason=t.reason or "",
            message=t.message or "",
            exit_code=t.exit_code or 0,
            started_at=t.started_at,
            finished_at=t.finished_at,
        )
    return ContainerState(waiting=waiting, running=running, terminated=terminated)


def _container_status(cs: Any) -> ContainerStatus:
    return ContainerStatus(
        name=cs.name,
        image=cs.image or "",
        ready=bool(cs.ready),
        restart_count=cs.restart_count or 0,
        state=_container_state(cs.state),
        last_state=_container_state(cs.last_state),
    )


def snapshot_from_pod(pod: Any) -> PodSnapshot:
    """Convert a V1Pod into an immutable PodSnapshot."""
    meta = pod.metadata
    spec = pod.spec
    status = pod.status
    return PodSnapshot(
        name=meta.name,
        namespace=meta.namespace,
        node_name=(getattr(spec, "node_name", None) or "") if spec else "",
        labels=dict(meta.labels or {}),
        phase=(status.phase or "") if status else "",
        reason=(status.reason or "") if status else "",
        message=(status.message or "") if status else "",
        pod_ip=(status.pod_ip or "") if status else "",
        created_at=meta.creation_timestamp,
        deletion_requested=meta.deletion_timestamp is not None,
        conditions=[
            PodCondition(type=c.type, status=c.status, reason=c.reason or "", message=c.message or "")
            for c in (status.conditions or [])
        ] if status else [],
        containers=[_container_spec(c) for c in (spec.containers or [])] if spec else [],
        init_containers=[_container_spec(c) for c in (spec.init_containers or [])] if spec else [],
        container_statuses=[
            _container_status(cs) for cs in (status.container_statuses or [])
        ] if status else [],
        init_container_statuses=[
            _container_status(cs) for cs in (status.init_container_statuses or [])
        ] if status else [],
    )


def event_record_from_event(e: Any) -> EventRecord:
    source = getattr(e, "source", None)
    return EventRecord(
        type=e.type or "Normal",
        reason=e.reason or "",
        message=e.message or "",
        count=e.count or 0,
        first_seen=e.first_timestamp,
        last_seen=e.last_timestamp or getattr(e, "event_time", None),
        source=(getattr(source, "component", None) or "") if source else "",
    )
