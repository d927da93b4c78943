"""Liveness/readiness/startup probe configuration and probe failures."""
from __future__ import annotations

import logging

from poddoctor.analyzers.base import Analyzer
from poddoctor.errors import SignalSourceError
from poddoctor.k8s_client import SignalSource
from poddoctor.models import ContainerSpec, ContainerStatus, EventRecord, Issue, PodSnapshot, Probe, Severity

logger = logging.getLogger(__name__)

# Exit code of a SIGKILLed process (liveness kill or OOM)
SIGKILL_EXIT_CODE = 137


def liveness_issues(container: str, probe: Probe) -> list[Issue]:
    issues: list[Issue] = []
    if 0 < probe.period_seconds < 5:
        issues.append(Issue(
            severity=Severity.warning,
            category="probes",
            title=f"Aggressive liveness probe for {container}",
            description="Liveness probe runs very frequently, may cause unnecessary restarts",
            details={
                "container": container,
                "period": f"{probe.period_seconds}s",
                "recommendation": "Consider increasing periodSeconds to at least 10s",
            },
        ))
    if 0 < probe.failure_threshold < 3:
        issues.append(Issue(
            severity=Severity.warning,
            category="probes",
            title=f"Low liveness failureThreshold for {container}",
            description="Container will restart after very few probe failures",
            details={
                "container": container,
                "failure_threshold": str(probe.failure_threshold),
                "recommendation": "Consider increasing failureThreshold to at least 3",
            },
        ))
    if 0 < probe.timeout_seconds < 2:
        issues.append(Issue(
            severity=Severity.info,
            category="probes",
            title=f"Short liveness timeout for {container}",
            description="Liveness probe timeout is very short",
            details={
                "container": container,
                "timeout": f"{probe.timeout_seconds}s",
                "recommendation": "Consider increasing timeoutSeconds if probe target may be slow",
            },
        ))
    return issues


def readiness_issues(container: str, probe: Probe) -> list[Issue]:
    if probe.initial_delay_seconds <= 60:
        return []
    return [Issue(
        severity=Severity.info,
        category="probes",
        title=f"Long readiness initialDelaySeconds for {container}",
        description="Readiness probe starts very late, pod won't receive traffic for a while",
        details={"container": container, "initial_delay": f"{probe.initial_delay_seconds}s"},
    )]


def startup_issues(container: str, probe: Probe) -> list[Issue]:
    window = probe.failure_threshold * probe.period_seconds
    if not 0 < window < 30:
        return []
    return [Issue(
        severity=Severity.warning,
        category="probes",
        title=f"Short startup window for {container}",
        description="Startup probe allows very little time for container to start",
        details={
            "container": container,
            "max_startup_time": f"{window}s",
            "recommendation": "Increase failureThreshold or periodSeconds",
        },
    )]


def container_probe_issues(container: ContainerSpec) -> list[Issue]:
    issues: list[Issue] = []
    name = container.name
    liveness, readiness, startup = container.liveness_probe, container.readiness_probe, container.startup_probe

    if liveness is None and readiness is None:
        issues.append(Issue(
            severity=Severity.info,
            category="probes",
            title=f"No health probes for {name}",
            description="Container has no liveness or readiness probes configured",
            details={
                "container": name,
                "recommendation": "Consider adding probes for better health monitoring",
            },
        ))
    if liveness is not None:
        issues.extend(liveness_issues(name, liveness))
    if readiness is not None:
        issues.extend(readiness_issues(name, readiness))
    if startup is not None:
        issues.extend(startup_issues(name, startup))

    if liveness is not None and startup is None and liveness.initial_delay_seconds < 10:
        issues.append(Issue(
            severity=Severity.warning,
            category="probes",
            title=f"Low liveness initialDelaySeconds for {name}",
            description="Liveness probe starts very early, may kill slow-starting containers",
            details={
                "container": name,
                "initial_delay": f"{liveness.initial_delay_seconds}s",
                "recommendation": "Consider using a startupProbe or increasing initialDelaySeconds",
            },
        ))
    return issues


def probe_event_issues(events: list[EventRecord]) -> list[Issue]:
    issues: list[Issue] = []
    for event in events:
        if event.type != "Warning" or event.reason != "Unhealthy":
            continue
        if "Liveness" in event.message:
            probe_type, severity = "Liveness", Severity.critical
        elif "Readiness" in event.message:
            probe_type, severity = "Readiness", Severity.warning
        elif "Startup" in event.message:
            probe_type, severity = "Startup", Severity.critical
        else:
            probe_type, severity = "Unknown", Severity.warning
        issues.append(Issue(
            severity=severity,
            category="probes",
            title=f"{probe_type} probe failed",
            description=event.message,
            details={
                "probe_type": probe_type,
                "count": str(event.count),
                "last_seen": event.last_seen.strftime("%H:%M:%S") if event.last_seen else "",
            },
        ))
    return issues


def probe_status_issues(cs: ContainerStatus) -> list[Issue]:
    issues: list[Issue] = []
    if not cs.ready and cs.state.running is not None:
        issues.append(Issue(
            severity=Severity.warning,
            category="probes",
            title=f"Container {cs.name} running but not ready",
            description="Container is running but readiness probe is failing",
            details={"container": cs.name, "state": "running", "ready": "false"},
        ))
    last = cs.last_state.terminated
    if cs.restart_count > 0 and last is not None and last.exit_code == SIGKILL_EXIT_CODE:
        issues.append(Issue(
            severity=Severity.warning,
            category="probes",
            title=f"Container {cs.name} killed (exit 137)",
            description="Container was killed with SIGKILL, possibly by liveness probe or OOM",
            details={
                "container": cs.name,
                "exit_code": str(SIGKILL_EXIT_CODE),
                "restart_count": str(cs.restart_count),
                "reason": last.reason,
            },
        ))
    return issues


class ProbeAnalyzer(Analyzer):
    name = "probes"

    def analyze(self, pod: PodSnapshot, source: SignalSource) -> list[Issue]:
        issues: list[Issue] = []
        for container in pod.containers:
            issues.extend(container_probe_issues(container))

        try:
            events = source.get_pod_events(pod.namespace, pod.name)
        except SignalSourceError as e:
            logger.debug("probe event cross-check skipped for %s/%s: %s", pod.namespace, pod.name, e)
        else:
            issues.extend(probe_event_issues(events))

        for cs in pod.container_statuses:
            issues.extend(probe_status_issues(cs))
        return issues
