"""Container, init-container and pod-condition status checks."""
from __future__ import annotations

from poddoctor.analyzers.base import Analyzer
from poddoctor.config import settings
from poddoctor.k8s_client import SignalSource
from poddoctor.models import ContainerStatus, Issue, PodSnapshot, Severity

# Waiting reasons that are part of a normal start
TRANSIENT_WAITING_REASONS = frozenset({"ContainerCreating", "PodInitializing"})


def _waiting_issue(cs: ContainerStatus) -> Issue | None:
    waiting = cs.state.waiting
    if waiting is None:
        return None
    reason = waiting.reason
    if reason == "CrashLoopBackOff":
        return Issue(
            severity=Severity.critical,
            category="container",
            title=f"Container {cs.name} in CrashLoopBackOff",
            description="Container is repeatedly crashing after starting",
            details={
                "container": cs.name,
                "reason": reason,
                "message": waiting.message,
                "restart_count": str(cs.restart_count),
            },
        )
    if reason in ("ImagePullBackOff", "ErrImagePull"):
        return Issue(
            severity=Severity.critical,
            category="container",
            title=f"Cannot pull image for {cs.name}",
            description=waiting.message,
            details={"container": cs.name, "reason": reason, "image": cs.image},
        )
    if reason == "CreateContainerConfigError":
        return Issue(
            severity=Severity.critical,
            category="container",
            title=f"Config error for {cs.name}",
            description=waiting.message,
            details={"container": cs.name, "reason": reason},
        )
    if reason == "CreateContainerError":
        return Issue(
            severity=Severity.critical,
            category="container",
            title=f"Cannot create container {cs.name}",
            description=waiting.message,
            details={"container": cs.name, "reason": reason},
        )
    if reason and reason not in TRANSIENT_WAITING_REASONS:
        return Issue(
            severity=Severity.warning,
            category="container",
            title=f"Container {cs.name} waiting: {reason}",
            description=waiting.message,
            details={"container": cs.name, "reason": reason},
        )
    return None


def container_status_issues(cs: ContainerStatus) -> list[Issue]:
    issues: list[Issue] = []
    waiting = _waiting_issue(cs)
    if waiting is not None:
        issues.append(waiting)

    last = cs.last_state.terminated
    if last is not None:
        if last.reason == "OOMKilled":
            issues.append(Issue(
                severity=Severity.critical,
                category="resources",
                title=f"Container {cs.name} was OOMKilled",
                description="Container exceeded memory limit and was killed",
                details={"container": cs.name, "reason": "OOMKilled", "exit_code": str(last.exit_code)},
            ))
        elif last.exit_code != 0:
            issues.append(Issue(
                severity=Severity.warning,
                category="container",
                title=f"Container {cs.name} exited with code {last.exit_code}",
                description=last.message,
                details={"container": cs.name, "reason": last.reason, "exit_code": str(last.exit_code)},
            ))

    current = cs.state.terminated
    if current is not None and current.exit_code != 0:
        issues.append(Issue(
            severity=Severity.critical,
            category="container",
            title=f"Container {cs.name} terminated with exit code {current.exit_code}",
            description=current.message,
            details={"container": cs.name, "reason": current.reason, "exit_code": str(current.exit_code)},
        ))
    return issues


def init_container_status_issues(cs: ContainerStatus) -> list[Issue]:
    issues: list[Issue] = []
    waiting = cs.state.waiting
    if waiting is not None and waiting.reason:
        issues.append(Issue(
            severity=Severity.warning,
            category="container",
            title=f"Init container {cs.name} waiting: {waiting.reason}",
            description=waiting.message,
            details={"container": cs.name, "type": "init", "reason": waiting.reason},
        ))
    terminated = cs.state.terminated
    if terminated is not None and terminated.exit_code != 0:
        issues.append(Issue(
            severity=Severity.critical,
            category="container",
            title=f"Init container {cs.name} failed",
            description=f"Exit code: {terminated.exit_code} - {terminated.message}",
            details={"container": cs.name, "type": "init", "exit_code": str(terminated.exit_code)},
        ))
    return issues


def pod_condition_issues(pod: PodSnapshot) -> list[Issue]:
    issues: list[Issue] = []
    running = pod.phase == "Running"
    for cond in pod.conditions:
        if cond.status != "False":
            continue
        if cond.type == "PodScheduled":
            issues.append(Issue(
                severity=Severity.critical,
                category="scheduling",
                title="Pod cannot be scheduled",
                description=cond.message,
                details={"reason": cond.reason},
            ))
        elif cond.type == "Ready" and running:
            issues.append(Issue(
                severity=Severity.warning,
                category="container",
                title="Pod is not ready",
                description=cond.message,
                details={"reason": cond.reason},
            ))
        elif cond.type == "ContainersReady" and running:
            issues.append(Issue(
                severity=Severity.warning,
                category="container",
                title="Containers not ready",
                description=cond.message,
                details={"reason": cond.reason},
            ))

    if pod.phase == "Failed" and pod.reason == "Evicted":
        issues.append(Issue(
            severity=Severity.critical,
            category="resources",
            title="Pod was evicted",
            description=pod.message,
            details={"reason": "Evicted"},
        ))
    return issues


class StatusAnalyzer(Analyzer):
    name = "status"

    def analyze(self, pod: PodSnapshot, source: SignalSource) -> list[Issue]:
        issues: list[Issue] = []
        for cs in pod.container_statuses:
            issues.extend(container_status_issues(cs))
        for cs in pod.init_container_statuses:
            issues.extend(init_container_status_issues(cs))
        issues.extend(pod_condition_issues(pod))

        threshold = settings.restart_warning_threshold
        for cs in pod.container_statuses:
            if cs.restart_count > threshold:
                issues.append(Issue(
                    severity=Severity.warning,
                    category="container",
                    title=f"High restart count for {cs.name}",
                    description=f"Container has restarted {cs.restart_count} times",
                    details={"container": cs.name, "restart_count": str(cs.restart_count)},
                ))
        return issues
