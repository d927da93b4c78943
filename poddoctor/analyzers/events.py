"""Warning events recorded against the pod."""
from __future__ import annotations

from poddoctor.analyzers.base import Analyzer
from poddoctor.k8s_client import SignalSource
from poddoctor.models import EventRecord, Issue, PodSnapshot, Severity

EVENT_SEVERITY: dict[str, Severity] = {
    "Failed": Severity.critical,
    "FailedScheduling": Severity.critical,
    "FailedMount": Severity.critical,
    "FailedAttachVolume": Severity.critical,
    "BackOff": Severity.critical,
    "Unhealthy": Severity.warning,
    "ProbeWarning": Severity.warning,
}

# Normal lifecycle reasons; never actionable even when reported as warnings
IGNORED_REASONS = frozenset({"Scheduled", "Pulled", "Created", "Started"})


def event_category(reason: str) -> str:
    if "Scheduling" in reason:
        return "scheduling"
    if "Volume" in reason or "Mount" in reason:
        return "storage"
    if "Probe" in reason or reason == "Unhealthy":
        return "health"
    if "Pull" in reason:
        return "container"
    if "OOM" in reason:
        return "resources"
    return "events"


def format_count(count: int) -> str:
    if count <= 1:
        return "1"
    return f"{count} times"


def issue_from_event(event: EventRecord) -> Issue | None:
    if event.type != "Warning" or event.reason in IGNORED_REASONS:
        return None
    return Issue(
        severity=EVENT_SEVERITY.get(event.reason, Severity.warning),
        category=event_category(event.reason),
        title=event.reason,
        description=event.message,
        details={
            "count": format_count(event.count),
            "source": event.source,
            "last_seen": event.last_seen.strftime("%Y-%m-%d %H:%M:%S") if event.last_seen else "",
        },
    )


class EventAnalyzer(Analyzer):
    name = "events"

    def analyze(self, pod: PodSnapshot, source: SignalSource) -> list[Issue]:
        events = source.get_pod_events(pod.namespace, pod.name)
        issues: list[Issue] = []
        for event in events:
            issue = issue_from_event(event)
            if issue is not None:
                issues.append(issue)
        return issues
