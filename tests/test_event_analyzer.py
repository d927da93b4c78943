"""Tests for warning-event issues."""
from datetime import datetime, timezone

import pytest

from factories import FakeSignalSource, pod, warning_event
from poddoctor.analyzers.events import EventAnalyzer, event_category, format_count, issue_from_event
from poddoctor.errors import SignalSourceError
from poddoctor.models import EventRecord, Severity


@pytest.mark.parametrize(
    "reason,category",
    [
        ("FailedScheduling", "scheduling"),
        ("FailedMount", "storage"),
        ("FailedAttachVolume", "storage"),
        ("Unhealthy", "health"),
        ("ProbeWarning", "health"),
        ("ErrImagePull", "container"),
        ("OOMKilling", "resources"),
        ("BackOff", "events"),
    ],
)
def test_event_category(reason, category):
    assert event_category(reason) == category


def test_format_count():
    assert format_count(0) == "1"
    assert format_count(1) == "1"
    assert format_count(12) == "12 times"


def test_known_reasons_severity():
    assert issue_from_event(warning_event("FailedMount")).severity == Severity.critical
    assert issue_from_event(warning_event("Unhealthy")).severity == Severity.warning
    assert issue_from_event(warning_event("SomethingNew")).severity == Severity.warning


def test_issue_fields():
    issue = issue_from_event(warning_event("BackOff", "Back-off restarting failed container", count=12))
    assert issue.title == "BackOff"
    assert issue.description == "Back-off restarting failed container"
    assert issue.details == {"count": "12 times", "source": "kubelet", "last_seen": "2024-01-01 12:30:00"}


def test_normal_and_lifecycle_events_ignored():
    normal = EventRecord(type="Normal", reason="Pulled", message="ok", count=1,
                         last_seen=datetime(2024, 1, 1, tzinfo=timezone.utc))
    assert issue_from_event(normal) is None
    assert issue_from_event(warning_event("Started")) is None


def test_analyzer_keeps_event_order():
    source = FakeSignalSource(events={"web-0": [warning_event("BackOff"), warning_event("FailedMount")]})
    issues = EventAnalyzer().analyze(pod(), source)
    assert [i.title for i in issues] == ["BackOff", "FailedMount"]


def test_analyzer_propagates_source_errors():
    source = FakeSignalSource(fail={"get_pod_events"})
    with pytest.raises(SignalSourceError):
        EventAnalyzer().analyze(pod(), source)
