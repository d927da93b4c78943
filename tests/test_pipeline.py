"""End-to-end diagnosis of single pods against an in-memory signal source."""
from datetime import datetime, timezone

import pytest

from factories import FakeSignalSource, bare_container, oom, pod, waiting, warning_event
from poddoctor.analyzers import Analyzer, StatusAnalyzer, default_analyzers
from poddoctor.errors import PodNotFoundError
from poddoctor.models import NodeHealth, PodStatus, Severity
from poddoctor.pipeline import DiagnosticPipeline


def _diagnose(p, **source_kwargs):
    source = FakeSignalSource(pods=[p], **source_kwargs)
    return DiagnosticPipeline(source).diagnose(p.namespace, p.name)


def test_default_analyzer_order():
    assert [a.name for a in default_analyzers()] == ["status", "events", "logs", "node", "resources", "probes"]


def test_healthy_pod():
    d = _diagnose(pod())
    assert d.status == PodStatus.Healthy
    assert d.issues == []
    assert d.recommendations == []
    assert d.is_healthy()
    assert d.node == NodeHealth(name="node-1", ready=True)


def test_crash_loop_caused_by_oom():
    p = pod(container_statuses=[waiting(reason="CrashLoopBackOff", restart_count=4, last=oom())])
    d = _diagnose(p)

    assert d.status == PodStatus.OOMKilled
    crash = [i for i in d.issues if i.category == "container" and "CrashLoopBackOff" in i.title]
    oom_issues = [i for i in d.issues if i.category == "resources" and "OOMKilled" in i.title]
    assert len(crash) == 1 and crash[0].severity == Severity.critical
    assert len(oom_issues) == 1 and oom_issues[0].severity == Severity.critical

    recs = {r.title: r for r in d.recommendations}
    assert recs["Check container logs"].priority == 1
    assert recs["Check container logs"].command == "kubectl logs web-0 -n default --previous"
    assert recs["Increase memory limit"].priority == 1
    titles = [r.title for r in d.recommendations]
    assert len(titles) == len(set(titles))


def test_best_effort_container_without_probes():
    d = _diagnose(pod(containers=[bare_container("app")]))

    best_effort = [i for i in d.issues if i.title.startswith("BestEffort QoS")]
    assert len(best_effort) == 1
    assert best_effort[0].category == "resources"
    assert best_effort[0].severity == Severity.warning
    no_probes = [i for i in d.issues if i.title.startswith("No health probes")]
    assert len(no_probes) == 1
    assert no_probes[0].category == "probes"
    assert no_probes[0].severity == Severity.info

    titles = [r.title for r in d.recommendations]
    configure = titles.index("Configure resource requests and limits")
    add_probes = titles.index("Add health probes")
    assert configure < add_probes
    assert d.recommendations[configure].priority == 2
    assert d.recommendations[add_probes].priority == 3


def test_log_pattern_match():
    d = _diagnose(pod(), logs={("web-0", "app", False): "panic: runtime error: index out of range"})
    log_issues = [i for i in d.issues if i.category == "logs"]
    assert len(log_issues) == 1
    assert log_issues[0].title == "[app] Panic detected"
    assert log_issues[0].severity == Severity.critical
    assert log_issues[0].details["match_count"] == "1"
    assert "Review full logs" in [r.title for r in d.recommendations]


def test_recommendations_sorted_by_priority():
    p = pod(
        node_name="node-2",
        containers=[bare_container("app")],
        container_statuses=[waiting(reason="ImagePullBackOff")],
    )
    d = _diagnose(p, nodes={"node-2": NodeHealth(name="node-2", ready=False)})
    priorities = [r.priority for r in d.recommendations]
    assert priorities == sorted(priorities)
    node_rec = next(r for r in d.recommendations if r.title == "Check node status")
    assert node_rec.command == "kubectl describe node node-2"


class _Exploding(Analyzer):
    name = "exploding"

    def analyze(self, pod, source):
        raise RuntimeError("boom")


def test_failing_analyzer_is_skipped():
    p = pod(container_statuses=[waiting(reason="CrashLoopBackOff")])
    source = FakeSignalSource(pods=[p])
    d = DiagnosticPipeline(source, analyzers=[_Exploding(), StatusAnalyzer()]).diagnose("default", "web-0")
    assert [i.title for i in d.issues] == ["Container app in CrashLoopBackOff"]


def test_events_and_node_are_best_effort():
    d = _diagnose(pod(), fail={"get_pod_events", "get_node_health"})
    assert d.events == []
    assert d.node is None
    assert d.status == PodStatus.Healthy


def test_events_attached_to_diagnosis():
    d = _diagnose(pod(), events={"web-0": [warning_event("BackOff", "Back-off restarting failed container")]})
    assert [e.reason for e in d.events] == ["BackOff"]
    assert [i.title for i in d.issues if i.category == "events"] == ["BackOff"]


def test_unscheduled_pod_has_no_node():
    d = _diagnose(pod(phase="Pending", node_name="", container_statuses=[]))
    assert d.node is None
    assert d.status == PodStatus.Pending


def test_diagnosis_is_repeatable():
    p = pod(containers=[bare_container("app")], container_statuses=[waiting(reason="CrashLoopBackOff", last=oom())])
    source = FakeSignalSource(pods=[p], logs={("web-0", "app", True): "fatal error: oom"})
    pipeline = DiagnosticPipeline(source)
    fixed = datetime(2024, 1, 1, tzinfo=timezone.utc)
    first = pipeline.diagnose("default", "web-0").model_copy(update={"diagnosed_at": fixed})
    second = pipeline.diagnose("default", "web-0").model_copy(update={"diagnosed_at": fixed})
    assert first == second


def test_pod_not_found_propagates():
    pipeline = DiagnosticPipeline(FakeSignalSource())
    with pytest.raises(PodNotFoundError) as exc:
        pipeline.diagnose("default", "missing")
    assert str(exc.value) == "pod default/missing not found"
