"""Tests for pod listing, bounded concurrent scans and scan summaries."""
import asyncio

import pytest

from factories import FakeSignalSource, bare_container, pod, waiting
from poddoctor.models import Diagnosis, Issue, PodRef, PodStatus, Severity
from poddoctor.pipeline import DiagnosticPipeline
from poddoctor.scanner import collect_pod_refs, scan_all, summarize


class TestCollectPodRefs:
    def test_namespace_scope(self):
        source = FakeSignalSource(pods=[pod("a"), pod("b", namespace="other")])
        assert collect_pod_refs(source, namespace="default") == [PodRef("default", "a")]

    def test_defaults_to_default_namespace(self):
        source = FakeSignalSource(pods=[pod("a")])
        assert collect_pod_refs(source) == [PodRef("default", "a")]

    def test_label_selector(self):
        source = FakeSignalSource(pods=[pod("a", labels={"app": "web"}), pod("b", labels={"app": "db"})])
        assert collect_pod_refs(source, "default", "app=db") == [PodRef("default", "b")]

    def test_all_namespaces(self):
        source = FakeSignalSource(pods=[pod("a"), pod("b", namespace="other")])
        refs = collect_pod_refs(source, all_namespaces=True)
        assert sorted(refs) == [PodRef("default", "a"), PodRef("other", "b")]
        assert ("list_all_pods",) in source.calls


@pytest.mark.asyncio
async def test_scan_respects_concurrency_and_drops_failures():
    pods = [pod(f"web-{i}") for i in range(9)]
    source = FakeSignalSource(pods=pods, delay=0.02)
    refs = [PodRef("default", p.name) for p in pods] + [PodRef("default", "gone")]

    results = await scan_all(DiagnosticPipeline(source), refs, concurrency=2)

    assert len(results) == 9
    assert sorted(d.pod.name for d in results) == sorted(p.name for p in pods)
    assert 1 <= source.max_in_flight <= 2
    assert source.in_flight == 0


@pytest.mark.asyncio
async def test_scan_only_unhealthy():
    pods = [pod("ok"), pod("broken", container_statuses=[waiting(reason="CrashLoopBackOff")])]
    source = FakeSignalSource(pods=pods)
    refs = [PodRef("default", "ok"), PodRef("default", "broken")]

    results = await scan_all(DiagnosticPipeline(source), refs, concurrency=2, only_unhealthy=True)

    assert [d.pod.name for d in results] == ["broken"]


@pytest.mark.asyncio
async def test_scan_no_refs():
    assert await scan_all(DiagnosticPipeline(FakeSignalSource()), [], concurrency=3) == []


@pytest.mark.asyncio
@pytest.mark.parametrize("concurrency", [0, -1])
async def test_scan_rejects_bad_concurrency(concurrency):
    with pytest.raises(ValueError):
        await scan_all(DiagnosticPipeline(FakeSignalSource()), [PodRef("default", "a")], concurrency=concurrency)


@pytest.mark.asyncio
async def test_scan_timeout_returns_completed_only():
    source = FakeSignalSource(pods=[pod("slow")], delay=0.5)
    results = await scan_all(DiagnosticPipeline(source), [PodRef("default", "slow")], concurrency=1, timeout=0.01)
    assert results == []
    leftover = [
        t for t in asyncio.all_tasks()
        if t is not asyncio.current_task() and t.get_coro().__qualname__.endswith("_one")
    ]
    assert leftover == []


def test_summarize_counts():
    healthy = Diagnosis(pod=pod("a"), status=PodStatus.Healthy)
    crashing = Diagnosis(
        pod=pod("b", containers=[bare_container()]),
        status=PodStatus.CrashLoopBackOff,
        issues=[
            Issue(severity=Severity.critical, category="container", title="Container app in CrashLoopBackOff"),
            Issue(severity=Severity.info, category="probes", title="No health probes for app"),
        ],
    )
    counts = summarize([healthy, crashing])
    assert counts["total"] == 2
    assert counts["healthy"] == 1
    assert counts["unhealthy"] == 1
    assert counts["status:Healthy"] == 1
    assert counts["status:CrashLoopBackOff"] == 1
    assert counts["severity:critical"] == 1
    assert counts["severity:warning"] == 0
    assert counts["severity:info"] == 1


def test_summarize_empty():
    assert summarize([]) == {"total": 0, "healthy": 0, "unhealthy": 0}
