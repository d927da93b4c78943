"""Diagnose many pods under a bounded concurrency limit."""
from __future__ import annotations

import asyncio
import logging
import time
from collections import Counter
from typing import Iterable

from poddoctor.config import settings
from poddoctor.k8s_client import SignalSource
from poddoctor.models import Diagnosis, PodRef
from poddoctor.pipeline import DiagnosticPipeline

logger = logging.getLogger(__name__)


def collect_pod_refs(
    source: SignalSource,
    namespace: str | None = None,
    label_selector: str | None = None,
    all_namespaces: bool = False,
) -> list[PodRef]:
    """List the pods a scan should cover. Listing failures propagate."""
    if all_namespaces:
        pods = source.list_all_pods()
    else:
        pods = source.list_pods(namespace or "default", label_selector)
    return [PodRef(p.namespace, p.name) for p in pods]


async def scan_all(
    pipeline: DiagnosticPipeline,
    refs: Iterable[PodRef],
    concurrency: int | None = None,
    timeout: float | None = None,
    only_unhealthy: bool = False,
) -> list[Diagnosis]:
    """Diagnose every ref with at most ``concurrency`` diagnoses in flight.

    Pods whose diagnosis fails are dropped. Output order is not defined.
    When ``timeout`` elapses, unfinished diagnoses are abandoned and only
    completed results are returned.
    """
    limit = concurrency if concurrency is not None else settings.scan_concurrency
    if limit < 1:
        raise ValueError("concurrency must be >= 1")
    deadline = timeout if timeout is not None else settings.scan_timeout_seconds
    sem = asyncio.Semaphore(limit)
    results: list[Diagnosis] = []
    results_lock = asyncio.Lock()

    async def _one(ref: PodRef) -> None:
        async with sem:
            try:
                diagnosis = await asyncio.to_thread(pipeline.diagnose, ref.namespace, ref.name)
            except Exception as e:
                logger.debug("Skipping pod %s/%s: %s", ref.namespace, ref.name, e)
                return
        async with results_lock:
            results.append(diagnosis)

    tasks = [asyncio.create_task(_one(ref)) for ref in refs]
    if not tasks:
        return []
    start = time.perf_counter()
    _, pending = await asyncio.wait(tasks, timeout=deadline)
    if pending:
        logger.warning(
            "Scan timed out; abandoning unfinished diagnoses",
            extra={"pending": len(pending), "timeout_s": deadline},
        )
        for task in pending:
            task.cancel()
        await asyncio.gather(*pending, return_exceptions=True)
    async with results_lock:
        collected = list(results)
    logger.info(
        "Scan finished",
        extra={
            "pods": len(tasks),
            "diagnosed": len(collected),
            "duration_ms": int((time.perf_counter() - start) * 1000),
        },
    )
    if only_unhealthy:
        collected = [d for d in collected if not d.is_healthy()]
    return collected


def summarize(diagnoses: list[Diagnosis]) -> dict[str, int]:
    """Counts for a scan: total, healthy, unhealthy, status:<label>, severity:<level>."""
    counts: dict[str, int] = {"total": len(diagnoses), "healthy": 0, "unhealthy": 0}
    statuses: Counter[str] = Counter()
    severities: Counter[str] = Counter()
    for d in diagnoses:
        if d.is_healthy():
            counts["healthy"] += 1
        else:
            counts["unhealthy"] += 1
        statuses[d.status.value] += 1
        for sev, n in d.issue_counts().items():
            severities[sev] += n
    for label, n in sorted(statuses.items()):
        counts[f"status:{label}"] = n
    for sev, n in severities.items():
        counts[f"severity:{sev}"] = n
    return counts
