"""Runs every analyzer over one pod and assembles the Diagnosis."""
from __future__ import annotations

import logging
from datetime import datetime, timezone

from poddoctor.analyzers import Analyzer, default_analyzers
from poddoctor.classifier import classify_pod_status
from poddoctor.errors import SignalSourceError
from poddoctor.k8s_client import SignalSource
from poddoctor.models import Diagnosis, EventRecord, Issue, NodeHealth, PodSnapshot
from poddoctor.recommendations import generate_recommendations

logger = logging.getLogger(__name__)


class DiagnosticPipeline:
    """Sequential, deterministic diagnosis of a single pod.

    Analyzers run one after another in their declared order so that issue
    order, and therefore recommendation precedence, is stable between runs.
    """

    def __init__(self, source: SignalSource, analyzers: list[Analyzer] | None = None) -> None:
        self.source = source
        self.analyzers = analyzers if analyzers is not None else default_analyzers()

    def run_analyzers(self, pod: PodSnapshot) -> list[Issue]:
        issues: list[Issue] = []
        for analyzer in self.analyzers:
            try:
                found = analyzer.analyze(pod, self.source)
            except Exception as e:
                logger.warning(
                    "Analyzer failed, continuing: %s",
                    e,
                    extra={"analyzer": analyzer.name, "pod": f"{pod.namespace}/{pod.name}"},
                )
                continue
            issues.extend(found)
        return issues

    def _events(self, pod: PodSnapshot) -> list[EventRecord]:
        try:
            return self.source.get_pod_events(pod.namespace, pod.name)
        except SignalSourceError as e:
            logger.debug("events unavailable for %s/%s: %s", pod.namespace, pod.name, e)
            return []

    def _node(self, pod: PodSnapshot) -> NodeHealth | None:
        if not pod.is_scheduled:
            return None
        try:
            return self.source.get_node_health(pod.node_name)
        except SignalSourceError as e:
            logger.debug("node health unavailable for %s: %s", pod.node_name, e)
            return None

    def diagnose_snapshot(self, pod: PodSnapshot) -> Diagnosis:
        diagnosed_at = datetime.now(timezone.utc)
        status = classify_pod_status(pod)
        issues = self.run_analyzers(pod)
        events = self._events(pod)
        node = self._node(pod)
        return Diagnosis(
            pod=pod,
            status=status,
            issues=issues,
            events=events,
            node=node,
            recommendations=generate_recommendations(issues, pod),
            diagnosed_at=diagnosed_at,
        )

    def diagnose(self, namespace: str, name: str) -> Diagnosis:
        """Diagnose one pod. PodNotFoundError / ClusterUnreachableError propagate."""
        pod = self.source.get_pod(namespace, name)
        diagnosis = self.diagnose_snapshot(pod)
        logger.info(
            "Diagnosed pod",
            extra={
                "pod": f"{namespace}/{name}",
                "status": diagnosis.status.value,
                "issues": len(diagnosis.issues),
            },
        )
        return diagnosis
