"""Error patterns in recent container logs."""
from __future__ import annotations

import logging

from poddoctor.analyzers.base import Analyzer
from poddoctor.config import settings
from poddoctor.errors import SignalSourceError
from poddoctor.k8s_client import SignalSource
from poddoctor.models import Issue, PodSnapshot
from poddoctor.patterns import LOG_PATTERNS, PatternRule, issues_from_matches, match_patterns

logger = logging.getLogger(__name__)


class LogAnalyzer(Analyzer):
    name = "logs"

    def __init__(self, rules: tuple[PatternRule, ...] = LOG_PATTERNS, tail_lines: int | None = None) -> None:
        self.rules = rules
        self.tail_lines = tail_lines

    def _fetch(self, source: SignalSource, pod: PodSnapshot, container: str) -> str | None:
        tail = self.tail_lines or settings.log_tail_lines
        try:
            return source.get_pod_logs(pod.namespace, pod.name, container, tail, previous=False)
        except SignalSourceError as e:
            logger.debug("current logs unavailable for %s/%s[%s]: %s", pod.namespace, pod.name, container, e)
        # Container may have just restarted; the previous instance still has logs
        try:
            return source.get_pod_logs(pod.namespace, pod.name, container, tail, previous=True)
        except SignalSourceError as e:
            logger.debug("previous logs unavailable for %s/%s[%s]: %s", pod.namespace, pod.name, container, e)
            return None

    def analyze(self, pod: PodSnapshot, source: SignalSource) -> list[Issue]:
        issues: list[Issue] = []
        for container in pod.containers:
            text = self._fetch(source, pod, container.name)
            if not text:
                continue
            matches = match_patterns(self.rules, text)
            issues.extend(issues_from_matches(matches, container.name))
        return issues
