"""Deterministic remediation suggestions derived from issues.

Each rule is keyed by (issue category, keyword) and says how the keyword is
matched:

- ``reason``: issue.details["reason"] or the title equals the keyword
- ``title``:  the keyword is a substring of issue.title
- ``any``:    every issue of the category matches

Commands may reference ``{pod}``, ``{namespace}`` and ``{node}``.
"""
from __future__ import annotations

from typing import NamedTuple

from poddoctor.models import Issue, PodSnapshot, Recommendation


class RecommendationRule(NamedTuple):
    category: str
    keyword: str | None
    match: str  # reason | title | any
    recommendations: tuple[Recommendation, ...]


def _rec(priority: int, title: str, description: str, command: str | None = None) -> Recommendation:
    return Recommendation(priority=priority, title=title, description=description, command=command)


RECOMMENDATION_RULES: tuple[RecommendationRule, ...] = (
    RecommendationRule("container", "CrashLoopBackOff", "reason", (
        _rec(1, "Check container logs", "Review container logs to identify the crash cause",
             "kubectl logs {pod} -n {namespace} --previous"),
    )),
    RecommendationRule("container", "ImagePullBackOff", "reason", (
        _rec(1, "Verify image exists", "Check if the image exists and is accessible",
             "kubectl describe pod {pod} -n {namespace}"),
        _rec(2, "Check image pull secrets", "Ensure imagePullSecrets are configured if using a private registry"),
    )),
    RecommendationRule("container", "ErrImagePull", "reason", (
        _rec(1, "Verify image exists", "Check if the image exists and is accessible",
             "kubectl describe pod {pod} -n {namespace}"),
        _rec(2, "Check image pull secrets", "Ensure imagePullSecrets are configured if using a private registry"),
    )),
    RecommendationRule("resources", "OOMKilled", "reason", (
        _rec(1, "Increase memory limit", "Container exceeded memory limit; consider increasing it",
             "kubectl set resources deployment/<deployment-name> -c <container> --limits=memory=<new-limit>"),
    )),
    RecommendationRule("resources", "No resource limits", "title", (
        _rec(2, "Add resource limits", "Set resource limits to prevent resource contention",
             "kubectl set resources deployment/<deployment-name> -c <container> --limits=cpu=500m,memory=256Mi"),
    )),
    RecommendationRule("resources", "BestEffort QoS", "title", (
        _rec(2, "Configure resource requests and limits",
             "BestEffort pods are first to be evicted; add resources for better QoS"),
    )),
    RecommendationRule("probes", "probe failed", "title", (
        _rec(1, "Check probe endpoint", "Verify the probe endpoint is responding correctly",
             "kubectl exec {pod} -n {namespace} -- curl -v localhost:<port>/<path>"),
    )),
    RecommendationRule("probes", "No health probes", "title", (
        _rec(3, "Add health probes", "Consider adding liveness and readiness probes for better health monitoring"),
    )),
    RecommendationRule("probes", "running but not ready", "title", (
        _rec(1, "Debug readiness probe", "Check why readiness probe is failing",
             "kubectl describe pod {pod} -n {namespace} | grep -A10 'Readiness'"),
    )),
    # Scheduling failures rarely say which constraint failed; always point at capacity and taints
    RecommendationRule("scheduling", None, "any", (
        _rec(1, "Check node resources", "Verify cluster has nodes with sufficient resources",
             "kubectl describe nodes | grep -A5 'Allocated resources'"),
        _rec(2, "Review pod tolerations", "Check if pod has required tolerations for tainted nodes"),
    )),
    RecommendationRule("node", None, "any", (
        _rec(1, "Check node status", "Review node conditions and events", "kubectl describe node {node}"),
    )),
    RecommendationRule("logs", None, "any", (
        _rec(2, "Review full logs", "Check complete container logs for more context",
             "kubectl logs {pod} -n {namespace} --tail=100"),
    )),
)


def _matches(rule: RecommendationRule, issue: Issue) -> bool:
    if issue.category != rule.category:
        return False
    if rule.match == "any":
        return True
    if rule.match == "reason":
        return issue.details.get("reason") == rule.keyword or issue.title == rule.keyword
    return rule.keyword is not None and rule.keyword in issue.title


def _render(rec: Recommendation, pod: PodSnapshot) -> Recommendation:
    if not rec.command:
        return rec
    command = rec.command.format(pod=pod.name, namespace=pod.namespace, node=pod.node_name or "<node>")
    return rec.model_copy(update={"command": command})


def recommendations_for_issue(issue: Issue, pod: PodSnapshot) -> list[Recommendation]:
    out: list[Recommendation] = []
    for rule in RECOMMENDATION_RULES:
        if _matches(rule, issue):
            out.extend(_render(rec, pod) for rec in rule.recommendations)
    return out


def generate_recommendations(issues: list[Issue], pod: PodSnapshot) -> list[Recommendation]:
    """First-seen recommendation per title wins; result is stable-sorted by priority."""
    seen: set[str] = set()
    recs: list[Recommendation] = []
    for issue in issues:
        for rec in recommendations_for_issue(issue, pod):
            if rec.title in seen:
                continue
            seen.add(rec.title)
            recs.append(rec)
    recs.sort(key=lambda r: r.priority)
    return recs
