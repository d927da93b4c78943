"""Markdown renderings of diagnoses for presentation layers."""
from __future__ import annotations

from datetime import timedelta

from poddoctor.models import Diagnosis, Severity

SEVERITY_ORDER = {Severity.critical: 0, Severity.warning: 1, Severity.info: 2}


def format_age(age: timedelta | None) -> str:
    if age is None:
        return "unknown"
    seconds = int(age.total_seconds())
    if seconds < 60:
        return f"{seconds}s"
    if seconds < 3600:
        return f"{seconds // 60}m"
    if seconds < 86400:
        return f"{seconds // 3600}h"
    return f"{seconds // 86400}d"


def diagnosis_to_markdown(d: Diagnosis) -> str:
    pod = d.pod
    parts = [
        f"## Diagnosis: {pod.namespace}/{pod.name}",
        f"_Diagnosed at {d.diagnosed_at.strftime('%Y-%m-%d %H:%M:%S')}_",
        "",
        f"- **Status:** {d.status.value}",
        f"- **Phase:** {pod.phase or 'unknown'}",
        f"- **Node:** {pod.node_name or '<unscheduled>'}",
        f"- **Age:** {format_age(pod.age)}",
        f"- **Restarts:** {pod.restarts}",
    ]
    if pod.pod_ip:
        parts.append(f"- **IP:** {pod.pod_ip}")

    summaries = pod.container_summaries()
    if summaries:
        parts.extend(["", "## Containers"])
        for c in summaries:
            line = f"- `{c.name}` ({c.image}): {c.state or 'unknown'}, ready={str(c.ready).lower()}, restarts={c.restart_count}"
            if c.reason:
                line += f" [{c.reason}]"
            parts.append(line)

    parts.extend(["", "## Issues"])
    if not d.issues:
        parts.append("No issues found.")
    for issue in sorted(d.issues, key=lambda i: SEVERITY_ORDER[i.severity]):
        parts.append(f"- **[{issue.severity.value}] {issue.title}** ({issue.category})")
        if issue.description:
            parts.append(f"  - {issue.description}")

    warnings = [e for e in d.events if e.type == "Warning"]
    if warnings:
        parts.extend(["", "## Warning events"])
        for e in warnings:
            parts.append(f"- {e.reason} (x{max(e.count, 1)}): {e.message}")

    if d.node is not None:
        n = d.node
        parts.extend([
            "",
            f"## Node {n.name}",
            f"- Ready: {n.ready} | MemoryPressure: {n.memory_pressure} | DiskPressure: {n.disk_pressure}"
            f" | PIDPressure: {n.pid_pressure} | NetworkUnavailable: {n.network_unavailable}",
        ])

    if d.recommendations:
        parts.extend(["", "## Recommendations"])
        for i, rec in enumerate(d.recommendations, 1):
            parts.append(f"{i}. **{rec.title}** (priority {rec.priority}): {rec.description}")
            if rec.command:
                parts.append(f"```bash\n{rec.command}\n```")
    return "\n".join(parts)


def scan_summary_markdown(diagnoses: list[Diagnosis], counts: dict[str, int]) -> str:
    lines = [
        "## Scan summary",
        f"- **Pods:** {counts.get('total', 0)} | **Healthy:** {counts.get('healthy', 0)}"
        f" | **Unhealthy:** {counts.get('unhealthy', 0)}",
        f"- **Critical:** {counts.get('severity:critical', 0)} | **Warning:** {counts.get('severity:warning', 0)}"
        f" | **Info:** {counts.get('severity:info', 0)}",
    ]
    unhealthy = sorted(
        (d for d in diagnoses if not d.is_healthy()),
        key=lambda d: (not d.has_critical_issues(), d.pod.namespace, d.pod.name),
    )
    if unhealthy:
        lines.extend(["", "| Pod | Status | Critical | Warning | Info |", "|---|---|---|---|---|"])
        for d in unhealthy:
            c = d.issue_counts()
            lines.append(
                f"| {d.pod.namespace}/{d.pod.name} | {d.status.value} | {c['critical']} | {c['warning']} | {c['info']} |"
            )
    return "\n".join(lines)
