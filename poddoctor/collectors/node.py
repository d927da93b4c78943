"""Translate a Kubernetes Node into NodeHealth."""
from __future__ import annotations

from typing import Any

from poddoctor.models import NodeHealth

# Node condition type -> NodeHealth field
_CONDITION_FIELDS = {
    "Ready": "ready",
    "MemoryPressure": "memory_pressure",
    "DiskPressure": "disk_pressure",
    "PIDPressure": "pid_pressure",
    "NetworkUnavailable": "network_unavailable",
}


def node_health_from_node(node: Any, name: str | None = None) -> NodeHealth:
    """Each known condition maps to one boolean (status == "True"); absent conditions stay False."""
    flags: dict[str, bool] = {}
    conditions = getattr(getattr(node, "status", None), "conditions", None) or []
    for c in conditions:
        field = _CONDITION_FIELDS.get(c.type)
        if field:
            flags[field] = c.status == "True"
    node_name = name or getattr(getattr(node, "metadata", None), "name", None) or ""
    return NodeHealth(name=node_name, **flags)
