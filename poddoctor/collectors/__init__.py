"""Translators from Kubernetes API objects to engine snapshots."""
from poddoctor.collectors.node import node_health_from_node
from poddoctor.collectors.pod import event_record_from_event, snapshot_from_pod

__all__ = ["event_record_from_event", "node_health_from_node", "snapshot_from_pod"]
