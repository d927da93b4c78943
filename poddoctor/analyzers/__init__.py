"""Analyzers, each producing issues from one facet of pod state."""
from poddoctor.analyzers.base import Analyzer
from poddoctor.analyzers.events import EventAnalyzer
from poddoctor.analyzers.logs import LogAnalyzer
from poddoctor.analyzers.node import NodeAnalyzer
from poddoctor.analyzers.probes import ProbeAnalyzer
from poddoctor.analyzers.resources import ResourceAnalyzer
from poddoctor.analyzers.status import StatusAnalyzer

__all__ = [
    "Analyzer",
    "EventAnalyzer",
    "LogAnalyzer",
    "NodeAnalyzer",
    "ProbeAnalyzer",
    "ResourceAnalyzer",
    "StatusAnalyzer",
    "default_analyzers",
]


def default_analyzers() -> list[Analyzer]:
    """The fixed analyzer set, in execution order."""
    return [
        StatusAnalyzer(),
        EventAnalyzer(),
        LogAnalyzer(),
        NodeAnalyzer(),
        ResourceAnalyzer(),
        ProbeAnalyzer(),
    ]
