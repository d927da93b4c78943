"""Abstract analyzer interface."""
from abc import ABC, abstractmethod

from poddoctor.k8s_client import SignalSource
from poddoctor.models import Issue, PodSnapshot


class Analyzer(ABC):
    """Inspects one facet of a pod and reports issues.

    Analyzers are stateless; a single instance is shared by every diagnosis.
    Raising is allowed: the pipeline skips a failing analyzer and keeps the
    issues produced by the others.
    """

    name: str = ""

    @abstractmethod
    def analyze(self, pod: PodSnapshot, source: SignalSource) -> list[Issue]:
        ...
