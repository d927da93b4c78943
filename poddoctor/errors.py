"""Error taxonomy for signal retrieval and diagnosis."""


class PodDoctorError(Exception):
    """Base class for all pod-doctor errors."""


class SignalSourceError(PodDoctorError):
    """A cluster read (pod, logs, events, node, list) failed."""


class PodNotFoundError(SignalSourceError):
    """The requested pod or namespace does not exist."""

    def __init__(self, namespace: str, name: str) -> None:
        super().__init__(f"pod {namespace}/{name} not found")
        self.namespace = namespace
        self.name = name


class ClusterUnreachableError(SignalSourceError):
    """The cluster API could not be reached or configured."""
