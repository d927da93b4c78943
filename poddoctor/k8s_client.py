"""Kubernetes API client wrapper with in-cluster and kubeconfig support."""
from __future__ import annotations

import logging
from typing import Any, Callable, Protocol

import urllib3
from kubernetes import client, config
from kubernetes.client.rest import ApiException
from kubernetes.config.config_exception import ConfigException

from poddoctor.collectors import event_record_from_event, node_health_from_node, snapshot_from_pod
from poddoctor.config import settings
from poddoctor.errors import ClusterUnreachableError, PodNotFoundError, SignalSourceError
from poddoctor.models import EventRecord, NodeHealth, PodSnapshot

logger = logging.getLogger(__name__)


class SignalSource(Protocol):
    """Read-only access to the cluster state a diagnosis needs.

    Every method raises SignalSourceError (or a subclass) on failure.
    """

    def get_pod(self, namespace: str, name: str) -> PodSnapshot: ...

    def get_pod_logs(
        self, namespace: str, name: str, container: str, tail_lines: int, previous: bool = False
    ) -> str: ...

    def get_pod_events(self, namespace: str, name: str) -> list[EventRecord]: ...

    def get_node_health(self, node_name: str) -> NodeHealth: ...

    def list_pods(self, namespace: str, label_selector: str | None = None) -> list[PodSnapshot]: ...

    def list_all_pods(self) -> list[PodSnapshot]: ...

    def list_namespaces(self) -> list[str]: ...


def _load_core_v1(context: str | None = None) -> client.CoreV1Api:
    """Load Kubernetes config for a specific context and return a CoreV1Api client."""
    try:
        if settings.in_cluster:
            config.load_incluster_config()
            logger.info("Loaded in-cluster Kubernetes config")
        else:
            config.load_kube_config(context=context)
            logger.info("Loaded kubeconfig", extra={"context": context})
    except ConfigException as e:
        logger.warning("Kubernetes config not available: %s", e)
        raise ClusterUnreachableError(f"kubernetes config not available: {e}") from e

    configuration = client.Configuration.get_default_copy()
    if not settings.kube_verify_ssl:
        # Self-signed API server certificates (kind, Rancher, internal clusters)
        configuration.verify_ssl = False
        configuration.ssl_ca_cert = None
        urllib3.disable_warnings(urllib3.exceptions.InsecureRequestWarning)
    return client.CoreV1Api(api_client=client.ApiClient(configuration))


def _translate(e: Exception, what: str) -> SignalSourceError:
    if isinstance(e, ApiException):
        return SignalSourceError(f"{what}: {e.reason} ({e.status})")
    return ClusterUnreachableError(f"{what}: {e}")


class KubernetesSignalSource:
    """SignalSource backed by the cluster API (CoreV1)."""

    def __init__(self, core_v1: client.CoreV1Api | None = None, context: str | None = None) -> None:
        self._core = core_v1 if core_v1 is not None else _load_core_v1(context or settings.kube_context)
        self._timeout = settings.request_timeout

    def get_pod(self, namespace: str, name: str) -> PodSnapshot:
        try:
            pod = self._core.read_namespaced_pod(name=name, namespace=namespace, _request_timeout=self._timeout)
        except ApiException as e:
            if e.status == 404:
                raise PodNotFoundError(namespace, name) from e
            if e.status == 403:
                raise SignalSourceError(f"read pod: {e.reason} (insufficient RBAC - need get pods)") from e
            raise _translate(e, "read pod") from e
        except urllib3.exceptions.HTTPError as e:
            raise _translate(e, "read pod") from e
        return snapshot_from_pod(pod)

    def get_pod_logs(
        self, namespace: str, name: str, container: str, tail_lines: int, previous: bool = False
    ) -> str:
        try:
            return self._core.read_namespaced_pod_log(
                name=name,
                namespace=namespace,
                container=container,
                tail_lines=tail_lines,
                previous=previous,
                _request_timeout=self._timeout,
            ) or ""
        except (ApiException, urllib3.exceptions.HTTPError) as e:
            raise _translate(e, f"read logs {container} (previous={previous})") from e

    def get_pod_events(self, namespace: str, name: str) -> list[EventRecord]:
        try:
            events = self._core.list_namespaced_event(
                namespace=namespace,
                field_selector=f"involvedObject.name={name},involvedObject.namespace={namespace},involvedObject.kind=Pod",
                _request_timeout=self._timeout,
            )
        except (ApiException, urllib3.exceptions.HTTPError) as e:
            raise _translate(e, "list events") from e
        return [event_record_from_event(e) for e in (events.items or [])]

    def get_node_health(self, node_name: str) -> NodeHealth:
        try:
            node = self._core.read_node(name=node_name, _request_timeout=self._timeout)
        except (ApiException, urllib3.exceptions.HTTPError) as e:
            raise _translate(e, "read node") from e
        return node_health_from_node(node, name=node_name)

    def _list_all(self, call: Callable[..., Any], **kwargs: Any) -> list[Any]:
        """Follow continue tokens until the server reports no more pages."""
        items: list[Any] = []
        token: str | None = None
        while True:
            if token:
                kwargs["_continue"] = token
            ret = call(limit=settings.list_limit, _request_timeout=self._timeout, **kwargs)
            items.extend(ret.items or [])
            token = getattr(ret.metadata, "_continue", None) if ret.metadata is not None else None
            if not token:
                return items

    def list_pods(self, namespace: str, label_selector: str | None = None) -> list[PodSnapshot]:
        kwargs: dict[str, Any] = {"namespace": namespace}
        if label_selector:
            kwargs["label_selector"] = label_selector
        try:
            items = self._list_all(self._core.list_namespaced_pod, **kwargs)
        except ApiException as e:
            if e.status == 404:
                raise SignalSourceError(f"namespace {namespace} not found") from e
            raise _translate(e, "list pods") from e
        except urllib3.exceptions.HTTPError as e:
            raise _translate(e, "list pods") from e
        return [snapshot_from_pod(p) for p in items]

    def list_all_pods(self) -> list[PodSnapshot]:
        try:
            items = self._list_all(self._core.list_pod_for_all_namespaces)
        except (ApiException, urllib3.exceptions.HTTPError) as e:
            raise _translate(e, "list pods") from e
        return [snapshot_from_pod(p) for p in items]

    def list_namespaces(self) -> list[str]:
        try:
            items = self._list_all(self._core.list_namespace)
        except (ApiException, urllib3.exceptions.HTTPError) as e:
            logger.warning("list_namespaces failed: %s", e)
            raise _translate(e, "list namespaces") from e
        return [ns.metadata.name for ns in items]

    def check_connection(self) -> bool:
        try:
            self._core.list_namespace(limit=1, _request_timeout=self._timeout)
            return True
        except (ApiException, urllib3.exceptions.HTTPError):
            return False
