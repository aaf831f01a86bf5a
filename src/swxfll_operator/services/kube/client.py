"""Kubernetes API store implementation."""

from __future__ import annotations

import logging
import time
from typing import Any, Callable

from kubernetes import client, config
from kubernetes.client.exceptions import ApiException
from urllib3.exceptions import HTTPError

from ... import metrics
from ...constants import KIND_DEPLOYMENT, KIND_SWXFLL
from ...errors import NotFoundError, StoreUnavailableError, VersionConflictError
from .registry import ResourceRegistry

logger = logging.getLogger(__name__)


def translate_api_error(error: Exception, operation: str) -> Exception:
    """Map a Kubernetes client failure onto the reconcile error taxonomy.

    Args:
        error: Exception raised by the Kubernetes client
        operation: Name of the store operation, used in the message

    Returns:
        The translated exception (not raised)
    """
    if isinstance(error, ApiException):
        if error.status == 404:
            return NotFoundError(f"{operation}: not found")
        if error.status == 409:
            return VersionConflictError(f"{operation}: conflict: {error.reason}")
        if error.status == 429:
            retry_after = (error.headers or {}).get("Retry-After")
            delay = float(retry_after) if retry_after and retry_after.isdigit() else None
            return StoreUnavailableError(f"{operation}: throttled", status=429, retry_delay=delay)
        return StoreUnavailableError(f"{operation}: API error {error.status}: {error.reason}", status=error.status)
    return StoreUnavailableError(f"{operation}: {type(error).__name__}: {error}")


class KubeStore:
    """API store backed by the Kubernetes Python client."""

    def __init__(
        self,
        registry: ResourceRegistry,
        custom_api: client.CustomObjectsApi,
        apps_api: client.AppsV1Api,
        request_timeout: float = 30.0,
    ) -> None:
        """Initialize the store.

        Args:
            registry: Resource types the store can address
            custom_api: Client for the Swxfll custom resources
            apps_api: Client for Deployments
            request_timeout: Timeout in seconds applied to every API call
        """
        self.registry = registry
        self.custom_api = custom_api
        self.apps_api = apps_api
        self.request_timeout = request_timeout
        self.parent_type = registry.get(KIND_SWXFLL)
        self.child_type = registry.get(KIND_DEPLOYMENT)

    def _call(self, operation: str, fn: Callable[..., Any], **kwargs: Any) -> Any:
        """Invoke a client method with metrics and error translation."""
        start_time = time.time()
        try:
            result = fn(_request_timeout=self.request_timeout, **kwargs)
            metrics.api_call_total.labels(api_type="k8s", operation=operation, result="success").inc()
            return result
        except (ApiException, HTTPError) as e:
            metrics.api_call_total.labels(api_type="k8s", operation=operation, result="error").inc()
            translated = translate_api_error(e, operation)
            logger.debug(f"Kubernetes API call {operation} failed: {translated}")
            raise translated from e
        finally:
            duration = time.time() - start_time
            metrics.api_call_duration_seconds.labels(api_type="k8s", operation=operation).observe(duration)

    def _to_dict(self, obj: Any) -> dict[str, Any]:
        return self.apps_api.api_client.sanitize_for_serialization(obj)

    def get_parent(self, namespace: str, name: str) -> dict[str, Any]:
        """Fetch a Swxfll resource."""
        return self._call(
            "get_parent",
            self.custom_api.get_namespaced_custom_object,
            group=self.parent_type.group,
            version=self.parent_type.version,
            namespace=namespace,
            plural=self.parent_type.plural,
            name=name,
        )

    def update_parent(self, body: dict[str, Any]) -> dict[str, Any]:
        """Replace a Swxfll resource; resourceVersion in the body guards the write."""
        metadata = body["metadata"]
        return self._call(
            "update_parent",
            self.custom_api.replace_namespaced_custom_object,
            group=self.parent_type.group,
            version=self.parent_type.version,
            namespace=metadata["namespace"],
            plural=self.parent_type.plural,
            name=metadata["name"],
            body=body,
        )

    def update_parent_status(self, body: dict[str, Any]) -> dict[str, Any]:
        """Replace the status subresource of a Swxfll resource."""
        metadata = body["metadata"]
        return self._call(
            "update_parent_status",
            self.custom_api.replace_namespaced_custom_object_status,
            group=self.parent_type.group,
            version=self.parent_type.version,
            namespace=metadata["namespace"],
            plural=self.parent_type.plural,
            name=metadata["name"],
            body=body,
        )

    def get_child(self, namespace: str, name: str) -> dict[str, Any]:
        """Fetch the managed Deployment."""
        deployment = self._call(
            "get_child",
            self.apps_api.read_namespaced_deployment,
            name=name,
            namespace=namespace,
        )
        return self._to_dict(deployment)

    def create_child(self, body: dict[str, Any]) -> dict[str, Any]:
        """Create the managed Deployment."""
        deployment = self._call(
            "create_child",
            self.apps_api.create_namespaced_deployment,
            namespace=body["metadata"]["namespace"],
            body=body,
        )
        return self._to_dict(deployment)

    def update_child(self, body: dict[str, Any]) -> dict[str, Any]:
        """Replace the managed Deployment; resourceVersion in the body guards the write."""
        metadata = body["metadata"]
        deployment = self._call(
            "update_child",
            self.apps_api.replace_namespaced_deployment,
            name=metadata["name"],
            namespace=metadata["namespace"],
            body=body,
        )
        return self._to_dict(deployment)


def create_kube_store(registry: ResourceRegistry, request_timeout: float = 30.0) -> KubeStore:
    """Build a KubeStore from in-cluster or local kubeconfig credentials."""
    try:
        config.load_incluster_config()
    except config.ConfigException:
        config.load_kube_config()

    api_client = client.ApiClient()
    return KubeStore(
        registry,
        client.CustomObjectsApi(api_client),
        client.AppsV1Api(api_client),
        request_timeout=request_timeout,
    )
