"""Builder for the Deployment managed by a Swxfll resource."""

from __future__ import annotations

import copy
import os
import re
from typing import Any, Callable, Optional

from ..constants import (
    API_GROUP_VERSION,
    CONTAINER_COMMAND,
    CONTAINER_NAME,
    CONTAINER_PORT_NAME,
    CONTAINER_RUN_AS_USER,
    CONTROLLER_NAME,
    IMAGE_ENV_VAR,
    KIND_SWXFLL,
    LABEL_CREATED_BY,
    LABEL_INSTANCE,
    LABEL_NAME,
    LABEL_PART_OF,
    LABEL_VERSION,
)
from ..errors import ConfigurationError

Lookup = Callable[[str], Optional[str]]

MANAGED_LABELS = (LABEL_NAME, LABEL_INSTANCE, LABEL_VERSION, LABEL_PART_OF, LABEL_CREATED_BY)

# Kubernetes label values: at most 63 chars, alphanumeric at both ends
_LABEL_VALUE_RE = re.compile(r"^[A-Za-z0-9]([-A-Za-z0-9_.]{0,61}[A-Za-z0-9])?$")


def resolve_image(lookup: Lookup = os.environ.get) -> str:
    """Resolve the operand image from the configuration source.

    Args:
        lookup: Key/value lookup returning None for a missing key

    Returns:
        The image reference

    Raises:
        ConfigurationError: If the image variable is unset or empty
    """
    image = lookup(IMAGE_ENV_VAR)
    if not image:
        raise ConfigurationError(f"Unable to find {IMAGE_ENV_VAR} environment variable with the image")
    return image


def parse_image_tag(image: str) -> str | None:
    """Extract the tag of an image reference.

    Registry ports and digests are not mistaken for tags. Returns None when
    no tag is present or the tag is not a valid label value.
    """
    reference = image.split("@", 1)[0]
    last_segment = reference.rsplit("/", 1)[-1]
    if ":" not in last_segment:
        return None
    tag = last_segment.rsplit(":", 1)[1]
    if not _LABEL_VALUE_RE.match(tag):
        return None
    return tag


def selector_labels_for(name: str) -> dict[str, str]:
    """Identity labels used by the Deployment selector.

    These never change for a given resource, since a Deployment selector is
    immutable once created.
    """
    return {
        LABEL_NAME: KIND_SWXFLL,
        LABEL_INSTANCE: name,
        LABEL_PART_OF: CONTROLLER_NAME,
        LABEL_CREATED_BY: "controller-manager",
    }


def labels_for(name: str, image: str) -> dict[str, str]:
    """Pod labels for a resource, including the image tag when parseable."""
    labels = selector_labels_for(name)
    tag = parse_image_tag(image)
    if tag:
        labels[LABEL_VERSION] = tag
    return labels


def owner_reference_for(body: dict[str, Any]) -> dict[str, Any]:
    """Controller owner reference pointing back at the Swxfll resource."""
    metadata = body.get("metadata", {})
    return {
        "apiVersion": body.get("apiVersion", API_GROUP_VERSION),
        "kind": body.get("kind", KIND_SWXFLL),
        "name": metadata["name"],
        "uid": metadata["uid"],
        "controller": True,
        "blockOwnerDeletion": True,
    }


def create_deployment_from_spec(body: dict[str, Any], image: str) -> dict[str, Any]:
    """Create the desired Deployment for a Swxfll resource.

    Args:
        body: Swxfll resource (metadata and spec are used)
        image: Resolved operand image

    Returns:
        Deployment manifest as a dict
    """
    metadata = body.get("metadata", {})
    spec = body.get("spec", {})
    name = metadata["name"]
    labels = labels_for(name, image)

    return {
        "apiVersion": "apps/v1",
        "kind": "Deployment",
        "metadata": {
            "name": name,
            "namespace": metadata["namespace"],
            "ownerReferences": [owner_reference_for(body)],
        },
        "spec": {
            "replicas": spec.get("size"),
            "selector": {"matchLabels": selector_labels_for(name)},
            "template": {
                "metadata": {"labels": labels},
                "spec": {
                    "securityContext": {
                        "runAsNonRoot": True,
                        "seccompProfile": {"type": "RuntimeDefault"},
                    },
                    "containers": [
                        {
                            "name": CONTAINER_NAME,
                            "image": image,
                            "imagePullPolicy": "IfNotPresent",
                            "securityContext": {
                                "runAsUser": CONTAINER_RUN_AS_USER,
                                "allowPrivilegeEscalation": False,
                                "capabilities": {"drop": ["ALL"]},
                            },
                            "ports": [
                                {
                                    "containerPort": spec.get("containerPort"),
                                    "name": CONTAINER_PORT_NAME,
                                }
                            ],
                            "command": list(CONTAINER_COMMAND),
                        }
                    ],
                },
            },
        },
    }


def desired_state(body: dict[str, Any], lookup: Lookup = os.environ.get) -> dict[str, Any]:
    """Resolve the image and build the desired Deployment.

    Raises:
        ConfigurationError: If the image cannot be resolved
    """
    return create_deployment_from_spec(body, resolve_image(lookup))


def _container(deployment: dict[str, Any]) -> dict[str, Any] | None:
    containers = deployment.get("spec", {}).get("template", {}).get("spec", {}).get("containers") or []
    for container in containers:
        if container.get("name") == CONTAINER_NAME:
            return container
    return None


def _container_port(container: dict[str, Any] | None) -> int | None:
    if container is None:
        return None
    ports = container.get("ports") or []
    for port in ports:
        if port.get("name") == CONTAINER_PORT_NAME:
            return port.get("containerPort")
    return None


def _managed_labels(deployment: dict[str, Any]) -> dict[str, str]:
    labels = deployment.get("spec", {}).get("template", {}).get("metadata", {}).get("labels") or {}
    return {key: value for key, value in labels.items() if key in MANAGED_LABELS}


def diff_deployment(observed: dict[str, Any], desired: dict[str, Any]) -> list[str]:
    """Compare the mutable fields owned by the operator.

    Returns:
        Names of the drifted fields, in a stable order; empty when converged
    """
    drifted = []

    if observed.get("spec", {}).get("replicas") != desired["spec"]["replicas"]:
        drifted.append("replicas")

    observed_container = _container(observed)
    desired_container = _container(desired)
    if observed_container is None or observed_container.get("image") != desired_container["image"]:
        drifted.append("image")
    if _container_port(observed_container) != _container_port(desired_container):
        drifted.append("containerPort")

    if _managed_labels(observed) != _managed_labels(desired):
        drifted.append("labels")

    return drifted


def merge_deployment(
    observed: dict[str, Any],
    desired: dict[str, Any],
    fields: list[str] | None = None,
) -> dict[str, Any]:
    """Merge the desired mutable fields over a copy of the observed Deployment.

    Metadata (including resourceVersion), status and anything else not
    owned by the operator is carried over unchanged.

    Args:
        observed: Deployment as read from the API
        desired: Deployment produced by create_deployment_from_spec
        fields: Fields to merge; defaults to diff_deployment(observed, desired)

    Returns:
        The Deployment to write back
    """
    if fields is None:
        fields = diff_deployment(observed, desired)

    merged = copy.deepcopy(observed)
    merged_spec = merged.setdefault("spec", {})
    template = merged_spec.setdefault("template", {})
    pod_spec = template.setdefault("spec", {})
    desired_container = _container(desired)

    if "replicas" in fields:
        merged_spec["replicas"] = desired["spec"]["replicas"]

    container = _container(merged)
    if container is None and ("image" in fields or "containerPort" in fields):
        pod_spec.setdefault("containers", []).append(copy.deepcopy(desired_container))
        container = _container(merged)

    if "image" in fields:
        container["image"] = desired_container["image"]

    if "containerPort" in fields:
        desired_port = desired_container["ports"][0]
        ports = container.setdefault("ports", [])
        for port in ports:
            if port.get("name") == CONTAINER_PORT_NAME:
                port["containerPort"] = desired_port["containerPort"]
                break
        else:
            ports.insert(0, copy.deepcopy(desired_port))

    if "labels" in fields:
        template_meta = template.setdefault("metadata", {})
        labels = {
            key: value
            for key, value in (template_meta.get("labels") or {}).items()
            if key not in MANAGED_LABELS
        }
        labels.update(desired["spec"]["template"]["metadata"]["labels"])
        template_meta["labels"] = labels

    return merged
