"""Kubernetes API store client."""

from .base import Store
from .client import KubeStore, create_kube_store
from .registry import ResourceRegistry, ResourceType, default_registry

__all__ = [
    "Store",
    "KubeStore",
    "create_kube_store",
    "ResourceRegistry",
    "ResourceType",
    "default_registry",
]
