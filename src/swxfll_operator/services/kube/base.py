"""Store interface used by the reconcile loop."""

from __future__ import annotations

from typing import Any, Protocol


class Store(Protocol):
    """Protocol defining the API store operations the loop relies on.

    All methods raise ``ReconcileError`` subclasses: ``NotFoundError`` for a
    missing object, ``VersionConflictError`` for a stale write and
    ``StoreUnavailableError`` for anything else.
    """

    def get_parent(self, namespace: str, name: str) -> dict[str, Any]:
        """Fetch a Swxfll resource."""
        ...

    def update_parent(self, body: dict[str, Any]) -> dict[str, Any]:
        """Replace a Swxfll resource (metadata and spec, not status)."""
        ...

    def update_parent_status(self, body: dict[str, Any]) -> dict[str, Any]:
        """Replace the status subresource of a Swxfll resource."""
        ...

    def get_child(self, namespace: str, name: str) -> dict[str, Any]:
        """Fetch the managed Deployment."""
        ...

    def create_child(self, body: dict[str, Any]) -> dict[str, Any]:
        """Create the managed Deployment."""
        ...

    def update_child(self, body: dict[str, Any]) -> dict[str, Any]:
        """Replace the managed Deployment."""
        ...
