"""Utilities for emitting Kubernetes events."""

from __future__ import annotations

import logging
from typing import Any

import kopf

from ..constants import (
    EVENT_REASON_CONFIGURATION_MISSING,
    EVENT_REASON_DELETING,
    EVENT_REASON_DEPLOYMENT_CREATED,
    EVENT_REASON_DEPLOYMENT_UPDATED,
    EVENT_REASON_FINALIZER_REMOVED,
    EVENT_REASON_RECONCILE_FAILED,
    EVENT_REASON_RECONCILE_STARTED,
    EVENT_REASON_VALIDATE_FAILED,
)

logger = logging.getLogger(__name__)


def emit_event(
    body: dict[str, Any],
    reason: str,
    message: str,
    type_: str = "Normal",
) -> None:
    """Emit a Kubernetes event.

    Events are observability only: failures to post are logged and dropped.

    Args:
        body: Resource body (apiVersion, kind and metadata are used)
        reason: Event reason
        message: Event message
        type_: Event type (Normal or Warning)
    """
    try:
        kopf.event(
            body,
            reason=reason,
            message=message,
            type=type_,
        )
    except Exception as e:
        logger.warning(f"Failed to emit event {reason}: {e}")


def emit_reconcile_started(body: dict[str, Any]) -> None:
    """Emit reconcile started event."""
    emit_event(body, EVENT_REASON_RECONCILE_STARTED, "Reconciliation started")


def emit_reconcile_failed(body: dict[str, Any], message: str) -> None:
    """Emit reconcile failed event."""
    emit_event(body, EVENT_REASON_RECONCILE_FAILED, message, type_="Warning")


def emit_validate_failed(body: dict[str, Any], message: str) -> None:
    """Emit validation failed event."""
    emit_event(body, EVENT_REASON_VALIDATE_FAILED, message, type_="Warning")


def emit_configuration_missing(body: dict[str, Any], message: str) -> None:
    """Emit configuration missing event."""
    emit_event(body, EVENT_REASON_CONFIGURATION_MISSING, message, type_="Warning")


def emit_deployment_created(body: dict[str, Any], replicas: int) -> None:
    """Emit deployment created event."""
    name = body.get("metadata", {}).get("name")
    emit_event(body, EVENT_REASON_DEPLOYMENT_CREATED, f"Deployment {name} created with {replicas} replicas")


def emit_deployment_updated(body: dict[str, Any], fields: list[str]) -> None:
    """Emit deployment updated event."""
    name = body.get("metadata", {}).get("name")
    emit_event(body, EVENT_REASON_DEPLOYMENT_UPDATED, f"Deployment {name} updated: {', '.join(fields)}")


def emit_deleting(body: dict[str, Any]) -> None:
    """Emit deleting event for a resource entering finalization."""
    metadata = body.get("metadata", {})
    emit_event(
        body,
        EVENT_REASON_DELETING,
        f"Custom resource {metadata.get('name')} is being deleted from the namespace {metadata.get('namespace')}",
        type_="Warning",
    )


def emit_finalizer_removed(body: dict[str, Any]) -> None:
    """Emit finalizer removed event."""
    name = body.get("metadata", {}).get("name")
    emit_event(body, EVENT_REASON_FINALIZER_REMOVED, f"Finalizer removed from {name}")
