"""Finalizer lifecycle for Swxfll resources.

A resource moves through ``NoFinalizer -> FinalizerPresent -> Finalizing ->
Removed``. The helpers here only edit a fetched body; persisting each step is
left to the reconcile loop, which re-fetches between writes.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Any, Callable, Iterable

from .constants import FINALIZER
from .errors import FinalizerIncompleteError
from .utils.events import emit_deleting

logger = logging.getLogger(__name__)

CleanupHook = Callable[[dict[str, Any]], None]


class FinalizerState(str, Enum):
    """Where a resource is in the finalizer lifecycle."""

    NO_FINALIZER = "NoFinalizer"
    FINALIZER_PRESENT = "FinalizerPresent"
    FINALIZING = "Finalizing"
    REMOVED = "Removed"


def is_being_deleted(body: dict[str, Any]) -> bool:
    """Whether the API server has set a deletion timestamp."""
    return body.get("metadata", {}).get("deletionTimestamp") is not None


def has_finalizer(body: dict[str, Any], finalizer: str = FINALIZER) -> bool:
    """Whether the marker is present on the resource."""
    return finalizer in (body.get("metadata", {}).get("finalizers") or [])


def finalizer_state(body: dict[str, Any] | None) -> FinalizerState:
    """Classify a fetched resource.

    None (the object no longer exists) and a deleting object without the
    marker are both ``REMOVED``: there is nothing left for the loop to do.
    """
    if body is None:
        return FinalizerState.REMOVED
    if is_being_deleted(body):
        return FinalizerState.FINALIZING if has_finalizer(body) else FinalizerState.REMOVED
    if has_finalizer(body):
        return FinalizerState.FINALIZER_PRESENT
    return FinalizerState.NO_FINALIZER


def add_finalizer(body: dict[str, Any], finalizer: str = FINALIZER) -> bool:
    """Add the marker in place.

    Returns:
        True if the body changed
    """
    metadata = body.setdefault("metadata", {})
    finalizers = list(metadata.get("finalizers") or [])
    if finalizer in finalizers:
        return False
    finalizers.append(finalizer)
    metadata["finalizers"] = finalizers
    return True


def remove_finalizer(body: dict[str, Any], finalizer: str = FINALIZER) -> bool:
    """Remove the marker in place, leaving other finalizers untouched.

    Returns:
        True if the body changed
    """
    metadata = body.setdefault("metadata", {})
    finalizers = list(metadata.get("finalizers") or [])
    if finalizer not in finalizers:
        return False
    finalizers.remove(finalizer)
    metadata["finalizers"] = finalizers
    return True


class FinalizerCleanup:
    """Work performed before the marker is removed from a deleting resource.

    The Deployment itself is not deleted here: its owner reference makes the
    API server cascade the deletion once the parent is gone. Hooks cover
    anything else, such as backups or resources not owned through an owner
    reference.
    """

    def __init__(self, hooks: Iterable[CleanupHook] = ()):
        self.hooks = list(hooks)

    def add_hook(self, hook: CleanupHook) -> None:
        """Register an extra cleanup step."""
        self.hooks.append(hook)

    def run(self, body: dict[str, Any]) -> None:
        """Run all cleanup steps for a resource.

        Raises:
            FinalizerIncompleteError: If any step fails; the marker must stay
        """
        emit_deleting(body)
        metadata = body.get("metadata", {})
        for hook in self.hooks:
            hook_name = getattr(hook, "__name__", type(hook).__name__)
            try:
                hook(body)
            except Exception as e:
                raise FinalizerIncompleteError(
                    f"Cleanup step {hook_name} failed for {metadata.get('namespace')}/{metadata.get('name')}: {e}"
                ) from e
            logger.debug(f"Cleanup step {hook_name} completed for {metadata.get('name')}")
