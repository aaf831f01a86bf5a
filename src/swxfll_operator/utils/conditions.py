"""Utilities for managing Kubernetes conditions."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from ..constants import COND_AVAILABLE, COND_DEGRADED


def update_condition(
    conditions: list[dict[str, Any]],
    condition_type: str,
    status: str,
    reason: str,
    message: str,
    observed_generation: int | None = None,
) -> list[dict[str, Any]]:
    """Update or add a condition to the conditions list.

    At most one condition exists per type. The lastTransitionTime is only
    refreshed when the status value changes.

    Args:
        conditions: List of existing conditions
        condition_type: Type of condition
        status: Status of condition ("True", "False", "Unknown")
        reason: Reason for the condition
        message: Human-readable message
        observed_generation: Generation when condition was observed

    Returns:
        Updated list of conditions
    """
    now = datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")

    # Find existing condition
    existing_idx = None
    for idx, cond in enumerate(conditions):
        if cond.get("type") == condition_type:
            existing_idx = idx
            break

    new_condition = {
        "type": condition_type,
        "status": status,
        "reason": reason,
        "message": message,
        "lastTransitionTime": now,
    }

    if observed_generation is not None:
        new_condition["observedGeneration"] = observed_generation

    if existing_idx is not None:
        existing = conditions[existing_idx]
        # Only update lastTransitionTime if status changed
        if existing.get("status") == status:
            new_condition["lastTransitionTime"] = existing.get("lastTransitionTime", now)
        conditions[existing_idx] = new_condition
    else:
        conditions.append(new_condition)

    return conditions


def find_condition(conditions: list[dict[str, Any]], condition_type: str) -> dict[str, Any] | None:
    """Return the condition of the given type, if any."""
    for cond in conditions:
        if cond.get("type") == condition_type:
            return cond
    return None


def conditions_equal(left: list[dict[str, Any]], right: list[dict[str, Any]]) -> bool:
    """Compare two condition lists by type, ignoring transition times."""

    def _index(conditions: list[dict[str, Any]]) -> dict[str, tuple[Any, ...]]:
        return {
            cond.get("type"): (
                cond.get("status"),
                cond.get("reason"),
                cond.get("message"),
                cond.get("observedGeneration"),
            )
            for cond in conditions
        }

    return _index(left) == _index(right)


def set_available_condition(
    conditions: list[dict[str, Any]],
    status: str,
    reason: str,
    message: str,
    observed_generation: int | None = None,
) -> list[dict[str, Any]]:
    """Set the Available condition."""
    return update_condition(conditions, COND_AVAILABLE, status, reason, message, observed_generation)


def set_degraded_condition(
    conditions: list[dict[str, Any]],
    reason: str,
    message: str,
    observed_generation: int | None = None,
) -> list[dict[str, Any]]:
    """Set the Degraded condition."""
    return update_condition(conditions, COND_DEGRADED, "True", reason, message, observed_generation)
