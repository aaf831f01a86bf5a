"""Utility functions for the Swxfll Operator."""

from .conditions import (
    conditions_equal,
    find_condition,
    set_available_condition,
    set_degraded_condition,
    update_condition,
)
from .context import (
    get_context_dict,
    get_correlation_id,
    new_correlation_id,
    with_correlation_id,
)
from .events import emit_event

__all__ = [
    "update_condition",
    "find_condition",
    "conditions_equal",
    "set_available_condition",
    "set_degraded_condition",
    "emit_event",
    "new_correlation_id",
    "get_correlation_id",
    "with_correlation_id",
    "get_context_dict",
]
