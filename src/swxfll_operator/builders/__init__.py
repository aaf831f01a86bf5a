"""Builders for resources managed by the Swxfll Operator."""

from .deployment import (
    create_deployment_from_spec,
    desired_state,
    diff_deployment,
    labels_for,
    merge_deployment,
    parse_image_tag,
    resolve_image,
)

__all__ = [
    "create_deployment_from_spec",
    "desired_state",
    "diff_deployment",
    "labels_for",
    "merge_deployment",
    "parse_image_tag",
    "resolve_image",
]
