"""Swxfll Operator: reconciles Swxfll resources into managed Deployments."""

__version__ = "0.1.0"
