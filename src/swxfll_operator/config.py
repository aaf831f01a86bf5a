"""Operator configuration read from the environment."""

from __future__ import annotations

import os
from dataclasses import dataclass


@dataclass(frozen=True)
class OperatorConfig:
    """Process-wide, read-only settings resolved once at startup."""

    metrics_port: int = 8080
    drift_check_interval: float = 300.0
    requeue_after_create: float = 60.0
    request_timeout: float = 30.0
    max_workers: int = 4
    log_level: str = "INFO"
    watch_namespace: str | None = None

    @classmethod
    def from_env(cls) -> OperatorConfig:
        """Build the configuration from environment variables."""
        return cls(
            metrics_port=int(os.getenv("METRICS_PORT", "8080")),
            drift_check_interval=float(os.getenv("DRIFT_CHECK_INTERVAL_SECONDS", "300")),
            requeue_after_create=float(os.getenv("REQUEUE_AFTER_CREATE_SECONDS", "60")),
            request_timeout=float(os.getenv("K8S_REQUEST_TIMEOUT_SECONDS", "30")),
            max_workers=int(os.getenv("MAX_WORKERS", "4")),
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
            watch_namespace=os.getenv("WATCH_NAMESPACE") or None,
        )
