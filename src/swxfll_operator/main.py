"""Main entry point for the Swxfll Operator.

kopf is the scheduler here: it retries ``kopf.TemporaryError`` after the
requested delay and fires the drift timer. kopf serializes the change-driven
handlers of one object but runs its timer as a separate task, so every entry
point takes the object's lock from ``ObjectLocks`` before reconciling. All
reconciliation logic lives in ``SwxfllHandler``.
"""

from __future__ import annotations

import logging
from typing import Any

import kopf

from . import health
from . import logging as structured_logging
from .config import OperatorConfig
from .constants import API_GROUP_VERSION, KIND_SWXFLL
from .errors import ReconcileError
from .handlers.swxfll import SwxfllHandler
from .services.kube import create_kube_store, default_registry
from .tracing import initialize_tracing
from .utils.locks import ObjectLocks

logger = logging.getLogger(__name__)

CONFIG = OperatorConfig.from_env()

MAX_RETRY_DELAY = 300.0


@kopf.on.startup()
def configure(settings: kopf.OperatorSettings, memo: kopf.Memo, **_: Any) -> None:
    """Configure the operator."""
    # Set up structured JSON logging
    structured_logging.setup_structured_logging(CONFIG.log_level)
    initialize_tracing()

    # Use annotations for kopf bookkeeping so status stays owned by the handler
    settings.persistence.progress_storage = kopf.AnnotationsProgressStorage()
    settings.persistence.diffbase_storage = kopf.AnnotationsDiffBaseStorage()

    settings.posting.level = logging.WARNING
    settings.networking.request_timeout = CONFIG.request_timeout
    settings.execution.max_workers = CONFIG.max_workers

    store = create_kube_store(default_registry(), request_timeout=CONFIG.request_timeout)
    memo.swxfll_handler = SwxfllHandler(store, requeue_after_create=CONFIG.requeue_after_create)
    memo.swxfll_locks = ObjectLocks()

    # Start metrics HTTP server with health check endpoints
    health.start_health_server(CONFIG.metrics_port)
    health.set_ready()


@kopf.on.cleanup()
def shutdown(**_: Any) -> None:
    """Flip the readiness probe while the operator stops."""
    health.set_ready(False)


def run_reconcile(handler: SwxfllHandler, namespace: str, name: str, retry: int = 0) -> None:
    """Invoke one reconcile pass and translate its outcome for kopf.

    Failure delays grow exponentially with the retry count kopf reports,
    capped at MAX_RETRY_DELAY. A requested requeue uses its own delay.

    Raises:
        kopf.TemporaryError: On failure or when a requeue was requested
    """
    try:
        result = handler.reconcile(namespace, name)
    except ReconcileError as e:
        delay = min(e.retry_delay * (2 ** retry), MAX_RETRY_DELAY)
        raise kopf.TemporaryError(f"{type(e).__name__}: {e}", delay=delay) from e

    if not result.settled:
        raise kopf.TemporaryError(f"Requeue {namespace}/{name}", delay=result.requeue_after)


# Delay before kopf retries an exception that is not a TemporaryError
_BACKOFF = 60.0


@kopf.on.create(API_GROUP_VERSION, KIND_SWXFLL, backoff=_BACKOFF)
@kopf.on.update(API_GROUP_VERSION, KIND_SWXFLL, backoff=_BACKOFF)
@kopf.on.resume(API_GROUP_VERSION, KIND_SWXFLL, backoff=_BACKOFF)
@kopf.timer(
    API_GROUP_VERSION,
    KIND_SWXFLL,
    interval=CONFIG.drift_check_interval,
    initial_delay=CONFIG.drift_check_interval,
    backoff=_BACKOFF,
)
def handle_swxfll(name: str, namespace: str, memo: kopf.Memo, retry: int = 0, **_: Any) -> None:
    """Reconcile a Swxfll resource."""
    with memo.swxfll_locks.hold(namespace, name):
        run_reconcile(memo.swxfll_handler, namespace, name, retry)


# The timer makes kopf keep its own finalizer on every object, which is what
# delivers this handler. It is removed after this handler returns, so after ours.
@kopf.on.delete(API_GROUP_VERSION, KIND_SWXFLL, optional=True, backoff=_BACKOFF)
def handle_swxfll_delete(name: str, namespace: str, memo: kopf.Memo, retry: int = 0, **_: Any) -> None:
    """Run the finalizer lifecycle for a Swxfll resource being deleted."""
    with memo.swxfll_locks.hold(namespace, name):
        run_reconcile(memo.swxfll_handler, namespace, name, retry)


def main() -> None:
    """Run the operator."""
    if CONFIG.watch_namespace:
        kopf.run(namespaces=[CONFIG.watch_namespace])
    else:
        kopf.run(clusterwide=True)


if __name__ == "__main__":
    main()
