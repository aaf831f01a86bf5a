"""Error taxonomy for Swxfll reconciliation.

Every failure raised out of a reconcile pass is a ``ReconcileError``. The
scheduler wiring turns it into a ``kopf.TemporaryError`` using ``retry_delay``,
so no single failure ever stops the operator.
"""

from __future__ import annotations


class ReconcileError(Exception):
    """Base class for retryable reconciliation failures."""

    retry_delay: float = 10.0

    def __init__(self, message: str, retry_delay: float | None = None):
        super().__init__(message)
        if retry_delay is not None:
            self.retry_delay = retry_delay


class NotFoundError(ReconcileError):
    """The requested object does not exist in the API store."""


class VersionConflictError(ReconcileError):
    """A write was rejected because the local copy is stale."""

    retry_delay = 1.0


class StoreUnavailableError(ReconcileError):
    """The API store could not be reached or returned an unexpected error."""

    def __init__(self, message: str, status: int | None = None, retry_delay: float | None = None):
        super().__init__(message, retry_delay)
        self.status = status


class ConfigurationError(ReconcileError):
    """A required external configuration value could not be resolved."""

    retry_delay = 30.0


class FinalizerIncompleteError(ReconcileError):
    """Cleanup before finalizer removal did not complete."""

    retry_delay = 15.0


class ValidationError(ReconcileError):
    """The resource spec is outside the accepted bounds."""

    retry_delay = 60.0
