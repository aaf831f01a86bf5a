"""Reconcile loop for the Swxfll CRD.

One pass walks ``Start -> EnsureStatusInitialized -> EnsureFinalizer ->
(Deletion | SteadyState) -> End``. Every status or metadata write is followed
by a fresh read so the next write carries a current resourceVersion. Failures
are raised as ``ReconcileError`` subclasses and retried by the scheduler; the
loop itself never retries.
"""

from __future__ import annotations

import copy
import os
from dataclasses import dataclass
from typing import Any, Callable

from .. import metrics
from ..builders.deployment import Lookup, desired_state, diff_deployment, merge_deployment
from ..constants import (
    KIND_SWXFLL,
    MAX_SIZE,
    MIN_SIZE,
    REASON_FINALIZING,
    REASON_RECONCILING,
    REASON_RESIZING,
)
from ..errors import ConfigurationError, FinalizerIncompleteError, NotFoundError, ReconcileError, ValidationError
from ..finalizers import FinalizerCleanup, FinalizerState, add_finalizer, finalizer_state, remove_finalizer
from ..services.kube.base import Store
from ..tracing import trace_span
from ..utils.conditions import conditions_equal, set_available_condition, set_degraded_condition
from ..utils.context import with_correlation_id
from ..utils.events import (
    emit_configuration_missing,
    emit_deployment_created,
    emit_deployment_updated,
    emit_finalizer_removed,
    emit_validate_failed,
)
from .base import BaseHandler


@dataclass(frozen=True)
class ReconcileResult:
    """Outcome of a successful pass.

    ``requeue_after`` asks the scheduler to run the pass again after the
    given number of seconds; None means the resource is settled until the
    next change notification.
    """

    requeue_after: float | None = None

    @property
    def settled(self) -> bool:
        return self.requeue_after is None


class SwxfllHandler(BaseHandler):
    """Handler for Swxfll resources."""

    def __init__(
        self,
        store: Store,
        lookup: Lookup = os.environ.get,
        cleanup: FinalizerCleanup | None = None,
        requeue_after_create: float = 60.0,
    ):
        """Initialize the Swxfll handler.

        Args:
            store: API store for the parent resource and its Deployment
            lookup: Configuration source used to resolve the operand image
            cleanup: Work to run before the finalizer is removed
            requeue_after_create: Delay before verifying a newly created Deployment
        """
        super().__init__(KIND_SWXFLL)
        self.store = store
        self.lookup = lookup
        self.cleanup = cleanup or FinalizerCleanup()
        self.requeue_after_create = requeue_after_create

    def reconcile(self, namespace: str, name: str) -> ReconcileResult:
        """Run one reconcile pass for a resource identity.

        Raises:
            ReconcileError: For any failure that should be retried
        """
        with with_correlation_id(), trace_span(
            "reconcile_swxfll", kind=KIND_SWXFLL, attributes={"swxfll.namespace": namespace, "swxfll.name": name}
        ):
            try:
                body = self.store.get_parent(namespace, name)
            except NotFoundError:
                self.log_info(
                    {"name": name, "namespace": namespace},
                    "Swxfll resource not found, ignoring since the object must be deleted",
                    reason="NotFound",
                )
                return ReconcileResult()

            return self.reconcile_with_metrics(body, lambda: self._reconcile(body))

    def _reconcile(self, body: dict[str, Any]) -> ReconcileResult:
        meta = body["metadata"]

        if not (body.get("status") or {}).get("conditions"):
            body = self._write_conditions(
                body,
                lambda conditions: set_available_condition(
                    conditions, "Unknown", REASON_RECONCILING, "Starting reconciliation",
                ),
            )

        state = finalizer_state(body)
        if state is FinalizerState.NO_FINALIZER:
            self.log_info(meta, "Adding finalizer", reason="FinalizerAdded")
            add_finalizer(body)
            self.store.update_parent(body)
            metrics.finalizer_operations_total.labels(operation="add", result="success").inc()
            body = self._refetch(body)
            state = finalizer_state(body)

        if state is FinalizerState.FINALIZING:
            self._finalize(body)
            return ReconcileResult()
        if state is FinalizerState.REMOVED:
            # Deleting, and our marker is already gone
            return ReconcileResult()

        return self._sync_deployment(body)

    def _refetch(self, body: dict[str, Any]) -> dict[str, Any]:
        meta = body["metadata"]
        return self.store.get_parent(meta["namespace"], meta["name"])

    def _write_conditions(
        self,
        body: dict[str, Any],
        mutate: Callable[[list[dict[str, Any]]], list[dict[str, Any]]],
    ) -> dict[str, Any]:
        """Apply a condition change, persist the status if it changed, and re-fetch.

        Args:
            body: Current resource body
            mutate: Callable taking and returning the conditions list

        Returns:
            The freshly fetched body, or the given body if nothing changed
        """
        status = dict(body.get("status") or {})
        current = status.get("conditions") or []
        updated = mutate(copy.deepcopy(current))
        if current and conditions_equal(current, updated):
            return body

        status["conditions"] = updated
        body = {**body, "status": status}
        self.store.update_parent_status(body)
        return self._refetch(body)

    def _finalize(self, body: dict[str, Any]) -> None:
        """Drive a deleting resource from Finalizing to Removed."""
        meta = body["metadata"]
        name = meta["name"]
        self.log_info(meta, "Performing finalizer operations before deleting the resource", reason="Finalizing")

        body = self._write_conditions(
            body,
            lambda conditions: set_available_condition(
                conditions, "Unknown", REASON_FINALIZING,
                f"Performing finalizer operations for the custom resource: {name}",
            ),
        )

        try:
            self.cleanup.run(body)
        except FinalizerIncompleteError as e:
            metrics.finalizer_operations_total.labels(operation="cleanup", result="failed").inc()
            self.log_error(meta, "Finalizer cleanup failed, keeping finalizer", error=e, reason="FinalizerIncomplete")
            raise
        metrics.finalizer_operations_total.labels(operation="cleanup", result="success").inc()

        # Degraded must be persisted before the marker goes away
        body = self._write_conditions(
            body,
            lambda conditions: set_degraded_condition(
                conditions, REASON_FINALIZING,
                f"Finalizer operations for custom resource {name} were successfully accomplished",
            ),
        )

        self.log_info(meta, "Removing finalizer after successfully performing the operations", reason="FinalizerRemoved")
        remove_finalizer(body)
        self.store.update_parent(body)
        metrics.finalizer_operations_total.labels(operation="remove", result="success").inc()
        emit_finalizer_removed(body)

    def _validate(self, body: dict[str, Any]) -> None:
        spec = body.get("spec") or {}
        size = spec.get("size")
        port = spec.get("containerPort")

        error_msg = None
        if not isinstance(size, int) or isinstance(size, bool) or not MIN_SIZE <= size <= MAX_SIZE:
            error_msg = f"spec.size must be an integer between {MIN_SIZE} and {MAX_SIZE}, got {size!r}"
        elif not isinstance(port, int) or isinstance(port, bool) or not 1 <= port <= 65535:
            error_msg = f"spec.containerPort must be a valid port number, got {port!r}"

        if error_msg:
            self.log_error(body["metadata"], error_msg, reason="ValidationFailed")
            emit_validate_failed(body, error_msg)
            raise ValidationError(error_msg)

    def _sync_deployment(self, body: dict[str, Any]) -> ReconcileResult:
        """Converge the managed Deployment toward the resource spec."""
        meta = body["metadata"]
        self._validate(body)

        try:
            desired = desired_state(body, self.lookup)
        except ConfigurationError as e:
            self.log_error(meta, "Failed to define new Deployment resource", error=e, reason="ConfigurationMissing")
            emit_configuration_missing(body, str(e))
            raise

        try:
            observed = self.store.get_child(meta["namespace"], meta["name"])
        except NotFoundError:
            observed = None

        replicas = desired["spec"]["replicas"]

        if observed is None:
            self.log_info(meta, "Creating a new Deployment", reason="DeploymentCreation", replicas=replicas)
            try:
                self.store.create_child(desired)
            except ReconcileError:
                metrics.deployment_operations_total.labels(operation="create", result="failed").inc()
                raise
            metrics.deployment_operations_total.labels(operation="create", result="success").inc()
            emit_deployment_created(body, replicas)
            return ReconcileResult(requeue_after=self.requeue_after_create)

        drifted = diff_deployment(observed, desired)
        if drifted:
            for field in drifted:
                metrics.drift_detected_total.labels(kind=KIND_SWXFLL, field=field).inc()
            self.log_info(meta, "Drift detected on Deployment", reason="DriftDetected", fields=drifted)
            try:
                self.store.update_child(merge_deployment(observed, desired, drifted))
            except ReconcileError as e:
                metrics.deployment_operations_total.labels(operation="update", result="failed").inc()
                self._record_update_failure(body, e)
                raise
            metrics.deployment_operations_total.labels(operation="update", result="success").inc()
            emit_deployment_updated(body, drifted)

        self._write_conditions(
            body,
            lambda conditions: set_available_condition(
                conditions, "True", REASON_RECONCILING,
                f"Deployment for custom resource ({meta['name']}) with {replicas} replicas reconciled successfully",
            ),
        )
        metrics.resource_status_total.labels(kind=self.kind, status="available").inc()
        return ReconcileResult()

    def _record_update_failure(self, body: dict[str, Any], error: ReconcileError) -> None:
        """Surface a failed Deployment update on the Available condition.

        The update error is what gets propagated; a failure here is only logged.
        """
        meta = body["metadata"]
        try:
            self._write_conditions(
                self._refetch(body),
                lambda conditions: set_available_condition(
                    conditions, "False", REASON_RESIZING,
                    f"Failed to update the Deployment for custom resource {meta['name']}: {error}",
                ),
            )
        except ReconcileError as e:
            self.log_warning(meta, "Failed to record Deployment update failure in status",
                             reason="StatusUpdateFailed", error=str(e))
