"""Tests for Prometheus metrics."""

from __future__ import annotations

import pytest
from prometheus_client import REGISTRY

from swxfll_operator.metrics import (
    api_call_duration_seconds,
    api_call_total,
    deployment_operations_total,
    drift_detected_total,
    error_total,
    finalizer_operations_total,
    reconcile_duration_seconds,
    reconcile_total,
    resource_status_total,
)


class TestMetricsExist:
    """Test that all expected metrics are defined."""

    @pytest.mark.parametrize(
        "metric, name",
        [
            # Prometheus counters don't include "_total" in their _name attribute
            (reconcile_total, "swxfll_operator_reconcile"),
            (reconcile_duration_seconds, "swxfll_operator_reconcile_duration_seconds"),
            (deployment_operations_total, "swxfll_operator_deployment_operations"),
            (drift_detected_total, "swxfll_operator_drift_detected"),
            (finalizer_operations_total, "swxfll_operator_finalizer_operations"),
            (api_call_total, "swxfll_operator_api_call"),
            (api_call_duration_seconds, "swxfll_operator_api_call_duration_seconds"),
            (error_total, "swxfll_operator_error"),
            (resource_status_total, "swxfll_operator_resource_status"),
        ],
    )
    def test_metric_name(self, metric, name):
        """Test metric names carry the operator prefix."""
        assert metric._name == name


class TestMetricLabels:
    """Test that metrics have correct labels."""

    def test_reconcile_total_labels(self):
        """Test reconcile_total has correct labels."""
        reconcile_total.labels(kind="Swxfll", result="success").inc(0)

    def test_deployment_operations_total_labels(self):
        """Test deployment_operations_total has correct labels."""
        deployment_operations_total.labels(operation="create", result="success").inc(0)
        deployment_operations_total.labels(operation="update", result="failed").inc(0)

    def test_drift_detected_total_labels(self):
        """Test drift_detected_total has correct labels."""
        drift_detected_total.labels(kind="Swxfll", field="replicas").inc(0)

    def test_finalizer_operations_total_labels(self):
        """Test finalizer_operations_total has correct labels."""
        finalizer_operations_total.labels(operation="remove", result="success").inc(0)

    def test_api_call_labels(self):
        """Test api_call_total and api_call_duration_seconds labels."""
        api_call_total.labels(api_type="k8s", operation="get_parent", result="success").inc(0)
        api_call_duration_seconds.labels(api_type="k8s", operation="get_parent").observe(0.05)

    def test_wrong_labels_rejected(self):
        """Test that a metric refuses labels it was not declared with."""
        with pytest.raises(ValueError):
            drift_detected_total.labels(kind="Swxfll", resource_type="lifecycle")


class TestMetricOperations:
    """Test metric operations."""

    def test_counter_increment(self):
        """Test that counters can be incremented."""
        initial = reconcile_total.labels(kind="TestCounter", result="test")._value.get()

        reconcile_total.labels(kind="TestCounter", result="test").inc()

        new_value = reconcile_total.labels(kind="TestCounter", result="test")._value.get()
        assert new_value == initial + 1

    def test_different_label_values_independent(self):
        """Test that metrics with different labels are independent."""
        deployment_operations_total.labels(operation="test1", result="success").inc(3)
        deployment_operations_total.labels(operation="test2", result="success").inc(5)

        value1 = deployment_operations_total.labels(operation="test1", result="success")._value.get()
        value2 = deployment_operations_total.labels(operation="test2", result="success")._value.get()
        assert value1 >= 3
        assert value2 >= 5

    def test_metrics_registered(self):
        """Test that metrics are exported by the default registry."""
        error_total.labels(kind="Swxfll", error_type="RegistryCheck").inc()

        value = REGISTRY.get_sample_value(
            "swxfll_operator_error_total", {"kind": "Swxfll", "error_type": "RegistryCheck"}
        )
        assert value is not None and value >= 1
