"""Tests for the finalizer lifecycle helpers."""

from __future__ import annotations

from unittest.mock import Mock, patch

import pytest

from fakes import make_swxfll
from swxfll_operator.constants import FINALIZER
from swxfll_operator.errors import FinalizerIncompleteError
from swxfll_operator.finalizers import (
    FinalizerCleanup,
    FinalizerState,
    add_finalizer,
    finalizer_state,
    has_finalizer,
    is_being_deleted,
    remove_finalizer,
)


class TestFinalizerHelpers:
    """Test cases for finalizer helpers."""

    def test_add_finalizer_when_missing(self):
        """Test that the finalizer is added when not present."""
        body = make_swxfll()

        assert add_finalizer(body) is True
        assert body["metadata"]["finalizers"] == [FINALIZER]

    def test_add_finalizer_no_duplicate(self):
        """Test that the finalizer is not duplicated."""
        body = make_swxfll(finalizers=[FINALIZER, "other-finalizer"])

        assert add_finalizer(body) is False
        assert body["metadata"]["finalizers"].count(FINALIZER) == 1

    def test_remove_finalizer_keeps_others(self):
        """Test that only our finalizer is removed."""
        body = make_swxfll(finalizers=["other-finalizer", FINALIZER])

        assert remove_finalizer(body) is True
        assert body["metadata"]["finalizers"] == ["other-finalizer"]

    def test_remove_finalizer_leaves_empty_list(self):
        """Test removing the last finalizer."""
        body = make_swxfll(finalizers=[FINALIZER])

        remove_finalizer(body)

        assert body["metadata"]["finalizers"] == []

    def test_remove_finalizer_absent(self):
        """Test that removing an absent finalizer reports no change."""
        body = make_swxfll(finalizers=["other-finalizer"])

        assert remove_finalizer(body) is False
        assert body["metadata"]["finalizers"] == ["other-finalizer"]

    def test_is_being_deleted(self):
        """Test deletion timestamp detection."""
        assert not is_being_deleted(make_swxfll())
        assert is_being_deleted(make_swxfll(deletionTimestamp="2024-01-01T00:00:00Z"))

    def test_has_finalizer_with_null_list(self):
        """Test a body whose finalizers field is null."""
        assert not has_finalizer(make_swxfll(finalizers=None))

    @pytest.mark.parametrize(
        "body, expected",
        [
            (None, FinalizerState.REMOVED),
            (make_swxfll(), FinalizerState.NO_FINALIZER),
            (make_swxfll(finalizers=[FINALIZER]), FinalizerState.FINALIZER_PRESENT),
            (
                make_swxfll(finalizers=[FINALIZER], deletionTimestamp="2024-01-01T00:00:00Z"),
                FinalizerState.FINALIZING,
            ),
            (
                make_swxfll(finalizers=["other"], deletionTimestamp="2024-01-01T00:00:00Z"),
                FinalizerState.REMOVED,
            ),
        ],
    )
    def test_finalizer_state(self, body, expected):
        """Test lifecycle state classification."""
        assert finalizer_state(body) == expected


class TestFinalizerCleanup:
    """Test cases for FinalizerCleanup."""

    @patch("swxfll_operator.finalizers.emit_deleting")
    def test_run_emits_deleting_event(self, mock_emit):
        """Test that cleanup always emits an auditable event."""
        body = make_swxfll()

        FinalizerCleanup().run(body)

        mock_emit.assert_called_once_with(body)

    def test_run_calls_hooks_in_order(self):
        """Test that registered hooks run in registration order."""
        calls = []
        cleanup = FinalizerCleanup([lambda body: calls.append("first")])
        cleanup.add_hook(lambda body: calls.append("second"))

        cleanup.run(make_swxfll())

        assert calls == ["first", "second"]

    def test_run_hook_failure_raises_incomplete(self):
        """Test that a failing hook aborts cleanup with FinalizerIncompleteError."""
        never_called = Mock()

        def backup(body):
            raise RuntimeError("backup failed")

        cleanup = FinalizerCleanup([backup, never_called])

        with pytest.raises(FinalizerIncompleteError) as exc_info:
            cleanup.run(make_swxfll())

        assert "backup failed" in str(exc_info.value)
        assert "default/sample" in str(exc_info.value)
        assert isinstance(exc_info.value.__cause__, RuntimeError)
        never_called.assert_not_called()
