"""Shared fixtures for unit tests."""

from __future__ import annotations

from unittest.mock import MagicMock

import pytest

from fakes import FakeStore


@pytest.fixture
def fake_store() -> FakeStore:
    """Empty in-memory store."""
    return FakeStore()


@pytest.fixture
def image_lookup():
    """Configuration source that resolves the operand image."""
    return {"SWXFLL_IMAGE": "docker.io/swxfll/swxfll:1.4.36-alpine"}.get


@pytest.fixture(autouse=True)
def silence_events(monkeypatch: pytest.MonkeyPatch) -> MagicMock:
    """Keep kopf from posting events outside a running operator."""
    mock_event = MagicMock()
    monkeypatch.setattr("swxfll_operator.utils.events.kopf.event", mock_event)
    return mock_event
