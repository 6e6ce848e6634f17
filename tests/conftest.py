"""Shared test fixtures for the calendar assistant test suite."""

from __future__ import annotations

import os
from unittest.mock import AsyncMock, MagicMock

import pytest


def pytest_configure(config):
    """Set test environment variables BEFORE collection starts.

    This runs before any imports, so config.py won't fail on module load.
    """
    os.environ.setdefault("LINE_CHANNEL_ACCESS_TOKEN", "test-line-token-123")
    os.environ.setdefault("LINE_CHANNEL_SECRET", "test-line-secret-456")
    os.environ.setdefault("ANTHROPIC_API_KEY", "test-anthropic-key-789")
    os.environ.setdefault("GOOGLE_CALENDAR_ID", "team@group.calendar.google.com")
    os.environ.setdefault("TRIGGER_WORD", "@bot")
    os.environ.setdefault("METRICS_ENABLED", "false")


@pytest.fixture
def mock_http_response():
    """Factory fixture for creating mock httpx responses."""

    def _make(data: dict, status_code: int = 200):
        mock = MagicMock()
        mock.status_code = status_code
        mock.json.return_value = data
        mock.text = str(data)
        return mock

    return _make


@pytest.fixture
def mock_operations():
    """CalendarOperations stand-in with async create/list methods."""
    from calendar_assistant.calendar_ops import CreateResult, ListResult

    operations = MagicMock()
    operations.create_event = AsyncMock(return_value=CreateResult.ok({"id": "evt-1"}))
    operations.list_events = AsyncMock(return_value=ListResult.ok([]))
    return operations
