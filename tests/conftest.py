"""Pytest configuration and shared fixtures."""

import os
from datetime import UTC, datetime

import pytest

# Pin configuration BEFORE importing settings so a local .env cannot leak in
os.environ["TIMEZONE"] = "UTC"
os.environ["LOG_FORMAT"] = "text"
os.environ["ALARM_ENABLED"] = "false"

from glucometrics.config import settings  # noqa: E402, F401


@pytest.fixture
def t0() -> datetime:
    """Fixed UTC reference instant (a Monday at noon)."""
    return datetime(2024, 1, 15, 12, 0, tzinfo=UTC)
