"""Shared test fixtures."""

import pytest

from config import Settings


@pytest.fixture
def settings():
    """Test settings with a small window and no environment overrides."""
    return Settings(
        x_delta=10.0,
        emit_every=1,
        trend_min_points=3,
        log_level="WARNING",
    )
