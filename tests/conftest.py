"""
Pytest fixtures for batmon tests.
"""

from datetime import datetime, timezone

import pytest

from batmon.database import init_db
from batmon.models import Measurement
from batmon.services.storage_service import MeasurementStore, MemoryBuffer
from factories import build_series, ts


@pytest.fixture
def session_factory():
    """Session factory bound to a fresh in-memory SQLite database."""
    return init_db("sqlite://")


@pytest.fixture
def store(session_factory):
    """MeasurementStore over the in-memory database."""
    return MeasurementStore(session_factory)


@pytest.fixture
def buffer():
    """Small memory buffer so trimming is easy to exercise."""
    return MemoryBuffer(max_size=8)


@pytest.fixture
def discharging_history():
    """Ten minutes of steady discharge at one sample per minute (600 mAh/h)."""
    return build_series(11, step_seconds=60, capacity_step=-10)


@pytest.fixture
def degrading_history():
    """
    11 samples over 40 days, full-charge capacity 5000 -> 4850 mAh.

    Capacity falls 15 mAh every 4 days against a constant 5200 mAh design.
    """
    base = datetime(2024, 1, 1, tzinfo=timezone.utc)
    return [
        Measurement(
            timestamp=ts(i * 4 * 86400, base),
            percentage=90,
            state="discharging",
            full_charge_capacity=5000 - i * 15,
            design_capacity=5200,
            current_capacity=4000,
            cycle_count=200,
        )
        for i in range(11)
    ]


@pytest.fixture
def degrading_history_now():
    """Reference time one minute after the last degrading sample."""
    return datetime(2024, 2, 10, 0, 1, tzinfo=timezone.utc)
