"""
Discharge Rate Calculations

Estimates how fast the battery loses capacity (mAh per hour) over the
trailing window of a measurement history:
- Naive estimator: every pair where capacity fell counts
- Robust estimator: rejects outlier pairs and stale or zero-length gaps
"""

from typing import List, Sequence, Tuple

from batmon.models import Measurement
from batmon.utils.time_utils import elapsed_between

from .constants import (
    MAX_RATE_INTERVAL_HOURS,
    OUTLIER_CAPACITY_JUMP_MAH,
    OUTLIER_PERCENT_JUMP,
)


def _window(measurements: Sequence[Measurement], window_size: int) -> List[Measurement]:
    """Last window_size + 1 samples (window_size intervals), clamped to what exists."""
    start = max(len(measurements) - window_size - 1, 0)
    return list(measurements[start:])


def average_discharge_rate(measurements: Sequence[Measurement], window_size: int) -> float:
    """
    Naive average discharge rate over the last window_size intervals.

    Pairs where current capacity rose or stayed flat are skipped entirely,
    as are pairs whose timestamps fail to parse. Only an exact zero total
    elapsed time is guarded against.

    Args:
        measurements: Chronologically ascending history
        window_size: Number of trailing intervals to consider

    Returns:
        Capacity lost per hour (mAh/h), or 0.0 if no pair qualifies

    Examples:
        >>> ms = [Measurement("2024-01-01T00:00:00Z", current_capacity=5000),
        ...       Measurement("2024-01-01T01:00:00Z", current_capacity=4500)]
        >>> average_discharge_rate(ms, 10)
        500.0
    """
    if len(measurements) < 2:
        return 0.0

    window = _window(measurements, window_size)
    total_diff = 0.0
    total_hours = 0.0

    for prev, curr in zip(window, window[1:]):
        diff = prev.current_capacity - curr.current_capacity
        if diff <= 0:
            continue
        elapsed = elapsed_between(prev.timestamp, curr.timestamp)
        if elapsed is None:
            continue
        total_diff += diff
        total_hours += elapsed.total_seconds() / 3600

    if total_hours == 0:
        return 0.0
    return total_diff / total_hours


def robust_average_discharge_rate(
    measurements: Sequence[Measurement],
    window_size: int
) -> Tuple[float, int]:
    """
    Average discharge rate with per-pair outlier rejection.

    A pair is skipped when the percentage moves by more than 20 points,
    the current capacity moves by more than 500 mAh, capacity did not
    fall, a timestamp fails to parse, or the gap is not in (0, 2] hours.

    Args:
        measurements: Chronologically ascending history
        window_size: Number of trailing intervals to consider

    Returns:
        (rate in mAh/h, number of intervals that passed every filter).
        A low interval count means a low-confidence rate.
    """
    if len(measurements) < 2:
        return 0.0, 0

    window = _window(measurements, window_size)
    total_diff = 0.0
    total_hours = 0.0
    valid_intervals = 0

    for prev, curr in zip(window, window[1:]):
        charge_diff = abs(curr.percentage - prev.percentage)
        capacity_diff = abs(curr.current_capacity - prev.current_capacity)
        if charge_diff > OUTLIER_PERCENT_JUMP or capacity_diff > OUTLIER_CAPACITY_JUMP_MAH:
            continue

        diff = prev.current_capacity - curr.current_capacity
        if diff <= 0:
            continue

        elapsed = elapsed_between(prev.timestamp, curr.timestamp)
        if elapsed is None:
            continue

        hours = elapsed.total_seconds() / 3600
        if hours <= 0 or hours > MAX_RATE_INTERVAL_HOURS:
            continue

        total_diff += diff
        total_hours += hours
        valid_intervals += 1

    if total_hours == 0:
        return 0.0, valid_intervals
    return total_diff / total_hours, valid_intervals
