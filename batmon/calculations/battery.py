"""
Battery-related Calculations

Small pure formulas over battery state:
- Wear percentage from design vs full-charge capacity
- Remaining runtime from capacity and discharge rate
- Current health as a percentage of design capacity
- Anomaly thresholds normalized to the sampling interval
"""

from datetime import timedelta
from typing import Tuple

from .constants import (
    BASE_CAPACITY_THRESHOLD_MAH,
    BASE_CHARGE_THRESHOLD,
    CHARGE_THRESHOLD_SCALE,
    MAX_CAPACITY_THRESHOLD_MAH,
    MAX_CHARGE_THRESHOLD,
    MIN_THRESHOLD_MINUTES,
)


def wear_percent(design_capacity: int, full_charge_capacity: int) -> float:
    """
    Percentage of design capacity the battery has lost.

    Args:
        design_capacity: Factory capacity in mAh
        full_charge_capacity: Capacity the battery holds today in mAh

    Returns:
        Wear percentage, or 0.0 when design capacity is zero

    Examples:
        >>> wear_percent(5000, 4500)
        10.0
        >>> wear_percent(0, 4500)
        0.0
    """
    if design_capacity == 0:
        return 0.0
    return (design_capacity - full_charge_capacity) / design_capacity * 100.0


def remaining_time(current_capacity: int, rate_mah_per_hour: float) -> timedelta:
    """
    Projected runtime at the given discharge rate.

    Args:
        current_capacity: Remaining charge in mAh
        rate_mah_per_hour: Discharge rate in mAh/h

    Returns:
        Remaining time, or zero when the rate is unknown or not positive
        (timedelta.max when a vanishing rate overflows)

    Examples:
        >>> remaining_time(3000, 1000.0)
        datetime.timedelta(seconds=10800)
        >>> remaining_time(3000, 0)
        datetime.timedelta(0)
    """
    if rate_mah_per_hour <= 0:
        return timedelta(0)
    try:
        return timedelta(hours=current_capacity / rate_mah_per_hour)
    except OverflowError:
        return timedelta.max


def capacity_health_percent(full_charge_capacity: int, design_capacity: int) -> float:
    """
    Full-charge capacity as a percentage of design capacity.

    Examples:
        >>> capacity_health_percent(4000, 5000)
        80.0
        >>> capacity_health_percent(4000, 0)
        0.0
    """
    if design_capacity == 0:
        return 0.0
    return full_charge_capacity / design_capacity * 100.0


def normalize_thresholds(interval: timedelta) -> Tuple[int, int]:
    """
    Scale anomaly thresholds to the interval between two samples.

    The base thresholds (20 points, 500 mAh) are calibrated for a 30-second
    interval and grow linearly with the interval in minutes (never below
    half a minute); the percentage threshold grows twice as fast.

    Args:
        interval: Elapsed time between the two samples

    Returns:
        (charge threshold in points capped at 50,
         capacity threshold in mAh capped at 2000)

    Examples:
        >>> normalize_thresholds(timedelta(minutes=1))
        (40, 500)
        >>> normalize_thresholds(timedelta(minutes=10))
        (50, 2000)
        >>> normalize_thresholds(timedelta(seconds=30))
        (20, 250)
    """
    minutes = interval.total_seconds() / 60
    if minutes < MIN_THRESHOLD_MINUTES:
        minutes = MIN_THRESHOLD_MINUTES

    charge_threshold = int(BASE_CHARGE_THRESHOLD * minutes * CHARGE_THRESHOLD_SCALE)
    capacity_threshold = int(BASE_CAPACITY_THRESHOLD_MAH * minutes)

    return (
        min(charge_threshold, MAX_CHARGE_THRESHOLD),
        min(capacity_threshold, MAX_CAPACITY_THRESHOLD_MAH),
    )
