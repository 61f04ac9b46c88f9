"""
Statistical Calculations

Helpers for the voltage, power and charging metrics:
- Means over sparse samples
- Stability as one minus the coefficient of variation
- Direction of the most recent readings
"""

import statistics as stats_module
from typing import List, Optional

RISING = "rising consumption"
FALLING = "falling consumption"
STABLE = "stable"


def calculate_mean(values: List[float]) -> Optional[float]:
    """
    Arithmetic mean, or None for an empty list.

    Examples:
        >>> calculate_mean([1, 2, 3])
        2.0
        >>> calculate_mean([]) is None
        True
    """
    if not values:
        return None
    return float(stats_module.fmean(values))


def calculate_stability_percent(values: List[float]) -> Optional[float]:
    """
    Stability of a series as 100 * (1 - population std dev / mean).

    A perfectly flat series scores 100.

    Args:
        values: Readings, at least two

    Returns:
        Stability percentage, or None if there are fewer than two values
        or the mean is not positive

    Examples:
        >>> calculate_stability_percent([12000, 12000, 12000])
        100.0
        >>> round(calculate_stability_percent([11000, 13000]), 2)
        91.67
    """
    if len(values) < 2:
        return None

    mean = stats_module.fmean(values)
    if mean <= 0:
        return None

    std_dev = stats_module.pstdev(values)
    return 100 * (1 - std_dev / mean)


def calculate_direction(values: List[float]) -> str:
    """
    Direction of the last three readings.

    Examples:
        >>> calculate_direction([1, 2, 3])
        'rising consumption'
        >>> calculate_direction([3, 2, 1])
        'falling consumption'
        >>> calculate_direction([1, 3, 2])
        'stable'
        >>> calculate_direction([1, 2])
        ''
    """
    if len(values) < 3:
        return ""

    first, middle, last = values[-3:]
    if last > middle > first:
        return RISING
    if last < middle < first:
        return FALLING
    return STABLE
