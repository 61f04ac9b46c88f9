"""
Battery Degradation Trend Service

Estimate how fast full-charge capacity is fading and how long until the
battery reaches 80% of its design capacity.
"""

from datetime import datetime, timedelta
from typing import List, Optional, Sequence, Tuple

from batmon.calculations import capacity_health_percent
from batmon.calculations.constants import (
    DAYS_PER_MONTH,
    END_OF_LIFE_CAPACITY_PERCENT,
    HEALTHY_DEGRADATION_PCT_PER_MONTH,
    MIN_TREND_CAPACITY_SAMPLES,
    MIN_TREND_SAMPLES,
    MIN_TREND_SPAN_DAYS,
    TREND_WINDOW_DAYS,
)
from batmon.models import Measurement, TrendAnalysis
from batmon.utils.time_utils import parse_timestamp, utc_now


def get_capacity_history(
    measurements: Sequence[Measurement],
    now: datetime
) -> List[Tuple[datetime, Measurement]]:
    """
    Samples from the last 30 days that carry capacity data.

    Returns: List of (parsed timestamp, measurement), ascending
    """
    cutoff = now - timedelta(days=TREND_WINDOW_DAYS)
    history = []
    for m in measurements:
        ts = parse_timestamp(m.timestamp)
        if ts is None:
            continue
        if ts > cutoff and m.full_charge_capacity > 0 and m.design_capacity > 0:
            history.append((ts, m))
    return history


def project_days_to_end_of_life(current_health_percent: float, monthly_percent: float) -> int:
    """
    Days until capacity reaches 80% of design at the current monthly rate.

    Only meaningful while degrading and still above 80%; returns 0 otherwise.

    Examples:
        >>> project_days_to_end_of_life(90.0, -1.0)
        300
        >>> project_days_to_end_of_life(79.0, -1.0)
        0
    """
    if monthly_percent >= 0 or current_health_percent <= END_OF_LIFE_CAPACITY_PERCENT:
        return 0
    months = (current_health_percent - END_OF_LIFE_CAPACITY_PERCENT) / (-monthly_percent)
    return int(months * DAYS_PER_MONTH)


def analyze_capacity_trend(
    measurements: Sequence[Measurement],
    now: Optional[datetime] = None
) -> TrendAnalysis:
    """
    Monthly degradation rate and projected days to 80% capacity.

    The rate is a two-point slope between the first and last qualifying
    samples of the 30-day window, scaled to a 30-day month and expressed as
    a percentage of design capacity. Insufficient evidence (fewer than 10
    samples, fewer than 5 with capacity data, or under 7 days of span) is
    reported as healthy.

    Args:
        measurements: Chronologically ascending history
        now: Reference time for the 30-day window (defaults to current UTC time)

    Returns:
        TrendAnalysis
    """
    if len(measurements) < MIN_TREND_SAMPLES:
        return TrendAnalysis(is_healthy=True)

    history = get_capacity_history(measurements, now or utc_now())
    if len(history) < MIN_TREND_CAPACITY_SAMPLES:
        return TrendAnalysis(is_healthy=True)

    first_time, first = history[0]
    last_time, last = history[-1]

    days_span = (last_time - first_time).total_seconds() / 86400
    if days_span < MIN_TREND_SPAN_DAYS:
        return TrendAnalysis(is_healthy=True)

    daily_delta = (last.full_charge_capacity - first.full_charge_capacity) / days_span
    monthly_percent = daily_delta * DAYS_PER_MONTH / last.design_capacity * 100

    current_health = capacity_health_percent(last.full_charge_capacity, last.design_capacity)

    return TrendAnalysis(
        degradation_rate=monthly_percent,
        projected_days=project_days_to_end_of_life(current_health, monthly_percent),
        is_healthy=monthly_percent > HEALTHY_DEGRADATION_PCT_PER_MONTH,
    )
