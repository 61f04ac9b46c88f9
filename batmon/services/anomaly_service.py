"""
Battery Anomaly Detection Service

Flags abrupt charge jumps, abrupt capacity jumps and state transitions
between consecutive measurements, with thresholds normalized to the actual
interval between the two samples.
"""

from datetime import timedelta
from typing import List, Sequence

from batmon.calculations import normalize_thresholds
from batmon.calculations.constants import DEFAULT_SAMPLE_INTERVAL_SECONDS
from batmon.models import Measurement
from batmon.utils.time_utils import elapsed_between, time_of_day


def _pair_interval(prev: Measurement, curr: Measurement) -> timedelta:
    """Elapsed time between two samples, or the default sampling interval if unknown."""
    elapsed = elapsed_between(prev.timestamp, curr.timestamp)
    if elapsed is None:
        return timedelta(seconds=DEFAULT_SAMPLE_INTERVAL_SECONDS)
    return elapsed


def detect_anomalies(measurements: Sequence[Measurement]) -> List[str]:
    """
    Describe every anomaly in a measurement history.

    Each consecutive pair is checked independently and can produce several
    entries: a charge rise or drop beyond the interval's charge threshold,
    any change of state, and a capacity change beyond the interval's
    capacity threshold. Pairs with unparseable timestamps are still checked,
    assuming the default 30-second interval.

    Args:
        measurements: Chronologically ascending history

    Returns:
        Human-readable descriptions, in the order of the pairs that raised them
    """
    anomalies = []

    for prev, curr in zip(measurements, measurements[1:]):
        interval = _pair_interval(prev, curr)
        minutes = interval.total_seconds() / 60
        stamp = time_of_day(curr.timestamp)
        charge_threshold, capacity_threshold = normalize_thresholds(interval)

        charge_diff = curr.percentage - prev.percentage
        if charge_diff > charge_threshold:
            anomalies.append(
                f"Sudden charge increase: {prev.percentage}% -> {curr.percentage}% "
                f"in {minutes:.1f} min ({stamp})"
            )
        if charge_diff < -charge_threshold:
            anomalies.append(
                f"Sudden charge drop: {prev.percentage}% -> {curr.percentage}% "
                f"in {minutes:.1f} min ({stamp})"
            )

        if prev.state != curr.state:
            anomalies.append(f"State change: {prev.state} -> {curr.state} ({stamp})")

        capacity_diff = abs(curr.current_capacity - prev.current_capacity)
        if capacity_diff > capacity_threshold:
            anomalies.append(
                f"Sudden capacity change: {prev.current_capacity} -> {curr.current_capacity} mAh "
                f"in {minutes:.1f} min ({stamp})"
            )

    return anomalies
