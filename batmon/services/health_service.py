"""
Battery Health Service

Compose wear, anomalies, discharge rate, degradation trend and charge
cycles into a health status, a numeric score and recommendations, plus the
voltage/power metrics and the full report bundle handed to presentation.
"""

import logging
from datetime import datetime
from typing import List, Optional, Sequence, Tuple

from batmon.calculations import (
    average_discharge_rate,
    calculate_direction,
    calculate_mean,
    calculate_stability_percent,
    remaining_time,
    robust_average_discharge_rate,
    wear_percent,
)
from batmon.calculations.constants import (
    APPLE_STATUS_NORMAL_RATING,
    APPLE_STATUS_SERVICE_RATING,
    CALIBRATION_CYCLES,
    CALIBRATION_WEAR_PERCENT,
    DEFAULT_RATE_WINDOW,
    END_OF_LIFE_CYCLES,
    FAST_DEGRADATION_PCT_PER_MONTH,
    FAST_DEGRADATION_PENALTY,
    HEALTH_FALLBACK,
    HEALTH_RATING_CYCLES_PER_POINT,
    HEALTH_RATING_MAX_TEMPERATURE_C,
    HEALTH_RATING_MIN_VOLTAGE_STABILITY,
    HEALTH_RATING_WEAR_WEIGHT,
    HEALTH_TABLE,
    HEALTHY_DEGRADATION_PCT_PER_MONTH,
    HIGH_DISCHARGE_RATE_MAH,
    HIGH_TEMPERATURE_C,
    POWER_EFFICIENCY_DIVISOR,
    POWER_SETTINGS_ANOMALY_COUNT,
    REPLACE_WEAR_PERCENT,
    UNSTABLE_ANOMALY_COUNT,
    UNSTABLE_PENALTY,
    WARM_TEMPERATURE_C,
)
from batmon.exceptions import InsufficientDataError
from batmon.models import AdvancedMetrics, HealthAnalysis, Measurement, ReportData, TrendAnalysis
from batmon.services.anomaly_service import detect_anomalies
from batmon.services.cycle_service import detect_charge_cycles
from batmon.services.trend_service import analyze_capacity_trend
from batmon.utils.time_utils import utc_now
from batmon.utils.wide_events import track_operation

logger = logging.getLogger(__name__)


def classify_health(wear: float, cycle_count: int) -> Tuple[str, int]:
    """
    Base health status and score from wear and cycle count.

    Evaluated top to bottom, first row where both wear and cycles are
    below the row's limits wins.

    Examples:
        >>> classify_health(3.0, 100)
        ('Excellent', 95)
        >>> classify_health(25.0, 1500)
        ('Poor', 30)
    """
    for max_wear, max_cycles, status, score in HEALTH_TABLE:
        if wear < max_wear and cycle_count < max_cycles:
            return status, score
    return HEALTH_FALLBACK


def apply_adjustments(
    status: str,
    score: int,
    anomaly_count: int,
    trend: TrendAnalysis
) -> Tuple[str, int]:
    """Penalize unstable operation and fast degradation."""
    if anomaly_count > UNSTABLE_ANOMALY_COUNT:
        score -= UNSTABLE_PENALTY
        status += " (unstable)"

    if not trend.is_healthy and trend.degradation_rate < FAST_DEGRADATION_PCT_PER_MONTH:
        score -= FAST_DEGRADATION_PENALTY
        status += " (fast degradation)"

    return status, score


def build_recommendations(
    latest: Measurement,
    wear: float,
    anomaly_count: int,
    discharge_rate: float,
    trend: TrendAnalysis
) -> List[str]:
    """
    Independent advice rules; any subset can fire.

    The order of the returned list is the display order.
    """
    recommendations = []

    if wear > REPLACE_WEAR_PERCENT:
        recommendations.append("Consider replacing the battery")

    if anomaly_count > POWER_SETTINGS_ANOMALY_COUNT:
        recommendations.append("Check power-saving settings")

    if latest.cycle_count > END_OF_LIFE_CYCLES:
        recommendations.append("Battery is nearing the end of its life cycle")

    if discharge_rate > HIGH_DISCHARGE_RATE_MAH:
        recommendations.append("High power consumption - close resource-heavy applications")

    if latest.temperature > HIGH_TEMPERATURE_C:
        recommendations.append(f"High battery temperature ({latest.temperature}°C) - avoid heavy load")
    elif latest.temperature > WARM_TEMPERATURE_C:
        recommendations.append("Elevated battery temperature - consider improving cooling")

    if not trend.is_healthy and trend.degradation_rate < HEALTHY_DEGRADATION_PCT_PER_MONTH:
        recommendations.append(
            f"Fast battery degradation ({-trend.degradation_rate:.2f}% per month) - check usage conditions"
        )

    if latest.state == "charging" and latest.percentage == 100:
        recommendations.append("Don't keep the battery at 100% charge all the time")

    if wear > CALIBRATION_WEAR_PERCENT and latest.cycle_count > CALIBRATION_CYCLES:
        recommendations.append("Consider calibrating the battery (full discharge and charge)")

    return recommendations


def analyze_battery_health(
    measurements: Sequence[Measurement],
    now: Optional[datetime] = None
) -> Optional[HealthAnalysis]:
    """
    Overall battery health assessment.

    Wear and cycle count come from the latest sample; anomalies, the robust
    discharge rate (window of 10), the capacity trend and charge cycles are
    computed over the whole history.

    Args:
        measurements: Chronologically ascending history
        now: Reference time for the trend window (defaults to current UTC time)

    Returns:
        HealthAnalysis, or None for an empty history
    """
    if not measurements:
        return None

    latest = measurements[-1]
    wear = wear_percent(latest.design_capacity, latest.full_charge_capacity)
    anomalies = detect_anomalies(measurements)
    discharge_rate, valid_intervals = robust_average_discharge_rate(measurements, DEFAULT_RATE_WINDOW)
    trend = analyze_capacity_trend(measurements, now=now)
    cycles = detect_charge_cycles(measurements)

    status, score = classify_health(wear, latest.cycle_count)
    status, score = apply_adjustments(status, score, len(anomalies), trend)

    return HealthAnalysis(
        wear_percent=wear,
        cycle_count=latest.cycle_count,
        health_status=status,
        health_score=score,
        discharge_rate=discharge_rate,
        valid_intervals=valid_intervals,
        trend=trend,
        anomalies=anomalies,
        charge_cycles=cycles,
        recommendations=build_recommendations(latest, wear, len(anomalies), discharge_rate, trend),
    )


def calculate_health_rating(latest: Measurement, voltage_stability: Optional[float]) -> int:
    """
    0-100 rating from wear, cycles, temperature and voltage stability.

    Starts at 100 and loses half a point per wear percent, one point per 10
    cycles, one point per degree above 45°C and one point per percent of
    voltage stability below 95. The stability penalty applies only when
    voltage was sampled; a history without voltage readings is not
    penalized as if its stability were zero.
    """
    rating = 100

    if latest.design_capacity > 0:
        rating -= int(wear_percent(latest.design_capacity, latest.full_charge_capacity) * HEALTH_RATING_WEAR_WEIGHT)

    rating -= latest.cycle_count // HEALTH_RATING_CYCLES_PER_POINT

    if latest.temperature > HEALTH_RATING_MAX_TEMPERATURE_C:
        rating -= latest.temperature - HEALTH_RATING_MAX_TEMPERATURE_C

    if voltage_stability is not None and voltage_stability < HEALTH_RATING_MIN_VOLTAGE_STABILITY:
        rating -= int(HEALTH_RATING_MIN_VOLTAGE_STABILITY - voltage_stability)

    return max(0, min(100, rating))


def derive_apple_status(condition_label: str, health_rating: int) -> str:
    """Firmware condition label if present, otherwise one derived from the rating."""
    if condition_label:
        return condition_label
    if health_rating >= APPLE_STATUS_NORMAL_RATING:
        return "Normal"
    if health_rating >= APPLE_STATUS_SERVICE_RATING:
        return "Service Recommended"
    return "Replace Soon"


def analyze_advanced_metrics(measurements: Sequence[Measurement]) -> AdvancedMetrics:
    """
    Voltage stability, power efficiency, charging efficiency, power trend
    and an overall health rating.

    Only samples that actually carry voltage or power data contribute.

    Args:
        measurements: Chronologically ascending history

    Returns:
        AdvancedMetrics (all zero for an empty history)
    """
    if not measurements:
        return AdvancedMetrics()

    latest = measurements[-1]
    voltages = [float(m.voltage) for m in measurements if m.voltage > 0]
    powers = [float(m.power) for m in measurements if m.power != 0]
    charging_ratios = [
        m.current_capacity / m.power
        for m in measurements
        if m.power > 0 and m.current_capacity > 0
    ]

    voltage_stability = calculate_stability_percent(voltages)

    power_efficiency = 0.0
    avg_power = calculate_mean([abs(p) for p in powers])
    if avg_power:
        power_efficiency = max(0.0, 100 - avg_power / POWER_EFFICIENCY_DIVISOR)

    health_rating = calculate_health_rating(latest, voltage_stability)

    return AdvancedMetrics(
        power_efficiency=power_efficiency,
        voltage_stability=voltage_stability or 0.0,
        charging_efficiency=calculate_mean(charging_ratios) or 0.0,
        power_trend=calculate_direction(powers),
        health_rating=health_rating,
        apple_status=derive_apple_status(latest.apple_condition_label, health_rating),
    )


def generate_report_data(
    measurements: Sequence[Measurement],
    version: str,
    now: Optional[datetime] = None
) -> ReportData:
    """
    Bundle every analysis result for a report.

    Args:
        measurements: Chronologically ascending history
        version: Application version shown in the report
        now: Report time (defaults to current UTC time)

    Returns:
        ReportData

    Raises:
        InsufficientDataError: If the history is empty
    """
    if not measurements:
        raise InsufficientDataError("No measurements to report on", required=1, available=0)

    now = now or utc_now()
    latest = measurements[-1]

    with track_operation("report_build", samples=len(measurements)) as event:
        with event.timer("analysis"):
            health = analyze_battery_health(measurements, now=now)
            average_rate = average_discharge_rate(measurements, DEFAULT_RATE_WINDOW)
            robust_rate, valid_intervals = robust_average_discharge_rate(measurements, DEFAULT_RATE_WINDOW)
            advanced = analyze_advanced_metrics(measurements)

        event.add_business_metric("health_score", health.health_score)
        event.add_business_metric("anomaly_count", health.anomaly_count)
        event.add_business_metric("robust_rate_mah", round(robust_rate, 1))
        event.add_business_metric("valid_intervals", valid_intervals)

    if valid_intervals < 3:
        logger.info(f"Discharge rate based on only {valid_intervals} valid intervals")

    return ReportData(
        generated_at=now,
        version=version,
        latest=latest,
        measurements=list(measurements),
        health=health,
        average_rate=average_rate,
        robust_rate=robust_rate,
        valid_intervals=valid_intervals,
        remaining_time=remaining_time(latest.current_capacity, robust_rate),
        trend=health.trend,
        advanced_metrics=advanced,
    )
