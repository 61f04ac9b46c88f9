"""
batmon - laptop battery health monitoring.

Usage:
    from batmon import analyze_battery_health, Measurement

    health = analyze_battery_health(history)
"""

__version__ = "1.0.0"

from batmon.calculations import (
    average_discharge_rate,
    normalize_thresholds,
    remaining_time,
    robust_average_discharge_rate,
    wear_percent,
)
from batmon.models import (
    AdvancedMetrics,
    ChargeCycle,
    HealthAnalysis,
    Measurement,
    ReportData,
    TrendAnalysis,
)
from batmon.services import (
    analyze_advanced_metrics,
    analyze_battery_health,
    analyze_capacity_trend,
    detect_anomalies,
    detect_charge_cycles,
    generate_report_data,
)

__all__ = [
    '__version__',
    # Records
    'Measurement',
    'ChargeCycle',
    'TrendAnalysis',
    'AdvancedMetrics',
    'HealthAnalysis',
    'ReportData',
    # Engine
    'average_discharge_rate',
    'robust_average_discharge_rate',
    'wear_percent',
    'remaining_time',
    'normalize_thresholds',
    'detect_anomalies',
    'analyze_capacity_trend',
    'detect_charge_cycles',
    'analyze_battery_health',
    'analyze_advanced_metrics',
    'generate_report_data',
]
