"""
Services module for batmon.

Analysis services turn a measurement history into health verdicts; the
storage, collector and scheduler services keep that history fed.
"""

from batmon.services.anomaly_service import detect_anomalies
from batmon.services.cycle_service import detect_charge_cycles
from batmon.services.health_service import (
    analyze_advanced_metrics,
    analyze_battery_health,
    generate_report_data,
)
from batmon.services.trend_service import analyze_capacity_trend
from batmon.services.storage_service import MeasurementStore, MemoryBuffer
from batmon.services.collector_service import DataCollector, next_interval

__all__ = [
    # Analysis
    'detect_anomalies',
    'detect_charge_cycles',
    'analyze_capacity_trend',
    'analyze_battery_health',
    'analyze_advanced_metrics',
    'generate_report_data',
    # Storage
    'MemoryBuffer',
    'MeasurementStore',
    # Collection
    'DataCollector',
    'next_interval',
]
