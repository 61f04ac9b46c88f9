"""
batmon Calculation Module

Pure calculation utilities for discharge rates, wear, remaining time,
anomaly thresholds and the statistics behind the advanced metrics.

Usage:
    from batmon.calculations import robust_average_discharge_rate, wear_percent
    from batmon.calculations.constants import HEALTH_TABLE
"""

# Discharge rates
from .rates import (
    average_discharge_rate,
    robust_average_discharge_rate,
)

# Battery formulas
from .battery import (
    capacity_health_percent,
    normalize_thresholds,
    remaining_time,
    wear_percent,
)

# Statistics
from .statistics import (
    calculate_direction,
    calculate_mean,
    calculate_stability_percent,
)

__all__ = [
    # Rates
    "average_discharge_rate",
    "robust_average_discharge_rate",
    # Battery
    "wear_percent",
    "remaining_time",
    "capacity_health_percent",
    "normalize_thresholds",
    # Statistics
    "calculate_mean",
    "calculate_stability_percent",
    "calculate_direction",
]
