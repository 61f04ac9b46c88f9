"""
Calculation Constants for batmon

Centralized location for every numeric cutoff used by the analysis engine.
These are fixed: health scores and recommendations must be reproducible
for the same history, so none of them are read from the environment.
"""

# Rate estimation
DEFAULT_RATE_WINDOW = 10  # Trailing intervals considered by the rate estimators
OUTLIER_PERCENT_JUMP = 20  # |Δpercentage| above this marks a pair as an outlier
OUTLIER_CAPACITY_JUMP_MAH = 500  # |ΔcurrentCapacity| above this marks a pair as an outlier
MAX_RATE_INTERVAL_HOURS = 2.0  # Longer gaps are stale or clock jumps

# Anomaly thresholds (calibrated for a 30-second sampling interval)
DEFAULT_SAMPLE_INTERVAL_SECONDS = 30  # Assumed when timestamps cannot be parsed
BASE_CHARGE_THRESHOLD = 20  # Percentage points
BASE_CAPACITY_THRESHOLD_MAH = 500
MIN_THRESHOLD_MINUTES = 0.5
CHARGE_THRESHOLD_SCALE = 2  # Percentage tolerance grows twice as fast as capacity
MAX_CHARGE_THRESHOLD = 50
MAX_CAPACITY_THRESHOLD_MAH = 2000

# Trend analysis
MIN_TREND_SAMPLES = 10
MIN_TREND_CAPACITY_SAMPLES = 5
TREND_WINDOW_DAYS = 30
MIN_TREND_SPAN_DAYS = 7
DAYS_PER_MONTH = 30
HEALTHY_DEGRADATION_PCT_PER_MONTH = -0.5  # Losing less than this per month is healthy
END_OF_LIFE_CAPACITY_PERCENT = 80.0

# Cycle segmentation
MIN_CYCLE_SAMPLES = 3

# Health scoring: (max wear %, max cycles, status, score), first match wins
HEALTH_TABLE = [
    (5, 300, "Excellent", 95),
    (10, 500, "Good", 85),
    (20, 800, "Fair", 70),
    (30, 1200, "Needs attention", 50),
]
HEALTH_FALLBACK = ("Poor", 30)
UNSTABLE_ANOMALY_COUNT = 5
UNSTABLE_PENALTY = 10
FAST_DEGRADATION_PCT_PER_MONTH = -1.0
FAST_DEGRADATION_PENALTY = 15

# Recommendation triggers
REPLACE_WEAR_PERCENT = 20
POWER_SETTINGS_ANOMALY_COUNT = 3
END_OF_LIFE_CYCLES = 1000
HIGH_DISCHARGE_RATE_MAH = 1000
HIGH_TEMPERATURE_C = 40
WARM_TEMPERATURE_C = 35
CALIBRATION_WEAR_PERCENT = 15
CALIBRATION_CYCLES = 500

# Advanced metrics
HEALTH_RATING_WEAR_WEIGHT = 0.5
HEALTH_RATING_CYCLES_PER_POINT = 10
HEALTH_RATING_MAX_TEMPERATURE_C = 45
HEALTH_RATING_MIN_VOLTAGE_STABILITY = 95
POWER_EFFICIENCY_DIVISOR = 100
APPLE_STATUS_NORMAL_RATING = 85
APPLE_STATUS_SERVICE_RATING = 70
