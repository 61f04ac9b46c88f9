"""
Property-based tests using Hypothesis.

These tests generate histories and validate invariants that should always
hold: estimators agree with the closed form on clean discharges, analysis
is deterministic, degenerate input degrades to safe defaults, and nothing
raises on malformed data.
"""

from dataclasses import replace
from datetime import datetime, timedelta, timezone

from hypothesis import HealthCheck, given, settings
from hypothesis import strategies as st

from batmon.calculations import (
    average_discharge_rate,
    normalize_thresholds,
    remaining_time,
    robust_average_discharge_rate,
    wear_percent,
)
from batmon.models import Measurement, TrendAnalysis
from batmon.services.anomaly_service import detect_anomalies
from batmon.services.cycle_service import detect_charge_cycles
from batmon.services.health_service import analyze_advanced_metrics, analyze_battery_health
from batmon.services.trend_service import analyze_capacity_trend
from batmon.utils.time_utils import format_timestamp

BASE = datetime(2024, 1, 15, tzinfo=timezone.utc)
NOW = BASE + timedelta(days=60)

states = st.sampled_from(["discharging", "charging", "charged", "finishing charge"])


@st.composite
def discharging_histories(draw):
    """Strictly decreasing capacity, small steps, gaps up to one hour."""
    count = draw(st.integers(min_value=2, max_value=30))
    drops = draw(st.lists(st.integers(min_value=1, max_value=400), min_size=count - 1, max_size=count - 1))
    gaps = draw(st.lists(st.integers(min_value=30, max_value=3600), min_size=count - 1, max_size=count - 1))

    capacity = sum(drops) + 100
    elapsed = 0
    history = [Measurement(format_timestamp(BASE), percentage=80, state="discharging", current_capacity=capacity)]
    for drop, gap in zip(drops, gaps):
        capacity -= drop
        elapsed += gap
        history.append(
            Measurement(
                format_timestamp(BASE + timedelta(seconds=elapsed)),
                percentage=80,
                state="discharging",
                current_capacity=capacity,
            )
        )
    return history


@st.composite
def arbitrary_histories(draw, min_size=0, max_size=25):
    """Ascending timestamps with arbitrary, possibly nonsensical readings."""
    count = draw(st.integers(min_value=min_size, max_value=max_size))
    history = []
    elapsed = 0
    for _ in range(count):
        elapsed += draw(st.integers(min_value=0, max_value=3 * 86400))
        history.append(
            Measurement(
                timestamp=format_timestamp(BASE + timedelta(seconds=elapsed)),
                percentage=draw(st.integers(min_value=0, max_value=100)),
                state=draw(states),
                cycle_count=draw(st.integers(min_value=0, max_value=3000)),
                full_charge_capacity=draw(st.integers(min_value=0, max_value=8000)),
                design_capacity=draw(st.integers(min_value=0, max_value=8000)),
                current_capacity=draw(st.integers(min_value=0, max_value=8000)),
                temperature=draw(st.integers(min_value=0, max_value=80)),
                voltage=draw(st.integers(min_value=0, max_value=13000)),
                power=draw(st.integers(min_value=-60000, max_value=60000)),
            )
        )
    return history


@st.composite
def histories_with_edge_timestamps(draw):
    """Arbitrary histories where some timestamps sit at the edge of the datetime range."""
    history = draw(arbitrary_histories(min_size=1))
    edges = st.sampled_from([
        "0001-01-01T00:00:00+14:00",
        "9999-12-31T23:59:59-23:59",
        "0001-01-01T00:00:00Z",
        "9999-12-31T23:59:59Z",
    ])
    return [
        replace(m, timestamp=draw(edges)) if draw(st.booleans()) else m
        for m in history
    ]


class TestRateProperties:
    """Discharge rate invariants."""

    @given(discharging_histories())
    def test_clean_discharge_matches_closed_form(self, history):
        """
        Property: on a clean discharge both estimators return
        total capacity lost / total hours elapsed.
        """
        window = len(history) - 1
        lost = history[0].current_capacity - history[-1].current_capacity
        hours = (
            datetime.fromisoformat(history[-1].timestamp.replace("Z", "+00:00"))
            - datetime.fromisoformat(history[0].timestamp.replace("Z", "+00:00"))
        ).total_seconds() / 3600
        expected = lost / hours

        naive = average_discharge_rate(history, window)
        robust, valid = robust_average_discharge_rate(history, window)

        assert naive > 0
        assert abs(naive - expected) < 1e-6 * expected
        assert abs(robust - expected) < 1e-6 * expected
        assert valid == len(history) - 1

    @given(discharging_histories(), st.integers(min_value=0, max_value=28))
    def test_one_percentage_jump_drops_one_interval(self, history, position):
        """
        Property: a single 25-point percentage jump costs the robust
        estimator exactly one interval and leaves the naive one unchanged.
        """
        pairs = len(history) - 1
        index = position % pairs + 1
        jumped = [
            replace(m, percentage=55) if i >= index else m
            for i, m in enumerate(history)
        ]

        _, valid = robust_average_discharge_rate(jumped, pairs)

        assert valid == pairs - 1
        assert average_discharge_rate(jumped, pairs) == average_discharge_rate(history, pairs)

    @given(arbitrary_histories(), st.integers(min_value=0, max_value=50))
    def test_rates_never_negative(self, history, window):
        """Property: rates are never negative and valid intervals never exceed the window."""
        assert average_discharge_rate(history, window) >= 0
        rate, valid = robust_average_discharge_rate(history, window)
        assert rate >= 0
        assert 0 <= valid <= window


class TestBatteryFormulaProperties:
    """Wear, remaining time and threshold invariants."""

    @given(st.integers(min_value=-10000, max_value=10000))
    def test_zero_design_capacity_is_zero_wear(self, full):
        """Property: unknown design capacity never divides by zero."""
        assert wear_percent(0, full) == 0.0

    @given(st.integers(min_value=1, max_value=10000), st.integers(min_value=0, max_value=10000))
    def test_wear_at_most_100(self, design, full):
        """Property: a battery cannot lose more than its whole design capacity."""
        assert wear_percent(design, full) <= 100.0

    @given(st.integers(min_value=0, max_value=10000), st.floats(max_value=0, allow_nan=False))
    def test_non_positive_rate_is_zero_time(self, capacity, rate):
        assert remaining_time(capacity, rate) == timedelta(0)

    @given(st.integers(min_value=-3600, max_value=7 * 86400))
    def test_thresholds_bounded(self, seconds):
        """Property: thresholds stay between the 30-second base and their caps."""
        charge, capacity = normalize_thresholds(timedelta(seconds=seconds))
        assert 20 <= charge <= 50
        assert 250 <= capacity <= 2000

    @given(
        st.integers(min_value=0, max_value=7 * 86400),
        st.integers(min_value=0, max_value=7 * 86400),
    )
    def test_thresholds_monotonic(self, a, b):
        """Property: a longer interval never tightens a threshold."""
        short, long = sorted((a, b))
        short_charge, short_capacity = normalize_thresholds(timedelta(seconds=short))
        long_charge, long_capacity = normalize_thresholds(timedelta(seconds=long))
        assert short_charge <= long_charge
        assert short_capacity <= long_capacity


class TestAnalysisProperties:
    """Whole-engine invariants over arbitrary histories."""

    @given(arbitrary_histories(max_size=9))
    def test_fewer_than_ten_samples_trend_healthy(self, history):
        """Property: below the sample minimum the trend is always healthy."""
        assert analyze_capacity_trend(history, now=NOW) == TrendAnalysis(is_healthy=True)

    @given(arbitrary_histories(min_size=1))
    @settings(suppress_health_check=[HealthCheck.too_slow], deadline=None)
    def test_health_analysis_idempotent(self, history):
        """Property: analysis has no hidden state and no randomness."""
        first = analyze_battery_health(history, now=NOW)
        second = analyze_battery_health(history, now=NOW)

        assert first == second
        assert first.to_dict() == second.to_dict()

    @given(arbitrary_histories())
    @settings(deadline=None)
    def test_never_raises_on_arbitrary_input(self, history):
        """Property: malformed readings degrade results, they never raise."""
        detect_anomalies(history)
        detect_charge_cycles(history)
        analyze_capacity_trend(history, now=NOW)
        analyze_advanced_metrics(history)

    @given(histories_with_edge_timestamps())
    @settings(suppress_health_check=[HealthCheck.too_slow], deadline=None)
    def test_edge_of_range_timestamps_never_raise(self, history):
        """Property: timestamps that overflow on UTC conversion are skipped, not raised."""
        window = len(history)
        average_discharge_rate(history, window)
        robust_average_discharge_rate(history, window)
        detect_anomalies(history)
        detect_charge_cycles(history)
        analyze_capacity_trend(history, now=NOW)
        assert analyze_battery_health(history, now=NOW) is not None

    @given(arbitrary_histories(min_size=3))
    def test_every_state_change_reported(self, history):
        """Property: the anomaly list contains one entry per state change."""
        changes = sum(1 for a, b in zip(history, history[1:]) if a.state != b.state)
        reported = sum(1 for a in detect_anomalies(history) if a.startswith("State change"))
        assert reported == changes

    @given(arbitrary_histories(min_size=3))
    def test_cycles_cover_transitions(self, history):
        """Property: segments = state changes + 1, and alternate their state."""
        changes = sum(1 for a, b in zip(history, history[1:]) if a.state != b.state)
        cycles = detect_charge_cycles(history)

        assert len(cycles) == changes + 1
        assert all(c.start_time <= c.end_time for c in cycles)

    @given(arbitrary_histories(min_size=1))
    def test_health_rating_bounded(self, history):
        """Property: the health rating stays within 0-100."""
        rating = analyze_advanced_metrics(history).health_rating
        assert 0 <= rating <= 100
