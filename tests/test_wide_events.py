"""
Tests for wide events (canonical log lines) utility.

Tests the structured logging patterns including:
- WideEvent creation and context management
- Timer and performance breakdown
- Tail sampling logic
"""

import time
from unittest.mock import patch

import pytest

from batmon.utils.wide_events import CRITICAL_METRICS, WideEvent, track_operation


class TestWideEvent:
    """Tests for WideEvent class."""

    def test_creates_event_with_defaults(self):
        """Creates event with default values."""
        event = WideEvent(operation="collection_cycle")

        assert event.context["operation"] == "collection_cycle"
        assert "timestamp" in event.context
        assert "start_time" in event.context
        assert "event_id" in event.context

    def test_explicit_event_id(self):
        event = WideEvent(operation="test_op", event_id="abc123")
        assert event.context["event_id"] == "abc123"

    def test_add_context(self):
        event = WideEvent(operation="test")
        event.add_context(state="discharging", percentage=64)

        assert event.context["state"] == "discharging"
        assert event.context["percentage"] == 64

    def test_add_business_metric(self):
        event = WideEvent(operation="test")
        event.add_business_metric("anomaly_count", 3)
        event.add_business_metric("health_score", 85)

        assert event.context["business_metrics"] == {"anomaly_count": 3, "health_score": 85}

    def test_add_error(self):
        event = WideEvent(operation="test")
        event.add_error(ValueError("bad sample"), sample=12)

        assert event.context["error"] == {
            "type": "ValueError",
            "message": "bad sample",
            "details": {"sample": 12},
        }
        assert event.context["success"] is False

    def test_mark_success(self):
        event = WideEvent(operation="test")
        event.mark_success()
        assert event.context["success"] is True

    def test_mark_failure(self):
        event = WideEvent(operation="test")
        event.mark_failure("source unavailable")
        assert event.context["success"] is False
        assert event.context["failure_reason"] == "source unavailable"

    def test_timer_context_manager(self):
        """Timer records the duration of a step."""
        event = WideEvent(operation="test")

        with event.timer("detail_read"):
            time.sleep(0.01)

        assert event.context["performance_breakdown"]["detail_read_ms"] >= 10

    def test_timer_records_on_exception(self):
        event = WideEvent(operation="test")

        with pytest.raises(RuntimeError):
            with event.timer("store_append"):
                raise RuntimeError("locked")

        assert "store_append_ms" in event.context["performance_breakdown"]

    def test_set_duration(self):
        event = WideEvent(operation="test")
        event.set_duration()

        assert "duration_ms" in event.context
        assert "start_time" not in event.context


class TestShouldEmit:
    """Tests for should_emit sampling logic."""

    def test_always_emits_errors(self):
        event = WideEvent(operation="test")
        event.context["success"] = False

        assert event.should_emit() is True

    def test_always_emits_slow_operations(self):
        event = WideEvent(operation="test")
        event.context["duration_ms"] = 2000
        event.mark_success()

        assert event.should_emit(slow_threshold_ms=1000) is True

    def test_always_emits_state_changes(self):
        event = WideEvent(operation="collection_cycle")
        event.add_business_metric("state_changed", True)
        event.mark_success()
        event.context["duration_ms"] = 10

        assert event.should_emit() is True

    def test_critical_metrics_are_collection_cycle_metrics(self):
        """Only metrics the collection cycle actually records force emission."""
        assert set(CRITICAL_METRICS) == {"state_changed", "detail_read_failed", "retention_deleted"}

    @patch("batmon.utils.wide_events.random.random", return_value=0.99)
    def test_always_emits_retention_deletes(self, mock_random):
        event = WideEvent(operation="collection_cycle")
        event.add_business_metric("retention_deleted", 12)
        event.mark_success()
        event.context["duration_ms"] = 10

        assert event.should_emit(sample_rate=0.05) is True

    @patch("batmon.utils.wide_events.random.random")
    def test_samples_routine_cycles(self, mock_random):
        """Routine successful cycles are sampled at the configured rate."""
        event = WideEvent(operation="collection_cycle")
        event.add_business_metric("state_changed", False)
        event.mark_success()
        event.context["duration_ms"] = 10

        mock_random.return_value = 0.01
        assert event.should_emit(sample_rate=0.05) is True

        mock_random.return_value = 0.1
        assert event.should_emit(sample_rate=0.05) is False


class TestEmit:
    """Tests for emit method."""

    @patch("structlog.get_logger")
    def test_emits_event(self, mock_get_logger):
        mock_logger = mock_get_logger.return_value

        event = WideEvent(operation="test_op")
        event.mark_success()
        event.emit(force=True)

        mock_logger.info.assert_called_once()
        assert mock_logger.info.call_args.args[0] == "test_op_complete"

    @patch("batmon.utils.wide_events.random.random", return_value=0.99)
    @patch("structlog.get_logger")
    def test_sampled_out_event_not_logged(self, mock_get_logger, mock_random):
        mock_logger = mock_get_logger.return_value

        event = WideEvent(operation="test_op")
        event.mark_success()
        event.emit()

        mock_logger.info.assert_not_called()


class TestTrackOperation:
    """Tests for track_operation context manager."""

    @patch("structlog.get_logger")
    def test_tracks_successful_operation(self, mock_get_logger):
        mock_logger = mock_get_logger.return_value

        with track_operation("report_build", samples=100) as event:
            event.add_business_metric("health_score", 85)

        mock_logger.info.assert_called_once()
        assert mock_logger.info.call_args.kwargs["success"] is True
        assert mock_logger.info.call_args.kwargs["samples"] == 100

    @patch("structlog.get_logger")
    def test_tracks_failed_operation(self, mock_get_logger):
        mock_logger = mock_get_logger.return_value

        with pytest.raises(ValueError):
            with track_operation("report_build"):
                raise ValueError("Test error")

        mock_logger.error.assert_called_once()
