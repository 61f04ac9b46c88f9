"""
Wide Events (Canonical Log Lines) for batmon

One comprehensive JSON event per collection cycle or report build instead
of a trail of small log lines:
- Context: sample counts, battery state, timestamps
- Business metrics: anomalies, health score, discharge rate
- Timers for the slow parts (storage, hardware reads)
- Tail sampling: errors, slow cycles and state transitions are always kept,
  routine successful cycles are sampled
"""

import random
import time
import uuid
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Any, Dict, Optional

import structlog

# Configure structlog for JSON output
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.processors.JSONRenderer(),
    ],
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)

# Business metrics that force emission regardless of sampling
CRITICAL_METRICS = (
    "state_changed",
    "detail_read_failed",
    "retention_deleted",
)


class WideEvent:
    """
    Accumulates context throughout an operation, then emits one log event.

    Usage:
        event = WideEvent("collection_cycle")
        event.add_context(state="discharging", percentage=64)
        event.add_business_metric("buffer_size", 42)

        with event.timer("store_append"):
            store.append(measurement)

        event.mark_success()
        event.emit()
    """

    def __init__(self, operation: str, event_id: Optional[str] = None):
        self.operation = operation
        self.context: Dict[str, Any] = {
            "operation": operation,
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "start_time": time.time(),
            "event_id": event_id or str(uuid.uuid4()),
        }
        self.logger = structlog.get_logger("batmon.events")

    def add_context(self, **kwargs) -> "WideEvent":
        """Add context fields (state, percentage, sample counts, ...)."""
        self.context.update(kwargs)
        return self

    def add_business_metric(self, key: str, value: Any) -> "WideEvent":
        """Add a business metric (anomaly count, health score, rate, ...)."""
        self.context.setdefault("business_metrics", {})[key] = value
        return self

    def add_error(self, error: Exception, **kwargs) -> "WideEvent":
        """Add error details to the event."""
        self.context["error"] = {
            "type": type(error).__name__,
            "message": str(error),
            "details": kwargs,
        }
        self.context["success"] = False
        return self

    def mark_success(self) -> "WideEvent":
        self.context["success"] = True
        return self

    def mark_failure(self, reason: str) -> "WideEvent":
        self.context["success"] = False
        self.context["failure_reason"] = reason
        return self

    @contextmanager
    def timer(self, operation_name: str):
        """
        Time a step of the operation.

        Usage:
            with event.timer("detail_read"):
                source.read_detailed()

            # Outputs: {"performance_breakdown": {"detail_read_ms": 12.4}}
        """
        start = time.time()
        try:
            yield
        finally:
            duration_ms = (time.time() - start) * 1000
            self.context.setdefault("performance_breakdown", {})[f"{operation_name}_ms"] = round(duration_ms, 2)

    def set_duration(self) -> "WideEvent":
        """Replace the start time with the total duration."""
        if "start_time" in self.context:
            duration_ms = (time.time() - self.context["start_time"]) * 1000
            self.context["duration_ms"] = round(duration_ms, 2)
            del self.context["start_time"]
        return self

    def should_emit(self, sample_rate: float = 0.05, slow_threshold_ms: float = 1000) -> bool:
        """
        Tail sampling:
        - Always emit failures
        - Always emit slow operations (>slow_threshold_ms)
        - Always emit events carrying a critical business metric
        - Sample everything else at sample_rate
        """
        if not self.context.get("success", True):
            return True

        if self.context.get("duration_ms", 0) > slow_threshold_ms:
            return True

        business_metrics = self.context.get("business_metrics", {})
        if any(business_metrics.get(metric) for metric in CRITICAL_METRICS):
            return True

        return random.random() < sample_rate

    def emit(self, level: str = "info", force: bool = False) -> None:
        """
        Emit the wide event as a single log line.

        Args:
            level: Log level (info, warning, error)
            force: Emit even if sampling says no
        """
        self.set_duration()

        if not force and not self.should_emit():
            return

        log_method = getattr(self.logger, level, self.logger.info)
        log_method(f"{self.operation}_complete", **self.context)


@contextmanager
def track_operation(operation: str, **initial_context):
    """
    Track an operation with a wide event that is always emitted on exit.

    Usage:
        with track_operation("report_build", samples=100) as event:
            event.add_business_metric("health_score", 85)
    """
    event = WideEvent(operation)
    event.add_context(**initial_context)

    try:
        yield event
        event.mark_success()
    except Exception as e:
        event.add_error(e)
        event.mark_failure(str(e))
        raise
    finally:
        event.emit(level="error" if not event.context.get("success", True) else "info", force=True)
