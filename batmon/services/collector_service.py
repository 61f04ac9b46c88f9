"""
Data collection service for batmon.

Takes one sample per cycle from a SampleSource, persists it and keeps the
in-memory buffer current. Percentage and state are read every cycle; the
expensive detailed metrics are read at most once per detail interval and
carried forward from the latest sample in between.
"""

import logging
from datetime import datetime, timedelta
from typing import Optional

from batmon.config import Config
from batmon.exceptions import CollectionError, StorageError
from batmon.models import DetailedReading, Measurement
from batmon.services.storage_service import MeasurementStore, MemoryBuffer
from batmon.sources import SampleSource
from batmon.utils.time_utils import format_timestamp, utc_now
from batmon.utils.wide_events import WideEvent

logger = logging.getLogger(__name__)


def calculate_power(voltage: int, amperage: int) -> int:
    """
    Power in mW from voltage (mV) and signed amperage (mA).

    Truncates toward zero so charging and discharging are symmetric.

    Examples:
        >>> calculate_power(12000, 1500)
        18000
        >>> calculate_power(12000, -1501)
        -18012
        >>> calculate_power(0, 1500)
        0
    """
    if voltage <= 0 or amperage == 0:
        return 0
    return int(voltage * amperage / 1000)


def _carried_forward(latest: Optional[Measurement]) -> dict:
    """Detailed fields copied from the latest sample (empty if there is none)."""
    if latest is None:
        return {}
    return {
        'cycle_count': latest.cycle_count,
        'full_charge_capacity': latest.full_charge_capacity,
        'design_capacity': latest.design_capacity,
        'current_capacity': latest.current_capacity,
        'temperature': latest.temperature,
        'voltage': latest.voltage,
        'amperage': latest.amperage,
        'power': latest.power,
        'apple_condition_label': latest.apple_condition_label,
    }


def _from_detailed(reading: DetailedReading) -> dict:
    return {
        'cycle_count': reading.cycle_count,
        'full_charge_capacity': reading.full_charge_capacity,
        'design_capacity': reading.design_capacity,
        'current_capacity': reading.current_capacity,
        'temperature': reading.temperature,
        'voltage': reading.voltage,
        'amperage': reading.amperage,
        'power': calculate_power(reading.voltage, reading.amperage),
        'apple_condition_label': reading.apple_condition_label,
    }


def next_interval(latest: Optional[Measurement], current: timedelta) -> timedelta:
    """
    Adaptive sampling cadence.

    A full battery still on the charger changes slowly, so sampling backs
    off; discharging returns to the normal cadence; anything else keeps the
    current interval.
    """
    if latest is None:
        return current

    state = latest.state.lower()
    if state == "charging" and latest.percentage >= 100:
        return timedelta(seconds=Config.SLOW_SAMPLE_INTERVAL_SECONDS)
    if state == "discharging":
        return timedelta(seconds=Config.SAMPLE_INTERVAL_SECONDS)
    return current


class DataCollector:
    """
    Collects measurements from a source into a store and a memory buffer.

    Args:
        source: Where samples come from
        store: Persistent measurement history
        buffer: In-memory copy of recent samples
        detail_interval: Minimum time between two detailed reads
    """

    def __init__(
        self,
        source: SampleSource,
        store: MeasurementStore,
        buffer: MemoryBuffer,
        detail_interval: timedelta = None,
    ):
        self.source = source
        self.store = store
        self.buffer = buffer
        self.detail_interval = detail_interval or timedelta(seconds=Config.DETAIL_INTERVAL_SECONDS)
        self._last_detail_read: Optional[datetime] = None

    def _detail_due(self, now: datetime) -> bool:
        return self._last_detail_read is None or now - self._last_detail_read >= self.detail_interval

    def collect_and_store(self, now: datetime = None) -> Measurement:
        """
        Take one sample, persist it and add it to the buffer.

        Args:
            now: Sample time (defaults to current UTC time)

        Returns:
            The stored Measurement

        Raises:
            CollectionError: If the basic read fails
            StorageError: If the sample cannot be persisted
        """
        now = now or utc_now()
        previous = self.buffer.latest()
        event = WideEvent("collection_cycle")

        try:
            with event.timer("basic_read"):
                percentage, state = self.source.read_basic()
        except Exception as e:
            error = CollectionError(f"Failed to read battery state: {e}", source=self.source.name)
            event.add_error(error)
            event.emit(level="error")
            raise error from e

        detailed = _carried_forward(previous)
        if self._detail_due(now):
            try:
                with event.timer("detail_read"):
                    reading = self.source.read_detailed()
                detailed = _from_detailed(reading)
                self._last_detail_read = now
            except Exception as e:
                logger.warning(f"Detailed read from {self.source.name} failed, carrying forward: {e}")
                event.add_business_metric("detail_read_failed", True)

        measurement = Measurement(
            timestamp=format_timestamp(now),
            percentage=percentage,
            state=state,
            **detailed,
        )

        try:
            with event.timer("store_append"):
                self.store.append(measurement)
        except StorageError as e:
            event.add_error(e)
            event.emit(level="error")
            raise

        self.buffer.add(measurement)

        try:
            deleted = self.store.cleanup(now)
            if deleted:
                event.add_business_metric("retention_deleted", deleted)
        except StorageError as e:
            logger.warning(f"Retention cleanup failed: {e}")

        event.add_context(percentage=percentage, state=state, buffer_size=self.buffer.size())
        event.add_business_metric("state_changed", previous is not None and previous.state != state)
        event.mark_success()
        event.emit()

        return measurement

    def get_stats(self) -> dict:
        """Storage statistics plus buffer occupancy."""
        stats = self.store.stats()
        stats["buffer_size"] = self.buffer.size()
        stats["buffer_max_size"] = self.buffer.max_size
        return stats
