"""
Measurement storage for batmon.

Two collaborators feed the analysis engine with ascending histories:
- MemoryBuffer: a bounded, thread-safe in-memory copy of recent samples
- MeasurementStore: the SQLAlchemy-backed history with retention cleanup
"""

import logging
from datetime import datetime, timedelta
from threading import Lock
from typing import List, Optional

from sqlalchemy import delete, func, select
from sqlalchemy.exc import SQLAlchemyError

from batmon.config import Config
from batmon.exceptions import StorageError
from batmon.models import Measurement, MeasurementRecord
from batmon.utils.time_utils import format_timestamp, utc_now

logger = logging.getLogger(__name__)


class MemoryBuffer:
    """
    Bounded in-memory history of the most recent measurements.

    When the buffer grows past max_size the oldest samples are dropped in
    one go, keeping max_size - max_size // 4, so trimming does not happen
    on every add.
    """

    def __init__(self, max_size: int = None):
        self.max_size = max_size or Config.BUFFER_SIZE
        self._measurements: List[Measurement] = []
        self._lock = Lock()

    def add(self, measurement: Measurement) -> None:
        with self._lock:
            self._measurements.append(measurement)
            if len(self._measurements) > self.max_size:
                keep_from = len(self._measurements) - self.max_size + self.max_size // 4
                self._measurements = self._measurements[keep_from:]

    def get_last(self, n: int) -> List[Measurement]:
        """Copy of the last n measurements, ascending."""
        with self._lock:
            if n <= 0:
                return []
            return list(self._measurements[-n:])

    def latest(self) -> Optional[Measurement]:
        with self._lock:
            if not self._measurements:
                return None
            return self._measurements[-1]

    def size(self) -> int:
        with self._lock:
            return len(self._measurements)

    def load_from(self, store: "MeasurementStore", count: int = None) -> int:
        """
        Replace the buffer contents with the most recent stored history.

        Returns:
            Number of measurements loaded
        """
        history = store.get_history(count or self.max_size)
        with self._lock:
            self._measurements = history
        return len(history)


class MeasurementStore:
    """
    Append-only measurement history backed by SQLAlchemy.

    Args:
        session_factory: sessionmaker bound to an initialized database
        retention: How long to keep measurements
        cleanup_interval: Minimum time between two retention cleanups
    """

    def __init__(
        self,
        session_factory,
        retention: timedelta = None,
        cleanup_interval: timedelta = None,
    ):
        self.session_factory = session_factory
        self.retention = retention or timedelta(days=Config.RETENTION_DAYS)
        self.cleanup_interval = cleanup_interval or timedelta(hours=Config.RETENTION_CHECK_HOURS)
        self._last_cleanup: Optional[datetime] = None

    def append(self, measurement: Measurement) -> None:
        """Persist one measurement."""
        session = self.session_factory()
        try:
            session.add(MeasurementRecord.from_measurement(measurement))
            session.commit()
        except SQLAlchemyError as e:
            session.rollback()
            raise StorageError(f"Failed to store measurement: {e}", {"timestamp": measurement.timestamp}) from e
        finally:
            session.close()

    def get_history(self, limit: int = None) -> List[Measurement]:
        """
        Most recent measurements in chronological (ascending) order.

        Args:
            limit: Maximum number of measurements (defaults to Config.HISTORY_LIMIT)
        """
        limit = limit or Config.HISTORY_LIMIT
        session = self.session_factory()
        try:
            rows = session.execute(
                select(MeasurementRecord)
                .order_by(MeasurementRecord.timestamp.desc(), MeasurementRecord.id.desc())
                .limit(limit)
            ).scalars().all()
            return [row.to_measurement() for row in reversed(rows)]
        except SQLAlchemyError as e:
            raise StorageError(f"Failed to load measurement history: {e}", {"limit": limit}) from e
        finally:
            session.close()

    def cleanup(self, now: datetime = None) -> int:
        """
        Delete measurements older than the retention period.

        Runs at most once per cleanup interval; earlier calls are no-ops.

        Returns:
            Number of deleted measurements
        """
        now = now or utc_now()
        if self._last_cleanup is not None and now - self._last_cleanup < self.cleanup_interval:
            return 0

        cutoff = format_timestamp(now - self.retention)
        session = self.session_factory()
        try:
            result = session.execute(delete(MeasurementRecord).where(MeasurementRecord.timestamp < cutoff))
            session.commit()
        except SQLAlchemyError as e:
            session.rollback()
            raise StorageError(f"Failed to clean up old measurements: {e}", {"cutoff": cutoff}) from e
        finally:
            session.close()

        self._last_cleanup = now
        deleted = result.rowcount or 0
        if deleted:
            logger.info(f"Deleted {deleted} measurements older than {self.retention.days} days")
        return deleted

    def stats(self) -> dict:
        """Record count and the oldest/newest stored timestamps."""
        session = self.session_factory()
        try:
            total, oldest, newest = session.execute(
                select(
                    func.count(MeasurementRecord.id),
                    func.min(MeasurementRecord.timestamp),
                    func.max(MeasurementRecord.timestamp),
                )
            ).one()
        except SQLAlchemyError as e:
            raise StorageError(f"Failed to read storage statistics: {e}") from e
        finally:
            session.close()

        return {
            "total_records": total,
            "oldest_record": oldest,
            "newest_record": newest,
        }
