"""
Background scheduler service for batmon.

Runs the collection cycle on an interval and adapts the interval to the
battery state after every cycle.
"""

import logging
from datetime import timedelta

from apscheduler.schedulers.background import BackgroundScheduler

from batmon.config import Config
from batmon.exceptions import BatmonError
from batmon.services.collector_service import DataCollector, next_interval

logger = logging.getLogger(__name__)

JOB_ID = "collect_measurement"

# Module-level scheduler instance
scheduler = None
_current_interval = timedelta(seconds=Config.SAMPLE_INTERVAL_SECONDS)


def collect_job(collector: DataCollector):
    """
    One scheduled collection cycle.

    Failures are logged and the job keeps running; the next cycle retries.
    """
    global _current_interval
    try:
        collector.collect_and_store()
    except BatmonError as e:
        logger.error(f"Collection cycle failed: {e}", exc_info=True)
    except Exception as e:
        logger.exception(f"Unexpected error in collection cycle: {e}")

    interval = next_interval(collector.buffer.latest(), _current_interval)
    if interval != _current_interval:
        logger.info(f"Sampling interval changed: {_current_interval.total_seconds():.0f}s -> {interval.total_seconds():.0f}s")
        _current_interval = interval
        if scheduler:
            scheduler.reschedule_job(JOB_ID, trigger="interval", seconds=int(interval.total_seconds()))


def init_scheduler(collector: DataCollector):
    """
    Initialize and start the background scheduler.

    Args:
        collector: DataCollector driven by the scheduled job

    Returns:
        The BackgroundScheduler instance
    """
    global scheduler, _current_interval
    _current_interval = timedelta(seconds=Config.SAMPLE_INTERVAL_SECONDS)
    scheduler = BackgroundScheduler()
    scheduler.add_job(
        collect_job,
        "interval",
        seconds=Config.SAMPLE_INTERVAL_SECONDS,
        args=[collector],
        id=JOB_ID,
        max_instances=1,
        coalesce=True,
    )
    scheduler.start()
    logger.info(f"Background scheduler initialized ({Config.SAMPLE_INTERVAL_SECONDS}s interval)")
    return scheduler


def shutdown_scheduler():
    """Shutdown the background scheduler gracefully."""
    if scheduler:
        scheduler.shutdown()
        logger.info("Background scheduler shut down")
