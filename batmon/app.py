"""
batmon application entry point.

Wires the database, measurement store, memory buffer and collector
together, and exposes two commands:

    batmon collect    # sample on a schedule until interrupted
    batmon report     # print the health report of the stored history as JSON
"""

import argparse
import json
import logging
import signal
import sys
import threading

from batmon import __version__
from batmon.config import Config
from batmon.database import init_db
from batmon.exceptions import BatmonError
from batmon.services.collector_service import DataCollector
from batmon.services.health_service import generate_report_data
from batmon.services.scheduler import init_scheduler, shutdown_scheduler
from batmon.services.storage_service import MeasurementStore, MemoryBuffer
from batmon.sources import SampleSource, SimulatedBatterySource

logger = logging.getLogger(__name__)


def configure_logging(level: str = None):
    """Configure stdlib logging at Config.LOG_LEVEL."""
    logging.basicConfig(
        level=getattr(logging, (level or Config.LOG_LEVEL).upper(), logging.INFO),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )


def create_collector(database_url: str = None, source: SampleSource = None) -> DataCollector:
    """
    Build a DataCollector backed by the configured database.

    The memory buffer is warmed from the stored history so analysis and
    carry-forward work right after a restart.
    """
    session_factory = init_db(database_url)
    store = MeasurementStore(session_factory)
    buffer = MemoryBuffer(Config.BUFFER_SIZE)
    loaded = buffer.load_from(store)
    logger.info(f"Loaded {loaded} measurements into memory buffer")

    return DataCollector(source or SimulatedBatterySource(), store, buffer)


def run_collect(args) -> int:
    collector = create_collector(args.database_url)
    stop = threading.Event()

    def _handle_signal(signum, frame):
        logger.info(f"Received signal {signum}, stopping")
        stop.set()

    signal.signal(signal.SIGINT, _handle_signal)
    signal.signal(signal.SIGTERM, _handle_signal)

    init_scheduler(collector)
    try:
        stop.wait()
    finally:
        shutdown_scheduler()
    return 0


def run_report(args) -> int:
    session_factory = init_db(args.database_url)
    store = MeasurementStore(session_factory)
    try:
        history = store.get_history(args.limit)
        report = generate_report_data(history, __version__)
    except BatmonError as e:
        logger.error(str(e))
        return 1

    print(json.dumps(report.to_dict(), indent=2, ensure_ascii=False))
    return 0


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description='batmon battery health monitor')
    parser.add_argument('--database-url', default=None, help='SQLAlchemy database URL (default: BATMON_DATABASE_URL)')
    parser.add_argument('--log-level', default=None, help='Log level (default: LOG_LEVEL or INFO)')
    parser.add_argument('--version', action='version', version=f'batmon {__version__}')

    subparsers = parser.add_subparsers(dest='command', required=True)
    subparsers.add_parser('collect', help='Collect measurements on a schedule')
    report_parser = subparsers.add_parser('report', help='Print a health report as JSON')
    report_parser.add_argument(
        '--limit',
        type=int,
        default=Config.HISTORY_LIMIT,
        help=f'Number of recent measurements to analyze (default: {Config.HISTORY_LIMIT})'
    )

    args = parser.parse_args(argv)
    configure_logging(args.log_level)

    if args.command == 'collect':
        return run_collect(args)
    return run_report(args)


if __name__ == '__main__':
    sys.exit(main())
