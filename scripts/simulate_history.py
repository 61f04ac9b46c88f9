#!/usr/bin/env python3
"""
batmon History Simulator

Seeds a batmon database with synthetic measurements from the simulated
battery, so reports can be explored without weeks of real sampling.

Usage:
    python scripts/simulate_history.py                     # 2 days at 5-minute steps
    python scripts/simulate_history.py --days 30           # a month of history
    python scripts/simulate_history.py --step 60           # one sample per minute
    python scripts/simulate_history.py --database-url sqlite:///demo.sqlite
"""

import argparse
import sys
from datetime import timedelta

from batmon.app import configure_logging
from batmon.database import init_db
from batmon.services.collector_service import DataCollector
from batmon.services.storage_service import MeasurementStore, MemoryBuffer
from batmon.sources import SimulatedBatterySource
from batmon.utils.time_utils import utc_now


def simulate(database_url: str, days: float, step_seconds: int, capacity_loss: int) -> int:
    """
    Write simulated samples ending now, one per step.

    Returns:
        Number of samples written
    """
    session_factory = init_db(database_url)
    # Seeded history must not be pruned by retention while it is written
    store = MeasurementStore(session_factory, retention=timedelta(days=days + 1))
    source = SimulatedBatterySource(capacity_loss_per_cycle=capacity_loss)
    collector = DataCollector(source, store, MemoryBuffer(), detail_interval=timedelta(seconds=step_seconds))

    step = timedelta(seconds=step_seconds)
    end = utc_now()
    now = end - timedelta(days=days)
    count = 0
    while now <= end:
        collector.collect_and_store(now)
        now += step
        count += 1
    return count


def main():
    parser = argparse.ArgumentParser(
        description='batmon History Simulator',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python simulate_history.py                      # 2 days at 5-minute steps
  python simulate_history.py --days 30            # a month of history
  python simulate_history.py --capacity-loss 10   # faster degradation
        """
    )

    parser.add_argument(
        '--database-url',
        default=None,
        help='SQLAlchemy database URL (default: BATMON_DATABASE_URL)'
    )
    parser.add_argument(
        '--days',
        type=float,
        default=2.0,
        help='Days of history to generate (default: 2)'
    )
    parser.add_argument(
        '--step',
        type=int,
        default=300,
        help='Seconds between samples (default: 300)'
    )
    parser.add_argument(
        '--capacity-loss',
        type=int,
        default=2,
        help='Full-charge capacity lost per charge cycle in mAh (default: 2)'
    )

    args = parser.parse_args()

    if args.step <= 0 or args.days <= 0:
        print("Error: --days and --step must be positive")
        sys.exit(1)

    configure_logging("WARNING")
    count = simulate(args.database_url, args.days, args.step, args.capacity_loss)
    print(f"Wrote {count} simulated measurements")


if __name__ == '__main__':
    main()
