"""Utility modules for batmon."""

from .time_utils import (
    elapsed_between,
    format_timestamp,
    parse_timestamp,
    time_of_day,
    utc_now,
)

__all__ = [
    'utc_now',
    'parse_timestamp',
    'format_timestamp',
    'elapsed_between',
    'time_of_day',
]
