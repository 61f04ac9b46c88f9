"""
Time parsing and formatting utilities for batmon.

Measurements carry their timestamp as RFC 3339 UTC text. The engine
re-parses it on demand, so parsing must be cheap and must never raise:
an unparseable timestamp is reported as None and the caller decides how
to degrade.
"""

from datetime import datetime, timedelta, timezone
from typing import Optional

from dateutil import parser as date_parser

TIMESTAMP_FORMAT = "%Y-%m-%dT%H:%M:%SZ"


def utc_now() -> datetime:
    """
    Get current UTC time with timezone info.

    Returns:
        datetime: Current time in UTC timezone
    """
    return datetime.now(timezone.utc)


def parse_timestamp(text: Optional[str]) -> Optional[datetime]:
    """
    Parse an RFC 3339 / ISO 8601 timestamp into an aware UTC datetime.

    Naive timestamps are assumed to already be UTC.

    Args:
        text: Timestamp text, e.g. "2024-01-15T14:30:00Z"

    Returns:
        Aware datetime in UTC, or None if the text cannot be parsed

    Examples:
        >>> parse_timestamp("2024-01-15T14:30:00Z")
        datetime.datetime(2024, 1, 15, 14, 30, tzinfo=datetime.timezone.utc)
        >>> parse_timestamp("not a timestamp") is None
        True
    """
    if not text or not isinstance(text, str):
        return None

    try:
        dt = date_parser.isoparse(text.strip())
        if dt.tzinfo is None:
            return dt.replace(tzinfo=timezone.utc)
        # Offsets at the edge of the datetime range overflow on conversion
        return dt.astimezone(timezone.utc)
    except (ValueError, OverflowError):
        return None


def format_timestamp(dt: datetime) -> str:
    """
    Format a datetime as RFC 3339 UTC text with second precision.

    Examples:
        >>> format_timestamp(datetime(2024, 1, 15, 14, 30, tzinfo=timezone.utc))
        '2024-01-15T14:30:00Z'
    """
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc).strftime(TIMESTAMP_FORMAT)


def elapsed_between(start_text: str, end_text: str) -> Optional[timedelta]:
    """
    Elapsed time between two timestamp strings.

    Returns:
        end - start, or None if either timestamp fails to parse
    """
    start = parse_timestamp(start_text)
    end = parse_timestamp(end_text)
    if start is None or end is None:
        return None
    return end - start


def time_of_day(text: str) -> str:
    """
    Short HH:MM:SS stamp taken straight from RFC 3339 text.

    Examples:
        >>> time_of_day("2024-01-15T14:30:05Z")
        '14:30:05'
    """
    return text[11:19]
