import os
from pathlib import Path


def get_data_dir() -> Path:
    """
    Resolve the per-user data directory for batmon.

    Follows the XDG base directory layout: $XDG_DATA_HOME/batmon when the
    variable is set, otherwise ~/.local/share/batmon.
    """
    xdg_data_home = os.environ.get('XDG_DATA_HOME')
    if xdg_data_home:
        return Path(xdg_data_home) / 'batmon'
    return Path.home() / '.local' / 'share' / 'batmon'


class Config:
    """Application configuration from environment variables."""

    # Database
    DATABASE_URL = os.environ.get(
        'BATMON_DATABASE_URL',
        f"sqlite:///{get_data_dir() / 'batmon.sqlite'}"
    )

    # Logging
    LOG_LEVEL = os.environ.get('LOG_LEVEL', 'INFO')

    # Sampling cadence
    SAMPLE_INTERVAL_SECONDS = int(os.environ.get('SAMPLE_INTERVAL_SECONDS', 30))
    DETAIL_INTERVAL_SECONDS = int(os.environ.get('DETAIL_INTERVAL_SECONDS', 120))
    SLOW_SAMPLE_INTERVAL_SECONDS = int(os.environ.get('SLOW_SAMPLE_INTERVAL_SECONDS', 300))

    # History
    BUFFER_SIZE = int(os.environ.get('BUFFER_SIZE', 100))
    HISTORY_LIMIT = int(os.environ.get('HISTORY_LIMIT', 100))

    # Retention
    RETENTION_DAYS = int(os.environ.get('RETENTION_DAYS', 90))
    RETENTION_CHECK_HOURS = int(os.environ.get('RETENTION_CHECK_HOURS', 6))
