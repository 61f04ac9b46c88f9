"""
Database session management for batmon.

Provides the engine and session factory used by the measurement store.
The schema is created with create_all; there are no migrations.
"""

import logging
import time
from pathlib import Path

from sqlalchemy import event
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.orm import sessionmaker

from batmon.config import Config
from batmon.models import Base, get_engine

logger = logging.getLogger(__name__)

# Add slow query logging (queries >500ms)
SLOW_QUERY_THRESHOLD_MS = 500


@event.listens_for(Engine, "before_cursor_execute")
def before_cursor_execute(conn, cursor, statement, parameters, context, executemany):
    """Record query start time."""
    conn.info.setdefault("query_start_time", []).append(time.time())


@event.listens_for(Engine, "after_cursor_execute")
def after_cursor_execute(conn, cursor, statement, parameters, context, executemany):
    """Log slow queries."""
    total_time = time.time() - conn.info["query_start_time"].pop(-1)
    duration_ms = total_time * 1000

    if duration_ms > SLOW_QUERY_THRESHOLD_MS:
        # Truncate long queries for logging
        truncated_query = statement[:200] + "..." if len(statement) > 200 else statement
        logger.warning(
            f"Slow query detected: {duration_ms:.2f}ms - {truncated_query}", extra={"duration_ms": duration_ms}
        )


def _ensure_sqlite_parent(database_url: str) -> None:
    """Create the parent directory of a file-backed SQLite database."""
    url = make_url(database_url)
    if url.get_backend_name() != "sqlite" or not url.database or url.database == ":memory:":
        return
    Path(url.database).expanduser().parent.mkdir(parents=True, exist_ok=True)


def init_db(database_url: str = None):
    """
    Create the engine, make sure the schema exists and return a session factory.

    Args:
        database_url: SQLAlchemy URL (defaults to Config.DATABASE_URL)

    Returns:
        sessionmaker bound to the new engine
    """
    database_url = database_url or Config.DATABASE_URL
    _ensure_sqlite_parent(database_url)

    engine = get_engine(database_url)
    if engine.dialect.name == "sqlite" and engine.url.database not in (None, "", ":memory:"):
        # WAL lets report readers run while the collector writes
        with engine.connect() as conn:
            conn.exec_driver_sql("PRAGMA journal_mode=WAL")

    Base.metadata.create_all(engine)
    logger.info(f"Database ready at {engine.url.render_as_string(hide_password=True)}")
    return sessionmaker(bind=engine)
