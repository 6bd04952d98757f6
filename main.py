"""
main.py
-------
Entry point for the nomore backend core.

Responsibilities:
    - Open the database connection pool and initialize the schema.
    - Build the record repository that request handlers use for persistence.
    - Drain and close the pool when the process is asked to stop.

Running it directly bootstraps the schema and exits:
    python main.py
"""

import signal
import sys

from config import APP_ENV, DB_DRAIN_TIMEOUT_SECONDS
from db.connection import ConnectionPool
from db.init_db import initialize
from repositories.record_repo import RecordRepository
from utils.logger import get_logger

logger = get_logger(__name__)


def startup(db_pool: ConnectionPool | None = None) -> tuple[ConnectionPool, RecordRepository]:
    """
    Open the pool and make sure every table exists.

    Any failure closes the pool again and propagates: the process must not
    serve requests against a partially initialized schema.

    Returns:
        The open pool and a repository bound to it.
    """
    db_pool = db_pool or ConnectionPool()
    logger.info(f"Initializing database ({APP_ENV})...")
    db_pool.open()
    try:
        initialize(db_pool)
    except Exception:
        logger.error("Startup aborted: database schema could not be initialized.")
        db_pool.close(timeout=0)
        raise
    return db_pool, RecordRepository(db_pool)


def shutdown(db_pool: ConnectionPool) -> None:
    """Let in-flight statements finish, then close every connection."""
    logger.info("🔄 Closing database connections...")
    db_pool.close(timeout=DB_DRAIN_TIMEOUT_SECONDS)
    logger.info("✅ Database connections closed.")


def install_signal_handlers() -> None:
    """
    Turn SIGINT and SIGTERM into a clean SystemExit.

    The handler runs on the main thread, possibly while that thread holds a
    pooled connection, so it never drains the pool itself: waiting there
    would block on its own connection until the drain timeout. Raising
    SystemExit unwinds the interrupted `with` blocks first, and the caller
    drains the pool in its `finally`.
    """

    def _handle(signum, _frame) -> None:
        logger.info(f"{signal.Signals(signum).name} received, shutting down gracefully.")
        sys.exit(0)

    signal.signal(signal.SIGINT, _handle)
    signal.signal(signal.SIGTERM, _handle)


def main() -> None:
    """Bootstrap the schema, then release the pool."""
    db_pool, _ = startup()
    try:
        install_signal_handlers()
        logger.info("🚀 Database schema is ready.")
    finally:
        shutdown(db_pool)


if __name__ == "__main__":
    main()
