"""
db/connection.py
----------------
Manages the PostgreSQL connection pool.
Uses SQLAlchemy's QueuePool over psycopg2 connections: callers queue for a
free connection (up to a timeout) instead of failing when the pool is
exhausted, and shutdown waits for in-flight work before closing connections.
"""

import threading
from contextlib import contextmanager
from typing import Iterator, Optional

import psycopg2
from sqlalchemy import exc as sa_exc
from sqlalchemy.pool import QueuePool

from config import (
    DATABASE_URL,
    DB_ACQUIRE_TIMEOUT_SECONDS,
    DB_POOL_MAX,
    DB_POOL_MIN,
    DB_SSLMODE,
)
from db.errors import PoolClosedError, PoolTimeoutError
from utils.logger import get_logger

logger = get_logger(__name__)


class ConnectionPool:
    """
    A bounded pool of PostgreSQL connections with an explicit lifecycle.

    Create it once at startup, call `open()`, hand it to the components
    that need the database, and call `close()` on shutdown.
    """

    def __init__(
        self,
        dsn: str = DATABASE_URL,
        min_conn: int = DB_POOL_MIN,
        max_conn: int = DB_POOL_MAX,
        sslmode: Optional[str] = DB_SSLMODE,
        acquire_timeout: float = DB_ACQUIRE_TIMEOUT_SECONDS,
    ):
        if min_conn < 0 or max_conn < 1 or min_conn > max_conn:
            raise ValueError(f"Invalid pool bounds: min={min_conn}, max={max_conn}")
        self.dsn = dsn
        self.min_conn = min_conn
        self.max_conn = max_conn
        self.sslmode = sslmode
        self.acquire_timeout = acquire_timeout
        self._pool: QueuePool | None = None
        self._checked_out: set = set()
        self._cond = threading.Condition()
        self._closing = False

    # ── LIFECYCLE ─────────────────────────────────────────

    @property
    def is_open(self) -> bool:
        return self._pool is not None and not self._closing

    @property
    def in_use(self) -> int:
        """Number of connections currently borrowed from the pool."""
        return len(self._checked_out)

    def _connect(self):
        kwargs = {"sslmode": self.sslmode} if self.sslmode else {}
        return psycopg2.connect(self.dsn, **kwargs)

    def open(self) -> None:
        """
        Create the pool and open `min_conn` connections. Calling it twice is a no-op.

        Raises:
            psycopg2.OperationalError: If the database is unreachable.
        """
        with self._cond:
            if self._pool is not None:
                return
            queue_pool = QueuePool(
                self._connect,
                pool_size=self.max_conn,
                max_overflow=0,
                timeout=self.acquire_timeout,
            )
            warm = []
            try:
                for _ in range(self.min_conn):
                    warm.append(queue_pool.connect())
            except psycopg2.OperationalError as e:
                for conn in warm:
                    conn.invalidate()
                queue_pool.dispose()
                logger.error(f"Failed to initialize database pool: {e}")
                raise
            for conn in warm:
                conn.close()
            self._pool = queue_pool
        logger.info(
            f"Database connection pool initialized "
            f"(min={self.min_conn}, max={self.max_conn}, sslmode={self.sslmode})."
        )

    def close(self, timeout: Optional[float] = None) -> None:
        """
        Stop handing out connections, wait for borrowed ones to come back,
        then close every connection.

        Connections still borrowed when the timeout expires are closed when
        they are eventually released.

        Args:
            timeout: Seconds to wait for in-flight work. None waits forever.
        """
        with self._cond:
            if self._pool is None:
                return
            self._closing = True
            if self._checked_out:
                logger.info(f"Draining {len(self._checked_out)} in-flight database connection(s)...")
            drained = self._cond.wait_for(lambda: not self._checked_out, timeout=timeout)
            if not drained:
                logger.warning(
                    f"Closing pool with {len(self._checked_out)} connection(s) still in use."
                )
                self._checked_out.clear()
            self._pool.dispose()
            self._pool = None
            self._closing = False
            self._cond.notify_all()
        logger.info("Database connection pool closed.")

    # ── ACQUIRE / RELEASE ─────────────────────────────────

    def get_connection(self):
        """
        Borrow a connection, waiting up to `acquire_timeout` for one to free.

        Returns:
            A pooled psycopg2 connection (SQLAlchemy connection proxy).

        Raises:
            PoolClosedError: If the pool is not open or is shutting down.
            PoolTimeoutError: If no connection freed in time.
        """
        with self._cond:
            if not self.is_open:
                raise PoolClosedError("Database pool not open. Call open() first.")
            queue_pool = self._pool
        try:
            conn = queue_pool.connect()
        except sa_exc.TimeoutError:
            logger.error(
                f"Timed out after {self.acquire_timeout}s waiting for a database connection."
            )
            raise PoolTimeoutError(
                f"No database connection available within {self.acquire_timeout}s"
            ) from None
        except Exception as e:
            logger.error(f"Failed to get a database connection: {e}")
            raise
        with self._cond:
            if self._pool is queue_pool and not self._closing:
                self._checked_out.add(conn)
                return conn
        conn.invalidate()
        raise PoolClosedError("Database pool is shutting down.")

    def release_connection(self, conn) -> None:
        """
        Return a connection to the pool. Broken connections, and connections
        outliving a pool that was already closed, are discarded.

        Args:
            conn: The connection returned by `get_connection`.
        """
        with self._cond:
            owned = conn in self._checked_out
            self._checked_out.discard(conn)
            # Checked in before close() can dispose the pool it belongs to
            if owned and not conn.closed:
                conn.close()
            else:
                conn.invalidate()
            self._cond.notify_all()

    @contextmanager
    def connection(self) -> Iterator:
        """Borrow a connection for the duration of a `with` block."""
        conn = self.get_connection()
        try:
            yield conn
        finally:
            self.release_connection(conn)
