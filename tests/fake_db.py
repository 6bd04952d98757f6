"""In-memory stand-ins for psycopg2 connections, cursors and pools.

The fake connection records every statement it executes (rendered to text)
and answers from a queue of scripted results, so repository tests can check
the SQL they produce without a running PostgreSQL.
"""

from contextlib import contextmanager

from psycopg2 import sql


def render(statement) -> str:
    """Render a `psycopg2.sql` composable to text without a connection."""
    if isinstance(statement, str):
        return statement
    if isinstance(statement, sql.Composed):
        return "".join(render(part) for part in statement.seq)
    if isinstance(statement, sql.SQL):
        return statement.string
    if isinstance(statement, sql.Identifier):
        return ".".join(f'"{s}"' for s in statement.strings)
    if isinstance(statement, sql.Placeholder):
        return "%s" if statement.name is None else f"%({statement.name})s"
    raise TypeError(f"Cannot render {statement!r}")


class FakeCursor:
    def __init__(self, conn):
        self.conn = conn
        self.description = None
        self.rowcount = -1
        self._rows = []

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        return False

    def execute(self, statement, params=None):
        self.conn.executed.append((render(statement), params))
        result = self.conn.results.pop(0) if self.conn.results else {"rows": None, "rowcount": 0}
        if isinstance(result, Exception):
            raise result
        rows = result["rows"]
        self._rows = rows or []
        self.description = None if rows is None else [("column",)]
        self.rowcount = result["rowcount"] if result["rowcount"] is not None else len(self._rows)

    def fetchall(self):
        return list(self._rows)


class FakeConnection:
    def __init__(self):
        self.executed = []
        self.results = []
        self.commits = 0
        self.rollbacks = 0
        self.closed = 0
        self.cursor_factories = []

    def cursor(self, cursor_factory=None):
        self.cursor_factories.append(cursor_factory)
        return FakeCursor(self)

    def commit(self):
        self.commits += 1

    def rollback(self):
        self.rollbacks += 1

    def close(self):
        self.closed = 1


class FakePool:
    """Hands out one shared FakeConnection and counts acquire/release."""

    def __init__(self):
        self.conn = FakeConnection()
        self.acquired = 0
        self.released = 0

    def returns(self, rows=None, rowcount=None):
        """Queue the result of the next statement (rows=None: no result set)."""
        self.conn.results.append({"rows": rows, "rowcount": rowcount})

    def fails(self, error: Exception):
        """Make the next statement raise `error`."""
        self.conn.results.append(error)

    @property
    def executed(self):
        return self.conn.executed

    @contextmanager
    def connection(self):
        self.acquired += 1
        try:
            yield self.conn
        finally:
            self.released += 1


class FakeConnect:
    """Replacement for psycopg2.connect that records each call."""

    def __init__(self):
        self.calls = []
        self.connections = []

    def __call__(self, *args, **kwargs):
        self.calls.append((args, kwargs))
        conn = FakeConnection()
        self.connections.append(conn)
        return conn
