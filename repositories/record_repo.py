"""
repositories/record_repo.py
---------------------------
Table-agnostic data access for every entity kind.

Every table shares the same layout (public id column, `user_id` owner
column, timestamps), so one repository serves them all. Table and column
names come from the entity registry and are quoted as SQL identifiers;
values are always bound parameters. Every read, update and delete is
scoped by owner: a row belonging to another user is never returned,
changed or removed.
"""

from collections.abc import Mapping
from datetime import date
from typing import Any, Optional

from psycopg2 import extras, sql

from config import RECENT_POSTS_LIMIT
from db.connection import ConnectionPool
from db.errors import (
    EmptyUpdateError,
    RecordError,
    UnknownFieldError,
    UnsupportedLookupError,
)
from models.entity_kind import OWNER_COLUMN, EntityKind, EntitySpec, resolve_kind
from models.json_fields import adapt_json
from utils.logger import get_logger

logger = get_logger(__name__)

# Strictly later than the previous value, even if the clock stepped back.
_TOUCH_UPDATED_AT = sql.SQL(
    "updated_at = GREATEST(CURRENT_TIMESTAMP, updated_at + INTERVAL '1 microsecond')"
)


class RecordRepository:
    """Generic CRUD over the entity tables, bound to one connection pool."""

    def __init__(self, db_pool: ConnectionPool):
        self.pool = db_pool

    # ── RAW ───────────────────────────────────────────────

    def query(self, statement, params: Optional[Any] = None) -> list[dict]:
        """
        Execute one statement on a pooled connection and commit.

        Args:
            statement: SQL text or a `psycopg2.sql.Composable`.
            params: Bound parameters for the statement.

        Returns:
            Result rows as dicts (empty when the statement returns none).
        """
        try:
            rows, _ = self._execute(statement, params)
        except Exception as e:
            logger.error(f"Query failed: {e}")
            raise
        return rows

    def _execute(self, statement, params=None) -> tuple[list[dict], int]:
        """Run a statement, returning its rows and affected row count."""
        with self.pool.connection() as conn:
            try:
                with conn.cursor(cursor_factory=extras.RealDictCursor) as cur:
                    cur.execute(statement, params)
                    rows = [dict(r) for r in cur.fetchall()] if cur.description else []
                    rowcount = cur.rowcount
                conn.commit()
                return rows, rowcount
            except Exception:
                conn.rollback()
                raise

    # ── CREATE ────────────────────────────────────────────

    def create(self, kind: EntityKind | str, fields: Mapping[str, Any]) -> dict:
        """
        Insert one row with exactly the supplied columns.

        Args:
            kind: Entity kind or its table name.
            fields: Column values, including the public id and `user_id`.

        Returns:
            The stored row, with defaults and timestamps filled in.

        Raises:
            psycopg2.IntegrityError: Duplicate public id or a violated check.
        """
        spec = resolve_kind(kind).spec
        if not fields:
            raise RecordError(f"Cannot insert into {spec.table} without fields")
        values = self._prepare(spec, fields, frozenset(spec.columns))

        statement = sql.SQL("INSERT INTO {table} ({columns}) VALUES ({values}) RETURNING *").format(
            table=sql.Identifier(spec.table),
            columns=sql.SQL(", ").join(sql.Identifier(c) for c in values),
            values=sql.SQL(", ").join([sql.Placeholder()] * len(values)),
        )
        try:
            rows, _ = self._execute(statement, list(values.values()))
        except Exception as e:
            logger.error(f"Failed to create {spec.table} row: {e}")
            raise
        row = rows[0]
        logger.info(
            f"Created {spec.table} '{row.get(spec.id_column)}' for user {row.get(OWNER_COLUMN)}"
        )
        return row

    # ── READ ──────────────────────────────────────────────

    def list_by_owner(self, kind: EntityKind | str, owner_id: str) -> list[dict]:
        """All rows of one owner, newest first."""
        spec = resolve_kind(kind).spec
        statement = sql.SQL(
            "SELECT * FROM {table} WHERE {owner} = %s ORDER BY created_at DESC, id DESC"
        ).format(table=sql.Identifier(spec.table), owner=sql.Identifier(OWNER_COLUMN))
        return self.query(statement, [owner_id])

    def find_one(self, kind: EntityKind | str, public_id: str, owner_id: str) -> Optional[dict]:
        """
        Fetch one row by its public id, scoped to an owner.

        Returns:
            The row, or None if no row matches both id and owner.
        """
        spec = resolve_kind(kind).spec
        statement = sql.SQL("SELECT * FROM {table} WHERE {id_column} = %s AND {owner} = %s").format(
            table=sql.Identifier(spec.table),
            id_column=sql.Identifier(spec.id_column),
            owner=sql.Identifier(OWNER_COLUMN),
        )
        rows = self.query(statement, [public_id, owner_id])
        return rows[0] if rows else None

    def find_one_by_owner_and_date(
        self, kind: EntityKind | str, owner_id: str, day: date | str
    ) -> Optional[dict]:
        """
        Fetch the row of a daily-log style entity for one owner and date.

        Raises:
            UnsupportedLookupError: If the kind has no date column.
        """
        spec = resolve_kind(kind).spec
        if spec.date_column is None:
            raise UnsupportedLookupError(f"{spec.table} has no date column to look up by")
        statement = sql.SQL(
            "SELECT * FROM {table} WHERE {owner} = %s AND {date_column} = %s "
            "ORDER BY created_at DESC, id DESC LIMIT 1"
        ).format(
            table=sql.Identifier(spec.table),
            owner=sql.Identifier(OWNER_COLUMN),
            date_column=sql.Identifier(spec.date_column),
        )
        rows = self.query(statement, [owner_id, day])
        return rows[0] if rows else None

    def list_recent_posts(self, limit: int = RECENT_POSTS_LIMIT) -> list[dict]:
        """Newest hobby posts across all users."""
        if not isinstance(limit, int) or isinstance(limit, bool) or limit < 1:
            raise RecordError(f"limit must be a positive integer, got {limit!r}")
        statement = sql.SQL(
            "SELECT * FROM {table} ORDER BY created_at DESC, id DESC LIMIT %s"
        ).format(table=sql.Identifier(EntityKind.HOBBY_POST.table))
        return self.query(statement, [limit])

    # ── UPDATE ────────────────────────────────────────────

    def update(
        self,
        kind: EntityKind | str,
        public_id: str,
        fields: Mapping[str, Any],
        owner_id: str,
    ) -> Optional[dict]:
        """
        Change the supplied columns of one row and refresh `updated_at`.

        Args:
            kind: Entity kind or its table name.
            public_id: The row's public id.
            fields: Columns to change. The id and owner columns are fixed.
            owner_id: Owner the row must belong to.

        Returns:
            The updated row, or None if no row matches both id and owner.

        Raises:
            EmptyUpdateError: If `fields` is empty.
        """
        spec = resolve_kind(kind).spec
        if not fields:
            raise EmptyUpdateError(f"No fields given to update in {spec.table}")
        values = self._prepare(spec, fields, spec.updatable_columns)

        assignments = [
            sql.SQL("{} = %s").format(sql.Identifier(column)) for column in values
        ]
        statement = sql.SQL(
            "UPDATE {table} SET {assignments} WHERE {id_column} = %s AND {owner} = %s RETURNING *"
        ).format(
            table=sql.Identifier(spec.table),
            assignments=sql.SQL(", ").join(assignments + [_TOUCH_UPDATED_AT]),
            id_column=sql.Identifier(spec.id_column),
            owner=sql.Identifier(OWNER_COLUMN),
        )
        try:
            rows, _ = self._execute(statement, [*values.values(), public_id, owner_id])
        except Exception as e:
            logger.error(f"Failed to update {spec.table} '{public_id}': {e}")
            raise
        if not rows:
            return None
        logger.info(f"Updated {spec.table} '{public_id}' for user {owner_id}")
        return rows[0]

    # ── DELETE ────────────────────────────────────────────

    def remove(self, kind: EntityKind | str, public_id: str, owner_id: str) -> bool:
        """
        Delete one row by public id, scoped to an owner.

        Returns:
            True if a row was deleted, False otherwise.
        """
        spec = resolve_kind(kind).spec
        statement = sql.SQL("DELETE FROM {table} WHERE {id_column} = %s AND {owner} = %s").format(
            table=sql.Identifier(spec.table),
            id_column=sql.Identifier(spec.id_column),
            owner=sql.Identifier(OWNER_COLUMN),
        )
        try:
            _, rowcount = self._execute(statement, [public_id, owner_id])
        except Exception as e:
            logger.error(f"Failed to delete {spec.table} '{public_id}': {e}")
            raise
        deleted = rowcount > 0
        if deleted:
            logger.info(f"Deleted {spec.table} '{public_id}' for user {owner_id}")
        return deleted

    # ── HELPERS ───────────────────────────────────────────

    @staticmethod
    def _prepare(
        spec: EntitySpec, fields: Mapping[str, Any], allowed: frozenset[str]
    ) -> dict[str, Any]:
        """Check column names against `allowed` and adapt JSON values."""
        unknown = sorted(set(fields) - allowed)
        if unknown:
            raise UnknownFieldError(
                f"Column(s) not writable in {spec.table}: {', '.join(unknown)}"
            )
        values = {}
        for column, value in fields.items():
            shape = spec.json_columns.get(column)
            values[column] = adapt_json(shape, column, value) if shape else value
        return values
