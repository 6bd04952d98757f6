"""Schema initializer: idempotent DDL for every entity table.

Tests cover:
    - every registered table and column is declared, non-destructively
    - defaults, check constraints and indexes match the stored schema
    - initialize() commits once, or rolls back and re-raises
"""

import re

import psycopg2
import pytest

from db.init_db import INDEX_SQL, SCHEMA_SQL, UPGRADE_SQL, initialize
from models.entity_kind import ENTITY_SPECS, EntityKind
from models.json_fields import JsonShape


def _table_block(table: str) -> str:
    match = re.search(
        rf"CREATE TABLE IF NOT EXISTS {table} \((.*?)\n\);", SCHEMA_SQL, re.DOTALL
    )
    assert match, f"no CREATE TABLE for {table}"
    return match.group(1)


def _column_line(table: str, column: str) -> str:
    for line in _table_block(table).splitlines():
        parts = line.split()
        if parts and parts[0] == column:
            return line
    raise AssertionError(f"{table}.{column} not declared")


def test_schema_never_drops_or_recreates():
    ddl = SCHEMA_SQL + UPGRADE_SQL + INDEX_SQL
    assert "DROP" not in ddl.upper()
    assert SCHEMA_SQL.count("CREATE TABLE IF NOT EXISTS") == len(EntityKind)
    assert SCHEMA_SQL.count("CREATE TABLE") == len(EntityKind)
    assert INDEX_SQL.count("CREATE INDEX IF NOT EXISTS") == INDEX_SQL.count("CREATE INDEX")


@pytest.mark.parametrize("kind", list(EntityKind))
def test_every_registered_column_is_declared(kind):
    spec = kind.spec
    for column in spec.columns + ("id", "created_at", "updated_at"):
        _column_line(spec.table, column)
    assert "UNIQUE NOT NULL" in _column_line(spec.table, spec.id_column)


@pytest.mark.parametrize("kind", list(EntityKind))
def test_json_columns_default_to_empty_container(kind):
    for column, shape in kind.spec.json_columns.items():
        line = _column_line(kind.table, column)
        expected = "'{}'" if shape is JsonShape.MAPPING else "'[]'"
        assert f"JSONB DEFAULT {expected}" in line


@pytest.mark.parametrize("table, column, default", [
    ("goals", "status", "'active'"),
    ("habits", "frequency", "'daily'"),
    ("tasks", "priority", "'medium'"),
    ("users", "energy_preference", "'morning'"),
    ("hobby_posts", "type", "'text'"),
    ("career_tasks", "estimated_time", "30"),
    ("tasks", "completed", "FALSE"),
    ("focus_sessions", "completed", "FALSE"),
    ("career_tasks", "completed", "FALSE"),
])
def test_sentinel_defaults(table, column, default):
    assert f"DEFAULT {default}" in _column_line(table, column)


@pytest.mark.parametrize("table, column", [
    ("stress_logs", "mood"),
    ("stress_logs", "fatigue"),
    ("mood_entries", "mood"),
    ("mood_entries", "energy"),
])
def test_rating_columns_are_range_checked(table, column):
    assert f"CHECK ({column} >= 1 AND {column} <= 5)" in _column_line(table, column)


def test_legacy_tables_gain_updated_at():
    for table in ("stress_logs", "focus_sessions", "expenses", "hobby_posts", "weekly_reflections"):
        assert f"ALTER TABLE {table} ADD COLUMN IF NOT EXISTS updated_at" in UPGRADE_SQL


def test_owner_index_per_table_except_feed():
    for spec in ENTITY_SPECS.values():
        if spec.table == "hobby_posts":
            continue
        assert f"idx_{spec.table}_user_id ON {spec.table}(user_id)" in INDEX_SQL
    assert "idx_hobby_posts_created_at ON hobby_posts(created_at DESC)" in INDEX_SQL
    assert "ON hobby_posts(user_id)" not in INDEX_SQL


def test_initialize_runs_all_statements_and_commits(fake_pool):
    initialize(fake_pool)

    statements = [statement for statement, _ in fake_pool.executed]
    assert statements == [SCHEMA_SQL, UPGRADE_SQL, INDEX_SQL]
    assert fake_pool.conn.commits == 1
    assert fake_pool.conn.rollbacks == 0
    assert fake_pool.released == 1


def test_initialize_rolls_back_and_reraises(fake_pool):
    fake_pool.returns()
    fake_pool.fails(psycopg2.ProgrammingError("permission denied for schema public"))

    with pytest.raises(psycopg2.ProgrammingError):
        initialize(fake_pool)

    assert fake_pool.conn.commits == 0
    assert fake_pool.conn.rollbacks == 1
    assert fake_pool.released == 1
