"""
models/json_fields.py
---------------------
Shapes of the JSONB columns.

Each JSONB column stores either a list or an object. Values are checked
against their shape before they reach the database and wrapped in
`psycopg2.extras.Json` so the driver serializes them.
"""

from collections.abc import Mapping, Sequence
from datetime import date, datetime
from enum import Enum
from typing import Any

from psycopg2.extras import Json

from db.errors import JsonShapeError


class JsonShape(str, Enum):
    """Documented shape of a JSONB column."""
    STRING_LIST = "string_list"  # sequence of str
    DATE_LIST = "date_list"      # sequence of ISO dates (str or datetime.date)
    MAPPING = "mapping"          # mapping of str -> any JSON value


def _as_list(column: str, value: Any) -> list:
    if isinstance(value, (str, bytes)) or not isinstance(value, Sequence):
        raise JsonShapeError(
            f"Column '{column}' expects a list, got {type(value).__name__}"
        )
    return list(value)


def _string_list(column: str, value: Any) -> list[str]:
    items = _as_list(column, value)
    for item in items:
        if not isinstance(item, str):
            raise JsonShapeError(
                f"Column '{column}' expects a list of strings, "
                f"found {type(item).__name__}"
            )
    return items


def _date_list(column: str, value: Any) -> list[str]:
    result = []
    for item in _as_list(column, value):
        if isinstance(item, datetime):
            result.append(item.date().isoformat())
            continue
        if isinstance(item, date):
            result.append(item.isoformat())
            continue
        if not isinstance(item, str):
            raise JsonShapeError(
                f"Column '{column}' expects a list of dates, "
                f"found {type(item).__name__}"
            )
        try:
            day = date.fromisoformat(item)
        except ValueError:
            raise JsonShapeError(
                f"Column '{column}' has an invalid ISO date: {item!r}"
            ) from None
        result.append(day.isoformat())
    return result


def _mapping(column: str, value: Any) -> dict:
    if not isinstance(value, Mapping):
        raise JsonShapeError(
            f"Column '{column}' expects an object, got {type(value).__name__}"
        )
    for key in value:
        if not isinstance(key, str):
            raise JsonShapeError(
                f"Column '{column}' expects string keys, found {type(key).__name__}"
            )
    return dict(value)


_NORMALIZERS = {
    JsonShape.STRING_LIST: _string_list,
    JsonShape.DATE_LIST: _date_list,
    JsonShape.MAPPING: _mapping,
}


def adapt_json(shape: JsonShape, column: str, value: Any) -> Json | None:
    """
    Validate a value against its column shape and wrap it for psycopg2.

    Args:
        shape: The column's documented shape.
        column: Column name, used in error messages.
        value: The caller-supplied value. ``None`` stores SQL NULL.

    Returns:
        A `Json` adapter, or None.

    Raises:
        JsonShapeError: If the value does not match the shape.
    """
    if value is None:
        return None
    return Json(_NORMALIZERS[shape](column, value))
