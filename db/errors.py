"""
db/errors.py
------------
Exceptions raised by the database layer itself.

Storage-engine failures (unique/check violations, lost connections) are not
wrapped: they surface as the psycopg2 exceptions the driver raises
(`psycopg2.IntegrityError`, `psycopg2.OperationalError`, ...).
"""


class PoolError(RuntimeError):
    """Base class for connection pool failures."""


class PoolClosedError(PoolError):
    """The pool is not open, or is draining for shutdown."""


class PoolTimeoutError(PoolError):
    """No connection became free within the acquisition timeout."""


class RecordError(ValueError):
    """Base class for caller errors detected before a statement is sent."""


class UnknownEntityKindError(RecordError):
    """The entity kind is not one of the known tables."""


class UnknownFieldError(RecordError):
    """A field name is not a writable column of the entity's table."""


class JsonShapeError(RecordError):
    """A JSON column value does not match its documented shape."""


class EmptyUpdateError(RecordError):
    """An update was requested without any fields to change."""


class UnsupportedLookupError(RecordError):
    """The entity kind has no column for the requested lookup."""
