"""
Database exceptions raised by DatabaseManager.

psycopg2 errors never leak past the manager; they are translated into this
hierarchy so callers can catch DatabaseError without importing the driver.
"""


class DatabaseError(Exception):
    """Base class for all database-related exceptions."""


class DBConnectionError(DatabaseError):
    """Raised when the PostgreSQL connection cannot be established or is gone."""


class ForeignKeyError(DatabaseError):
    """Raised when a row references a user, problem or session that does not exist."""


class ConstraintError(DatabaseError):
    """Raised on NOT NULL, UNIQUE or CHECK violations."""


class DatabaseTypeError(DatabaseError, TypeError):
    """Raised when a parameter cannot be converted to the column type."""


class IntegrityError(DatabaseError):
    """Raised for any other integrity violation."""


class SchemaError(DatabaseError):
    """Raised when a query references a column that does not exist."""


class TableNotFoundError(DatabaseError):
    """Raised when a query references a table that does not exist."""
