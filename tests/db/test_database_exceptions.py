"""Tests for database exception translation in DatabaseManager."""

import psycopg2
import pytest

from db.exceptions import (
    ConstraintError,
    DatabaseError,
    DatabaseTypeError,
    DBConnectionError,
    ForeignKeyError,
    IntegrityError,
    SchemaError,
    TableNotFoundError,
)


@pytest.mark.parametrize(
    "raised, expected",
    [
        (
            psycopg2.IntegrityError('insert violates foreign key constraint "fk_problem"'),
            ForeignKeyError,
        ),
        (psycopg2.IntegrityError('null value in column "title" violates not-null'), ConstraintError),
        (psycopg2.IntegrityError("duplicate key value violates unique constraint"), ConstraintError),
        (psycopg2.IntegrityError("check constraint failed"), IntegrityError),
        (psycopg2.OperationalError("server closed the connection unexpectedly"), DBConnectionError),
        (psycopg2.ProgrammingError('relation "problemz" does not exist'), TableNotFoundError),
        (psycopg2.ProgrammingError('column "titel" does not exist'), SchemaError),
        (psycopg2.ProgrammingError("syntax error at or near SELEC"), DatabaseError),
        (psycopg2.DataError("invalid input syntax for type uuid"), DatabaseTypeError),
        (psycopg2.InternalError("cache lookup failed"), DatabaseError),
    ],
)
def test_psycopg2_errors_are_translated(db_manager, fake_conn, raised, expected) -> None:
    fake_conn.error = raised
    with pytest.raises(expected) as exc_info:
        db_manager.execute("INSERT INTO problems (id) VALUES (?)", ("x",))
    assert exc_info.value.__cause__ is raised


def test_failed_write_is_rolled_back(db_manager, fake_conn) -> None:
    fake_conn.error = psycopg2.IntegrityError("duplicate key value violates unique constraint")
    with pytest.raises(ConstraintError):
        db_manager.execute("INSERT INTO users (id) VALUES (?)", ("u1",))
    assert fake_conn.rollbacks == 1


def test_all_errors_share_a_base() -> None:
    for error_cls in (
        DBConnectionError,
        ForeignKeyError,
        ConstraintError,
        DatabaseTypeError,
        IntegrityError,
        SchemaError,
        TableNotFoundError,
    ):
        assert issubclass(error_cls, DatabaseError)
    assert issubclass(DatabaseTypeError, TypeError)
