"""Central database manager for the Kata Typer API.

Provides connection, query, transaction and schema management with specific
exception handling on top of a single psycopg2 PostgreSQL connection.

All database access goes through this class. Queries are written with ``?``
placeholders and converted to psycopg2's ``%s`` style before execution.
"""

import contextlib
import logging
import re
import time
from typing import (
    Dict,
    Iterable,
    Iterator,
    List,
    NoReturn,
    Optional,
    Protocol,
    Sequence,
    Tuple,
    Type,
    cast,
)

import psycopg2
from psycopg2 import extras as psycopg2_extras

from helpers.app_config import AppConfig
from helpers.debug_util import DebugUtil

from .exceptions import (
    ConstraintError,
    DatabaseError,
    DatabaseTypeError,
    DBConnectionError,
    ForeignKeyError,
    IntegrityError,
    SchemaError,
    TableNotFoundError,
)

logger = logging.getLogger(__name__)


class CursorProtocol(Protocol):
    """Minimal DB-API cursor protocol used by DatabaseManager."""

    def execute(self, query: str, params: Tuple[object, ...] = ...) -> object:
        """Execute a single SQL statement with optional parameters."""
        ...

    def executemany(self, query: str, seq_of_params: Iterable[Tuple[object, ...]]) -> object:
        """Execute a SQL statement against all parameter tuples."""
        ...

    def fetchone(self) -> Optional[Tuple[object, ...]]:
        """Fetch the next row of a query result."""
        ...

    def fetchall(self) -> List[Tuple[object, ...]]:
        """Fetch all remaining rows of a query result."""
        ...

    def close(self) -> None:
        """Close the cursor."""
        ...

    @property
    def description(self) -> Optional[Sequence[Sequence[object]]]:
        """Column metadata, or None before a row-returning statement ran."""
        ...

    @property
    def rowcount(self) -> int:
        """Rows affected by the last statement."""
        ...


class ConnectionProtocol(Protocol):
    """Minimal DB-API connection protocol used by DatabaseManager."""

    autocommit: bool

    def cursor(self) -> CursorProtocol:
        """Return a new database cursor."""
        ...

    def commit(self) -> None:
        """Commit the current transaction."""
        ...

    def rollback(self) -> None:
        """Rollback the current transaction."""
        ...

    def close(self) -> None:
        """Close the underlying connection."""
        ...


class DatabaseManager:
    """Centralized manager for database connections and operations.

    Handles connection management, query execution, transactions, schema
    initialization and exception translation. A single instance is created at
    application start-up and shared by every request handler.
    """

    SCHEMA_NAME = "kata"

    def __init__(
        self,
        dsn: str = "",
        *,
        schema: Optional[str] = None,
        sslmode: Optional[str] = None,
        connection: Optional[ConnectionProtocol] = None,
        debug_util: Optional[DebugUtil] = None,
    ) -> None:
        """Initialize a DatabaseManager.

        Args:
            dsn: libpq connection string, e.g. ``postgresql://user:pw@host/db``.
            schema: Schema holding the application tables. Defaults to SCHEMA_NAME.
            sslmode: Optional libpq sslmode, ``require`` in production.
            connection: An already open connection. When given, ``dsn`` is ignored.
            debug_util: Optional DebugUtil instance for handling debug output.

        Raises:
            DBConnectionError: If the database connection cannot be established.
        """
        self.dsn = dsn
        self.schema = schema or self.SCHEMA_NAME
        self.sslmode = sslmode
        self.debug_util = debug_util or DebugUtil()
        self._in_transaction = False

        if connection is not None:
            self._conn: Optional[ConnectionProtocol] = connection
        else:
            self._conn = None
            self._connect()

    @classmethod
    def from_config(cls, config: AppConfig) -> "DatabaseManager":
        """Build a manager from the application configuration."""
        return cls(
            config.database_url,
            schema=config.schema_name,
            sslmode="require" if config.is_production else None,
            debug_util=DebugUtil(mode=config.debug_mode),
        )

    def _connect(self) -> None:
        """Open the psycopg2 connection and point search_path at our schema.

        Raises:
            DBConnectionError: If the database connection cannot be established.
        """
        if not self.dsn:
            raise DBConnectionError("No database URL configured")
        try:
            kwargs: Dict[str, str] = {"options": f"-c search_path={self.schema},public"}
            if self.sslmode:
                kwargs["sslmode"] = self.sslmode
            conn = cast(ConnectionProtocol, psycopg2.connect(self.dsn, **kwargs))
            conn.autocommit = True
            self._conn = conn

            cursor = conn.cursor()
            cursor.execute(f"CREATE SCHEMA IF NOT EXISTS {self.schema}")
            cursor.close()
        except psycopg2.Error as e:
            logger.error("PostgreSQL connection failed: %s", e)
            raise DBConnectionError(f"Failed to connect to PostgreSQL database: {e}") from e

    def close(self) -> None:
        """Close the database connection."""
        if self._conn is not None:
            try:
                self._conn.close()
            finally:
                self._conn = None

    def _get_cursor(self) -> CursorProtocol:
        """Get a cursor from the database connection.

        Raises:
            DBConnectionError: If the database connection is not established.
        """
        if self._conn is None:
            raise DBConnectionError("Database connection is not established")
        return self._conn.cursor()

    def _qualify_schema_in_query(self, query: str) -> str:
        """Convert ``?`` placeholders and schema-qualify CREATE TABLE statements.

        DML relies on the search_path set at connect time; only DDL needs the
        explicit schema so tables never land in ``public``.
        """
        if "?" in query:
            query = query.replace("?", "%s")

        m = re.search(r"(?i)^\s*CREATE\s+TABLE\s+(?:IF\s+NOT\s+EXISTS\s+)?([^\s;(]+)", query)
        if m and "." not in m.group(1):
            start, end = m.span(1)
            query = f"{query[:start]}{self.schema}.{m.group(1)}{query[end:]}"
        return query

    def _translate_and_raise(self, e: Exception) -> NoReturn:
        """Translate psycopg2 exceptions to our custom exceptions and raise."""
        if isinstance(e, DatabaseError):
            raise e
        if isinstance(e, psycopg2.IntegrityError):
            error_msg = str(e).lower()
            if "foreign key" in error_msg:
                raise ForeignKeyError(f"Foreign key constraint failed: {e}") from e
            if "not-null" in error_msg or "null value" in error_msg or "unique" in error_msg:
                raise ConstraintError(f"Constraint violation: {e}") from e
            raise IntegrityError(f"Integrity error: {e}") from e
        if isinstance(e, (psycopg2.OperationalError, psycopg2.ProgrammingError)):
            error_msg = str(e).lower()
            if "connection" in error_msg:
                raise DBConnectionError(f"Failed to connect to PostgreSQL database: {e}") from e
            if "relation" in error_msg and "does not exist" in error_msg:
                raise TableNotFoundError(f"Table not found: {e}") from e
            if "column" in error_msg and "does not exist" in error_msg:
                raise SchemaError(f"Schema error: {e}") from e
            raise DatabaseError(f"Database operation failed: {e}") from e
        if isinstance(e, psycopg2.DataError):
            raise DatabaseTypeError(f"Type error in query parameters: {e}") from e
        if isinstance(e, psycopg2.DatabaseError):
            raise DatabaseError(f"Database error: {e}") from e
        raise DatabaseError(f"Unexpected database error: {e}") from e

    def _rollback_quietly(self) -> None:
        if self._conn is None or self._in_transaction:
            return
        try:
            self._conn.rollback()
        except psycopg2.Error as rollback_exc:
            logger.warning("Rollback failed: %s", rollback_exc)

    def _commit_unless_select(self, query: str) -> None:
        if self._conn is None or self._in_transaction:
            return
        if not query.strip().upper().startswith("SELECT"):
            self._conn.commit()

    def execute(self, query: str, params: Tuple[object, ...] = ()) -> CursorProtocol:
        """Execute a SQL query with parameters.

        Outside a transaction non-SELECT statements are committed immediately.

        Args:
            query: SQL query string (parameterized with ``?``)
            params: Query parameters

        Returns:
            Database cursor object

        Raises:
            DBConnectionError, TableNotFoundError, SchemaError, DatabaseError,
            ForeignKeyError, ConstraintError, IntegrityError, DatabaseTypeError
        """
        start = time.monotonic()
        try:
            cursor = self._get_cursor()
            query = self._qualify_schema_in_query(query)
            self.debug_util.debugMessage(f"Executing SQL: {' '.join(query.split())}; params={params}")
            cursor.execute(query, params)
            self._commit_unless_select(query)
            logger.debug(
                "Executed query in %.1f ms, rows=%s",
                (time.monotonic() - start) * 1000,
                getattr(cursor, "rowcount", None),
            )
            return cursor
        except Exception as e:
            logger.error("Database query error: %s", e)
            self._rollback_quietly()
            self._translate_and_raise(e)

    def execute_many(
        self,
        query: str,
        params_seq: Iterable[Tuple[object, ...]],
        *,
        page_size: int = 1000,
    ) -> CursorProtocol:
        """Execute an INSERT for many rows.

        Uses ``psycopg2.extras.execute_values`` when the statement has a plain
        ``VALUES (?, ?, ...)`` tuple, falling back to DB-API ``executemany``.
        """
        params_list: List[Tuple[object, ...]] = list(params_seq)
        try:
            cursor = self._get_cursor()
            query = self._qualify_schema_in_query(query)
            pattern = r"VALUES\s*\((?:\s*%s\s*,?\s*)+\)"
            if re.search(pattern, query, flags=re.IGNORECASE):
                values_query = re.sub(pattern, "VALUES %s", query, count=1, flags=re.IGNORECASE)
                psycopg2_extras.execute_values(cursor, values_query, params_list, page_size=page_size)
            else:
                cursor.executemany(query, params_list)
            self._commit_unless_select(query)
            logger.debug("Bulk executed %d rows", len(params_list))
            return cursor
        except Exception as e:
            logger.error("Bulk execution error: %s", e)
            self._rollback_quietly()
            self._translate_and_raise(e)

    @staticmethod
    def _row_to_dict(cursor: CursorProtocol, row: Sequence[object]) -> Dict[str, object]:
        assert cursor.description is not None
        col_names = [cast(str, desc[0]) for desc in cursor.description]
        return {col_names[i]: row[i] for i in range(len(col_names))}

    def fetchone(self, query: str, params: Tuple[object, ...] = ()) -> Optional[Dict[str, object]]:
        """Execute a SQL query and fetch a single row as a dict keyed by column name."""
        cursor = self.execute(query, params)
        result = cursor.fetchone()
        if result is None:
            return None
        return self._row_to_dict(cursor, result)

    def fetchall(self, query: str, params: Tuple[object, ...] = ()) -> List[Dict[str, object]]:
        """Execute a query and return all rows as a list of dicts."""
        cursor = self.execute(query, params)
        results = cursor.fetchall()
        if not results:
            return []
        return [self._row_to_dict(cursor, row) for row in results]

    @contextlib.contextmanager
    def transaction(self) -> Iterator["DatabaseManager"]:
        """Run the enclosed statements in one transaction.

        Commits on normal exit, rolls back and re-raises on any exception.
        Nested use joins the outer transaction.
        """
        if self._in_transaction:
            yield self
            return
        if self._conn is None:
            raise DBConnectionError("Database connection is not established")

        conn = self._conn
        conn.autocommit = False
        self._in_transaction = True
        try:
            yield self
            conn.commit()
        except Exception:
            logger.warning("Transaction failed, rolling back")
            conn.rollback()
            raise
        finally:
            self._in_transaction = False
            conn.autocommit = True

    def table_exists(self, table_name: str) -> bool:
        """Check if a table exists in the application schema."""
        result = self.fetchone(
            "SELECT 1 FROM information_schema.tables "
            "WHERE table_schema = ? AND table_name = ? AND table_type = 'BASE TABLE'",
            (self.schema, table_name),
        )
        return result is not None

    def _execute_ddl(self, query: str) -> None:
        self.execute(query)

    def _create_users_table(self) -> None:
        self._execute_ddl(
            """
            CREATE TABLE IF NOT EXISTS users (
                id UUID PRIMARY KEY,
                auth_id TEXT NOT NULL UNIQUE,
                email_address TEXT,
                username TEXT,
                first_name TEXT,
                last_name TEXT,
                profile_image_url TEXT,
                created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
                updated_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
            );
            """
        )

    def _create_problems_table(self) -> None:
        self._execute_ddl(
            """
            CREATE TABLE IF NOT EXISTS problems (
                id UUID PRIMARY KEY,
                title TEXT NOT NULL,
                description TEXT NOT NULL DEFAULT '',
                category TEXT NOT NULL,
                language TEXT NOT NULL DEFAULT 'javascript',
                solution_code TEXT NOT NULL,
                estimated_time_minutes INTEGER NOT NULL DEFAULT 5,
                created_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
            );
            """
        )

    def _create_attempt_sessions_table(self) -> None:
        self._execute_ddl(
            """
            CREATE TABLE IF NOT EXISTS attempt_sessions (
                id UUID PRIMARY KEY,
                user_id UUID NOT NULL REFERENCES users(id) ON DELETE CASCADE,
                problem_id UUID NOT NULL REFERENCES problems(id) ON DELETE CASCADE,
                started_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
                completed_at TIMESTAMPTZ,
                total_characters INTEGER NOT NULL DEFAULT 0,
                correct_characters INTEGER NOT NULL DEFAULT 0,
                total_errors INTEGER NOT NULL DEFAULT 0,
                session_duration_seconds DOUBLE PRECISION NOT NULL DEFAULT 0,
                accuracy_percentage DOUBLE PRECISION NOT NULL DEFAULT 0,
                characters_per_minute DOUBLE PRECISION NOT NULL DEFAULT 0,
                is_completed BOOLEAN NOT NULL DEFAULT FALSE
            );
            """
        )

    def _create_keystroke_events_table(self) -> None:
        self._execute_ddl(
            """
            CREATE TABLE IF NOT EXISTS keystroke_events (
                id BIGSERIAL PRIMARY KEY,
                session_id UUID NOT NULL REFERENCES attempt_sessions(id) ON DELETE CASCADE,
                character_position INTEGER NOT NULL,
                typed_character TEXT NOT NULL,
                expected_character TEXT,
                is_correct BOOLEAN NOT NULL,
                timestamp_ms BIGINT NOT NULL,
                time_since_last_keystroke_ms BIGINT NOT NULL
            );
            """
        )
        self._execute_ddl(
            "CREATE INDEX IF NOT EXISTS idx_keystroke_events_session "
            "ON keystroke_events (session_id, id);"
        )

    def _create_user_progress_table(self) -> None:
        self._execute_ddl(
            """
            CREATE TABLE IF NOT EXISTS user_progress (
                user_id UUID NOT NULL REFERENCES users(id) ON DELETE CASCADE,
                problem_id UUID NOT NULL REFERENCES problems(id) ON DELETE CASCADE,
                best_accuracy DOUBLE PRECISION NOT NULL DEFAULT 0,
                best_wpm DOUBLE PRECISION NOT NULL DEFAULT 0,
                total_attempts INTEGER NOT NULL DEFAULT 0,
                average_time_seconds DOUBLE PRECISION NOT NULL DEFAULT 0,
                last_attempted TIMESTAMPTZ,
                updated_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
                PRIMARY KEY (user_id, problem_id)
            );
            """
        )

    def _create_user_streaks_table(self) -> None:
        self._execute_ddl(
            """
            CREATE TABLE IF NOT EXISTS user_streaks (
                user_id UUID PRIMARY KEY REFERENCES users(id) ON DELETE CASCADE,
                current_streak INTEGER NOT NULL DEFAULT 0,
                longest_streak INTEGER NOT NULL DEFAULT 0,
                last_practice_date DATE
            );
            """
        )

    def _create_user_achievements_table(self) -> None:
        self._execute_ddl(
            """
            CREATE TABLE IF NOT EXISTS user_achievements (
                user_id UUID NOT NULL REFERENCES users(id) ON DELETE CASCADE,
                achievement_id TEXT NOT NULL,
                earned_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
                PRIMARY KEY (user_id, achievement_id)
            );
            """
        )

    def init_tables(self) -> None:
        """Create all application tables if they do not exist (idempotent)."""
        self._create_users_table()
        self._create_problems_table()
        self._create_attempt_sessions_table()
        self._create_keystroke_events_table()
        self._create_user_progress_table()
        self._create_user_streaks_table()
        self._create_user_achievements_table()
        logger.info("Database tables initialized in schema %s", self.schema)

    def __enter__(self) -> "DatabaseManager":
        """Return self so the manager can be used in a with-block."""
        return self

    def __exit__(
        self,
        exc_type: Optional[Type[BaseException]],
        exc: Optional[BaseException],
        tb: object,
    ) -> None:
        """Close the connection when leaving the with-block."""
        self.close()
