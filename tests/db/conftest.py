"""In-memory stand-ins for a psycopg2 connection and cursor.

The DatabaseManager accepts an already open connection, so these tests drive
it without a PostgreSQL server and inspect the SQL it would have sent.
"""

from typing import Any, Iterable, List, Optional, Sequence, Tuple

import pytest

from db.database_manager import DatabaseManager
from helpers.debug_util import DebugUtil


class FakeCursor:
    """Records statements and replays the rows queued on its connection."""

    def __init__(self, conn: "FakeConnection") -> None:
        self.conn = conn
        self.description: Optional[Sequence[Sequence[object]]] = None
        self.rowcount = -1
        self._rows: List[Tuple[object, ...]] = []
        self.closed = False

    def execute(self, query: str, params: Tuple[object, ...] = ()) -> None:
        self.conn.executed.append((query, params))
        if self.conn.error is not None:
            error, self.conn.error = self.conn.error, None
            raise error
        columns, rows = self.conn.results.pop(0) if self.conn.results else ((), [])
        self.description = [(name,) for name in columns] or None
        self._rows = list(rows)
        self.rowcount = len(self._rows)

    def executemany(self, query: str, seq_of_params: Iterable[Tuple[object, ...]]) -> None:
        self.conn.executed.append((query, list(seq_of_params)))

    def fetchone(self) -> Optional[Tuple[object, ...]]:
        return self._rows.pop(0) if self._rows else None

    def fetchall(self) -> List[Tuple[object, ...]]:
        rows, self._rows = self._rows, []
        return rows

    def close(self) -> None:
        self.closed = True


class FakeConnection:
    def __init__(self) -> None:
        self.autocommit = True
        self.executed: List[Tuple[str, Any]] = []
        self.results: List[Tuple[Sequence[str], List[Tuple[object, ...]]]] = []
        self.error: Optional[Exception] = None
        self.commits = 0
        self.rollbacks = 0
        self.closed = False

    def queue_result(self, columns: Sequence[str], rows: List[Tuple[object, ...]]) -> None:
        """Rows returned by the next execute()."""
        self.results.append((columns, rows))

    def cursor(self) -> FakeCursor:
        return FakeCursor(self)

    def commit(self) -> None:
        self.commits += 1

    def rollback(self) -> None:
        self.rollbacks += 1

    def close(self) -> None:
        self.closed = True


@pytest.fixture
def fake_conn() -> FakeConnection:
    return FakeConnection()


@pytest.fixture
def db_manager(fake_conn: FakeConnection) -> DatabaseManager:
    """A DatabaseManager wired to the fake connection."""
    return DatabaseManager(connection=fake_conn, debug_util=DebugUtil(mode="quiet"))
