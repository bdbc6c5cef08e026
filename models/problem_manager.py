"""ProblemManager: read access to the kata catalogue."""

from typing import List, Optional, Tuple

from db.database_manager import DatabaseManager
from models.problem import Problem

PROBLEM_LANGUAGE = "javascript"
DEFAULT_PAGE_SIZE = 20
MAX_PAGE_SIZE = 100


class ProblemNotFound(Exception):
    """Raised when a requested problem cannot be found in the database."""

    def __init__(self, message: str = "Problem not found") -> None:
        """Initialize the exception with an optional message."""
        self.message = message
        super().__init__(self.message)


def clamp_page(limit: Optional[int], offset: Optional[int], default: int, maximum: int) -> Tuple[int, int]:
    """Cap ``limit`` at ``maximum`` and floor ``offset`` at zero."""
    limit = default if limit is None else limit
    offset = 0 if offset is None else offset
    return min(limit, maximum), max(offset, 0)


class ProblemManager:
    """Queries for `Problem` objects via `DatabaseManager`."""

    def __init__(self, *, db_manager: DatabaseManager) -> None:
        """Create a new `ProblemManager` bound to the given database manager."""
        self.db_manager = db_manager

    def list_problems(
        self,
        *,
        category: Optional[str] = None,
        limit: Optional[int] = None,
        offset: Optional[int] = None,
    ) -> List[Problem]:
        """Return problems newest first, optionally filtered by category."""
        limit, offset = clamp_page(limit, offset, DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE)
        query = (
            "SELECT id, title, description, category, estimated_time_minutes, created_at "
            "FROM problems WHERE language = ?"
        )
        params: List[object] = [PROBLEM_LANGUAGE]
        if category:
            query += " AND category = ?"
            params.append(category)
        query += " ORDER BY created_at DESC LIMIT ? OFFSET ?"
        params.extend([limit, offset])

        rows = self.db_manager.fetchall(query, tuple(params))
        return [Problem.from_dict(row) for row in rows]

    def get_problem(self, *, problem_id: str) -> Problem:
        """Return a problem including its solution code or raise `ProblemNotFound`."""
        row = self.db_manager.fetchone(
            "SELECT id, title, description, category, solution_code, "
            "estimated_time_minutes, created_at "
            "FROM problems WHERE id = ? AND language = ?",
            (problem_id, PROBLEM_LANGUAGE),
        )
        if not row:
            raise ProblemNotFound(f"Problem with ID {problem_id} not found.")
        return Problem.from_dict(row)
