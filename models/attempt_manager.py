"""AttemptManager: attempt sessions and everything a submission updates.

A completed submission writes to attempt_sessions, keystroke_events,
user_progress, user_streaks and user_achievements. All of it happens inside
one DatabaseManager transaction.
"""

import datetime
import logging
import uuid
from typing import Callable, List, Optional

from db.database_manager import DatabaseManager
from models.attempt import (
    AttemptAnalysis,
    AttemptSession,
    AttemptUpdate,
    AttemptUpdateResult,
)
from models.gamification import (
    PerformanceSnapshot,
    StreakData,
    calculate_experience_points,
    check_achievements,
    streak_bonus_points,
    update_streak,
)
from models.keystroke_event import KeystrokeEvent
from models.performance_analysis import (
    analyze_error_patterns,
    calculate_consistency_score,
    calculate_wpm,
)
from models.problem_manager import clamp_page

logger = logging.getLogger(__name__)

DEFAULT_PAGE_SIZE = 10
MAX_PAGE_SIZE = 50


class AttemptNotFound(Exception):
    """Raised when a session does not exist or belongs to another user."""

    def __init__(self, message: str = "Attempt session not found") -> None:
        """Initialize the exception with an optional message."""
        self.message = message
        super().__init__(self.message)


def utc_today() -> datetime.date:
    """Current calendar date in UTC."""
    return datetime.datetime.now(datetime.timezone.utc).date()


class AttemptManager:
    """Persistence for attempt sessions and their keystroke logs."""

    def __init__(
        self,
        *,
        db_manager: DatabaseManager,
        today: Optional[Callable[[], datetime.date]] = None,
    ) -> None:
        """Create a new `AttemptManager` bound to the given database manager.

        Args:
            db_manager: Shared database manager.
            today: Date source for streak arithmetic; UTC date by default.
        """
        self.db_manager = db_manager
        self.today = today or utc_today

    def create_attempt(self, *, user_id: str, problem_id: str) -> AttemptSession:
        """Start a new attempt session for ``problem_id``."""
        row = self.db_manager.fetchone(
            "INSERT INTO attempt_sessions (id, user_id, problem_id) "
            "VALUES (?, ?, ?) RETURNING id, user_id, problem_id, started_at",
            (str(uuid.uuid4()), user_id, problem_id),
        )
        if row is None:
            raise AttemptNotFound("Attempt session could not be created")
        session = AttemptSession.from_dict(row)
        logger.info("Created attempt session %s for problem %s", session.id, problem_id)
        return session

    def list_attempts(
        self,
        *,
        user_id: str,
        limit: Optional[int] = None,
        offset: Optional[int] = None,
    ) -> List[AttemptSession]:
        """Return the user's attempts newest first, joined with problem title and category."""
        limit, offset = clamp_page(limit, offset, DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE)
        rows = self.db_manager.fetchall(
            """
            SELECT a.id, a.problem_id, a.started_at, a.completed_at,
                   a.accuracy_percentage, a.characters_per_minute,
                   a.session_duration_seconds, a.is_completed,
                   p.title AS problem_title, p.category
            FROM attempt_sessions a
            JOIN problems p ON a.problem_id = p.id
            WHERE a.user_id = ?
            ORDER BY a.started_at DESC
            LIMIT ? OFFSET ?
            """,
            (user_id, limit, offset),
        )
        return [AttemptSession.from_dict(row) for row in rows]

    def get_attempt(self, *, user_id: str, session_id: str) -> AttemptSession:
        """Return one of the user's sessions with problem title and solution code."""
        row = self.db_manager.fetchone(
            """
            SELECT a.*, p.title AS problem_title, p.solution_code
            FROM attempt_sessions a
            JOIN problems p ON a.problem_id = p.id
            WHERE a.id = ? AND a.user_id = ?
            """,
            (session_id, user_id),
        )
        if not row:
            raise AttemptNotFound(f"Attempt session {session_id} not found.")
        return AttemptSession.from_dict(row)

    def _require_owned(self, *, user_id: str, session_id: str) -> str:
        """Return the session's problem id, or raise if the user does not own it."""
        row = self.db_manager.fetchone(
            "SELECT id, problem_id FROM attempt_sessions WHERE id = ? AND user_id = ?",
            (session_id, user_id),
        )
        if not row:
            raise AttemptNotFound(f"Attempt session {session_id} not found or unauthorized.")
        return str(row["problem_id"])

    def update_attempt(
        self, *, user_id: str, session_id: str, update: AttemptUpdate
    ) -> AttemptUpdateResult:
        """Store a submission and, for a completed attempt, the rewards it earns.

        Raises:
            AttemptNotFound: The session is missing or owned by another user.
            DatabaseError: Any database failure; nothing is written.
        """
        with self.db_manager.transaction():
            problem_id = self._require_owned(user_id=user_id, session_id=session_id)

            self.db_manager.execute(
                """
                UPDATE attempt_sessions
                SET completed_at = CASE WHEN ? THEN NOW() ELSE completed_at END,
                    total_characters = ?,
                    correct_characters = ?,
                    total_errors = ?,
                    session_duration_seconds = ?,
                    accuracy_percentage = ?,
                    characters_per_minute = ?,
                    is_completed = ?
                WHERE id = ? AND user_id = ?
                """,
                (
                    update.is_completed,
                    update.total_characters,
                    update.correct_characters,
                    update.total_errors,
                    update.session_duration_seconds,
                    update.accuracy_percentage,
                    update.characters_per_minute,
                    update.is_completed,
                    session_id,
                    user_id,
                ),
            )
            self._insert_keystroke_events(session_id, update.keystroke_events)

            if not update.is_completed:
                logger.info("Saved partial attempt %s", session_id)
                return AttemptUpdateResult(session_id=session_id, is_completed=False)

            result = self._record_completion(user_id, session_id, problem_id, update)

        logger.info(
            "Completed attempt %s: %d xp, new achievements %s",
            session_id,
            result.experience_points,
            result.new_achievements,
        )
        return result

    def _insert_keystroke_events(self, session_id: str, events: List[KeystrokeEvent]) -> None:
        if not events:
            return
        self.db_manager.execute_many(
            """
            INSERT INTO keystroke_events
                (session_id, character_position, typed_character, expected_character,
                 is_correct, timestamp_ms, time_since_last_keystroke_ms)
            VALUES (?, ?, ?, ?, ?, ?, ?)
            """,
            [
                (
                    session_id,
                    e.character_position,
                    e.typed_character,
                    e.expected_character,
                    e.is_correct,
                    e.timestamp_ms,
                    e.time_since_last_keystroke_ms,
                )
                for e in events
            ],
        )

    def _record_completion(
        self, user_id: str, session_id: str, problem_id: str, update: AttemptUpdate
    ) -> AttemptUpdateResult:
        previous = self.db_manager.fetchone(
            "SELECT total_attempts FROM user_progress WHERE user_id = ? AND problem_id = ?",
            (user_id, problem_id),
        )
        is_first_time = previous is None

        self.db_manager.execute(
            """
            INSERT INTO user_progress (user_id, problem_id, best_accuracy, best_wpm,
                                       total_attempts, average_time_seconds, last_attempted)
            VALUES (?, ?, ?, ?, 1, ?, NOW())
            ON CONFLICT (user_id, problem_id)
            DO UPDATE SET
                best_accuracy = GREATEST(user_progress.best_accuracy, EXCLUDED.best_accuracy),
                best_wpm = GREATEST(user_progress.best_wpm, EXCLUDED.best_wpm),
                total_attempts = user_progress.total_attempts + 1,
                average_time_seconds = (
                    (user_progress.average_time_seconds * user_progress.total_attempts
                     + EXCLUDED.average_time_seconds)
                    / (user_progress.total_attempts + 1)
                ),
                last_attempted = NOW(),
                updated_at = NOW()
            """,
            (
                user_id,
                problem_id,
                update.accuracy_percentage,
                update.characters_per_minute,
                update.session_duration_seconds,
            ),
        )

        streak = self._advance_streak(user_id)

        completed_row = self.db_manager.fetchone(
            "SELECT COUNT(*) AS problems_completed FROM user_progress WHERE user_id = ?",
            (user_id,),
        )
        problems_completed = int(completed_row["problems_completed"]) if completed_row else 0

        earned_rows = self.db_manager.fetchall(
            "SELECT achievement_id FROM user_achievements WHERE user_id = ?", (user_id,)
        )
        performance = PerformanceSnapshot(
            accuracy=update.accuracy_percentage,
            speed=update.characters_per_minute,
            problems_completed=problems_completed,
            perfect_accuracy=update.accuracy_percentage >= 100,
            current_streak=streak.current_streak,
            consecutive_days=streak.current_streak,
        )
        new_achievements = check_achievements(
            performance, (str(r["achievement_id"]) for r in earned_rows)
        )
        if new_achievements:
            self.db_manager.execute_many(
                "INSERT INTO user_achievements (user_id, achievement_id) VALUES (?, ?) "
                "ON CONFLICT DO NOTHING",
                [(user_id, a.id) for a in new_achievements],
            )

        experience_points = calculate_experience_points(
            update.accuracy_percentage,
            update.characters_per_minute,
            is_first_time,
            streak_bonus_points(streak.current_streak),
        )
        return AttemptUpdateResult(
            session_id=session_id,
            is_completed=True,
            experience_points=experience_points,
            new_achievements=[a.id for a in new_achievements],
            current_streak=streak.current_streak,
        )

    def _advance_streak(self, user_id: str) -> StreakData:
        row = self.db_manager.fetchone(
            "SELECT current_streak, longest_streak, last_practice_date "
            "FROM user_streaks WHERE user_id = ? FOR UPDATE",
            (user_id,),
        )
        current = StreakData.model_validate(row) if row else StreakData()
        advanced = update_streak(current, self.today())
        if advanced is not current:
            self.db_manager.execute(
                """
                INSERT INTO user_streaks (user_id, current_streak, longest_streak, last_practice_date)
                VALUES (?, ?, ?, ?)
                ON CONFLICT (user_id) DO UPDATE SET
                    current_streak = EXCLUDED.current_streak,
                    longest_streak = EXCLUDED.longest_streak,
                    last_practice_date = EXCLUDED.last_practice_date
                """,
                (
                    user_id,
                    advanced.current_streak,
                    advanced.longest_streak,
                    advanced.last_practice_date,
                ),
            )
        return advanced

    def get_keystroke_events(self, *, user_id: str, session_id: str) -> List[KeystrokeEvent]:
        """Stored keystrokes of one of the user's sessions, in recorded order."""
        self._require_owned(user_id=user_id, session_id=session_id)
        rows = self.db_manager.fetchall(
            """
            SELECT character_position, typed_character, expected_character, is_correct,
                   timestamp_ms, time_since_last_keystroke_ms
            FROM keystroke_events
            WHERE session_id = ?
            ORDER BY id
            """,
            (session_id,),
        )
        return [KeystrokeEvent.from_dict(row) for row in rows]

    def analyze_attempt(self, *, user_id: str, session_id: str) -> AttemptAnalysis:
        """Consistency, words per minute and error patterns for a stored session."""
        session = self.get_attempt(user_id=user_id, session_id=session_id)
        events = self.get_keystroke_events(user_id=user_id, session_id=session_id)
        return AttemptAnalysis(
            session_id=session_id,
            total_keystrokes=len(events),
            consistency_score=calculate_consistency_score(events),
            words_per_minute=calculate_wpm(session.characters_per_minute),
            error_patterns=analyze_error_patterns(events),
        )
