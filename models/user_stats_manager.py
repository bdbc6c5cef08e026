"""UserStatsManager: dashboard statistics, achievements and leaderboard queries."""

import logging
from typing import Dict, List, Optional, Sequence

from db.database_manager import DatabaseManager
from models.gamification import (
    ACHIEVEMENTS,
    LeaderboardEntry,
    calculate_mastery_level,
    rank_leaderboard,
    total_points,
)
from models.performance_tracker import round_half_up
from models.problem_manager import clamp_page
from models.user_stats import (
    AchievementStatus,
    AchievementSummary,
    ProblemProgress,
    ProgressSummary,
    StreakSummary,
    TrendSummary,
    UserRank,
    UserStats,
)

logger = logging.getLogger(__name__)

TREND_WINDOW = 10
DEFAULT_LEADERBOARD_SIZE = 10
MAX_LEADERBOARD_SIZE = 100

# Leaderboard metric name -> user_progress column averaged per user.
LEADERBOARD_METRICS: Dict[str, str] = {
    "accuracy": "best_accuracy",
    "speed": "best_wpm",
}


class InvalidLeaderboardMetric(ValueError):
    """Raised for a leaderboard metric other than those in LEADERBOARD_METRICS."""

    def __init__(self, metric: str) -> None:
        self.message = f"Unknown leaderboard metric '{metric}'. Use one of: {', '.join(LEADERBOARD_METRICS)}"
        super().__init__(self.message)


def calculate_trend(values: Sequence[float]) -> float:
    """Mean of the most recent half minus mean of the older half, to one decimal.

    ``values`` is ordered most recent first. With an odd count the middle value
    belongs to the older half. Fewer than two values have no trend.
    """
    if len(values) < 2:
        return 0.0
    middle = len(values) // 2
    recent = values[:middle]
    older = values[middle:]
    recent_avg = sum(recent) / len(recent)
    older_avg = sum(older) / len(older)
    return round_half_up(recent_avg - older_avg, 1)


def _metric_column(metric: str) -> str:
    try:
        return LEADERBOARD_METRICS[metric]
    except KeyError:
        raise InvalidLeaderboardMetric(metric) from None


def _number(value: Optional[object]) -> float:
    """SQL aggregates come back as None for empty sets."""
    return float(value) if value is not None else 0.0


class UserStatsManager:
    """Read-only aggregate queries over a user's progress."""

    def __init__(self, *, db_manager: DatabaseManager) -> None:
        """Create a new `UserStatsManager` bound to the given database manager."""
        self.db_manager = db_manager

    def get_user_stats(self, *, user_id: str) -> UserStats:
        """Streak, progress totals, recent trends and achievement totals for a user."""
        streak_row = self.db_manager.fetchone(
            "SELECT current_streak, longest_streak, last_practice_date "
            "FROM user_streaks WHERE user_id = ?",
            (user_id,),
        )
        progress_row = self.db_manager.fetchone(
            """
            SELECT COUNT(DISTINCT problem_id) AS unique_problems_completed,
                   AVG(best_accuracy) AS average_accuracy,
                   AVG(best_wpm) AS average_speed,
                   SUM(total_attempts) AS total_completions,
                   SUM(average_time_seconds * total_attempts) AS total_practice_time
            FROM user_progress
            WHERE user_id = ?
            """,
            (user_id,),
        ) or {}
        recent_rows = self.db_manager.fetchall(
            """
            SELECT accuracy_percentage, characters_per_minute
            FROM attempt_sessions
            WHERE user_id = ? AND is_completed = TRUE
            ORDER BY started_at DESC
            LIMIT ?
            """,
            (user_id, TREND_WINDOW),
        )
        earned_rows = self.db_manager.fetchall(
            "SELECT achievement_id FROM user_achievements WHERE user_id = ?", (user_id,)
        )
        earned_ids = [str(r["achievement_id"]) for r in earned_rows]

        streak = StreakSummary()
        if streak_row:
            streak = StreakSummary(
                current=int(streak_row["current_streak"] or 0),
                longest=int(streak_row["longest_streak"] or 0),
                last_practice_date=streak_row["last_practice_date"],
            )

        return UserStats(
            streak=streak,
            progress=ProgressSummary(
                total_problems_completed=int(_number(progress_row.get("unique_problems_completed"))),
                total_completions=int(_number(progress_row.get("total_completions"))),
                average_accuracy=round_half_up(_number(progress_row.get("average_accuracy")), 1),
                average_speed=int(_number(progress_row.get("average_speed"))),
                total_practice_time=int(_number(progress_row.get("total_practice_time"))),
            ),
            trends=TrendSummary(
                accuracy=calculate_trend([_number(r["accuracy_percentage"]) for r in recent_rows]),
                speed=calculate_trend([_number(r["characters_per_minute"]) for r in recent_rows]),
            ),
            achievements=AchievementSummary(
                count=len(earned_ids),
                total_points=total_points(earned_ids),
            ),
        )

    def get_problem_progress(self, *, user_id: str) -> List[ProblemProgress]:
        """Per-problem bests, most recently practised first, with mastery levels."""
        rows = self.db_manager.fetchall(
            """
            SELECT p.problem_id, pr.title AS problem_title, pr.category,
                   p.best_accuracy, p.best_wpm, p.total_attempts,
                   p.average_time_seconds, p.last_attempted
            FROM user_progress p
            JOIN problems pr ON pr.id = p.problem_id
            WHERE p.user_id = ?
            ORDER BY p.last_attempted DESC NULLS LAST
            """,
            (user_id,),
        )
        return [
            ProblemProgress(
                problem_id=str(row["problem_id"]),
                problem_title=row.get("problem_title"),
                category=row.get("category"),
                best_accuracy=_number(row["best_accuracy"]),
                best_wpm=_number(row["best_wpm"]),
                total_attempts=int(_number(row["total_attempts"])),
                average_time_seconds=_number(row["average_time_seconds"]),
                last_attempted=row.get("last_attempted"),
                mastery_level=calculate_mastery_level(
                    int(_number(row["total_attempts"])), _number(row["best_accuracy"])
                ),
            )
            for row in rows
        ]

    def get_achievements(self, *, user_id: str) -> List[AchievementStatus]:
        """The whole catalogue, each entry flagged with whether the user earned it."""
        rows = self.db_manager.fetchall(
            "SELECT achievement_id, earned_at FROM user_achievements WHERE user_id = ?",
            (user_id,),
        )
        earned = {str(r["achievement_id"]): r["earned_at"] for r in rows}
        return [
            AchievementStatus(
                achievement=achievement,
                earned=achievement.id in earned,
                earned_at=earned.get(achievement.id),
            )
            for achievement in ACHIEVEMENTS
        ]

    def get_leaderboard(self, *, metric: str = "accuracy", limit: Optional[int] = None) -> List[LeaderboardEntry]:
        """Top users by their average best accuracy or speed across problems.

        Equal values are ordered by user id, the same order get_user_rank uses.
        """
        column = _metric_column(metric)
        limit, _ = clamp_page(limit, 0, DEFAULT_LEADERBOARD_SIZE, MAX_LEADERBOARD_SIZE)
        rows = self.db_manager.fetchall(
            f"""
            SELECT u.id AS user_id, u.username, u.profile_image_url,
                   AVG(p.{column}) AS metric_value
            FROM user_progress p
            JOIN users u ON u.id = p.user_id
            GROUP BY u.id, u.username, u.profile_image_url
            ORDER BY metric_value DESC, u.id
            LIMIT ?
            """,
            (limit,),
        )
        return rank_leaderboard(rows)

    def get_user_rank(self, *, user_id: str, metric: str = "accuracy") -> Optional[UserRank]:
        """The user's leaderboard position, or None if they have no progress yet.

        Ranks are numbered consecutively like get_leaderboard: ties on the
        metric are broken by user id.
        """
        column = _metric_column(metric)
        row = self.db_manager.fetchone(
            f"""
            WITH scores AS (
                SELECT user_id, AVG({column}) AS metric_value
                FROM user_progress
                GROUP BY user_id
            ),
            ranked AS (
                SELECT user_id, metric_value,
                       ROW_NUMBER() OVER (ORDER BY metric_value DESC, user_id) AS rank,
                       COUNT(*) OVER () AS total_users
                FROM scores
            )
            SELECT metric_value, rank, total_users
            FROM ranked
            WHERE user_id = ?
            """,
            (user_id,),
        )
        if not row:
            return None
        return UserRank(
            rank=int(row["rank"]),
            total_users=int(row["total_users"]),
            metric=metric,
            metric_value=_number(row["metric_value"]),
        )
