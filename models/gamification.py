"""Achievements, streaks, experience points and leaderboard ranking.

Everything here is pure arithmetic over values the managers load from the
database, so it can be tested without one.
"""

from __future__ import annotations

import datetime
import enum
from typing import Any, Dict, Iterable, List, Mapping, Optional

from pydantic import BaseModel, Field
from pydantic.alias_generators import to_camel


class CriteriaType(str, enum.Enum):
    """Kinds of achievement criteria."""

    FIRST_COMPLETION = "first_completion"
    SPEED_THRESHOLD = "speed_threshold"
    ACCURACY_THRESHOLD = "accuracy_threshold"
    STREAK_THRESHOLD = "streak_threshold"
    PROBLEM_COUNT = "problem_count"
    PERFECT_ACCURACY = "perfect_accuracy"
    CONSECUTIVE_DAYS = "consecutive_days"


class AchievementCriteria(BaseModel):
    """What has to happen for an achievement to be earned."""

    type: CriteriaType
    value: Optional[float] = None

    model_config = {"frozen": True}


class Achievement(BaseModel):
    """One catalogue entry."""

    id: str
    name: str
    description: str
    icon: str
    criteria: AchievementCriteria
    points: int = Field(..., ge=0)

    model_config = {
        "frozen": True,
        "alias_generator": to_camel,
        "populate_by_name": True,
    }


class PerformanceSnapshot(BaseModel):
    """Numbers an achievement check is evaluated against.

    Missing values never satisfy a threshold.
    """

    accuracy: Optional[float] = None
    speed: Optional[float] = None
    problems_completed: Optional[int] = None
    perfect_accuracy: bool = False
    current_streak: Optional[int] = None
    consecutive_days: Optional[int] = None


class StreakData(BaseModel):
    """Daily practice streak of one user."""

    current_streak: int = Field(default=0, ge=0)
    longest_streak: int = Field(default=0, ge=0)
    last_practice_date: Optional[datetime.date] = None

    model_config = {
        "alias_generator": to_camel,
        "populate_by_name": True,
    }


class LeaderboardEntry(BaseModel):
    """One ranked row of the leaderboard."""

    user_id: str
    username: str
    profile_image_url: Optional[str] = None
    metric_value: float
    rank: int = Field(..., ge=1)

    model_config = {
        "alias_generator": to_camel,
        "populate_by_name": True,
    }


def _achievement(
    id: str, name: str, description: str, icon: str, criteria_type: CriteriaType, value: Optional[float], points: int
) -> Achievement:
    return Achievement(
        id=id,
        name=name,
        description=description,
        icon=icon,
        criteria=AchievementCriteria(type=criteria_type, value=value),
        points=points,
    )


ACHIEVEMENTS: List[Achievement] = [
    _achievement("first_steps", "First Steps", "Complete your first coding kata", "🎯",
                 CriteriaType.FIRST_COMPLETION, None, 10),
    _achievement("speed_demon", "Speed Demon", "Achieve 100+ characters per minute", "⚡",
                 CriteriaType.SPEED_THRESHOLD, 100, 25),
    _achievement("accuracy_master", "Accuracy Master", "Achieve 95%+ accuracy on any problem", "🎯",
                 CriteriaType.ACCURACY_THRESHOLD, 95, 20),
    _achievement("streak_starter", "Streak Starter", "Maintain a 3-day practice streak", "🔥",
                 CriteriaType.STREAK_THRESHOLD, 3, 15),
    _achievement("week_warrior", "Week Warrior", "Maintain a 7-day practice streak", "💪",
                 CriteriaType.STREAK_THRESHOLD, 7, 50),
    _achievement("month_master", "Month Master", "Maintain a 30-day practice streak", "👑",
                 CriteriaType.STREAK_THRESHOLD, 30, 200),
    _achievement("problem_solver", "Problem Solver", "Complete 10 different problems", "🧩",
                 CriteriaType.PROBLEM_COUNT, 10, 30),
    _achievement("code_master", "Code Master", "Complete 50 different problems", "🏆",
                 CriteriaType.PROBLEM_COUNT, 50, 150),
    _achievement("perfect_score", "Perfect Score", "Complete a problem with 100% accuracy", "💯",
                 CriteriaType.PERFECT_ACCURACY, None, 40),
    _achievement("daily_grind", "Daily Grind", "Practice for 5 consecutive days", "📅",
                 CriteriaType.CONSECUTIVE_DAYS, 5, 35),
]

ACHIEVEMENTS_BY_ID: Dict[str, Achievement] = {a.id: a for a in ACHIEVEMENTS}

MAX_STREAK_BONUS = 10


def _at_least(actual: Optional[float], threshold: Optional[float]) -> bool:
    return actual is not None and threshold is not None and actual >= threshold


def is_satisfied(criteria: AchievementCriteria, performance: PerformanceSnapshot) -> bool:
    """True if ``performance`` meets ``criteria``."""
    kind = criteria.type
    if kind is CriteriaType.FIRST_COMPLETION:
        return _at_least(performance.problems_completed, 1)
    if kind is CriteriaType.SPEED_THRESHOLD:
        return _at_least(performance.speed, criteria.value)
    if kind is CriteriaType.ACCURACY_THRESHOLD:
        return _at_least(performance.accuracy, criteria.value)
    if kind is CriteriaType.STREAK_THRESHOLD:
        return _at_least(performance.current_streak, criteria.value)
    if kind is CriteriaType.PROBLEM_COUNT:
        return _at_least(performance.problems_completed, criteria.value)
    if kind is CriteriaType.PERFECT_ACCURACY:
        return performance.perfect_accuracy
    if kind is CriteriaType.CONSECUTIVE_DAYS:
        return _at_least(performance.consecutive_days, criteria.value)
    return False


def check_achievements(
    performance: PerformanceSnapshot,
    earned_ids: Iterable[str] = (),
    catalogue: Optional[List[Achievement]] = None,
) -> List[Achievement]:
    """Achievements newly satisfied by ``performance``, in catalogue order."""
    earned = set(earned_ids)
    return [
        achievement
        for achievement in (catalogue if catalogue is not None else ACHIEVEMENTS)
        if achievement.id not in earned and is_satisfied(achievement.criteria, performance)
    ]


def update_streak(streak: StreakData, practice_date: datetime.date) -> StreakData:
    """Streak after practising on ``practice_date``.

    Same day: unchanged. The day after the last practice: one longer.
    Anything else (including a first practice or a date in the past): a new
    streak of one.
    """
    last = streak.last_practice_date
    if last == practice_date:
        return streak
    if last is not None and practice_date - last == datetime.timedelta(days=1):
        current = streak.current_streak + 1
    else:
        current = 1
    return StreakData(
        current_streak=current,
        longest_streak=max(streak.longest_streak, current),
        last_practice_date=practice_date,
    )


def streak_bonus_points(current_streak: int) -> int:
    """One experience point per streak day, capped."""
    return min(max(current_streak, 0), MAX_STREAK_BONUS)


def calculate_experience_points(
    accuracy: float, speed: float, is_first_time: bool, streak_bonus: int = 0
) -> int:
    """Points awarded for one completed attempt."""
    points = 10

    if accuracy >= 95:
        points += 15
    elif accuracy >= 90:
        points += 10
    elif accuracy >= 80:
        points += 5

    if speed >= 100:
        points += 10
    elif speed >= 80:
        points += 5

    if is_first_time:
        points += 5

    return points + streak_bonus


def calculate_mastery_level(total_attempts: int, best_accuracy: float) -> int:
    """Mastery 0 (new) to 5 (master) for one problem."""
    if total_attempts >= 10 and best_accuracy >= 95:
        return 5
    if total_attempts >= 5 and best_accuracy >= 90:
        return 4
    if total_attempts >= 3 and best_accuracy >= 85:
        return 3
    if total_attempts >= 2 and best_accuracy >= 80:
        return 2
    if total_attempts >= 1 and best_accuracy >= 70:
        return 1
    return 0


def total_points(earned_ids: Iterable[str]) -> int:
    """Sum of catalogue points for the given achievement ids; unknown ids count zero."""
    return sum(ACHIEVEMENTS_BY_ID[i].points for i in earned_ids if i in ACHIEVEMENTS_BY_ID)


def rank_leaderboard(rows: Iterable[Mapping[str, Any]]) -> List[LeaderboardEntry]:
    """Order rows by ``metric_value`` (highest first) and number them from 1.

    Rows with equal values keep their input order and get consecutive ranks.
    """
    ordered = sorted(rows, key=lambda r: float(r["metric_value"] or 0), reverse=True)
    return [
        LeaderboardEntry(
            user_id=str(row["user_id"]),
            username=row.get("username") or "Anonymous",
            profile_image_url=row.get("profile_image_url"),
            metric_value=float(row["metric_value"] or 0),
            rank=index,
        )
        for index, row in enumerate(ordered, start=1)
    ]
