"""Aggregated per-user statistics returned by the stats and achievements endpoints."""

from __future__ import annotations

import datetime
from typing import Optional

from pydantic import BaseModel, Field
from pydantic.alias_generators import to_camel

from models.gamification import Achievement

_CAMEL = {
    "alias_generator": to_camel,
    "populate_by_name": True,
}


class StreakSummary(BaseModel):
    current: int = 0
    longest: int = 0
    last_practice_date: Optional[datetime.date] = None

    model_config = _CAMEL


class ProgressSummary(BaseModel):
    total_problems_completed: int = 0
    total_completions: int = 0
    average_accuracy: float = 0.0
    average_speed: int = 0
    total_practice_time: int = 0

    model_config = _CAMEL


class TrendSummary(BaseModel):
    """Recent-half minus older-half averages over the last completed attempts."""

    accuracy: float = 0.0
    speed: float = 0.0

    model_config = _CAMEL


class AchievementSummary(BaseModel):
    count: int = 0
    total_points: int = 0

    model_config = _CAMEL


class UserStats(BaseModel):
    """Everything the dashboard shows about one user."""

    streak: StreakSummary = Field(default_factory=StreakSummary)
    progress: ProgressSummary = Field(default_factory=ProgressSummary)
    trends: TrendSummary = Field(default_factory=TrendSummary)
    achievements: AchievementSummary = Field(default_factory=AchievementSummary)

    model_config = _CAMEL


class AchievementStatus(BaseModel):
    """A catalogue entry plus whether (and when) the user earned it."""

    achievement: Achievement
    earned: bool = False
    earned_at: Optional[datetime.datetime] = None

    model_config = _CAMEL


class UserRank(BaseModel):
    rank: int = Field(..., ge=1)
    total_users: int = Field(..., ge=1)
    metric: str
    metric_value: float

    model_config = _CAMEL


class ProblemProgress(BaseModel):
    """Best results on one problem plus the mastery level they earn."""

    problem_id: str
    problem_title: Optional[str] = None
    category: Optional[str] = None
    best_accuracy: float = 0.0
    best_wpm: float = 0.0
    total_attempts: int = 0
    average_time_seconds: float = 0.0
    last_attempted: Optional[datetime.datetime] = None
    mastery_level: int = Field(default=0, ge=0, le=5)

    model_config = _CAMEL
