"""Attempt session models: stored rows and the validated submission body."""

from __future__ import annotations

import re
from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

from models.keystroke_event import KeystrokeEvent
from models.performance_analysis import ErrorPatternAnalysis

MAX_SESSION_DURATION_SECONDS = 3600
MAX_CHARACTERS_PER_MINUTE = 1000


UUID_PATTERN = re.compile(
    r"^[0-9a-f]{8}-[0-9a-f]{4}-[1-5][0-9a-f]{3}-[89ab][0-9a-f]{3}-[0-9a-f]{12}$", re.IGNORECASE
)


def is_valid_uuid(value: object) -> bool:
    """True for RFC 4122 UUID strings (versions 1-5)."""
    return isinstance(value, str) and UUID_PATTERN.match(value) is not None


def validate_uuid_string(value: str) -> str:
    """Return ``value`` if it is a UUID string, else raise ValueError."""
    if not is_valid_uuid(value):
        raise ValueError(f"Invalid UUID: {value!r}")
    return value


class AttemptSession(BaseModel):
    """Pydantic model for one row of attempt_sessions, optionally joined with its problem."""

    id: str
    user_id: Optional[str] = None
    problem_id: str
    started_at: datetime
    completed_at: Optional[datetime] = None
    total_characters: int = Field(default=0, ge=0)
    correct_characters: int = Field(default=0, ge=0)
    total_errors: int = Field(default=0, ge=0)
    session_duration_seconds: float = 0
    accuracy_percentage: float = 0
    characters_per_minute: float = 0
    is_completed: bool = False
    problem_title: Optional[str] = None
    category: Optional[str] = None
    solution_code: Optional[str] = None

    model_config = {
        "extra": "ignore",
    }

    @field_validator("id", "problem_id", "user_id", mode="before")
    @classmethod
    def _stringify_ids(cls, v: object) -> Optional[str]:
        """psycopg2 may hand back uuid.UUID objects; store them as strings."""
        return None if v is None else str(v)

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "AttemptSession":
        """Create from a DB row."""
        return cls.model_validate(d)

    def to_dict(self) -> Dict[str, Any]:
        """JSON-ready dict; unset joined columns are left out."""
        return self.model_dump(mode="json", exclude_none=True)


class AttemptUpdate(BaseModel):
    """Final performance snapshot submitted when an attempt ends.

    This is the system boundary: anything that does not match this shape is
    rejected here and never reaches the database.
    """

    total_characters: int = Field(..., ge=0, strict=True)
    correct_characters: int = Field(..., ge=0, strict=True)
    total_errors: int = Field(..., ge=0, strict=True)
    session_duration_seconds: float = Field(
        ..., ge=0, le=MAX_SESSION_DURATION_SECONDS, strict=True
    )
    accuracy_percentage: float = Field(..., ge=0, le=100, strict=True)
    characters_per_minute: float = Field(..., ge=0, le=MAX_CHARACTERS_PER_MINUTE, strict=True)
    is_completed: bool = Field(..., strict=True)
    keystroke_events: List[KeystrokeEvent] = Field(default_factory=list)

    model_config = {
        "alias_generator": to_camel,
        "populate_by_name": True,
        "extra": "ignore",
    }

    @model_validator(mode="after")
    def check_character_counts(self) -> "AttemptUpdate":
        """correctCharacters can never exceed totalCharacters."""
        if self.correct_characters > self.total_characters:
            raise ValueError("correctCharacters cannot exceed totalCharacters")
        return self

    def to_dict(self) -> Dict[str, Any]:
        """camelCase request body."""
        return self.model_dump(mode="json", by_alias=True)


class AttemptCreate(BaseModel):
    """Body of POST /api/attempts."""

    problem_id: str = Field(..., alias="problemId")

    model_config = {
        "populate_by_name": True,
    }

    @field_validator("problem_id")
    @classmethod
    def validate_problem_id(cls, v: str) -> str:
        """Problem ids are UUIDs."""
        return validate_uuid_string(v)


class AttemptUpdateResult(BaseModel):
    """What a submission earned."""

    session_id: str
    is_completed: bool
    experience_points: int = 0
    new_achievements: List[str] = Field(default_factory=list)
    current_streak: Optional[int] = None

    model_config = {
        "alias_generator": to_camel,
        "populate_by_name": True,
    }


class AttemptAnalysis(BaseModel):
    """Post-session analysis of the stored keystroke log."""

    session_id: str
    total_keystrokes: int
    consistency_score: int
    words_per_minute: int
    error_patterns: ErrorPatternAnalysis

    model_config = {
        "alias_generator": to_camel,
        "populate_by_name": True,
    }
