"""Tests for the attempt models and submission validation."""

import uuid
from datetime import datetime, timezone
from typing import Any, Dict

import pytest
from pydantic import ValidationError

from models.attempt import (
    AttemptCreate,
    AttemptSession,
    AttemptUpdate,
    AttemptUpdateResult,
    is_valid_uuid,
)


@pytest.fixture
def valid_body() -> Dict[str, Any]:
    return {
        "totalCharacters": 10,
        "correctCharacters": 9,
        "totalErrors": 1,
        "sessionDurationSeconds": 12.5,
        "accuracyPercentage": 90.0,
        "charactersPerMinute": 43,
        "isCompleted": True,
        "keystrokeEvents": [
            {
                "characterPosition": 0,
                "typedCharacter": "c",
                "expectedCharacter": "c",
                "isCorrect": True,
                "timestampMs": 1_700_000_000_000,
                "timeSinceLastKeystrokeMs": 250,
            }
        ],
    }


class TestAttemptUpdate:
    def test_valid_body(self, valid_body) -> None:
        update = AttemptUpdate.model_validate(valid_body)
        assert update.total_characters == 10
        assert update.keystroke_events[0].typed_character == "c"

    def test_keystroke_events_default_to_empty(self, valid_body) -> None:
        del valid_body["keystrokeEvents"]
        assert AttemptUpdate.model_validate(valid_body).keystroke_events == []

    def test_correct_cannot_exceed_total(self, valid_body) -> None:
        valid_body["correctCharacters"] = 11
        with pytest.raises(ValidationError, match="cannot exceed"):
            AttemptUpdate.model_validate(valid_body)

    @pytest.mark.parametrize(
        "field, value",
        [
            ("totalCharacters", -1),
            ("totalErrors", -3),
            ("sessionDurationSeconds", 3600.5),
            ("sessionDurationSeconds", -0.1),
            ("accuracyPercentage", 100.01),
            ("charactersPerMinute", 1001),
            ("isCompleted", "yes"),
            ("isCompleted", 1),
            ("totalCharacters", "10"),
            ("totalCharacters", 10.5),
        ],
    )
    def test_out_of_range_or_wrong_type_rejected(self, valid_body, field, value) -> None:
        valid_body[field] = value
        with pytest.raises(ValidationError):
            AttemptUpdate.model_validate(valid_body)

    @pytest.mark.parametrize("field", ["isCompleted", "accuracyPercentage", "totalErrors"])
    def test_missing_field_rejected(self, valid_body, field) -> None:
        del valid_body[field]
        with pytest.raises(ValidationError):
            AttemptUpdate.model_validate(valid_body)

    def test_keystroke_event_missing_field_rejected(self, valid_body) -> None:
        del valid_body["keystrokeEvents"][0]["timestampMs"]
        with pytest.raises(ValidationError):
            AttemptUpdate.model_validate(valid_body)

    def test_keystroke_event_unknown_field_rejected(self, valid_body) -> None:
        valid_body["keystrokeEvents"][0]["pressure"] = 0.5
        with pytest.raises(ValidationError):
            AttemptUpdate.model_validate(valid_body)

    def test_boundaries_accepted(self, valid_body) -> None:
        valid_body.update(
            sessionDurationSeconds=3600,
            accuracyPercentage=100,
            charactersPerMinute=1000,
            totalCharacters=9,
        )
        AttemptUpdate.model_validate(valid_body)


class TestAttemptCreate:
    def test_valid_problem_id(self) -> None:
        problem_id = str(uuid.uuid4())
        assert AttemptCreate.model_validate({"problemId": problem_id}).problem_id == problem_id

    @pytest.mark.parametrize("problem_id", ["", "abc", "12345678-1234-1234-1234-1234567890ab"])
    def test_invalid_problem_id(self, problem_id) -> None:
        with pytest.raises(ValidationError):
            AttemptCreate.model_validate({"problemId": problem_id})

    def test_missing_problem_id(self) -> None:
        with pytest.raises(ValidationError):
            AttemptCreate.model_validate({})


@pytest.mark.parametrize(
    "value, expected",
    [
        (str(uuid.uuid4()), True),
        (str(uuid.uuid4()).upper(), True),
        ("not-a-uuid", False),
        ("00000000-0000-0000-0000-000000000000", False),
        (None, False),
    ],
)
def test_is_valid_uuid(value, expected) -> None:
    assert is_valid_uuid(value) is expected


def test_attempt_session_from_row_with_uuid_objects() -> None:
    session_id = uuid.uuid4()
    problem_id = uuid.uuid4()
    row = {
        "id": session_id,
        "problem_id": problem_id,
        "started_at": datetime(2026, 1, 5, 9, 30, tzinfo=timezone.utc),
        "completed_at": None,
        "accuracy_percentage": 97.5,
        "characters_per_minute": 180.0,
        "session_duration_seconds": 42.0,
        "is_completed": True,
        "problem_title": "Two Sum",
        "category": "arrays",
    }
    session = AttemptSession.from_dict(row)
    assert session.id == str(session_id)
    data = session.to_dict()
    assert data["problem_id"] == str(problem_id)
    assert data["started_at"].startswith("2026-01-05T09:30:00")
    assert "completed_at" not in data
    assert "solution_code" not in data


def test_update_result_dumps_camel_case() -> None:
    result = AttemptUpdateResult(
        session_id="s", is_completed=True, experience_points=30, new_achievements=["first_steps"]
    )
    assert result.model_dump(by_alias=True) == {
        "sessionId": "s",
        "isCompleted": True,
        "experiencePoints": 30,
        "newAchievements": ["first_steps"],
        "currentStreak": None,
    }
