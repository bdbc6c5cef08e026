"""Keystroke performance tracker.

Accumulates the keystrokes of one practice attempt in memory and derives
accuracy, speed and duration snapshots on demand. The tracker knows nothing
about the practice lifecycle (started, paused, completed); that belongs to
PracticeSession.
"""

import logging
import math
import time
from typing import Callable, List, Optional

from pydantic import BaseModel
from pydantic.alias_generators import to_camel

from models.keystroke_event import KeystrokeEvent

logger = logging.getLogger(__name__)

Clock = Callable[[], int]


def wall_clock_ms() -> int:
    """Current wall-clock time in whole milliseconds."""
    return int(time.time() * 1000)


def round_half_up(value: float, digits: int = 0) -> float:
    """Round with .5 going up, as the UI displays it (2/3 * 100 -> 66.67)."""
    factor = 10**digits
    return math.floor(value * factor + 0.5) / factor


class RealTimeMetrics(BaseModel):
    """Cheap snapshot for frequent UI polling."""

    total_characters: int
    correct_characters: int
    total_errors: int
    accuracy_percentage: float
    characters_per_minute: int
    session_duration_seconds: int

    model_config = {
        "alias_generator": to_camel,
        "populate_by_name": True,
        "frozen": True,
    }


class PerformanceMetrics(RealTimeMetrics):
    """Final snapshot including a copy of the keystroke log."""

    keystroke_events: List[KeystrokeEvent]


class PerformanceTracker:
    """Append-only keystroke log with derived statistics.

    Two states only: fresh (empty log) and accumulating. Every keystroke,
    including retyping of a position already typed, is a new event.
    """

    def __init__(self, clock: Optional[Clock] = None) -> None:
        """Start a fresh session anchored at the current clock reading.

        Args:
            clock: Zero-argument callable returning milliseconds. Defaults to
                the wall clock.
        """
        self._clock: Clock = clock or wall_clock_ms
        self._events: List[KeystrokeEvent] = []
        self.start_time: int = self._clock()
        self.last_keystroke_time: int = self.start_time

    def record_keystroke(
        self, position: int, typed_char: str, expected_char: Optional[str]
    ) -> KeystrokeEvent:
        """Log one keystroke and return the recorded event.

        Input is not validated; any position and characters are accepted.
        Bounding ``position`` to the target text is the caller's job and the
        strict checks happen when the log is submitted as an ``AttemptUpdate``.
        """
        now = self._clock()
        time_since_last = now - self.last_keystroke_time
        if time_since_last < 0:
            # Clock went backwards; record as-is.
            logger.warning(
                "Negative keystroke delta of %d ms at position %s", time_since_last, position
            )

        event = KeystrokeEvent.model_construct(
            character_position=position,
            typed_character=typed_char,
            expected_character=expected_char,
            is_correct=typed_char == expected_char,
            timestamp_ms=now,
            time_since_last_keystroke_ms=time_since_last,
        )
        self._events.append(event)
        self.last_keystroke_time = now
        return event

    @property
    def events(self) -> List[KeystrokeEvent]:
        """Copy of the keystroke log in chronological order."""
        return list(self._events)

    def _snapshot(self) -> RealTimeMetrics:
        total_characters = len(self._events)
        correct_characters = sum(1 for e in self._events if e.is_correct)
        accuracy = (
            correct_characters / total_characters * 100 if total_characters > 0 else 0
        )

        session_duration_seconds = math.floor((self._clock() - self.start_time) / 1000)
        characters_per_minute = (
            math.floor(correct_characters / session_duration_seconds * 60)
            if session_duration_seconds > 0
            else 0
        )

        return RealTimeMetrics(
            total_characters=total_characters,
            correct_characters=correct_characters,
            total_errors=total_characters - correct_characters,
            accuracy_percentage=round_half_up(accuracy, 2),
            characters_per_minute=characters_per_minute,
            session_duration_seconds=session_duration_seconds,
        )

    def get_metrics(self) -> PerformanceMetrics:
        """Final snapshot with a copy of the keystroke log."""
        snapshot = self._snapshot()
        return PerformanceMetrics(
            **snapshot.model_dump(),
            keystroke_events=list(self._events),
        )

    def get_real_time_metrics(self) -> RealTimeMetrics:
        """Same numbers as get_metrics() without the keystroke log."""
        return self._snapshot()

    def reset(self) -> None:
        """Clear the log and restart both timers."""
        self._events = []
        self.start_time = self._clock()
        self.last_keystroke_time = self.start_time
