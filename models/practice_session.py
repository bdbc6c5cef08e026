"""Practice session lifecycle around a PerformanceTracker.

The session owns the state machine the tracker deliberately lacks:

    NOT_STARTED -> ACTIVE -> (PAUSED <-> ACTIVE) -> COMPLETED

It also owns completion detection: the attempt is complete when the typed
text equals the target text exactly.
"""

from __future__ import annotations

import enum
import logging
from typing import Optional

from models.attempt import AttemptUpdate
from models.performance_tracker import (
    Clock,
    PerformanceMetrics,
    PerformanceTracker,
    RealTimeMetrics,
)

logger = logging.getLogger(__name__)


class SessionState(enum.Enum):
    """Lifecycle states of a practice session."""

    NOT_STARTED = "not_started"
    ACTIVE = "active"
    PAUSED = "paused"
    COMPLETED = "completed"


class InvalidSessionTransition(Exception):
    """Raised when a lifecycle operation is not allowed in the current state."""

    def __init__(self, message: str = "Invalid session transition") -> None:
        """Initialize the exception with an optional message."""
        self.message = message
        super().__init__(self.message)


def normalize_solution_code(solution_code: str) -> str:
    r"""Turn escaped ``\n`` sequences stored with a problem into real newlines."""
    return solution_code.replace("\\n", "\n")


class PracticeSession:
    """One user typing one kata."""

    def __init__(
        self,
        target_text: str,
        *,
        session_id: Optional[str] = None,
        clock: Optional[Clock] = None,
    ) -> None:
        """Create a session for ``target_text`` in the NOT_STARTED state."""
        self.target_text = normalize_solution_code(target_text)
        self.session_id = session_id
        self.tracker = PerformanceTracker(clock=clock)
        self.state = SessionState.NOT_STARTED
        self.typed_text = ""
        self._final_metrics: Optional[PerformanceMetrics] = None

    def _require(self, *allowed: SessionState, action: str) -> None:
        if self.state not in allowed:
            raise InvalidSessionTransition(f"Cannot {action} a session that is {self.state.value}")

    @property
    def is_completed(self) -> bool:
        """True once the text was finished or the attempt was submitted."""
        return self.state is SessionState.COMPLETED

    @property
    def current_position(self) -> int:
        """Offset of the next character to type."""
        return len(self.typed_text)

    def start(self) -> None:
        """Begin typing; the tracker clock starts now."""
        self._require(SessionState.NOT_STARTED, action="start")
        self.tracker.reset()
        self.state = SessionState.ACTIVE

    def pause(self) -> None:
        """Stop accepting keystrokes until resumed."""
        self._require(SessionState.ACTIVE, action="pause")
        self.state = SessionState.PAUSED

    def resume(self) -> None:
        """Accept keystrokes again after a pause."""
        self._require(SessionState.PAUSED, action="resume")
        self.state = SessionState.ACTIVE

    def toggle_pause(self) -> None:
        """Pause when active, resume when paused."""
        if self.state is SessionState.PAUSED:
            self.resume()
        else:
            self.pause()

    def restart(self) -> None:
        """Throw away progress and go back to NOT_STARTED."""
        self.state = SessionState.NOT_STARTED
        self.typed_text = ""
        self._final_metrics = None
        self.tracker.reset()

    def handle_input(self, value: str) -> bool:
        """Apply the full current contents of the input box.

        Growth of the input records the newly typed last character against the
        expected character at that offset; shrinking (backspace) only updates
        the typed text. Input longer than the target is ignored, as is any
        input while the session is not ACTIVE.

        Returns:
            True if this input completed the session.
        """
        if self.state is not SessionState.ACTIVE:
            return False
        if len(value) > len(self.target_text):
            return False

        if len(value) > len(self.typed_text):
            position = len(value) - 1
            self.tracker.record_keystroke(position, value[-1], self.target_text[position])

        self.typed_text = value
        if value == self.target_text:
            self._complete()
            return True
        return False

    def submit(self) -> PerformanceMetrics:
        """Finish the attempt manually, before the text is fully typed."""
        self._require(SessionState.ACTIVE, SessionState.PAUSED, action="submit")
        return self._complete()

    def _complete(self) -> PerformanceMetrics:
        self._final_metrics = self.tracker.get_metrics()
        self.state = SessionState.COMPLETED
        logger.info(
            "Practice session %s completed: %d chars, %.2f%% accuracy, %d cpm",
            self.session_id,
            self._final_metrics.total_characters,
            self._final_metrics.accuracy_percentage,
            self._final_metrics.characters_per_minute,
        )
        return self._final_metrics

    def real_time_metrics(self) -> RealTimeMetrics:
        """Live numbers for the UI."""
        return self.tracker.get_real_time_metrics()

    def final_metrics(self) -> PerformanceMetrics:
        """Snapshot frozen at completion, or a fresh one if still in progress."""
        if self._final_metrics is not None:
            return self._final_metrics
        return self.tracker.get_metrics()

    def build_submission(self) -> AttemptUpdate:
        """Request body for PUT /api/attempts/<session_id>."""
        metrics = self.final_metrics()
        return AttemptUpdate(
            total_characters=metrics.total_characters,
            correct_characters=metrics.correct_characters,
            total_errors=metrics.total_errors,
            session_duration_seconds=metrics.session_duration_seconds,
            accuracy_percentage=metrics.accuracy_percentage,
            characters_per_minute=metrics.characters_per_minute,
            is_completed=self.is_completed,
            keystroke_events=metrics.keystroke_events,
        )
