"""Pure analysis functions over a completed keystroke log."""

import math
from collections import Counter
from typing import List, Sequence

from pydantic import BaseModel
from pydantic.alias_generators import to_camel

from models.keystroke_event import KeystrokeEvent
from models.performance_tracker import round_half_up

CHARS_PER_WORD = 5
CONSISTENCY_MIN_EVENTS = 10
CONSISTENCY_REFERENCE_MS = 1000
CLUSTER_MAX_GAP = 5
TOP_ERROR_POSITIONS = 5
HIGH_ERROR_RATE = 0.1

SUGGEST_SLOW_DOWN = "Focus on slowing down during complex code patterns"
SUGGEST_PRACTICE = "Practice the problematic character sequences more"
SUGGEST_REDUCE_SPEED = "Consider reducing typing speed to improve accuracy"


class ErrorPatternAnalysis(BaseModel):
    """Where errors happen and what to do about them."""

    common_error_positions: List[int]
    error_clusters: List[int]
    improvement_suggestions: List[str]

    model_config = {
        "alias_generator": to_camel,
        "populate_by_name": True,
    }


def calculate_wpm(characters_per_minute: float) -> int:
    """Words per minute with a fixed five-character word."""
    return math.floor(characters_per_minute / CHARS_PER_WORD)


def calculate_consistency_score(events: Sequence[KeystrokeEvent]) -> int:
    """Score 0-100 from how much the inter-keystroke gap changes between keystrokes.

    Short logs (under ten events) always score 100. Otherwise the population
    standard deviation of the gap differences is measured against a fixed
    one-second reference.
    """
    if len(events) < CONSISTENCY_MIN_EVENTS:
        return 100

    deltas = [
        current.time_since_last_keystroke_ms - previous.time_since_last_keystroke_ms
        for previous, current in zip(events, events[1:])
    ]
    mean = sum(deltas) / len(deltas)
    variance = sum((d - mean) ** 2 for d in deltas) / len(deltas)
    standard_deviation = math.sqrt(variance)

    score = max(0.0, 100 - (standard_deviation / CONSISTENCY_REFERENCE_MS) * 100)
    return int(round_half_up(score))


def _error_clusters(error_positions: Sequence[int]) -> List[int]:
    """Sizes of runs of two or more errors lying within CLUSTER_MAX_GAP of each other."""
    clusters: List[int] = []
    current = 1
    for previous, position in zip(error_positions, error_positions[1:]):
        if position - previous <= CLUSTER_MAX_GAP:
            current += 1
        else:
            if current > 1:
                clusters.append(current)
            current = 1
    if current > 1:
        clusters.append(current)
    return clusters


def analyze_error_patterns(events: Sequence[KeystrokeEvent]) -> ErrorPatternAnalysis:
    """Find error clusters and the most frequently mistyped positions."""
    error_positions = [e.character_position for e in events if not e.is_correct]

    clusters = _error_clusters(error_positions)
    # most_common keeps first-encountered order for equal counts
    top_positions = [pos for pos, _ in Counter(error_positions).most_common(TOP_ERROR_POSITIONS)]

    suggestions: List[str] = []
    if clusters:
        suggestions.append(SUGGEST_SLOW_DOWN)
    if top_positions:
        suggestions.append(SUGGEST_PRACTICE)
    if events and len(error_positions) / len(events) > HIGH_ERROR_RATE:
        suggestions.append(SUGGEST_REDUCE_SPEED)

    return ErrorPatternAnalysis(
        common_error_positions=top_positions,
        error_clusters=clusters,
        improvement_suggestions=suggestions,
    )
