"""Tests for the keystroke log analysis functions."""

from typing import List, Optional, Sequence

import pytest

from models.keystroke_event import KeystrokeEvent
from models.performance_analysis import (
    SUGGEST_PRACTICE,
    SUGGEST_REDUCE_SPEED,
    SUGGEST_SLOW_DOWN,
    analyze_error_patterns,
    calculate_consistency_score,
    calculate_wpm,
)


def make_events(
    gaps: Sequence[int], error_positions: Optional[Sequence[int]] = None
) -> List[KeystrokeEvent]:
    """One event per gap, positions 0..n-1, incorrect where listed."""
    errors = set(error_positions or ())
    events = []
    timestamp = 0
    for position, gap in enumerate(gaps):
        timestamp += gap
        wrong = position in errors
        events.append(
            KeystrokeEvent(
                character_position=position,
                typed_character="x" if wrong else "a",
                expected_character="a",
                is_correct=not wrong,
                timestamp_ms=timestamp,
                time_since_last_keystroke_ms=gap,
            )
        )
    return events


def events_with_errors_at(positions: Sequence[int], length: int) -> List[KeystrokeEvent]:
    return make_events([100] * length, positions)


class TestCalculateWpm:
    @pytest.mark.parametrize(
        "cpm, expected",
        [(50, 10), (4, 0), (0, 0), (99, 19), (100, 20), (237.9, 47)],
    )
    def test_floor_division_by_five(self, cpm: float, expected: int) -> None:
        assert calculate_wpm(cpm) == expected


class TestConsistencyScore:
    @pytest.mark.parametrize("count", [0, 1, 5, 9])
    def test_short_logs_score_100(self, count: int) -> None:
        wild_gaps = [1, 5000, 3, 9000, 2, 7000, 4, 8000, 6][:count]
        assert calculate_consistency_score(make_events(wild_gaps)) == 100

    def test_perfectly_steady_rhythm_scores_100(self) -> None:
        assert calculate_consistency_score(make_events([150] * 20)) == 100

    def test_constant_acceleration_scores_100(self) -> None:
        # Gap differences are all equal, so their deviation is zero.
        gaps = [100 + 10 * i for i in range(12)]
        assert calculate_consistency_score(make_events(gaps)) == 100

    def test_alternating_rhythm(self) -> None:
        # Differences alternate +200/-200 over 10 events: 9 values, mean 200/9.
        gaps = [100, 300] * 5
        score = calculate_consistency_score(make_events(gaps))
        assert score == 80

    def test_very_erratic_rhythm_floors_at_zero(self) -> None:
        gaps = [10, 5000] * 6
        assert calculate_consistency_score(make_events(gaps)) == 0

    def test_score_in_range(self) -> None:
        gaps = [120, 80, 300, 95, 110, 400, 60, 90, 130, 250, 75]
        assert 0 <= calculate_consistency_score(make_events(gaps)) <= 100


class TestAnalyzeErrorPatterns:
    def test_cluster_scenario(self) -> None:
        events = events_with_errors_at([2, 3, 10, 11, 12, 20], length=25)
        analysis = analyze_error_patterns(events)
        assert analysis.error_clusters == [2, 3]

    def test_no_errors_no_suggestions(self) -> None:
        analysis = analyze_error_patterns(make_events([100] * 8))
        assert analysis.common_error_positions == []
        assert analysis.error_clusters == []
        assert analysis.improvement_suggestions == []

    def test_empty_log(self) -> None:
        analysis = analyze_error_patterns([])
        assert analysis.error_clusters == []
        assert analysis.improvement_suggestions == []

    def test_isolated_errors_are_not_clusters(self) -> None:
        events = events_with_errors_at([0, 10, 20], length=100)
        analysis = analyze_error_patterns(events)
        assert analysis.error_clusters == []
        assert analysis.improvement_suggestions == [SUGGEST_PRACTICE]

    def test_gap_of_exactly_five_clusters(self) -> None:
        events = events_with_errors_at([4, 9], length=100)
        assert analyze_error_patterns(events).error_clusters == [2]

    def test_most_common_positions_ranked_by_count(self) -> None:
        positions = [7, 3, 3, 9, 9, 9, 1, 2, 5]
        events = [
            KeystrokeEvent(
                character_position=p,
                typed_character="x",
                expected_character="a",
                is_correct=False,
                timestamp_ms=i,
                time_since_last_keystroke_ms=1,
            )
            for i, p in enumerate(positions)
        ]
        analysis = analyze_error_patterns(events)
        assert analysis.common_error_positions[:2] == [9, 3]
        assert len(analysis.common_error_positions) == 5

    def test_high_error_rate_suggests_reducing_speed(self) -> None:
        events = events_with_errors_at([0, 1, 2], length=10)
        analysis = analyze_error_patterns(events)
        assert analysis.improvement_suggestions == [
            SUGGEST_SLOW_DOWN,
            SUGGEST_PRACTICE,
            SUGGEST_REDUCE_SPEED,
        ]

    def test_error_rate_at_threshold_does_not_suggest_reducing_speed(self) -> None:
        events = events_with_errors_at([0], length=10)
        assert SUGGEST_REDUCE_SPEED not in analyze_error_patterns(events).improvement_suggestions

    def test_camel_case_dump(self) -> None:
        dumped = analyze_error_patterns([]).model_dump(by_alias=True)
        assert set(dumped) == {"commonErrorPositions", "errorClusters", "improvementSuggestions"}
