"""Tests for ParticipantAggregationService."""

import random

import pytest

from runstr.reward_engine.services.aggregation_service import ParticipantAggregationService
from runstr.reward_engine.models.workout_record import ExerciseType
from conftest import make_workout, WINDOW_START

DAY = 86400


@pytest.fixture
def service():
    return ParticipantAggregationService()


@pytest.fixture
def workouts():
    return [
        make_workout("alice", WINDOW_START + 100, 5.0, "a1"),
        make_workout("alice", WINDOW_START + 200, 0.1, "a2"),
        make_workout("alice", WINDOW_START + DAY + 50, 3.3, "a3"),
        make_workout("bob", WINDOW_START + 2 * DAY, 10.0, "b1", ExerciseType.CYCLE),
        make_workout("bob", WINDOW_START + 3 * DAY, 0.7, "b2", ExerciseType.WALK),
        make_workout("carol", WINDOW_START + 6 * DAY + 86399, 1.1, "c1"),
    ]


class TestAggregate:

    def test_builds_totals_per_participant(self, service, workouts, window):
        aggregates = service.aggregate(workouts, window)

        alice = aggregates["alice"]
        assert alice.workout_count == 3
        assert alice.total_distance == pytest.approx(8.4)
        assert alice.streak_days == 2
        assert [r.source_record_id for r in alice.records] == ["a1", "a2", "a3"]
        assert aggregates["bob"].streak_days == 2
        assert aggregates["carol"].workout_count == 1

    def test_result_is_independent_of_input_order(self, service, workouts, window):
        expected = service.aggregate(workouts, window)

        for seed in range(5):
            shuffled = list(workouts)
            random.Random(seed).shuffle(shuffled)
            result = service.aggregate(shuffled, window)

            assert {p: a.to_dict() for p, a in result.items()} == {p: a.to_dict() for p, a in expected.items()}
            assert result["alice"].total_distance == expected["alice"].total_distance

    def test_duplicate_source_records_are_folded_once(self, service, window):
        workout = make_workout("alice", WINDOW_START + 100, 5.0, "same")

        aggregates = service.aggregate([workout, workout, workout], window)

        assert aggregates["alice"].workout_count == 1
        assert aggregates["alice"].total_distance == pytest.approx(5.0)

    def test_records_outside_window_are_ignored(self, service, window):
        workouts = [
            make_workout("alice", window.since - 1, 5.0, "before"),
            make_workout("alice", window.until, 5.0, "at-end"),
            make_workout("bob", window.since, 2.0, "at-start"),
        ]

        aggregates = service.aggregate(workouts, window)

        assert list(aggregates) == ["bob"]

    def test_exercise_type_filter(self, service, workouts, window):
        aggregates = service.aggregate(workouts, window, exercise_types={ExerciseType.CYCLE})

        assert list(aggregates) == ["bob"]
        assert aggregates["bob"].total_distance == pytest.approx(10.0)

    def test_every_run_builds_fresh_aggregates(self, service, workouts, window):
        first = service.aggregate(workouts, window)
        second = service.aggregate(workouts, window)

        assert first["alice"] is not second["alice"]
        assert second["alice"].workout_count == 3

    def test_empty_input(self, service, window):
        assert service.aggregate([], window) == {}
