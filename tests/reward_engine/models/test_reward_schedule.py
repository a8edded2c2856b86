"""Tests for reward schedule configuration."""

import json

import pytest

from runstr.reward_engine.models.reward_schedule import (
    RewardSchedule, ScheduleMode, TierSemantics, load_schedule
)
from runstr.utils.config import TIERED_SCHEDULE


class TestScheduleValidation:
    """Misconfigured schedules fail at construction."""

    def test_builds_tiered_preset(self):
        schedule = RewardSchedule.from_dict(TIERED_SCHEDULE)

        assert schedule.mode == ScheduleMode.TIERED
        assert schedule.tier_semantics == TierSemantics.TIER
        assert schedule.streak_tier_payout[3] == 60
        assert schedule.top_tier == 7
        assert schedule.level_bonus == {1: 50}
        assert schedule.level_streak_bonus == {2: 5}

    def test_string_keys_from_json_are_converted(self):
        schedule = RewardSchedule.from_dict({
            "mode": "tiered",
            "streak_tier_payout": {"1": 10, "2": 20},
            "level_bonus": {"5": 100},
        })

        assert schedule.streak_tier_payout == {1: 10, 2: 20}
        assert schedule.level_bonus == {5: 100}
        assert schedule.name == "tiered"

    def test_rejects_negative_flat_payout(self):
        with pytest.raises(ValueError, match="negative payout"):
            RewardSchedule(name="bad", mode="legacy", per_workout_sats=-1)

    def test_rejects_negative_tier_payout(self):
        with pytest.raises(ValueError, match="negative payout"):
            RewardSchedule(name="bad", mode="tiered", streak_tier_payout={1: -20})

    def test_rejects_gap_in_tiers(self):
        with pytest.raises(ValueError, match="missing a streak tier"):
            RewardSchedule(name="bad", mode="tiered", streak_tier_payout={1: 20, 3: 60})

    def test_rejects_tiered_without_tiers(self):
        with pytest.raises(ValueError, match="missing a streak tier"):
            RewardSchedule(name="bad", mode="tiered")

    def test_rejects_non_positive_tier_keys(self):
        with pytest.raises(ValueError, match="positive"):
            RewardSchedule(name="bad", mode="tiered", streak_tier_payout={0: 5, 1: 10})

    @pytest.mark.parametrize("table", [{1: 20.7}, {1: True}, {1: "20"}, {1.0: 20}])
    def test_rejects_non_integer_table_entries(self, table):
        with pytest.raises(ValueError, match="not an integer"):
            RewardSchedule(name="bad", mode="tiered", streak_tier_payout=table)

    @pytest.mark.parametrize("value", [50.5, True])
    def test_rejects_non_integer_flat_payout(self, value):
        with pytest.raises(ValueError):
            RewardSchedule(name="bad", mode="legacy", per_streak_day_sats=value)

    def test_rejects_unknown_mode(self):
        with pytest.raises(ValueError):
            RewardSchedule.from_dict({"name": "bad", "mode": "hybrid"})

    def test_requires_mode(self):
        with pytest.raises(ValueError, match="'mode' is required"):
            RewardSchedule.from_dict({"name": "bad"})

    def test_to_dict_round_trip(self):
        schedule = RewardSchedule.from_dict(TIERED_SCHEDULE)

        assert RewardSchedule.from_dict(schedule.to_dict()) == schedule


class TestLoadSchedule:

    def test_loads_builtin_by_name(self):
        assert load_schedule("legacy").per_workout_sats == 50

    def test_loads_json_file(self, tmp_path):
        path = tmp_path / "weekly.json"
        path.write_text(json.dumps({
            "name": "weekly",
            "mode": "tiered",
            "streak_tier_payout": {"1": 5, "2": 10},
            "tier_semantics": "cumulative",
        }))

        schedule = load_schedule(str(path))

        assert schedule.name == "weekly"
        assert schedule.tier_semantics == TierSemantics.CUMULATIVE

    def test_unknown_name_raises(self):
        with pytest.raises(ValueError, match="unknown schedule"):
            load_schedule("does-not-exist")

    def test_invalid_json_raises(self, tmp_path):
        path = tmp_path / "broken.json"
        path.write_text("{not json")

        with pytest.raises(ValueError, match="not valid JSON"):
            load_schedule(path)
