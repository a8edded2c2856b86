"""Handles reward calculation - converts aggregates and levels into sats."""

from typing import Any, Dict, Iterable, Optional, Union

import numpy as np
import bittensor as bt

from ..interfaces.reward_calculator import RewardCalculator
from ..models.participant_aggregate import ParticipantAggregate
from ..models.results import RewardResult, ScoreResult
from ..models.reward_schedule import RewardSchedule, ScheduleMode, TierSemantics
from .scoring_service import ScoringService


class RewardCalculationService(RewardCalculator):
    """
    Applies a RewardSchedule to participant aggregates.

    The schedule is validated when the service is built, so a bad
    configuration fails before any participant is processed.
    """

    def __init__(
        self,
        schedule: Union[RewardSchedule, Dict[str, Any]],
        scoring_service: Optional[ScoringService] = None
    ):
        self.schedule = schedule if isinstance(schedule, RewardSchedule) else RewardSchedule.from_dict(schedule)
        self.scoring_service = scoring_service or ScoringService()

    def calculate_reward(
        self,
        aggregate: ParticipantAggregate,
        score: Optional[ScoreResult] = None
    ) -> RewardResult:
        """Payout breakdown for one participant; total is always the sum of the parts."""
        if self.schedule.mode == ScheduleMode.LEGACY:
            workout_payout = aggregate.workout_count * self.schedule.per_workout_sats
            streak_payout = aggregate.streak_days * self.schedule.per_streak_day_sats
            level_bonus = 0
        else:
            if score is None:
                score = self.scoring_service.score(aggregate)
            workout_payout = 0
            streak_payout = self._streak_tier_payout(aggregate.workout_count)
            level_bonus = self._level_bonus(score.level, aggregate.streak_days)

        return RewardResult(
            participant=aggregate.participant,
            workout_payout=workout_payout,
            streak_payout=streak_payout,
            level_bonus=level_bonus,
            total_payout=workout_payout + streak_payout + level_bonus
        )

    def calculate_all(
        self,
        aggregates: Dict[str, ParticipantAggregate],
        scores: Optional[Dict[str, ScoreResult]] = None
    ) -> Dict[str, RewardResult]:
        scores = scores or {}
        rewards = {
            participant: self.calculate_reward(aggregate, scores.get(participant))
            for participant, aggregate in aggregates.items()
        }
        bt.logging.info(
            f"💰 '{self.schedule.name}' schedule: {total_payout_pool(rewards.values())} sats "
            f"across {sum(1 for r in rewards.values() if r.total_payout > 0)} participants"
        )
        return rewards

    def _streak_tier_payout(self, workout_count: int) -> int:
        """
        Streak payout for a workout count.

        Counts above the top tier are paid at the top tier. With cumulative
        semantics every tier up to the count is paid, and each count beyond
        the top tier adds the top tier again.
        """
        if workout_count <= 0:
            return 0
        tiers = self.schedule.streak_tier_payout
        top_tier = self.schedule.top_tier

        if self.schedule.tier_semantics == TierSemantics.CUMULATIVE:
            reached = min(workout_count, top_tier)
            payout = sum(tiers[count] for count in range(1, reached + 1))
            return payout + max(workout_count - top_tier, 0) * tiers[top_tier]

        return tiers[min(workout_count, top_tier)]

    def _level_bonus(self, level: int, streak_days: int) -> int:
        """
        Level bonuses add up over every threshold the level has reached.

        `level_bonus` entries pay a flat amount; `level_streak_bonus` entries
        pay their amount for each streak day.
        """
        flat = sum(sats for threshold, sats in self.schedule.level_bonus.items() if threshold <= level)
        per_day = sum(sats for threshold, sats in self.schedule.level_streak_bonus.items() if threshold <= level)
        return flat + per_day * streak_days


def calculate_reward(aggregate: ParticipantAggregate, schedule: Union[RewardSchedule, Dict[str, Any]]) -> RewardResult:
    """Convenience wrapper: reward for one aggregate under `schedule`."""
    return RewardCalculationService(schedule).calculate_reward(aggregate)


def total_payout_pool(rewards: Iterable[RewardResult]) -> int:
    """Total sats owed across all participants."""
    payouts = np.fromiter((reward.total_payout for reward in rewards), dtype=np.int64)
    return int(np.sum(payouts))
