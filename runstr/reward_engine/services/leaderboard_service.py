"""Ranks participants into leaderboards."""

from enum import Enum
from typing import Dict, List, Optional, Union

import numpy as np
import bittensor as bt

from ..models.participant_aggregate import ParticipantAggregate
from ..models.results import RankedEntry, RewardResult, ScoreResult
from .scoring_service import ScoringService
from .reward_calculation_service import RewardCalculationService
from runstr.utils.error_handling import log_and_raise_validation_error


class LeaderboardMetric(str, Enum):
    DISTANCE = "distance"
    XP = "xp"
    PAYOUT = "payout"
    WORKOUTS = "workouts"
    STREAK = "streak"


class LeaderboardService:
    """
    Orders participants by a metric.

    Ties are broken by ascending participant id, so the same inputs always
    give the same ranking. Ranks are absolute positions in the full ordering;
    offset and limit only select which rows are returned.
    """

    def __init__(
        self,
        scoring_service: Optional[ScoringService] = None,
        reward_service: Optional[RewardCalculationService] = None
    ):
        self.scoring_service = scoring_service or ScoringService()
        self.reward_service = reward_service

    def rank(
        self,
        aggregates: Dict[str, ParticipantAggregate],
        metric: Union[LeaderboardMetric, str],
        *,
        scores: Optional[Dict[str, ScoreResult]] = None,
        rewards: Optional[Dict[str, RewardResult]] = None,
        limit: Optional[int] = None,
        offset: int = 0,
        min_workouts: int = 0
    ) -> List[RankedEntry]:
        """
        Rank participants descending by `metric`.

        Args:
            aggregates: Participant aggregates for the window
            metric: Metric to rank by
            scores: Precomputed scores (xp metric); computed when missing
            rewards: Precomputed rewards (payout metric); computed with the
                     reward service when missing
            limit: Maximum number of entries returned
            offset: Number of leading entries skipped
            min_workouts: Participants with fewer workouts are not ranked

        Raises:
            ValueError: For an unknown metric, negative paging arguments, or
                        a payout ranking with no rewards available
        """
        try:
            metric = LeaderboardMetric(metric)
        except ValueError:
            log_and_raise_validation_error(
                f"Unknown leaderboard metric '{metric}'",
                context_info={'valid': [m.value for m in LeaderboardMetric]}
            )
        if offset < 0 or (limit is not None and limit < 0):
            log_and_raise_validation_error(f"Invalid paging: offset={offset}, limit={limit}")

        participants = sorted(
            participant for participant, aggregate in aggregates.items()
            if aggregate.workout_count >= min_workouts
        )
        if not participants:
            return []

        values = [
            self._metric_value(aggregates[participant], metric, scores, rewards)
            for participant in participants
        ]

        # Primary key is the last one: metric descending, then participant ascending
        order = np.lexsort((np.arange(len(participants)), -np.asarray(values, dtype=np.float64)))

        ranked = [
            RankedEntry(rank=position + 1, participant=participants[index], metric_value=values[index])
            for position, index in enumerate(order.tolist())
        ]
        page = ranked[offset:offset + limit] if limit is not None else ranked[offset:]

        bt.logging.debug(f"Ranked {len(ranked)} participants by {metric.value}, returning {len(page)}")
        return page

    def _metric_value(
        self,
        aggregate: ParticipantAggregate,
        metric: LeaderboardMetric,
        scores: Optional[Dict[str, ScoreResult]],
        rewards: Optional[Dict[str, RewardResult]]
    ) -> Union[int, float]:
        if metric == LeaderboardMetric.DISTANCE:
            return aggregate.total_distance
        if metric == LeaderboardMetric.WORKOUTS:
            return aggregate.workout_count
        if metric == LeaderboardMetric.STREAK:
            return aggregate.streak_days
        if metric == LeaderboardMetric.XP:
            score = (scores or {}).get(aggregate.participant) or self.scoring_service.score(aggregate)
            return score.total_xp

        reward = (rewards or {}).get(aggregate.participant)
        if reward is None:
            if self.reward_service is None:
                log_and_raise_validation_error(
                    f"No reward for {aggregate.participant}; payout ranking needs rewards or a reward service"
                )
            score = (scores or {}).get(aggregate.participant)
            reward = self.reward_service.calculate_reward(aggregate, score)
        return reward.total_payout
