"""Core services for the leaderboard and reward system."""

from .aggregation_service import ParticipantAggregationService
from .scoring_service import ScoringService, xp_required_for_level, level_for_xp
from .reward_calculation_service import RewardCalculationService, calculate_reward, total_payout_pool
from .leaderboard_service import LeaderboardService, LeaderboardMetric
from .payout_service import PayoutService, PayoutReport

__all__ = [
    "ParticipantAggregationService",
    "ScoringService",
    "xp_required_for_level",
    "level_for_xp",
    "RewardCalculationService",
    "calculate_reward",
    "total_payout_pool",
    "LeaderboardService",
    "LeaderboardMetric",
    "PayoutService",
    "PayoutReport",
]
