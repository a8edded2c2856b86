"""Core interfaces for the leaderboard and reward system."""

from .participant_aggregator import ParticipantAggregator
from .reward_calculator import RewardCalculator

__all__ = [
    "ParticipantAggregator",
    "RewardCalculator",
]
