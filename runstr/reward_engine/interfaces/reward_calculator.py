"""Abstract interface for reward calculation strategies."""

from abc import ABC, abstractmethod
from typing import Optional


class RewardCalculator(ABC):
    """Abstract interface for reward calculation strategies."""

    @abstractmethod
    def calculate_reward(
        self,
        aggregate: "ParticipantAggregate",
        score: Optional["ScoreResult"] = None
    ) -> "RewardResult":
        """Calculate the payout breakdown for one participant."""
        pass
