"""Data models for scoring, reward and ranking results."""

from typing import Dict, Any, Optional
from dataclasses import dataclass, asdict


@dataclass(frozen=True)
class ScoreResult:
    """Experience points and level derived from one aggregate."""
    participant: str
    total_xp: int
    level: int
    next_level_xp: Optional[int] = None  # None once the level cap is reached

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class RewardResult:
    """Payout breakdown in sats for one participant."""
    participant: str
    workout_payout: int
    streak_payout: int
    level_bonus: int
    total_payout: int

    def __post_init__(self):
        """Validation after initialization."""
        for name in ('workout_payout', 'streak_payout', 'level_bonus', 'total_payout'):
            value = getattr(self, name)
            if not isinstance(value, int) or value < 0:
                raise ValueError(f"{name} must be a non-negative integer, got {value!r}")

        expected = self.workout_payout + self.streak_payout + self.level_bonus
        if self.total_payout != expected:
            raise ValueError(
                f"total_payout ({self.total_payout}) must equal the sum of its parts ({expected})"
            )

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class RankedEntry:
    """One row of a leaderboard."""
    rank: int
    participant: str
    metric_value: float

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)
