"""Experience points and level calculation."""

import math
from typing import Dict

from ..models.participant_aggregate import ParticipantAggregate
from ..models.results import ScoreResult
from ..models.workout_record import WorkoutRecord

KM_PER_MILE = 1.609344

# XP rules: a workout of at least one mile earns the base XP, plus a bonus
# for every further full mile.
QUALIFYING_DISTANCE_MILES = 1.0
BASE_XP = 10
DISTANCE_BONUS_XP = 5

# Levels 1-10 cost 100 XP each; later levels get progressively more expensive.
XP_PER_EARLY_LEVEL = 100
EARLY_LEVEL_CAP = 10
LATE_LEVEL_BASE_XP = 150
LATE_LEVEL_STEP_XP = 25
MAX_LEVEL = 100

# Absorbs float error from unit conversion (e.g. 1.609344 km -> 0.9999999999 mi)
_MILES_EPSILON = 1e-9


def workout_xp(record: WorkoutRecord) -> int:
    """XP earned by a single workout."""
    miles = record.distance_km / KM_PER_MILE + _MILES_EPSILON
    if miles < QUALIFYING_DISTANCE_MILES:
        return 0
    extra_miles = math.floor(miles - QUALIFYING_DISTANCE_MILES)
    return BASE_XP + extra_miles * DISTANCE_BONUS_XP


def xp_required_for_level(level: int) -> int:
    """
    Cumulative XP needed to reach `level`.

    Examples:
        >>> xp_required_for_level(2)
        200
        >>> xp_required_for_level(11)
        1150
        >>> xp_required_for_level(12)
        1350
    """
    if level <= 0:
        return 0
    if level <= EARLY_LEVEL_CAP:
        return level * XP_PER_EARLY_LEVEL
    n = level - EARLY_LEVEL_CAP
    return (EARLY_LEVEL_CAP * XP_PER_EARLY_LEVEL
            + n * LATE_LEVEL_BASE_XP
            + n * (n - 1) * LATE_LEVEL_STEP_XP)


def level_for_xp(total_xp: int) -> int:
    """Highest level whose XP requirement is met, 0 below level 1, capped at MAX_LEVEL."""
    level = 0
    while level < MAX_LEVEL and xp_required_for_level(level + 1) <= total_xp:
        level += 1
    return level


class ScoringService:
    """Derives XP and level from a participant aggregate."""

    def score(self, aggregate: ParticipantAggregate) -> ScoreResult:
        total_xp = sum(workout_xp(record) for record in aggregate.records)
        level = level_for_xp(total_xp)
        return ScoreResult(
            participant=aggregate.participant,
            total_xp=total_xp,
            level=level,
            next_level_xp=xp_required_for_level(level + 1) if level < MAX_LEVEL else None
        )

    def score_all(self, aggregates: Dict[str, ParticipantAggregate]) -> Dict[str, ScoreResult]:
        return {participant: self.score(aggregate) for participant, aggregate in aggregates.items()}

