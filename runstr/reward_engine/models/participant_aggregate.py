"""Per-participant aggregate built by the aggregation service."""

from dataclasses import dataclass, field
from datetime import date
from typing import Any, Dict, List, Set

from .workout_record import WorkoutRecord


@dataclass
class ParticipantAggregate:
    """
    Running totals for one participant within one aggregation run.

    Only the aggregation service mutates instances; a fresh aggregate is
    built for every run.
    """
    participant: str
    total_distance: float = 0.0
    workout_count: int = 0
    active_days: Set[date] = field(default_factory=set)
    records: List[WorkoutRecord] = field(default_factory=list)

    @property
    def streak_days(self) -> int:
        """Distinct UTC days with at least one workout in the window."""
        return len(self.active_days)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            'participant': self.participant,
            'total_distance': self.total_distance,
            'workout_count': self.workout_count,
            'streak_days': self.streak_days,
            'active_days': sorted(day.isoformat() for day in self.active_days),
        }
