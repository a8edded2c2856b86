"""Abstract interface for participant aggregation strategies."""

from abc import ABC, abstractmethod
from typing import Dict, Iterable, Optional, Set


class ParticipantAggregator(ABC):
    """Abstract interface for participant aggregation strategies."""

    @abstractmethod
    def aggregate(
        self,
        records: Iterable["WorkoutRecord"],
        window: "TimeWindow",
        exercise_types: Optional[Set["ExerciseType"]] = None
    ) -> Dict[str, "ParticipantAggregate"]:
        """Fold normalized records into one aggregate per participant.

        Args:
            records: Normalized workout records (any order)
            window: Only records inside [since, until) are counted
            exercise_types: Optional restriction to these exercise types
        """
        pass
