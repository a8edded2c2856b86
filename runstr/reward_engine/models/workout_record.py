"""Normalized workout model."""

from dataclasses import dataclass
from datetime import date
from enum import Enum

from runstr.utils.date_utils import utc_date


class ExerciseType(str, Enum):
    RUN = "run"
    WALK = "walk"
    CYCLE = "cycle"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class WorkoutRecord:
    """A workout with its distance converted to kilometres."""
    participant: str
    timestamp_sec: int
    exercise_type: ExerciseType
    distance_km: float
    source_record_id: str

    def __post_init__(self):
        if self.distance_km < 0:
            raise ValueError(f"Distance must be non-negative, got {self.distance_km}")

    @property
    def activity_date(self) -> date:
        """UTC calendar date of the workout."""
        return utc_date(self.timestamp_sec)

    def to_dict(self) -> dict:
        return {
            'participant': self.participant,
            'timestamp_sec': self.timestamp_sec,
            'exercise_type': self.exercise_type.value,
            'distance_km': self.distance_km,
            'source_record_id': self.source_record_id
        }
