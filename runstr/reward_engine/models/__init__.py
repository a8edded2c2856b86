"""Data models for the leaderboard and reward system."""

from .raw_record import RawRecord
from .workout_record import WorkoutRecord, ExerciseType
from .participant_aggregate import ParticipantAggregate
from .results import ScoreResult, RewardResult, RankedEntry
from .reward_schedule import RewardSchedule, ScheduleMode, TierSemantics, load_schedule
from .time_window import TimeWindow, SECONDS_PER_DAY

__all__ = [
    "RawRecord",
    "WorkoutRecord",
    "ExerciseType",
    "ParticipantAggregate",
    "ScoreResult",
    "RewardResult",
    "RankedEntry",
    "RewardSchedule",
    "ScheduleMode",
    "TierSemantics",
    "load_schedule",
    "TimeWindow",
    "SECONDS_PER_DAY",
]
