"""Folds normalized workout records into per-participant aggregates."""

import math
from typing import Dict, Iterable, Optional, Set

import bittensor as bt

from ..interfaces.participant_aggregator import ParticipantAggregator
from ..models.participant_aggregate import ParticipantAggregate
from ..models.time_window import TimeWindow
from ..models.workout_record import WorkoutRecord, ExerciseType


class ParticipantAggregationService(ParticipantAggregator):
    """Default implementation of participant aggregation."""

    def aggregate(
        self,
        records: Iterable[WorkoutRecord],
        window: TimeWindow,
        exercise_types: Optional[Set[ExerciseType]] = None
    ) -> Dict[str, ParticipantAggregate]:
        """
        Build fresh aggregates for every participant with a workout in the window.

        The result does not depend on input order: records are deduplicated
        by source id, stored sorted, and distances are summed with fsum.
        """
        unique: Dict[str, WorkoutRecord] = {}
        for record in records:
            if not window.contains(record.timestamp_sec):
                continue
            if exercise_types and record.exercise_type not in exercise_types:
                continue
            unique.setdefault(record.source_record_id, record)

        aggregates: Dict[str, ParticipantAggregate] = {}
        for record in sorted(unique.values(), key=lambda r: (r.timestamp_sec, r.source_record_id)):
            aggregate = aggregates.get(record.participant)
            if aggregate is None:
                aggregate = aggregates[record.participant] = ParticipantAggregate(participant=record.participant)
            aggregate.records.append(record)
            aggregate.workout_count += 1
            aggregate.active_days.add(record.activity_date)

        for aggregate in aggregates.values():
            aggregate.total_distance = math.fsum(r.distance_km for r in aggregate.records)

        bt.logging.debug(f"Aggregated {len(unique)} workouts into {len(aggregates)} participants")
        return aggregates
