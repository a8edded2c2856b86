"""Converts raw relay events into normalized workout records."""

from collections import Counter
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Tuple

import bittensor as bt

from runstr.reward_engine.models.raw_record import RawRecord
from runstr.reward_engine.models.workout_record import WorkoutRecord
from runstr.utils.config import WORKOUT_EVENT_KIND
from . import tag_parser

DROP_WRONG_KIND = "wrong_kind"
DROP_NO_DISTANCE = "no_distance"
DROP_OUT_OF_BOUNDS = "out_of_bounds"


@dataclass
class NormalizationReport:
    """Counts of normalized and dropped records for one normalization pass."""
    total: int = 0
    normalized: int = 0
    dropped: Dict[str, int] = field(default_factory=dict)

    @property
    def dropped_total(self) -> int:
        return sum(self.dropped.values())

    def summary(self) -> str:
        if not self.dropped:
            return f"0 of {self.total} records dropped"
        reasons = ", ".join(f"{reason}: {count}" for reason, count in sorted(self.dropped.items()))
        return f"{self.dropped_total} of {self.total} records dropped ({reasons})"


class RecordNormalizer:
    """
    Maps RawRecords to WorkoutRecords with canonical units.

    Records without a recoverable, plausible distance are dropped rather than
    assigned a guessed value. Normalization never raises for bad input data.
    """

    def __init__(self, workout_kind: int = WORKOUT_EVENT_KIND):
        self.workout_kind = workout_kind

    def normalize(self, raw: RawRecord) -> Optional[WorkoutRecord]:
        """Normalize one record, or return None if it must be dropped."""
        record, _ = self._normalize_with_reason(raw)
        return record

    def normalize_all(self, raws: Iterable[RawRecord]) -> Tuple[List[WorkoutRecord], NormalizationReport]:
        """
        Normalize a batch of records.

        Returns:
            Tuple of (workout records, report of what was dropped and why)
        """
        records = []
        dropped = Counter()
        total = 0

        for raw in raws:
            total += 1
            record, reason = self._normalize_with_reason(raw)
            if record is None:
                dropped[reason] += 1
            else:
                records.append(record)

        report = NormalizationReport(total=total, normalized=len(records), dropped=dict(dropped))
        if report.dropped:
            bt.logging.info(f"Normalization: {report.summary()}")
        return records, report

    def _normalize_with_reason(self, raw: RawRecord) -> Tuple[Optional[WorkoutRecord], Optional[str]]:
        if raw.kind != self.workout_kind:
            return None, DROP_WRONG_KIND

        distance_km = tag_parser.extract_distance_km(raw)
        if distance_km is None:
            bt.logging.debug(f"No distance found in {raw.id}")
            return None, DROP_NO_DISTANCE

        if not tag_parser.is_plausible_distance(distance_km):
            bt.logging.debug(f"Distance {distance_km:.3f} km out of bounds for {raw.id}")
            return None, DROP_OUT_OF_BOUNDS

        return WorkoutRecord(
            participant=raw.author_id,
            timestamp_sec=raw.created_at,
            exercise_type=tag_parser.extract_exercise_type(raw),
            distance_km=distance_km,
            source_record_id=raw.id
        ), None
