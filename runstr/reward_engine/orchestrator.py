"""Main leaderboard orchestrator - runs collection through rewards for one window."""

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Set

import bittensor as bt

from runstr.collection.collector import RelayCollector, CollectionResult
from runstr.collection.event_filter import EventFilter
from runstr.collection.source_filter import is_client_record
from runstr.normalization.normalizer import RecordNormalizer, NormalizationReport
from runstr.utils.date_utils import format_timestamp
from runstr.utils.config import (
    RELAYS,
    WORKOUT_EVENT_KIND,
    CLIENT_IDENTIFIERS,
    MAX_EVENTS_PER_RELAY,
    INCREMENTAL_LOOKBACK_SECONDS,
)
from .models.participant_aggregate import ParticipantAggregate
from .models.raw_record import RawRecord
from .models.results import RankedEntry, RewardResult, ScoreResult
from .models.reward_schedule import RewardSchedule
from .models.time_window import TimeWindow
from .models.workout_record import ExerciseType
from .services.aggregation_service import ParticipantAggregationService
from .services.scoring_service import ScoringService
from .services.reward_calculation_service import RewardCalculationService, total_payout_pool
from .services.leaderboard_service import LeaderboardService, LeaderboardMetric


@dataclass
class PipelineResult:
    """Everything one run derived, plus the record set to cache for the next run."""
    window: TimeWindow
    schedule: RewardSchedule
    aggregates: Dict[str, ParticipantAggregate]
    scores: Dict[str, ScoreResult]
    rewards: Dict[str, RewardResult]
    collection: CollectionResult
    normalization: NormalizationReport
    records: Dict[str, RawRecord] = field(default_factory=dict)
    covered_since: Optional[int] = None
    query_since: Optional[int] = None

    @property
    def total_payout_pool(self) -> int:
        return total_payout_pool(self.rewards.values())

    def leaderboard(
        self,
        metric: LeaderboardMetric = LeaderboardMetric.DISTANCE,
        limit: Optional[int] = None,
        offset: int = 0,
        min_workouts: int = 0
    ) -> List[RankedEntry]:
        return LeaderboardService().rank(
            self.aggregates, metric,
            scores=self.scores, rewards=self.rewards,
            limit=limit, offset=offset, min_workouts=min_workouts
        )

    def to_snapshot(self, metric: LeaderboardMetric = LeaderboardMetric.DISTANCE) -> Dict[str, object]:
        """JSON-safe summary of the run for reward snapshots."""
        return {
            'window': {'since': self.window.since, 'until': self.window.until},
            'schedule': self.schedule.to_dict(),
            'collection': self.collection.summary(),
            'normalization': {
                'total': self.normalization.total,
                'normalized': self.normalization.normalized,
                'dropped': self.normalization.dropped,
            },
            'metric': LeaderboardMetric(metric).value,
            'leaderboard': [entry.to_dict() for entry in self.leaderboard(metric)],
            'participants': {
                participant: {
                    **self.aggregates[participant].to_dict(),
                    'score': self.scores[participant].to_dict(),
                    'reward': self.rewards[participant].to_dict(),
                }
                for participant in sorted(self.aggregates)
            },
            'total_payout_pool': self.total_payout_pool,
        }


class LeaderboardOrchestrator:
    """Coordinates the complete collection, scoring and reward workflow."""

    def __init__(
        self,
        schedule: RewardSchedule,
        relays: Optional[Sequence[str]] = None,
        collector: Optional[RelayCollector] = None,
        normalizer: Optional[RecordNormalizer] = None,
        aggregator: Optional[ParticipantAggregationService] = None,
        scoring_service: Optional[ScoringService] = None,
        reward_service: Optional[RewardCalculationService] = None,
        client_identifiers: Optional[Sequence[str]] = None,
        per_endpoint_timeout: Optional[float] = None,
        global_timeout: Optional[float] = None
    ):
        self.schedule = schedule
        self.relays = list(relays) if relays is not None else list(RELAYS)
        self.collector = collector or RelayCollector()
        self.normalizer = normalizer or RecordNormalizer()
        self.aggregator = aggregator or ParticipantAggregationService()
        self.scoring_service = scoring_service or ScoringService()
        self.reward_service = reward_service or RewardCalculationService(schedule, self.scoring_service)
        self.client_identifiers = list(client_identifiers) if client_identifiers is not None else list(CLIENT_IDENTIFIERS)
        self.per_endpoint_timeout = per_endpoint_timeout
        self.global_timeout = global_timeout

    async def run(
        self,
        window: TimeWindow,
        cached_records: Optional[Dict[str, RawRecord]] = None,
        cached_since: Optional[int] = None,
        exercise_types: Optional[Set[ExerciseType]] = None
    ) -> PipelineResult:
        """
        Main entry point for one leaderboard run.

        Args:
            window: Aggregation window
            cached_records: Records from a previous run, by id
            cached_since: Point from which `cached_records` is complete
            exercise_types: Restrict aggregation to these exercise types

        Raises:
            CollectionError: If every relay failed
        """
        # 1. Work out how much of the window relays must be asked for
        usable_cache = self._usable_cache(window, cached_records, cached_since)
        query_since = self._query_since(window, usable_cache)
        if usable_cache:
            bt.logging.info(f"♻️ {len(usable_cache)} cached records, querying relays from {format_timestamp(query_since)}")

        # 2. Collect from relays (raises CollectionError on total failure)
        event_filter = EventFilter(
            kinds=[WORKOUT_EVENT_KIND],
            since=query_since,
            until=window.until,
            limit=MAX_EVENTS_PER_RELAY
        )
        collection = await self.collector.collect(
            self.relays, event_filter,
            per_endpoint_timeout=self.per_endpoint_timeout,
            global_timeout=self.global_timeout
        )

        # 3. Merge with the cache; ids are content hashes so either copy will do
        records = dict(usable_cache)
        for record_id, record in collection.records.items():
            records.setdefault(record_id, record)

        # 4. Keep only records published by the configured clients
        client_records = [r for r in records.values() if is_client_record(r, self.client_identifiers)]
        if self.client_identifiers:
            bt.logging.info(f"🏷️ {len(client_records)}/{len(records)} records from clients {self.client_identifiers}")

        # 5. Normalize, aggregate, score, reward
        workouts, report = self.normalizer.normalize_all(client_records)
        aggregates = self.aggregator.aggregate(workouts, window, exercise_types)
        scores = self.scoring_service.score_all(aggregates)
        rewards = self.reward_service.calculate_all(aggregates, scores)

        # 6. A gap at any relay must not be mistaken for coverage by the next run
        covered_since = window.since if collection.is_complete else None
        if covered_since is None:
            bt.logging.warning("⚠️ Some relays answered incompletely; the next run will fetch the full window")

        result = PipelineResult(
            window=window,
            schedule=self.schedule,
            aggregates=aggregates,
            scores=scores,
            rewards=rewards,
            collection=collection,
            normalization=report,
            records=records,
            covered_since=covered_since,
            query_since=query_since
        )
        bt.logging.info(
            f"✅ Leaderboard ready: {len(aggregates)} participants, "
            f"{sum(a.workout_count for a in aggregates.values())} workouts, "
            f"{result.total_payout_pool} sats owed"
        )
        return result

    @staticmethod
    def _usable_cache(
        window: TimeWindow,
        cached_records: Optional[Dict[str, RawRecord]],
        cached_since: Optional[int]
    ) -> Dict[str, RawRecord]:
        """Cached records inside the window, if the cache covers the window start."""
        if not cached_records or cached_since is None or cached_since > window.since:
            return {}
        return {
            record_id: record for record_id, record in cached_records.items()
            if window.contains(record.created_at)
        }

    @staticmethod
    def _query_since(window: TimeWindow, usable_cache: Dict[str, RawRecord]) -> int:
        if not usable_cache:
            return window.since
        newest = max(record.created_at for record in usable_cache.values())
        query_since = max(window.since, newest - INCREMENTAL_LOOKBACK_SECONDS)
        return min(query_since, window.until - 1)
