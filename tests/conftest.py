"""
Global pytest configuration and fixtures for fast test execution.

Provides event/record factories, a fake relay provider so collection logic
can be tested without sockets, and isolated cache and snapshot directories.
"""

import asyncio
import itertools

import pytest
from unittest.mock import patch

from runstr.clients.relay_provider import RelayProvider, FetchResult
from runstr.reward_engine.models.raw_record import RawRecord
from runstr.reward_engine.models.time_window import TimeWindow, SECONDS_PER_DAY
from runstr.reward_engine.models.workout_record import WorkoutRecord, ExerciseType
from runstr.utils.record_cache import RecordCache

# 2025-11-24 00:00:00 UTC (a Monday)
WINDOW_START = 1763942400

_event_ids = itertools.count(1)


def make_event(
    event_id=None,
    pubkey="alice",
    created_at=WINDOW_START + 3600,
    kind=1301,
    distance=("5.00", "km"),
    exercise="run",
    client="runstr",
    content="",
    extra_tags=()
):
    """Build a relay event payload as a dict."""
    tags = []
    if exercise is not None:
        tags.append(["exercise", exercise])
    if distance is not None:
        tags.append(["distance", *distance])
    if client is not None:
        tags.append(["client", client])
    tags.extend(list(tag) for tag in extra_tags)
    return {
        "id": event_id or f"event{next(_event_ids):04d}",
        "pubkey": pubkey,
        "created_at": created_at,
        "kind": kind,
        "tags": tags,
        "content": content,
        "sig": "00" * 32,
    }


def make_record(**kwargs) -> RawRecord:
    return RawRecord.from_event(make_event(**kwargs))


def make_workout(participant="alice", timestamp_sec=WINDOW_START + 3600, distance_km=5.0,
                 record_id=None, exercise_type=ExerciseType.RUN) -> WorkoutRecord:
    return WorkoutRecord(
        participant=participant,
        timestamp_sec=timestamp_sec,
        exercise_type=exercise_type,
        distance_km=distance_km,
        source_record_id=record_id or f"workout{next(_event_ids):04d}",
    )


class FakeRelayProvider(RelayProvider):
    """
    Relay provider driven by a script per endpoint.

    Each endpoint maps to a FetchResult, an exception to raise, or a
    (delay_seconds, FetchResult) tuple.
    """

    def __init__(self, script):
        self.script = script
        self.calls = []
        self.cancelled = []

    async def fetch(self, endpoint, event_filter, timeout):
        self.calls.append((endpoint, event_filter, timeout))
        outcome = self.script[endpoint]
        if isinstance(outcome, Exception):
            raise outcome
        if isinstance(outcome, tuple):
            delay, outcome = outcome
            try:
                await asyncio.sleep(delay)
            except asyncio.CancelledError:
                self.cancelled.append(endpoint)
                raise
        return outcome


def fetch_result(endpoint, records, **kwargs) -> FetchResult:
    return FetchResult(endpoint=endpoint, records={r.id: r for r in records}, eose_received=True, **kwargs)


@pytest.fixture
def window():
    """Seven-day window starting 2025-11-24 00:00 UTC."""
    return TimeWindow(since=WINDOW_START, until=WINDOW_START + 7 * SECONDS_PER_DAY)


@pytest.fixture
def record_cache(tmp_path):
    """RecordCache pointed at a temporary directory."""
    RecordCache.cleanup()
    with patch.object(RecordCache, '_cache_dir', str(tmp_path / "records")):
        yield RecordCache
        RecordCache.cleanup()


@pytest.fixture
def snapshot_dir(tmp_path):
    return tmp_path / "snapshots"


# Performance optimization: disable logging during tests unless explicitly enabled
@pytest.fixture(autouse=True)
def fast_logging():
    """
    Reduce logging verbosity during tests for better performance.
    """
    import logging
    import bittensor as bt

    # Set higher log level to reduce output during tests
    logging.getLogger().setLevel(logging.WARNING)
    bt.logging.set_debug(False)

    yield

    # Restore normal logging after tests
    logging.getLogger().setLevel(logging.INFO)
