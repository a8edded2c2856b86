"""Tests for the leaderboard command-line workflow."""

import argparse
from unittest.mock import patch, AsyncMock, MagicMock

import pytest

from runstr import leaderboard
from runstr.clients.relay_provider import FetchResult
from runstr.collection import RelayCollector
from runstr.reward_engine.orchestrator import LeaderboardOrchestrator
from runstr.reward_engine.services.payout_service import PayoutReport
from runstr.clients.payout_client import PayoutOutcome
from runstr.utils.record_cache import decode_records
from runstr.reward_engine.utils import reward_snapshot
from conftest import FakeRelayProvider, fetch_result, make_record, WINDOW_START

RELAY = "wss://relay.example"


def make_config(**overrides):
    values = dict(
        window=7, start_date="2025-11-24", end_date="2025-11-30", schedule="tiered",
        metric="distance", limit=10, offset=0, min_workouts=0, relays=RELAY,
        all_clients=False, exercise=None, no_cache=False, snapshot=False,
        pay=False, dry_run=False, from_snapshot=False,
    )
    values.update(overrides)
    return argparse.Namespace(**values)


@pytest.fixture
def relay_script():
    return {RELAY: fetch_result(RELAY, [
        make_record(event_id="a1", pubkey="alice", created_at=WINDOW_START + 3600),
        make_record(event_id="b1", pubkey="bob", created_at=WINDOW_START + 7200, distance=("2", "mi")),
    ])}


@pytest.fixture
def fake_orchestrator(relay_script):
    provider = FakeRelayProvider(relay_script)

    def build(schedule, relays, client_identifiers):
        return LeaderboardOrchestrator(
            schedule, relays=relays, collector=RelayCollector(provider), client_identifiers=client_identifiers
        )

    with patch.object(leaderboard, "LeaderboardOrchestrator", side_effect=build):
        yield provider


class TestBuildWindow:

    def test_explicit_dates_are_inclusive(self):
        window = leaderboard.build_window(make_config())
        assert window.since == WINDOW_START
        assert window.until == WINDOW_START + 7 * 86400

    def test_end_date_only_uses_window_length(self):
        window = leaderboard.build_window(make_config(start_date=None, window=3))
        assert window.until == WINDOW_START + 7 * 86400
        assert window.since == window.until - 3 * 86400

    def test_unparseable_date_is_rejected(self):
        with pytest.raises(ValueError):
            leaderboard.build_window(make_config(start_date="last monday"))


def test_parse_helpers():
    assert leaderboard.parse_relays(" wss://a , ,wss://b") == ["wss://a", "wss://b"]
    assert leaderboard.parse_exercise_types(None) is None
    assert len(leaderboard.parse_exercise_types("run, walk")) == 2
    with pytest.raises(ValueError):
        leaderboard.parse_exercise_types("swim")


class TestExecute:

    @pytest.mark.asyncio
    async def test_prints_leaderboard_and_caches_records(self, fake_orchestrator, record_cache, capsys):
        exit_code = await leaderboard.execute(make_config())

        assert exit_code == leaderboard.EXIT_OK
        output = capsys.readouterr().out
        assert "RUNSTR leaderboard by distance" in output
        assert "alice" in output and "bob" in output
        records, covered_since = decode_records(record_cache.get("records_1301"))
        assert set(records) == {"a1", "b1"}
        assert covered_since == WINDOW_START

    @pytest.mark.asyncio
    async def test_no_cache_leaves_cache_untouched(self, fake_orchestrator, record_cache):
        assert await leaderboard.execute(make_config(no_cache=True)) == leaderboard.EXIT_OK
        assert record_cache.get("records_1301") is None

    @pytest.mark.asyncio
    @pytest.mark.parametrize("overrides", [
        {"schedule": "does-not-exist"},
        {"start_date": "2025-12-01"},
        {"exercise": "swim"},
    ])
    async def test_invalid_configuration_exits_2(self, overrides, fake_orchestrator, record_cache):
        assert await leaderboard.execute(make_config(**overrides)) == leaderboard.EXIT_CONFIG_ERROR
        assert fake_orchestrator.calls == []

    @pytest.mark.asyncio
    async def test_all_relays_failing_exits_1(self, relay_script, fake_orchestrator, record_cache):
        relay_script[RELAY] = FetchResult.failed(RELAY, "refused")
        assert await leaderboard.execute(make_config()) == leaderboard.EXIT_FAILURE

    @pytest.mark.asyncio
    async def test_snapshot_is_saved(self, fake_orchestrator, record_cache):
        with patch.object(leaderboard, "save_reward_snapshot", return_value="/tmp/x.json") as save:
            assert await leaderboard.execute(make_config(snapshot=True)) == leaderboard.EXIT_OK

        label, data = save.call_args[0]
        assert label == "tiered_2025-11-24_2025-11-30"
        assert data["total_payout_pool"] == 40

    @pytest.mark.asyncio
    async def test_dry_run_sends_nothing(self, fake_orchestrator, record_cache):
        resolve = AsyncMock(return_value={"alice": "alice@wallet.example"})
        with patch.object(leaderboard, "resolve_payout_addresses", resolve), \
                patch.object(leaderboard, "setup_payout_logger") as setup_logger:
            assert await leaderboard.execute(make_config(dry_run=True)) == leaderboard.EXIT_OK

        assert sorted(resolve.call_args[0][0]) == ["alice", "bob"]
        setup_logger.assert_not_called()

    @pytest.mark.asyncio
    async def test_failed_payout_exits_1(self, fake_orchestrator, record_cache):
        report = PayoutReport(outcomes={
            "alice": PayoutOutcome("alice@wallet.example", 20, success=False, error="timeout")
        })
        service = MagicMock()
        service.distribute = AsyncMock(return_value=report)
        resolve = AsyncMock(return_value={"alice": "alice@wallet.example"})

        with patch.object(leaderboard, "resolve_payout_addresses", resolve), \
                patch.object(leaderboard, "setup_payout_logger"), \
                patch.object(leaderboard, "PayoutService", return_value=service):
            assert await leaderboard.execute(make_config(pay=True)) == leaderboard.EXIT_FAILURE

        service.distribute.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_pays_rewards_frozen_in_snapshot(self, fake_orchestrator, record_cache, snapshot_dir):
        resolve = AsyncMock(return_value={"alice": "alice@wallet.example", "bob": "bob@wallet.example"})

        with patch.object(reward_snapshot, "SNAPSHOT_ROOT", snapshot_dir), \
                patch.object(leaderboard, "resolve_payout_addresses", resolve):
            assert await leaderboard.execute(make_config(snapshot=True)) == leaderboard.EXIT_OK
            calls_after_first_run = len(fake_orchestrator.calls)

            exit_code = await leaderboard.execute(make_config(from_snapshot=True, dry_run=True))

        assert exit_code == leaderboard.EXIT_OK
        assert len(fake_orchestrator.calls) == calls_after_first_run
        assert sorted(resolve.call_args[0][0]) == ["alice", "bob"]

    @pytest.mark.asyncio
    async def test_missing_snapshot_exits_2(self, fake_orchestrator, snapshot_dir):
        with patch.object(reward_snapshot, "SNAPSHOT_ROOT", snapshot_dir):
            exit_code = await leaderboard.execute(make_config(from_snapshot=True, dry_run=True))

        assert exit_code == leaderboard.EXIT_CONFIG_ERROR
        assert fake_orchestrator.calls == []
