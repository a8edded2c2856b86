"""
Command-line tool to build the RUNSTR leaderboard and rewards for a window.

Usage:
    runstr-leaderboard --window 7 --schedule tiered --metric distance --limit 10
    runstr-leaderboard --start-date 2025-11-17 --end-date 2025-11-23 --schedule legacy --snapshot
    runstr-leaderboard --schedule tiered --dry-run
    runstr-leaderboard --start-date 2025-11-17 --end-date 2025-11-23 --from-snapshot --pay
    python -m runstr.leaderboard --metric xp --exercise run
"""
import asyncio
import argparse
import sys
from typing import Dict, List, Optional, Set

import bittensor as bt

from runstr.collection.errors import CollectionError
from runstr.collection.profile_resolver import resolve_payout_addresses
from runstr.reward_engine.models.reward_schedule import load_schedule
from runstr.reward_engine.models.time_window import TimeWindow, SECONDS_PER_DAY
from runstr.reward_engine.models.workout_record import ExerciseType
from runstr.reward_engine.orchestrator import LeaderboardOrchestrator, PipelineResult
from runstr.reward_engine.services.leaderboard_service import LeaderboardMetric
from runstr.reward_engine.services.payout_service import PayoutService
from runstr.reward_engine.models.results import RewardResult
from runstr.reward_engine.utils.reward_snapshot import save_reward_snapshot, load_reward_snapshot, rewards_from_snapshot
from runstr.utils.config import (
    RELAYS,
    CLIENT_IDENTIFIERS,
    WORKOUT_EVENT_KIND,
    DEFAULT_WINDOW_DAYS,
    PAYOUT_MEMO,
    PAYOUT_LOG_DIR,
    PAYOUT_LOG_RETENTION_SIZE,
)
from runstr.utils.date_utils import parse_window_date, utc_date
from runstr.utils.error_handling import log_and_raise_validation_error, ErrorMessages
from runstr.utils.logging import setup_payout_logger
from runstr.utils.record_cache import RecordCache, get_records_cache_key, encode_records, decode_records

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_CONFIG_ERROR = 2


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Build the RUNSTR workout leaderboard and rewards for a time window"
    )
    bt.logging.add_args(parser)

    parser.add_argument("--window", type=int, default=DEFAULT_WINDOW_DAYS,
                        help=f"Window length in days ending now (default: {DEFAULT_WINDOW_DAYS})")
    parser.add_argument("--start-date", type=str, default=None,
                        help="Window start (YYYY-MM-DD or ISO timestamp, UTC)")
    parser.add_argument("--end-date", type=str, default=None,
                        help="Last day of the window, inclusive (YYYY-MM-DD or ISO timestamp, UTC)")
    parser.add_argument("--schedule", type=str, default="tiered",
                        help="Reward schedule: 'legacy', 'tiered' or a path to a JSON schedule")
    parser.add_argument("--metric", type=str, default=LeaderboardMetric.DISTANCE.value,
                        choices=[metric.value for metric in LeaderboardMetric],
                        help="Leaderboard metric")
    parser.add_argument("--limit", type=int, default=10, help="Number of leaderboard rows to show")
    parser.add_argument("--offset", type=int, default=0, help="Number of leading rows to skip")
    parser.add_argument("--min-workouts", type=int, default=0,
                        help="Only rank participants with at least this many workouts")
    parser.add_argument("--relays", type=str, default=None,
                        help="Comma-separated relay URLs (overrides RUNSTR_RELAYS)")
    parser.add_argument("--all-clients", action="store_true",
                        help="Count workouts from every client, not only the configured ones")
    parser.add_argument("--exercise", type=str, default=None,
                        help="Comma-separated exercise types to include (run, walk, cycle)")
    parser.add_argument("--no-cache", action="store_true",
                        help="Ignore and do not update the record cache")
    parser.add_argument("--snapshot", action="store_true",
                        help="Save a reward snapshot of this run")
    parser.add_argument("--pay", action="store_true",
                        help="Send rewards to participants' lightning addresses")
    parser.add_argument("--dry-run", action="store_true",
                        help="Resolve addresses and plan payouts without sending anything")
    parser.add_argument("--from-snapshot", action="store_true",
                        help="Pay the rewards frozen in the first snapshot of this window instead of re-collecting")
    return parser


def build_window(config) -> TimeWindow:
    """Window from explicit dates, else the last `--window` days."""
    if not config.start_date and not config.end_date:
        return TimeWindow.last_days(config.window)

    until = parse_window_date(config.end_date, end_of_day=True) if config.end_date else None
    if config.end_date and until is None:
        log_and_raise_validation_error(f"{ErrorMessages.INVALID_WINDOW}: cannot parse end date '{config.end_date}'")
    if until is None:
        until = TimeWindow.last_days(config.window).until

    if config.start_date:
        since = parse_window_date(config.start_date)
        if since is None:
            log_and_raise_validation_error(f"{ErrorMessages.INVALID_WINDOW}: cannot parse start date '{config.start_date}'")
    else:
        since = until - config.window * SECONDS_PER_DAY

    return TimeWindow(since=since, until=until)


def parse_exercise_types(value: Optional[str]) -> Optional[Set[ExerciseType]]:
    if not value:
        return None
    types = set()
    for name in value.split(','):
        name = name.strip().lower()
        if not name:
            continue
        try:
            types.add(ExerciseType(name))
        except ValueError:
            log_and_raise_validation_error(
                f"Unknown exercise type '{name}'",
                context_info={'valid': [t.value for t in ExerciseType if t != ExerciseType.UNKNOWN]}
            )
    return types or None


def parse_relays(value: Optional[str]) -> List[str]:
    if not value:
        return list(RELAYS)
    return [url.strip() for url in value.split(',') if url.strip()]


def window_label(schedule_name: str, window: TimeWindow) -> str:
    start = utc_date(window.since).isoformat()
    end = utc_date(window.until - 1).isoformat()
    return f"{schedule_name}_{start}_{end}"


def print_leaderboard(result: PipelineResult, metric: LeaderboardMetric, entries) -> None:
    window = result.window
    print("=" * 80)
    print(f"RUNSTR leaderboard by {metric.value}: "
          f"{utc_date(window.since).isoformat()} to {utc_date(window.until - 1).isoformat()}")
    print("=" * 80)
    if not entries:
        print("  No participants in this window")
    for entry in entries:
        aggregate = result.aggregates[entry.participant]
        value = f"{entry.metric_value:.2f}" if isinstance(entry.metric_value, float) else str(entry.metric_value)
        print(
            f"  {entry.rank:>3}. {entry.participant[:16]:<16} {value:>10}  "
            f"({aggregate.workout_count} workouts, {aggregate.streak_days} days, "
            f"{result.rewards[entry.participant].total_payout} sats)"
        )
    print("-" * 80)
    print(f"  Participants: {len(result.aggregates)}   "
          f"Reward pool ({result.schedule.name}): {result.total_payout_pool} sats")
    print(f"  {result.normalization.summary()}")
    print("=" * 80)


async def execute(config) -> int:
    """
    Run the leaderboard workflow for a parsed configuration.

    Returns:
        Process exit code: 0 on success, 1 when every relay failed or a
        payout failed, 2 on invalid arguments or configuration
    """
    try:
        schedule = load_schedule(config.schedule)
        window = build_window(config)
        metric = LeaderboardMetric(config.metric)
        exercise_types = parse_exercise_types(config.exercise)
    except ValueError as e:
        bt.logging.error(f"❌ {e}")
        return EXIT_CONFIG_ERROR

    relays = parse_relays(config.relays)

    if config.from_snapshot:
        return await pay_from_snapshot(schedule.name, window, relays, dry_run=not config.pay)

    client_identifiers = [] if config.all_clients else list(CLIENT_IDENTIFIERS)
    cache_key = get_records_cache_key(WORKOUT_EVENT_KIND)

    cached_records, cached_since = {}, None
    if not config.no_cache:
        data = RecordCache.get(cache_key)
        if data is not None:
            cached_records, cached_since = decode_records(data)

    orchestrator = LeaderboardOrchestrator(schedule, relays=relays, client_identifiers=client_identifiers)
    try:
        result = await orchestrator.run(window, cached_records, cached_since, exercise_types)
    except CollectionError as e:
        bt.logging.error(f"❌ Collection failed: {e}")
        return EXIT_FAILURE

    if not config.no_cache:
        RecordCache.put(cache_key, encode_records(result.records.values(), result.covered_since))

    entries = result.leaderboard(metric, limit=config.limit, offset=config.offset, min_workouts=config.min_workouts)
    print_leaderboard(result, metric, entries)

    if config.snapshot:
        path = save_reward_snapshot(window_label(schedule.name, window), result.to_snapshot(metric))
        bt.logging.info(f"📸 Reward snapshot saved to {path}")

    if config.pay or config.dry_run:
        return await distribute_rewards(result.rewards, result.schedule.name, relays, dry_run=config.dry_run)

    return EXIT_OK


async def pay_from_snapshot(schedule_name: str, window: TimeWindow, relays: List[str], dry_run: bool) -> int:
    """Distribute the rewards recorded by the canonical snapshot of a window."""
    label = window_label(schedule_name, window)
    try:
        data, path = load_reward_snapshot(label)
        rewards = rewards_from_snapshot(data)
    except (FileNotFoundError, ValueError) as e:
        bt.logging.error(f"❌ {e}")
        return EXIT_CONFIG_ERROR

    bt.logging.info(f"📸 Paying {len(rewards)} participants from snapshot {path}")
    return await distribute_rewards(rewards, schedule_name, relays, dry_run=dry_run)


async def distribute_rewards(rewards: Dict[str, RewardResult], schedule_name: str,
                             relays: List[str], dry_run: bool) -> int:
    payees = [participant for participant, reward in rewards.items() if reward.total_payout > 0]
    if not payees:
        bt.logging.info("No rewards to distribute")
        return EXIT_OK

    try:
        recipients = await resolve_payout_addresses(payees, relays)
    except CollectionError as e:
        bt.logging.error(f"❌ Could not resolve payout addresses: {e}")
        return EXIT_FAILURE

    audit_logger = None if dry_run else setup_payout_logger(
        PAYOUT_LOG_DIR, PAYOUT_LOG_RETENTION_SIZE, schedule_name=schedule_name
    )
    try:
        report = await PayoutService(audit_logger=audit_logger).distribute(
            rewards, recipients, PAYOUT_MEMO, dry_run=dry_run
        )
    except ValueError as e:
        bt.logging.error(f"❌ {e}")
        return EXIT_CONFIG_ERROR

    return EXIT_FAILURE if report.failed else EXIT_OK


def main() -> None:
    """Main entry point for CLI."""
    try:
        parser = build_parser()

        args_list = sys.argv[1:]
        # Add info logging if no logging level specified
        if not any(arg.startswith('--logging.') for arg in args_list):
            args_list.insert(0, '--logging.info')

        config = bt.config(parser, args=args_list)
        bt.logging.set_config(config=config.logging)

        sys.exit(asyncio.run(execute(config)))

    except KeyboardInterrupt:
        bt.logging.info("\nLeaderboard run cancelled by user")
        sys.exit(EXIT_FAILURE)


if __name__ == "__main__":
    main()
