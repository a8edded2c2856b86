"""Reward schedule model - the single home for payout constants."""

import json
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Mapping, Union

import bittensor as bt

from runstr.utils.error_handling import log_and_raise_config_error, ErrorMessages


def _is_int(value: Any) -> bool:
    """True for ints, excluding bool."""
    return isinstance(value, int) and not isinstance(value, bool)


class ScheduleMode(str, Enum):
    """Payout modes; a schedule uses exactly one."""
    LEGACY = "legacy"    # flat sats per workout + sats per streak day
    TIERED = "tiered"    # streak tier for the workout count + level bonuses


class TierSemantics(str, Enum):
    """How the streak tier table is read for a given workout count."""
    TIER = "tier"              # payout of the tier matching the count
    CUMULATIVE = "cumulative"  # sum of tiers 1..count


@dataclass(frozen=True)
class RewardSchedule:
    """
    Externally supplied payout configuration.

    Validated on construction so a misconfigured schedule fails before any
    aggregate is processed.
    """
    name: str
    mode: ScheduleMode
    per_workout_sats: int = 0
    per_streak_day_sats: int = 0
    streak_tier_payout: Mapping[int, int] = field(default_factory=dict)
    level_bonus: Mapping[int, int] = field(default_factory=dict)
    level_streak_bonus: Mapping[int, int] = field(default_factory=dict)
    tier_semantics: TierSemantics = TierSemantics.TIER

    def __post_init__(self):
        """Validation after initialization."""
        try:
            object.__setattr__(self, 'mode', ScheduleMode(self.mode))
            object.__setattr__(self, 'tier_semantics', TierSemantics(self.tier_semantics))
        except ValueError as e:
            log_and_raise_config_error(f"{ErrorMessages.INVALID_SCHEDULE}: {e}", config_key=self.name)

        object.__setattr__(self, 'streak_tier_payout', self._int_table(self.streak_tier_payout, 'streak_tier_payout'))
        object.__setattr__(self, 'level_bonus', self._int_table(self.level_bonus, 'level_bonus'))
        object.__setattr__(self, 'level_streak_bonus', self._int_table(self.level_streak_bonus, 'level_streak_bonus'))

        for key in ('per_workout_sats', 'per_streak_day_sats'):
            value = getattr(self, key)
            if not _is_int(value) or value < 0:
                log_and_raise_config_error(
                    f"{ErrorMessages.NEGATIVE_PAYOUT}: {key}={value!r}",
                    config_key=f"{self.name}.{key}"
                )

        if self.mode == ScheduleMode.TIERED:
            self._validate_tiers()

    def _int_table(self, table: Mapping[Any, Any], table_name: str) -> Dict[int, int]:
        """Coerce a mapping (possibly with JSON string keys) to int -> int."""
        result = {}
        for raw_key, raw_value in dict(table or {}).items():
            try:
                key = int(raw_key) if isinstance(raw_key, str) else raw_key
            except ValueError:
                key = None
            if not _is_int(key) or not _is_int(raw_value):
                log_and_raise_config_error(
                    f"{ErrorMessages.INVALID_SCHEDULE}: {table_name} entry {raw_key!r}: {raw_value!r} is not an integer",
                    config_key=f"{self.name}.{table_name}"
                )
            if key <= 0:
                log_and_raise_config_error(
                    f"{ErrorMessages.INVALID_SCHEDULE}: {table_name} keys must be positive, got {key}",
                    config_key=f"{self.name}.{table_name}"
                )
            if raw_value < 0:
                log_and_raise_config_error(
                    f"{ErrorMessages.NEGATIVE_PAYOUT}: {table_name}[{key}]={raw_value}",
                    config_key=f"{self.name}.{table_name}"
                )
            result[key] = raw_value
        return result

    def _validate_tiers(self) -> None:
        if not self.streak_tier_payout:
            log_and_raise_config_error(
                f"{ErrorMessages.MISSING_TIER}: tiered schedule has no tiers",
                config_key=f"{self.name}.streak_tier_payout"
            )
        top_tier = max(self.streak_tier_payout)
        missing = [count for count in range(1, top_tier + 1) if count not in self.streak_tier_payout]
        if missing:
            log_and_raise_config_error(
                f"{ErrorMessages.MISSING_TIER}: no payout for workout counts {missing}",
                config_key=f"{self.name}.streak_tier_payout"
            )

    @property
    def top_tier(self) -> int:
        return max(self.streak_tier_payout) if self.streak_tier_payout else 0

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'RewardSchedule':
        """
        Create a schedule from a configuration dictionary.

        Raises:
            ValueError: If the configuration is invalid
        """
        if 'mode' not in data:
            log_and_raise_config_error(
                f"{ErrorMessages.INVALID_SCHEDULE}: 'mode' is required",
                config_key=data.get('name', 'schedule')
            )
        return cls(
            name=data.get('name', data['mode']),
            mode=data['mode'],
            per_workout_sats=data.get('per_workout_sats', 0),
            per_streak_day_sats=data.get('per_streak_day_sats', 0),
            streak_tier_payout=data.get('streak_tier_payout', {}),
            level_bonus=data.get('level_bonus', {}),
            level_streak_bonus=data.get('level_streak_bonus', {}),
            tier_semantics=data.get('tier_semantics', TierSemantics.TIER.value)
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert back to dictionary format (JSON-safe)."""
        return {
            'name': self.name,
            'mode': self.mode.value,
            'per_workout_sats': self.per_workout_sats,
            'per_streak_day_sats': self.per_streak_day_sats,
            'streak_tier_payout': {str(k): v for k, v in sorted(self.streak_tier_payout.items())},
            'level_bonus': {str(k): v for k, v in sorted(self.level_bonus.items())},
            'level_streak_bonus': {str(k): v for k, v in sorted(self.level_streak_bonus.items())},
            'tier_semantics': self.tier_semantics.value
        }


def load_schedule(source: Union[str, Path]) -> RewardSchedule:
    """
    Resolve a schedule by built-in name ('legacy', 'tiered') or JSON file path.

    Raises:
        ValueError: If the name is unknown and no such file exists, or the
                    schedule is invalid
    """
    from runstr.utils.config import BUILTIN_SCHEDULES

    if str(source) in BUILTIN_SCHEDULES:
        return RewardSchedule.from_dict(BUILTIN_SCHEDULES[str(source)])

    path = Path(source)
    if not path.is_file():
        log_and_raise_config_error(
            f"{ErrorMessages.INVALID_SCHEDULE}: unknown schedule '{source}' "
            f"(expected one of {sorted(BUILTIN_SCHEDULES)} or a JSON file)",
            config_key="schedule"
        )

    with open(path, 'r') as f:
        try:
            data = json.load(f)
        except json.JSONDecodeError as e:
            log_and_raise_config_error(
                f"{ErrorMessages.INVALID_SCHEDULE}: {path} is not valid JSON ({e})",
                config_key="schedule"
            )

    schedule = RewardSchedule.from_dict(data)
    bt.logging.info(f"Loaded reward schedule '{schedule.name}' ({schedule.mode.value}) from {path}")
    return schedule
