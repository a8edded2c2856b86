"""Aggregation window model."""

import time
from dataclasses import dataclass
from typing import Optional

from runstr.utils.error_handling import log_and_raise_validation_error, ErrorMessages

SECONDS_PER_DAY = 24 * 60 * 60


@dataclass(frozen=True)
class TimeWindow:
    """Half-open time range [since, until) in epoch seconds."""
    since: int
    until: int

    def __post_init__(self):
        if self.since >= self.until:
            log_and_raise_validation_error(
                f"{ErrorMessages.INVALID_WINDOW}: since ({self.since}) must be before until ({self.until})",
                data={'since': self.since, 'until': self.until}
            )

    def contains(self, timestamp_sec: int) -> bool:
        return self.since <= timestamp_sec < self.until

    @property
    def duration_days(self) -> float:
        return (self.until - self.since) / SECONDS_PER_DAY

    @classmethod
    def last_days(cls, days: int, now: Optional[int] = None) -> 'TimeWindow':
        """
        Window covering the `days` days up to now.

        Args:
            days: Window length in days (must be positive)
            now: Exclusive end in epoch seconds (default: current time)
        """
        if days <= 0:
            log_and_raise_validation_error(
                f"{ErrorMessages.INVALID_WINDOW}: days must be positive, got {days}"
            )
        until = int(now if now is not None else time.time())
        return cls(since=until - days * SECONDS_PER_DAY, until=until)
