"""Relay subscription filter."""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from runstr.reward_engine.models.raw_record import RawRecord
from runstr.utils.error_handling import log_and_raise_validation_error, ErrorMessages


@dataclass(frozen=True)
class EventFilter:
    """
    Selection criteria for a relay subscription.

    `until` is exclusive here so it lines up with TimeWindow. Relays treat
    `until` as inclusive, so the request carries `until - 1`.
    """
    kinds: List[int]
    authors: Optional[List[str]] = None
    tag_filters: Dict[str, List[str]] = field(default_factory=dict)
    since: Optional[int] = None
    until: Optional[int] = None
    limit: Optional[int] = None

    def __post_init__(self):
        if not self.kinds:
            log_and_raise_validation_error(f"{ErrorMessages.INVALID_FILTER}: at least one kind is required")
        if self.since is not None and self.until is not None and self.since >= self.until:
            log_and_raise_validation_error(
                f"{ErrorMessages.INVALID_FILTER}: since ({self.since}) must be before until ({self.until})",
                data={'since': self.since, 'until': self.until}
            )
        if self.limit is not None and self.limit <= 0:
            log_and_raise_validation_error(f"{ErrorMessages.INVALID_FILTER}: limit must be positive, got {self.limit}")

    def to_request(self) -> Dict[str, Any]:
        """Build the filter object sent in a REQ frame."""
        request: Dict[str, Any] = {'kinds': list(self.kinds)}
        if self.authors:
            request['authors'] = list(self.authors)
        for tag_name, values in self.tag_filters.items():
            request[f"#{tag_name}"] = list(values)
        if self.since is not None:
            request['since'] = self.since
        if self.until is not None:
            request['until'] = self.until - 1
        if self.limit is not None:
            request['limit'] = self.limit
        return request

    def matches(self, record: RawRecord) -> bool:
        """Re-check a record locally; relays do not always honour filters."""
        if record.kind not in self.kinds:
            return False
        if self.authors and record.author_id not in self.authors:
            return False
        if self.since is not None and record.created_at < self.since:
            return False
        if self.until is not None and record.created_at >= self.until:
            return False
        for tag_name, values in self.tag_filters.items():
            wanted = set(values)
            if not any(len(tag) > 1 and tag[0] == tag_name and tag[1] in wanted for tag in record.tags):
                return False
        return True
