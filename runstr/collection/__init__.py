"""Relay collection: filters, concurrent collection and merge."""

from .errors import EndpointError, CollectionError
from .event_filter import EventFilter
from .collector import RelayCollector, CollectionResult
from .source_filter import is_client_record
from .profile_resolver import resolve_payout_addresses

__all__ = [
    "EndpointError",
    "CollectionError",
    "EventFilter",
    "RelayCollector",
    "CollectionResult",
    "is_client_record",
    "resolve_payout_addresses",
]
