"""
Abstract base class for relay providers.

Defines the interface the collector uses to query a single relay, so the
websocket transport can be swapped out (or faked in tests) without touching
the merge logic.
"""
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Dict, Optional


class EndpointError(Exception):
    """A single relay failed; only that relay's contribution is lost."""

    def __init__(self, endpoint: str, reason: str):
        self.endpoint = endpoint
        self.reason = reason
        super().__init__(f"{endpoint}: {reason}")

    def to_dict(self) -> dict:
        return {'endpoint': self.endpoint, 'reason': self.reason}


@dataclass
class FetchResult:
    """
    Outcome of querying one relay.

    `records` is always a complete dict for what was received. When `error`
    is set the relay failed outright and `records` is empty.
    """
    endpoint: str
    records: Dict[str, "RawRecord"] = field(default_factory=dict)
    error: Optional[EndpointError] = None
    eose_received: bool = False
    timed_out: bool = False
    truncated: bool = False  # stopped at the per-relay event cap
    malformed_frames: int = 0
    discarded_events: int = 0

    @property
    def succeeded(self) -> bool:
        return self.error is None

    @property
    def complete(self) -> bool:
        """True when the relay sent everything it holds for the filter."""
        return self.succeeded and self.eose_received and not self.truncated

    @classmethod
    def failed(cls, endpoint: str, reason: str) -> 'FetchResult':
        return cls(endpoint=endpoint, error=EndpointError(endpoint, reason))


class RelayProvider(ABC):
    """
    Interface that all relay providers must implement.

    Implementations must never raise for relay-side problems: connection
    failures, subscription closes and transport errors are reported through
    FetchResult.error. Cancellation must propagate.
    """

    @abstractmethod
    async def fetch(
        self,
        endpoint: str,
        event_filter: "EventFilter",
        timeout: float
    ) -> FetchResult:
        """
        Fetch all events matching `event_filter` from one relay.

        Args:
            endpoint: Relay websocket URL (wss://...)
            event_filter: Subscription filter; events that do not match it
                          locally are discarded
            timeout: Seconds to wait for end-of-stored-events. On expiry the
                     records received so far are returned without an error.

        Returns:
            FetchResult for this endpoint
        """
        pass
