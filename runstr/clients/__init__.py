"""Clients for relays and the payment collaborator."""

from .relay_provider import RelayProvider, FetchResult, EndpointError
from .relay_client import RelayClient
from .payout_client import PayoutSender, PayoutClient, PayoutOutcome

__all__ = [
    "RelayProvider",
    "FetchResult",
    "EndpointError",
    "RelayClient",
    "PayoutSender",
    "PayoutClient",
    "PayoutOutcome",
]
