"""Resolves participants' lightning addresses from their profile events."""

import json
from typing import Dict, Iterable, Optional

import bittensor as bt

from runstr.reward_engine.models.raw_record import RawRecord
from runstr.utils.config import PROFILE_EVENT_KIND, RELAYS
from .collector import RelayCollector
from .event_filter import EventFilter


def payout_address_from_profile(record: RawRecord) -> Optional[str]:
    """Lightning address from a profile's metadata: lud16, else lud06."""
    try:
        metadata = json.loads(record.content)
    except ValueError:
        bt.logging.debug(f"Profile {record.id} has unparseable metadata")
        return None
    if not isinstance(metadata, dict):
        return None

    for key in ("lud16", "lud06"):
        address = metadata.get(key)
        if isinstance(address, str) and address.strip():
            return address.strip()
    return None


async def resolve_payout_addresses(
    participants: Iterable[str],
    endpoints: Optional[Iterable[str]] = None,
    collector: Optional[RelayCollector] = None,
    per_endpoint_timeout: Optional[float] = None,
    global_timeout: Optional[float] = None
) -> Dict[str, str]:
    """
    Look up a payout address for each participant.

    Only the newest profile per author is used. Participants without a
    profile or without a lightning address are absent from the result.

    Raises:
        CollectionError: If every relay failed
    """
    authors = sorted(set(participants))
    if not authors:
        return {}

    collector = collector or RelayCollector()
    event_filter = EventFilter(kinds=[PROFILE_EVENT_KIND], authors=authors)
    result = await collector.collect(
        list(endpoints) if endpoints is not None else RELAYS,
        event_filter,
        per_endpoint_timeout=per_endpoint_timeout,
        global_timeout=global_timeout
    )

    newest: Dict[str, RawRecord] = {}
    for record in result.records.values():
        current = newest.get(record.author_id)
        if current is None or (record.created_at, record.id) > (current.created_at, current.id):
            newest[record.author_id] = record

    addresses = {}
    for author, profile in newest.items():
        address = payout_address_from_profile(profile)
        if address:
            addresses[author] = address

    bt.logging.info(f"Resolved payout addresses for {len(addresses)}/{len(authors)} participants")
    return addresses
