"""Concurrent collection of events from several relays."""

import asyncio
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence

import bittensor as bt

from runstr.clients.relay_provider import RelayProvider, FetchResult, EndpointError
from runstr.clients.relay_client import RelayClient
from runstr.reward_engine.models.raw_record import RawRecord
from runstr.utils.config import RELAY_FETCH_TIMEOUT, COLLECTION_GLOBAL_TIMEOUT
from runstr.utils.error_handling import log_and_raise_validation_error, ErrorMessages
from .errors import CollectionError
from .event_filter import EventFilter


@dataclass
class CollectionResult:
    """Merged, id-deduplicated record set plus what happened at each relay."""
    records: Dict[str, RawRecord] = field(default_factory=dict)
    endpoint_results: List[FetchResult] = field(default_factory=list)
    failures: List[EndpointError] = field(default_factory=list)
    duplicates_discarded: int = 0

    @property
    def succeeded_endpoints(self) -> List[str]:
        return [result.endpoint for result in self.endpoint_results if result.succeeded]

    @property
    def is_complete(self) -> bool:
        """Every relay answered in full, so the record set has no gaps."""
        return bool(self.endpoint_results) and all(result.complete for result in self.endpoint_results)

    def summary(self) -> Dict[str, object]:
        return {
            'records': len(self.records),
            'succeeded_endpoints': self.succeeded_endpoints,
            'failures': [failure.to_dict() for failure in self.failures],
            'duplicates_discarded': self.duplicates_discarded,
            'complete': self.is_complete,
        }


class RelayCollector:
    """
    Queries every relay concurrently and merges the results.

    Each relay fills its own FetchResult; nothing shared is touched until all
    fetches have finished or the global timeout has passed. A relay that fails
    only loses its own contribution.
    """

    def __init__(self, provider: Optional[RelayProvider] = None):
        self.provider = provider or RelayClient()

    async def collect(
        self,
        endpoints: Sequence[str],
        event_filter: EventFilter,
        per_endpoint_timeout: Optional[float] = None,
        global_timeout: Optional[float] = None
    ) -> CollectionResult:
        """
        Collect matching events from all relays.

        Args:
            endpoints: Relay URLs; duplicates are queried once
            event_filter: Subscription filter sent to every relay
            per_endpoint_timeout: Seconds each relay gets to reach EOSE
            global_timeout: Seconds after which unfinished relays are abandoned

        Returns:
            CollectionResult with the merged records

        Raises:
            ValueError: If no endpoints are given
            CollectionError: If every relay failed
        """
        unique_endpoints = list(dict.fromkeys(endpoints))
        if not unique_endpoints:
            log_and_raise_validation_error(f"{ErrorMessages.INVALID_FILTER}: no relay endpoints configured")

        per_endpoint_timeout = per_endpoint_timeout if per_endpoint_timeout is not None else RELAY_FETCH_TIMEOUT
        global_timeout = global_timeout if global_timeout is not None else COLLECTION_GLOBAL_TIMEOUT

        bt.logging.info(f"📡 Querying {len(unique_endpoints)} relays (timeout {per_endpoint_timeout}s each, {global_timeout}s overall)")

        tasks = {
            endpoint: asyncio.create_task(self.provider.fetch(endpoint, event_filter, per_endpoint_timeout))
            for endpoint in unique_endpoints
        }
        await asyncio.wait(tasks.values(), timeout=global_timeout)

        endpoint_results = []
        for endpoint, task in tasks.items():
            if not task.done():
                # Abandoned fetches clean up after themselves; not awaited
                task.cancel()
                bt.logging.warning(f"{endpoint}: {ErrorMessages.RELAY_ABANDONED}")
                endpoint_results.append(FetchResult.failed(endpoint, ErrorMessages.RELAY_ABANDONED))
            elif task.cancelled():
                endpoint_results.append(FetchResult.failed(endpoint, "fetch cancelled"))
            elif task.exception() is not None:
                error = task.exception()
                bt.logging.warning(f"{endpoint}: fetch raised {error!r}")
                endpoint_results.append(FetchResult.failed(endpoint, f"{ErrorMessages.RELAY_TRANSPORT_ERROR}: {error!r}"))
            else:
                endpoint_results.append(task.result())

        result = self._merge(endpoint_results)

        if not result.succeeded_endpoints:
            bt.logging.error(f"❌ {ErrorMessages.ALL_RELAYS_FAILED} ({len(result.failures)} failures)")
            raise CollectionError(result.failures)

        bt.logging.info(
            f"✅ Collected {len(result.records)} unique events from "
            f"{len(result.succeeded_endpoints)}/{len(unique_endpoints)} relays "
            f"({result.duplicates_discarded} duplicates discarded)"
        )
        return result

    @staticmethod
    def _merge(endpoint_results: List[FetchResult]) -> CollectionResult:
        """Merge per-relay records in endpoint order; the first copy of an id wins."""
        result = CollectionResult(endpoint_results=endpoint_results)
        for fetch_result in endpoint_results:
            if fetch_result.error is not None:
                result.failures.append(fetch_result.error)
                continue
            for record_id, record in fetch_result.records.items():
                if record_id in result.records:
                    result.duplicates_discarded += 1
                else:
                    result.records[record_id] = record
        return result
