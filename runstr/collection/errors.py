"""Errors raised or reported by the relay collection layer."""

from typing import List

from runstr.clients.relay_provider import EndpointError


class CollectionError(Exception):
    """Every relay failed, so no record set could be collected."""

    def __init__(self, failures: List[EndpointError]):
        self.failures = list(failures)
        details = "; ".join(str(failure) for failure in self.failures)
        super().__init__(f"All {len(self.failures)} relays failed: {details}")


__all__ = ["EndpointError", "CollectionError"]
