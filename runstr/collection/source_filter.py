"""Filtering of workout events by the client that published them."""

from typing import Iterable

from runstr.reward_engine.models.raw_record import RawRecord

CLIENT_TAG_NAMES = ("client", "source")


def is_client_record(record: RawRecord, identifiers: Iterable[str]) -> bool:
    """
    Check whether a record was published by one of the given clients.

    A record matches when any value of its 'client' or 'source' tag contains
    one of the identifiers, case-insensitively. No identifiers means every
    record matches.

    Example:
        >>> record = RawRecord("id", "pk", 0, 1301, (("client", "RUNSTR", "v1.2"),))
        >>> is_client_record(record, ["runstr"])
        True
    """
    identifiers = [ident.lower() for ident in identifiers if ident]
    if not identifiers:
        return True

    for tag in record.tags:
        if tag[0] not in CLIENT_TAG_NAMES:
            continue
        for value in tag[1:]:
            value = value.lower()
            if any(ident in value for ident in identifiers):
                return True
    return False
