import json

import pytest

from runstr.collection import RelayCollector, CollectionError
from runstr.collection.profile_resolver import resolve_payout_addresses, payout_address_from_profile
from runstr.clients.relay_provider import FetchResult
from conftest import FakeRelayProvider, fetch_result, make_record, WINDOW_START

RELAY = "wss://relay.example"


def profile(pubkey, metadata, created_at=WINDOW_START, event_id=None):
    content = metadata if isinstance(metadata, str) else json.dumps(metadata)
    return make_record(
        event_id=event_id, pubkey=pubkey, created_at=created_at, kind=0,
        distance=None, exercise=None, client=None, content=content
    )


class TestPayoutAddressFromProfile:

    def test_prefers_lud16(self):
        record = profile("alice", {"lud16": "alice@wallet.example", "lud06": "lnurl1abc"})
        assert payout_address_from_profile(record) == "alice@wallet.example"

    def test_falls_back_to_lud06(self):
        record = profile("alice", {"lud16": "  ", "lud06": "lnurl1abc"})
        assert payout_address_from_profile(record) == "lnurl1abc"

    @pytest.mark.parametrize("metadata", ["not json", "[1, 2]", {"name": "alice"}])
    def test_no_address(self, metadata):
        assert payout_address_from_profile(profile("alice", metadata)) is None


class TestResolvePayoutAddresses:

    @pytest.mark.asyncio
    async def test_newest_profile_wins(self):
        provider = FakeRelayProvider({RELAY: fetch_result(RELAY, [
            profile("alice", {"lud16": "old@wallet.example"}, created_at=WINDOW_START),
            profile("alice", {"lud16": "new@wallet.example"}, created_at=WINDOW_START + 10),
            profile("bob", {"name": "bob"}),
        ])})

        addresses = await resolve_payout_addresses(
            ["alice", "bob", "carol"], [RELAY], collector=RelayCollector(provider)
        )

        assert addresses == {"alice": "new@wallet.example"}
        event_filter = provider.calls[0][1]
        assert event_filter.kinds == [0]
        assert event_filter.authors == ["alice", "bob", "carol"]

    @pytest.mark.asyncio
    async def test_no_participants_skips_relays(self):
        provider = FakeRelayProvider({})
        assert await resolve_payout_addresses([], [RELAY], collector=RelayCollector(provider)) == {}
        assert provider.calls == []

    @pytest.mark.asyncio
    async def test_all_relays_failing_raises(self):
        provider = FakeRelayProvider({RELAY: FetchResult.failed(RELAY, "refused")})
        with pytest.raises(CollectionError):
            await resolve_payout_addresses(["alice"], [RELAY], collector=RelayCollector(provider))
