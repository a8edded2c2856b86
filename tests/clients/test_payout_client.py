"""Tests for the Bitvora payout client."""

import json

import httpx
import pytest

from runstr.clients.payout_client import PayoutClient


def transport_for(estimate_probability=0.99, confirm_status=200, requests=None):
    """httpx mock transport answering the estimate and confirm endpoints."""
    def handler(request: httpx.Request) -> httpx.Response:
        if requests is not None:
            requests.append(request)
        if request.url.path.endswith("/bitcoin/withdraw/estimate"):
            return httpx.Response(200, json={"data": {"success_probability": estimate_probability}})
        if request.url.path.endswith("/bitcoin/withdraw/confirm"):
            if confirm_status != 200:
                return httpx.Response(confirm_status, text="insufficient balance")
            return httpx.Response(200, json={"data": {"id": "tx-1", "status": "settled", "amount_sats": 60}})
        return httpx.Response(404)

    return httpx.MockTransport(handler)


class TestPayoutClient:

    def test_requires_api_key(self):
        with pytest.raises(ValueError, match="credentials"):
            PayoutClient(api_key="", base_url="https://pay.example")

    @pytest.mark.asyncio
    async def test_successful_payout(self):
        requests = []
        client = PayoutClient(api_key="secret", base_url="https://pay.example/v1",
                              transport=transport_for(requests=requests))

        outcome = await client.send_payout("alice@getalby.com", 60, "weekly reward")

        assert outcome.success
        assert outcome.transaction_id == "tx-1"
        assert outcome.status == "settled"
        assert [r.url.path for r in requests] == ["/v1/bitcoin/withdraw/estimate", "/v1/bitcoin/withdraw/confirm"]
        assert requests[0].headers["Authorization"] == "Bearer secret"
        body = json.loads(requests[1].content)
        assert body == {
            "amount": 60,
            "currency": "sats",
            "destination": "alice@getalby.com",
            "metadata": {"reason": "weekly reward"},
        }

    @pytest.mark.asyncio
    async def test_low_probability_is_not_confirmed(self):
        requests = []
        client = PayoutClient(api_key="secret", base_url="https://pay.example",
                              transport=transport_for(estimate_probability=0.5, requests=requests))

        outcome = await client.send_payout("alice@getalby.com", 60, "memo")

        assert not outcome.success
        assert "Low success probability" in outcome.error
        assert len(requests) == 1

    @pytest.mark.asyncio
    async def test_http_error_is_reported(self):
        client = PayoutClient(api_key="secret", base_url="https://pay.example",
                              transport=transport_for(confirm_status=400))

        outcome = await client.send_payout("alice@getalby.com", 60, "memo")

        assert not outcome.success
        assert outcome.error.startswith("HTTP 400")
