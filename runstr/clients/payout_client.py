"""
Client for sending sats to participants through the Bitvora withdrawal API.

Every payout is estimated first and only confirmed when the estimated success
probability is high enough. Payouts are never retried automatically; a failed
payout is reported and left for an operator.
"""
from abc import ABC, abstractmethod
from dataclasses import dataclass, asdict
from typing import Any, Dict, Optional

import httpx
import bittensor as bt

from runstr.utils.config import PAYOUT_API_URL, PAYOUT_API_KEY, PAYOUT_TIMEOUT
from runstr.utils.error_handling import log_and_raise_config_error, ErrorMessages

MIN_SUCCESS_PROBABILITY = 0.9


@dataclass(frozen=True)
class PayoutOutcome:
    """Result of one payout attempt."""
    recipient_address: str
    amount_sats: int
    success: bool
    transaction_id: Optional[str] = None
    status: Optional[str] = None
    error: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


class PayoutSender(ABC):
    """Narrow interface to the payment collaborator."""

    @abstractmethod
    async def send_payout(self, recipient_address: str, amount_sats: int, memo: str) -> PayoutOutcome:
        """
        Send `amount_sats` to a lightning address.

        Implementations report failures through PayoutOutcome rather than
        raising.
        """
        pass


class PayoutClient(PayoutSender):
    """Bitvora implementation of PayoutSender."""

    def __init__(self, api_key: Optional[str] = None, base_url: str = PAYOUT_API_URL,
                 timeout: float = PAYOUT_TIMEOUT, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.api_key = (api_key or PAYOUT_API_KEY or "").strip()
        if not self.api_key:
            log_and_raise_config_error(
                f"{ErrorMessages.CREDENTIALS_MISSING}: PAYOUT_API_KEY is not set",
                config_key="PAYOUT_API_KEY"
            )
        self.base_url = base_url.rstrip('/')
        self.timeout = timeout
        self.transport = transport
        self.headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json"
        }

    async def send_payout(self, recipient_address: str, amount_sats: int, memo: str) -> PayoutOutcome:
        payload = {
            "amount": amount_sats,
            "currency": "sats",
            "destination": recipient_address,
        }
        try:
            async with httpx.AsyncClient(base_url=self.base_url, headers=self.headers,
                                         timeout=self.timeout, transport=self.transport) as client:
                estimate = await client.post("/bitcoin/withdraw/estimate", json=payload)
                estimate.raise_for_status()
                probability = float(estimate.json().get("data", {}).get("success_probability", 0.0))
                if probability < MIN_SUCCESS_PROBABILITY:
                    return PayoutOutcome(
                        recipient_address=recipient_address,
                        amount_sats=amount_sats,
                        success=False,
                        error=f"Low success probability ({probability:.0%})"
                    )

                response = await client.post(
                    "/bitcoin/withdraw/confirm",
                    json={**payload, "metadata": {"reason": memo}}
                )
                response.raise_for_status()
                data = response.json().get("data", {})

            return PayoutOutcome(
                recipient_address=recipient_address,
                amount_sats=amount_sats,
                success=True,
                transaction_id=data.get("id"),
                status=data.get("status")
            )

        except httpx.TimeoutException:
            bt.logging.warning(f"⚠️ Timeout sending {amount_sats} sats to {recipient_address}")
            return PayoutOutcome(recipient_address, amount_sats, success=False, error="timeout")
        except httpx.HTTPStatusError as e:
            bt.logging.warning(f"⚠️ HTTP error {e.response.status_code} sending {amount_sats} sats to {recipient_address}")
            return PayoutOutcome(recipient_address, amount_sats, success=False,
                                 error=f"HTTP {e.response.status_code}: {e.response.text[:200]}")
        except (httpx.HTTPError, ValueError) as e:
            bt.logging.error(f"❌ Payout to {recipient_address} failed: {e}")
            return PayoutOutcome(recipient_address, amount_sats, success=False, error=str(e))
