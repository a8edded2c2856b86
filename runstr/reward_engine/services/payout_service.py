"""Sends computed rewards through the payment collaborator."""

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

import bittensor as bt

from runstr.clients.payout_client import PayoutSender, PayoutClient, PayoutOutcome
from ..models.results import RewardResult


@dataclass
class PayoutReport:
    """What a distribution run paid, failed to pay, or skipped."""
    dry_run: bool = False
    planned: List[Tuple[str, str, int]] = field(default_factory=list)  # (participant, address, sats)
    outcomes: Dict[str, PayoutOutcome] = field(default_factory=dict)
    skipped: List[str] = field(default_factory=list)  # participants without an address

    @property
    def failed(self) -> List[str]:
        return [participant for participant, outcome in self.outcomes.items() if not outcome.success]

    @property
    def total_sent_sats(self) -> int:
        return sum(outcome.amount_sats for outcome in self.outcomes.values() if outcome.success)

    @property
    def total_planned_sats(self) -> int:
        return sum(amount for _, _, amount in self.planned)

    def to_dict(self) -> Dict[str, object]:
        return {
            'dry_run': self.dry_run,
            'planned': [
                {'participant': p, 'address': a, 'amount_sats': s} for p, a, s in self.planned
            ],
            'outcomes': {participant: outcome.to_dict() for participant, outcome in self.outcomes.items()},
            'skipped': self.skipped,
            'total_sent_sats': self.total_sent_sats,
        }


class PayoutService:
    """
    Pays every participant with a positive total exactly once per call.

    Payouts run one at a time in participant order. Failures are reported and
    never retried here.
    """

    def __init__(self, sender: Optional[PayoutSender] = None, audit_logger: Optional[logging.Logger] = None):
        self.sender = sender
        self.audit_logger = audit_logger

    async def distribute(
        self,
        rewards: Dict[str, RewardResult],
        recipients: Dict[str, str],
        memo: str,
        dry_run: bool = False
    ) -> PayoutReport:
        """
        Send each positive reward to the participant's payout address.

        Args:
            rewards: Reward per participant
            recipients: Payout address per participant
            memo: Payment description
            dry_run: Only plan and log the payouts

        Returns:
            PayoutReport
        """
        report = PayoutReport(dry_run=dry_run)

        for participant in sorted(rewards):
            amount = rewards[participant].total_payout
            if amount <= 0:
                continue
            address = recipients.get(participant)
            if not address:
                report.skipped.append(participant)
                continue
            report.planned.append((participant, address, amount))

        if report.skipped:
            bt.logging.warning(f"⚠️ {len(report.skipped)} participants have no payout address and were skipped")

        if dry_run:
            for participant, address, amount in report.planned:
                bt.logging.info(f"[dry run] {amount} sats -> {address} ({participant[:12]})")
            bt.logging.info(f"[dry run] {len(report.planned)} payouts, {report.total_planned_sats} sats")
            return report

        sender = self.sender or PayoutClient()
        for participant, address, amount in report.planned:
            outcome = await sender.send_payout(address, amount, memo)
            report.outcomes[participant] = outcome
            self._audit(participant, outcome)
            if outcome.success:
                bt.logging.info(f"✅ Paid {amount} sats to {address}")
            else:
                bt.logging.warning(f"⚠️ Payout of {amount} sats to {address} failed: {outcome.error}")

        bt.logging.info(
            f"💸 Sent {report.total_sent_sats}/{report.total_planned_sats} sats "
            f"({len(report.failed)} failed, {len(report.skipped)} skipped)"
        )
        return report

    def _audit(self, participant: str, outcome: PayoutOutcome) -> None:
        if self.audit_logger is None:
            return
        self.audit_logger.payout(
            "participant=%s address=%s amount_sats=%d success=%s tx=%s error=%s",
            participant, outcome.recipient_address, outcome.amount_sats,
            outcome.success, outcome.transaction_id, outcome.error
        )
