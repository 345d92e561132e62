"""
Snapshot types for the charge processor.

Read-only views of the rows a job is processed against. They are
taken once at selection time and never written back.
"""

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from enum import Enum

from relayer.models.relayer_job import RelayerJob
from relayer.utils.datetime_utils import ensure_utc


@dataclass(frozen=True)
class PlanTokenSnapshot:
    token_mint: str
    symbol: str
    decimals: int
    price: Decimal


@dataclass(frozen=True)
class PlanSnapshot:
    id: str
    receiver_wallet: str
    period_seconds: int | None
    tokens: tuple[PlanTokenSnapshot, ...] = field(default_factory=tuple)

    def token_for(self, token_mint: str) -> PlanTokenSnapshot | None:
        """Get the PlanToken priced in ``token_mint``."""
        for token in self.tokens:
            if token.token_mint == token_mint:
                return token
        return None


@dataclass(frozen=True)
class PayerSnapshot:
    id: str
    wallet_address: str


@dataclass(frozen=True)
class SubscriptionSnapshot:
    id: str
    status: str
    token_mint: str
    token_decimals: int
    next_due_at: datetime
    last_paid_at: datetime | None
    delegate_authority: str
    total_approved_amount: Decimal


@dataclass(frozen=True)
class DueJob:
    """A due RelayerJob joined with everything needed to charge it."""

    id: str
    retry_count: int
    subscription: SubscriptionSnapshot
    plan: PlanSnapshot
    payer: PayerSnapshot

    @property
    def attempt(self) -> int:
        """1-based number of the attempt about to be made."""
        return self.retry_count + 1

    @classmethod
    def from_model(cls, job: RelayerJob) -> "DueJob":
        """Build a snapshot from a job loaded with its relations."""
        subscription = job.subscription
        plan = subscription.plan
        payer = subscription.payer

        return cls(
            id=job.id,
            retry_count=job.retry_count,
            subscription=SubscriptionSnapshot(
                id=subscription.id,
                status=subscription.status,
                token_mint=subscription.token_mint,
                token_decimals=subscription.token_decimals,
                next_due_at=ensure_utc(subscription.next_due_at),
                last_paid_at=(
                    ensure_utc(subscription.last_paid_at)
                    if subscription.last_paid_at else None
                ),
                delegate_authority=subscription.delegate_authority,
                total_approved_amount=subscription.total_approved_amount,
            ),
            plan=PlanSnapshot(
                id=plan.id,
                receiver_wallet=plan.receiver_wallet,
                period_seconds=plan.period_seconds,
                tokens=tuple(
                    PlanTokenSnapshot(
                        token_mint=token.token_mint,
                        symbol=token.symbol,
                        decimals=token.decimals,
                        price=token.price,
                    )
                    for token in plan.plan_tokens
                ),
            ),
            payer=PayerSnapshot(
                id=payer.id,
                wallet_address=payer.wallet_address,
            ),
        )


@dataclass(frozen=True)
class ChargeResult:
    """Successful delegated transfer."""

    tx_signature: str
    amount: Decimal
    token_mint: str


class JobOutcome(str, Enum):
    """What happened to a job in this invocation."""

    SUCCEEDED = "succeeded"
    RETRIED = "retried"
    FAILED = "failed"
    SKIPPED = "skipped"  # Claimed by another invocation
