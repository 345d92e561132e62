"""
Shared fixtures for unit tests.

This module provides builders for due-job snapshots:
- A fixed clock
- DueJob factory with overridable plan, token and retry count
"""

from datetime import UTC, datetime, timedelta
from decimal import Decimal

import pytest

from relayer.services.charge_processor.retry_policy import RetryPolicy
from relayer.services.charge_processor.types import (
    DueJob,
    PayerSnapshot,
    PlanSnapshot,
    PlanTokenSnapshot,
    SubscriptionSnapshot,
)

USDC_MINT = "0xA0b86991c6218b36c1d19D4a2e9Eb0cE3606eB48"
USDT_MINT = "0xdAC17F958D2ee523a2206206994597C13D831ec7"
PAYER_WALLET = "0x742d35Cc6634C0532925a3b844Bc9e7595f0bEb0"
RECEIVER_WALLET = "0x55d398326f99059fF775485246999027B3197955"
MONTH = 30 * 24 * 3600


@pytest.fixture
def now():
    """Fixed processing time."""
    return datetime(2026, 3, 1, 12, 0, tzinfo=UTC)


@pytest.fixture
def policy():
    """Default policy: 5 attempts, 1 minute base delay."""
    return RetryPolicy(max_attempts=5, base_delay=timedelta(minutes=1))


@pytest.fixture
def make_due_job(now):
    """
    Factory for DueJob snapshots.

    Returns:
        Callable building a job charged 9.99 USDC monthly by default
    """
    def _make(
        job_id: str = "job-1",
        retry_count: int = 0,
        token_mint: str = USDC_MINT,
        price: Decimal = Decimal("9.99"),
        period_seconds: int | None = MONTH,
        plan_tokens: tuple[PlanTokenSnapshot, ...] | None = None,
        next_due_at: datetime | None = None,
    ) -> DueJob:
        if plan_tokens is None:
            plan_tokens = (
                PlanTokenSnapshot(
                    token_mint=USDC_MINT, symbol="USDC", decimals=6, price=price
                ),
            )
        return DueJob(
            id=job_id,
            retry_count=retry_count,
            subscription=SubscriptionSnapshot(
                id=f"sub-{job_id}",
                status="ACTIVE",
                token_mint=token_mint,
                token_decimals=6,
                next_due_at=next_due_at or now - timedelta(hours=1),
                last_paid_at=None,
                delegate_authority="0x90F8bf6A479f320ead074411a4B0e7944Ea8c9C1",
                total_approved_amount=Decimal("119.88"),
            ),
            plan=PlanSnapshot(
                id="plan-1",
                receiver_wallet=RECEIVER_WALLET,
                period_seconds=period_seconds,
                tokens=plan_tokens,
            ),
            payer=PayerSnapshot(id="payer-1", wallet_address=PAYER_WALLET),
        )

    return _make
