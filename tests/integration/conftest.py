"""
Shared fixtures for integration tests.

Tests run against a file-backed SQLite database created per test:
- Engine and session factory (aiosqlite)
- Billing catalogue and job seeding
"""

from datetime import UTC, datetime, timedelta
from decimal import Decimal

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine

from relayer.models import (
    Base,
    Payer,
    Plan,
    PlanToken,
    RelayerJob,
    RelayerJobStatus,
    Subscription,
    SubscriptionStatus,
)

USDC_MINT = "0xA0b86991c6218b36c1d19D4a2e9Eb0cE3606eB48"
PAYER_WALLET = "0x742d35Cc6634C0532925a3b844Bc9e7595f0bEb0"
RECEIVER_WALLET = "0x55d398326f99059fF775485246999027B3197955"
RELAYER_ADDRESS = "0x90F8bf6A479f320ead074411a4B0e7944Ea8c9C1"
MONTH = 30 * 24 * 3600
# Exactly representable, SQLite keeps NUMERIC as REAL
PRICE = Decimal("12.5")
CLAIM_TTL = timedelta(minutes=10)


@pytest.fixture
def now():
    """Fixed processing time."""
    return datetime(2026, 3, 1, 12, 0, tzinfo=UTC)


@pytest_asyncio.fixture
async def engine(tmp_path):
    """Engine on a fresh database with the full schema."""
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'relayer.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_maker(engine):
    return async_sessionmaker(engine, expire_on_commit=False)


@pytest_asyncio.fixture
async def plan(session_maker):
    """Monthly plan priced in USDC, with its payer."""
    async with session_maker() as session:
        session.add(Payer(id="payer-1", wallet_address=PAYER_WALLET))
        session.add(
            Plan(
                id="plan-1",
                name="Pro",
                receiver_wallet=RECEIVER_WALLET,
                is_recurring=True,
                period_seconds=MONTH,
                plan_tokens=[
                    PlanToken(
                        symbol="USDC",
                        token_mint=USDC_MINT,
                        decimals=6,
                        price=PRICE,
                    )
                ],
            )
        )
        await session.commit()
    return "plan-1"


@pytest.fixture
def seed_job(session_maker, plan, now):
    """
    Factory inserting a subscription and its charge job.

    Returns:
        Async callable taking the job id; the subscription id is
        ``sub-<job id>``
    """
    async def _seed(
        job_id: str,
        retry_count: int = 0,
        next_retry_at: datetime | None = None,
        subscription_status: str = SubscriptionStatus.ACTIVE,
        next_due_at: datetime | None = None,
        claimed_at: datetime | None = None,
    ) -> str:
        async with session_maker() as session:
            session.add(
                Subscription(
                    id=f"sub-{job_id}",
                    plan_id=plan,
                    payer_id="payer-1",
                    token_mint=USDC_MINT,
                    token_decimals=6,
                    status=subscription_status,
                    next_due_at=next_due_at or now - timedelta(hours=1),
                    delegate_authority=RELAYER_ADDRESS,
                    delegate_approval_tx="0x" + "12" * 32,
                    delegate_approved_at=now - timedelta(days=31),
                    total_approved_amount=PRICE * 12,
                )
            )
            session.add(
                RelayerJob(
                    id=job_id,
                    subscription_id=f"sub-{job_id}",
                    status=RelayerJobStatus.PENDING,
                    retry_count=retry_count,
                    next_retry_at=next_retry_at or now - timedelta(minutes=5),
                    claimed_at=claimed_at,
                    claim_token="stale-claim" if claimed_at else None,
                )
            )
            await session.commit()
        return job_id

    return _seed
