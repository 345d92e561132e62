"""
Payment Execution Repository.

Append-only access to the charge ledger.
"""

from decimal import Decimal

from sqlalchemy import and_, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from relayer.models.enums import PaymentExecutionStatus
from relayer.models.payment_execution import PaymentExecution
from relayer.repositories.base import BaseRepository


class PaymentExecutionRepository(BaseRepository[PaymentExecution]):
    """Repository for ledger entries. Exposes no update or delete."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize repository with database session."""
        super().__init__(PaymentExecution, session)

    async def find_success_by_signature(
        self, tx_signature: str
    ) -> PaymentExecution | None:
        """Get the SUCCESS entry recorded for a transaction signature."""
        stmt = select(PaymentExecution).where(
            and_(
                PaymentExecution.tx_signature == tx_signature,
                PaymentExecution.status == PaymentExecutionStatus.SUCCESS,
            )
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def totals_for_subscription(
        self, subscription_id: str
    ) -> tuple[int, Decimal]:
        """
        Count and sum successful charges of a subscription.

        Args:
            subscription_id: Subscription ID

        Returns:
            Tuple of (successful charge count, total amount charged)
        """
        stmt = select(
            func.count(PaymentExecution.id),
            func.coalesce(func.sum(PaymentExecution.amount), 0),
        ).where(
            and_(
                PaymentExecution.subscription_id == subscription_id,
                PaymentExecution.status == PaymentExecutionStatus.SUCCESS,
            )
        )
        result = await self.session.execute(stmt)
        count, total = result.one()
        return int(count), Decimal(total)
