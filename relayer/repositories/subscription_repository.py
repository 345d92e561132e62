"""
Subscription Repository.

Billing-cycle updates made by the charge processor.
"""

from datetime import datetime, timedelta

from sqlalchemy import and_, update
from sqlalchemy.ext.asyncio import AsyncSession

from relayer.models.enums import SubscriptionStatus
from relayer.models.subscription import Subscription
from relayer.repositories.base import BaseRepository
from relayer.utils.exceptions import PersistenceError


class SubscriptionRepository(BaseRepository[Subscription]):
    """Repository for subscriptions."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize repository with database session."""
        super().__init__(Subscription, session)

    async def advance_due_date(
        self,
        subscription_id: str,
        expected_next_due_at: datetime,
        period_seconds: int,
        paid_at: datetime,
    ) -> datetime:
        """
        Move next_due_at forward by one period.

        The update only applies while next_due_at still equals the value
        the charge was made for, so a billing cycle is advanced at most once.

        Args:
            subscription_id: Subscription ID
            expected_next_due_at: next_due_at seen when the job was selected
            period_seconds: Plan billing period
            paid_at: Time of the successful charge

        Returns:
            New next_due_at

        Raises:
            PersistenceError: If the subscription changed concurrently
        """
        new_next_due_at = expected_next_due_at + timedelta(seconds=period_seconds)
        stmt = (
            update(Subscription)
            .where(
                and_(
                    Subscription.id == subscription_id,
                    Subscription.next_due_at == expected_next_due_at,
                )
            )
            .values(next_due_at=new_next_due_at, last_paid_at=paid_at)
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(stmt)
        if result.rowcount != 1:
            raise PersistenceError(
                f"Subscription {subscription_id} billing cycle "
                f"{expected_next_due_at.isoformat()} was modified concurrently"
            )
        return new_next_due_at

    async def expire(self, subscription_id: str) -> bool:
        """
        ACTIVE -> EXPIRED.

        Args:
            subscription_id: Subscription ID

        Returns:
            True if the status changed, False if it was no longer ACTIVE
        """
        stmt = (
            update(Subscription)
            .where(
                and_(
                    Subscription.id == subscription_id,
                    Subscription.status == SubscriptionStatus.ACTIVE,
                )
            )
            .values(status=SubscriptionStatus.EXPIRED)
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(stmt)
        return result.rowcount == 1
