"""
Subscription State Manager.

Advances or terminates a subscription's billing cycle.
"""

from datetime import datetime

from loguru import logger

from relayer.repositories.subscription_repository import SubscriptionRepository

from .types import PlanSnapshot, SubscriptionSnapshot


class SubscriptionStateManager:
    """Billing-cycle transitions made by the processor."""

    def __init__(self, subscription_repo: SubscriptionRepository) -> None:
        self.subscription_repo = subscription_repo

    async def advance_on_success(
        self,
        subscription: SubscriptionSnapshot,
        plan: PlanSnapshot,
        now: datetime,
    ) -> datetime:
        """
        Record a successful charge.

        next_due_at moves forward by exactly one period from its prior
        value (not from now) so the schedule does not drift.

        Returns:
            New next_due_at
        """
        new_next_due_at = await self.subscription_repo.advance_due_date(
            subscription_id=subscription.id,
            expected_next_due_at=subscription.next_due_at,
            period_seconds=plan.period_seconds,
            paid_at=now,
        )
        logger.info(
            f"Subscription {subscription.id} paid, "
            f"next charge due {new_next_due_at.isoformat()}"
        )
        return new_next_due_at

    async def expire_on_terminal_failure(
        self, subscription: SubscriptionSnapshot
    ) -> bool:
        """
        Expire a subscription whose charge job exhausted its retries.

        Returns:
            True if the subscription moved ACTIVE -> EXPIRED
        """
        expired = await self.subscription_repo.expire(subscription.id)
        if expired:
            logger.warning(f"Subscription {subscription.id} EXPIRED")
        else:
            logger.warning(
                f"Subscription {subscription.id} no longer ACTIVE, "
                f"status left unchanged"
            )
        return expired
