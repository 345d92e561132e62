"""
Relayer Job Repository.

Selection, claiming and state transitions for charge jobs. Every
transition is a conditional UPDATE guarded by status and claim token,
so a job whose claim was lost can never be moved by a stale worker.
"""

from datetime import datetime, timedelta
from typing import Sequence
from uuid import uuid4

from loguru import logger
from sqlalchemy import and_, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from relayer.models.enums import RelayerJobStatus, SubscriptionStatus
from relayer.models.plan import Plan
from relayer.models.relayer_job import RelayerJob
from relayer.models.subscription import Subscription
from relayer.repositories.base import BaseRepository
from relayer.utils.exceptions import PersistenceError


class RelayerJobRepository(BaseRepository[RelayerJob]):
    """Repository for relayer jobs."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize repository with database session."""
        super().__init__(RelayerJob, session)

    @staticmethod
    def _unclaimed(now: datetime, claim_ttl: timedelta):
        """No claim, or a claim old enough to be considered abandoned."""
        return or_(
            RelayerJob.claimed_at.is_(None),
            RelayerJob.claimed_at < now - claim_ttl,
        )

    async def get_due_jobs(
        self,
        now: datetime,
        claim_ttl: timedelta,
        limit: int,
    ) -> Sequence[RelayerJob]:
        """
        Get PENDING jobs whose next_retry_at has passed.

        Only jobs of ACTIVE subscriptions are returned; subscription, plan,
        plan tokens and payer are loaded eagerly.

        Args:
            now: Current time
            claim_ttl: Claims older than this are ignored
            limit: Max number of jobs

        Returns:
            Due jobs ordered by next_retry_at
        """
        stmt = (
            select(RelayerJob)
            .join(RelayerJob.subscription)
            .where(
                and_(
                    RelayerJob.status == RelayerJobStatus.PENDING,
                    RelayerJob.next_retry_at <= now,
                    Subscription.status == SubscriptionStatus.ACTIVE,
                    self._unclaimed(now, claim_ttl),
                )
            )
            .options(
                selectinload(RelayerJob.subscription)
                .selectinload(Subscription.plan)
                .selectinload(Plan.plan_tokens),
                selectinload(RelayerJob.subscription)
                .selectinload(Subscription.payer),
            )
            .order_by(RelayerJob.next_retry_at.asc())
            .limit(limit)
        )
        result = await self.session.execute(stmt)
        return result.scalars().all()

    async def claim(
        self,
        job_id: str,
        now: datetime,
        claim_ttl: timedelta,
    ) -> str | None:
        """
        Atomically mark a due job as in progress.

        Args:
            job_id: Job ID
            now: Current time
            claim_ttl: Claims older than this may be taken over

        Returns:
            Claim token, or None if the job is no longer claimable
        """
        token = str(uuid4())
        stmt = (
            update(RelayerJob)
            .where(
                and_(
                    RelayerJob.id == job_id,
                    RelayerJob.status == RelayerJobStatus.PENDING,
                    RelayerJob.next_retry_at <= now,
                    self._unclaimed(now, claim_ttl),
                )
            )
            .values(claimed_at=now, claim_token=token)
            .returning(RelayerJob.id)
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(stmt)
        if result.scalar_one_or_none() is None:
            logger.info(f"Job {job_id} already claimed or no longer due")
            return None
        return token

    async def _transition(
        self, job_id: str, claim_token: str, **values
    ) -> None:
        """Apply a claimed transition, clearing the claim."""
        stmt = (
            update(RelayerJob)
            .where(
                and_(
                    RelayerJob.id == job_id,
                    RelayerJob.status == RelayerJobStatus.PENDING,
                    RelayerJob.claim_token == claim_token,
                )
            )
            .values(claimed_at=None, claim_token=None, **values)
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(stmt)
        if result.rowcount != 1:
            raise PersistenceError(
                f"Job {job_id} claim {claim_token} lost before settlement"
            )

    async def mark_success(
        self,
        job_id: str,
        claim_token: str,
        executed_at: datetime,
    ) -> None:
        """PENDING -> SUCCESS. retry_count keeps counting failed attempts only."""
        await self._transition(
            job_id,
            claim_token,
            status=RelayerJobStatus.SUCCESS,
            executed_at=executed_at,
        )

    async def schedule_retry(
        self,
        job_id: str,
        claim_token: str,
        retry_count: int,
        next_retry_at: datetime,
        error_message: str,
    ) -> None:
        """PENDING -> PENDING with a later next_retry_at."""
        await self._transition(
            job_id,
            claim_token,
            retry_count=retry_count,
            next_retry_at=next_retry_at,
            error_message=error_message,
        )

    async def mark_failed(
        self,
        job_id: str,
        claim_token: str,
        retry_count: int,
        error_message: str,
        executed_at: datetime,
    ) -> None:
        """PENDING -> FAILED. No further retry is scheduled."""
        await self._transition(
            job_id,
            claim_token,
            status=RelayerJobStatus.FAILED,
            retry_count=retry_count,
            next_retry_at=None,
            error_message=error_message,
            executed_at=executed_at,
        )
