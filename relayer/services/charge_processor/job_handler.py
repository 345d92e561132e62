"""
Charge Processor - Job Handler Module.

Claim -> execute -> settle for a single job. Settlement (ledger entry,
subscription change, job transition) is one transaction.
"""

from collections.abc import Callable
from datetime import datetime, timedelta
from decimal import Decimal

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

from relayer.repositories.relayer_job_repository import RelayerJobRepository
from relayer.utils.datetime_utils import utc_now
from relayer.utils.db_decorators import with_rollback_on_error
from relayer.utils.exceptions import ChainExecutionError, ConfigurationError
from relayer.utils.security import mask_tx_hash

from .executor import PaymentExecutor
from .ledger import ExecutionLedger
from .retry_policy import Retry, RetryPolicy, decide
from .subscription_state import SubscriptionStateManager
from .types import ChargeResult, DueJob, JobOutcome


class ChargeJobHandler:
    """Processes one due job end to end."""

    def __init__(
        self,
        session: AsyncSession,
        job_repo: RelayerJobRepository,
        executor: PaymentExecutor,
        ledger: ExecutionLedger,
        state_manager: SubscriptionStateManager,
        policy: RetryPolicy,
        claim_ttl: timedelta,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self.session = session
        self.job_repo = job_repo
        self.executor = executor
        self.ledger = ledger
        self.state_manager = state_manager
        self.policy = policy
        self.claim_ttl = claim_ttl
        self.clock = clock

    async def process(self, job: DueJob) -> JobOutcome:
        """
        Process a single job.

        Args:
            job: Due job snapshot

        Returns:
            Outcome of this attempt

        Raises:
            PersistenceError: If claiming or settling failed; nothing
                from the failed unit of work is kept
        """
        logger.info(
            f"Processing job {job.id} for subscription {job.subscription.id} "
            f"(attempt {job.attempt}/{self.policy.max_attempts})"
        )

        claim_token = await self._claim(job)
        if claim_token is None:
            return JobOutcome.SKIPPED

        try:
            result = await self.executor.execute(job)
        except ConfigurationError as e:
            return await self._settle_configuration_error(job, claim_token, e)
        except ChainExecutionError as e:
            return await self._settle_chain_failure(job, claim_token, e)

        return await self._settle_success(job, claim_token, result)

    @with_rollback_on_error
    async def _claim(self, job: DueJob) -> str | None:
        """Take the in-progress marker before touching the chain."""
        claim_token = await self.job_repo.claim(job.id, self.clock(), self.claim_ttl)
        if claim_token is None:
            await self.session.rollback()
            return None

        await self.session.commit()
        return claim_token

    @staticmethod
    def _attempt_amount(job: DueJob) -> Decimal:
        """Price the attempt was made for, zero if the plan has none."""
        plan_token = job.plan.token_for(job.subscription.token_mint)
        if plan_token is None:
            return Decimal("0")
        return plan_token.price

    @with_rollback_on_error
    async def _settle_success(
        self, job: DueJob, claim_token: str, result: ChargeResult
    ) -> JobOutcome:
        now = self.clock()
        try:
            await self.ledger.record_success(
                job, result.amount, result.tx_signature, now
            )
            await self.state_manager.advance_on_success(
                job.subscription, job.plan, now
            )
            await self.job_repo.mark_success(job.id, claim_token, executed_at=now)
            charge_count, charged_total = await self.ledger.subscription_totals(
                job.subscription.id
            )
            await self.session.commit()
        except Exception:
            # The transfer went through; operators must reconcile this one
            logger.critical(
                f"Job {job.id} charged on-chain (tx {result.tx_signature}) "
                f"but settlement failed"
            )
            raise

        logger.success(
            f"Job {job.id} completed successfully, "
            f"tx {mask_tx_hash(result.tx_signature)} "
            f"(subscription charged {charge_count} times, {charged_total} total)"
        )
        return JobOutcome.SUCCEEDED

    @with_rollback_on_error
    async def _settle_chain_failure(
        self, job: DueJob, claim_token: str, error: ChainExecutionError
    ) -> JobOutcome:
        now = self.clock()
        retry_count = job.attempt
        error_message = str(error)
        if error.tx_signature:
            error_message = f"{error_message} [tx {error.tx_signature}]"

        logger.error(f"Job {job.id} failed: {error_message}")

        await self.ledger.record_failure(
            job, self._attempt_amount(job), error_message, now
        )

        decision = decide(retry_count, self.policy, now)
        if isinstance(decision, Retry):
            await self.job_repo.schedule_retry(
                job.id,
                claim_token,
                retry_count=retry_count,
                next_retry_at=decision.next_retry_at,
                error_message=error_message,
            )
            await self.session.commit()
            logger.info(
                f"Job {job.id} scheduled for retry "
                f"{retry_count}/{self.policy.max_attempts} "
                f"at {decision.next_retry_at.isoformat()}"
            )
            return JobOutcome.RETRIED

        await self.job_repo.mark_failed(
            job.id,
            claim_token,
            retry_count=retry_count,
            error_message=error_message,
            executed_at=now,
        )
        await self.state_manager.expire_on_terminal_failure(job.subscription)
        await self.session.commit()
        logger.warning(
            f"Job {job.id} permanently failed after {decision.attempts} attempts"
        )
        return JobOutcome.FAILED

    @with_rollback_on_error
    async def _settle_configuration_error(
        self, job: DueJob, claim_token: str, error: ConfigurationError
    ) -> JobOutcome:
        now = self.clock()
        error_message = f"Configuration error: {error}"

        logger.error(
            f"Job {job.id} cannot be charged, subscription "
            f"{job.subscription.id} requires review: {error}"
        )

        await self.ledger.record_failure(
            job, self._attempt_amount(job), error_message, now
        )
        # Not a retry exhaustion: no retry slot consumed, subscription stays ACTIVE
        await self.job_repo.mark_failed(
            job.id,
            claim_token,
            retry_count=job.retry_count,
            error_message=error_message,
            executed_at=now,
        )
        await self.session.commit()
        return JobOutcome.FAILED
