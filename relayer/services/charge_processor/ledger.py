"""
Execution Ledger.

Appends one immutable PaymentExecution per job attempt.
"""

from datetime import datetime
from decimal import Decimal

from loguru import logger

from relayer.config.constants import FAILED_TX_SIGNATURE
from relayer.models.enums import PaymentExecutionStatus
from relayer.models.payment_execution import PaymentExecution
from relayer.repositories.payment_execution_repository import (
    PaymentExecutionRepository,
)
from relayer.utils.exceptions import DuplicateExecutionError

from .types import DueJob


class ExecutionLedger:
    """Append-only record of charge attempts."""

    def __init__(
        self,
        execution_repo: PaymentExecutionRepository,
        executed_by: str | None = None,
    ) -> None:
        """
        Args:
            execution_repo: Ledger repository
            executed_by: Relayer address recorded on every entry
        """
        self.execution_repo = execution_repo
        self.executed_by = executed_by

    async def record_success(
        self,
        job: DueJob,
        amount: Decimal,
        tx_signature: str,
        executed_at: datetime,
    ) -> PaymentExecution:
        """
        Record a successful charge.

        Raises:
            DuplicateExecutionError: The signature already has a SUCCESS entry
        """
        existing = await self.execution_repo.find_success_by_signature(tx_signature)
        if existing is not None:
            raise DuplicateExecutionError(tx_signature)

        return await self._append(
            job,
            status=PaymentExecutionStatus.SUCCESS,
            amount=amount,
            tx_signature=tx_signature,
            executed_at=executed_at,
            error_message=None,
        )

    async def record_failure(
        self,
        job: DueJob,
        amount: Decimal,
        error_message: str,
        executed_at: datetime,
    ) -> PaymentExecution:
        """Record a failed charge attempt under the sentinel signature."""
        return await self._append(
            job,
            status=PaymentExecutionStatus.FAILED,
            amount=amount,
            tx_signature=FAILED_TX_SIGNATURE,
            executed_at=executed_at,
            error_message=error_message,
        )

    async def _append(
        self,
        job: DueJob,
        status: str,
        amount: Decimal,
        tx_signature: str,
        executed_at: datetime,
        error_message: str | None,
    ) -> PaymentExecution:
        entry = await self.execution_repo.create(
            plan_id=job.plan.id,
            subscription_id=job.subscription.id,
            relayer_job_id=job.id,
            attempt=job.attempt,
            tx_signature=tx_signature,
            status=status,
            amount=amount,
            token_mint=job.subscription.token_mint,
            executed_by=self.executed_by,
            executed_at=executed_at,
            error_message=error_message,
        )
        logger.debug(
            f"Ledger entry {entry.id}: job {job.id} attempt {job.attempt} {status}"
        )
        return entry

    async def subscription_totals(self, subscription_id: str) -> tuple[int, Decimal]:
        """Successful charge count and amount for a subscription."""
        return await self.execution_repo.totals_for_subscription(subscription_id)
