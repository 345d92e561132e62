"""
Unit tests for the execution ledger.

Tests cover:
- SUCCESS entries keyed by job and attempt
- FAILED entries under the sentinel signature
- Duplicate signature rejection
"""

from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock

import pytest

from relayer.config.constants import FAILED_TX_SIGNATURE
from relayer.services.charge_processor.ledger import ExecutionLedger
from relayer.utils.exceptions import DuplicateExecutionError, PersistenceError


@pytest.fixture
def execution_repo():
    repo = AsyncMock()
    repo.find_success_by_signature = AsyncMock(return_value=None)
    repo.create = AsyncMock(return_value=MagicMock(id="exec-1"))
    return repo


class TestRecordSuccess:
    """Test successful charge entries."""

    @pytest.mark.asyncio
    async def test_appends_success_row(self, execution_repo, make_due_job, now):
        """Test one SUCCESS row with the job's attempt number."""
        job = make_due_job(retry_count=2)
        ledger = ExecutionLedger(execution_repo, executed_by="0xrelayer")

        await ledger.record_success(job, Decimal("9.99"), "0xabc", now)

        execution_repo.create.assert_awaited_once_with(
            plan_id="plan-1",
            subscription_id="sub-job-1",
            relayer_job_id="job-1",
            attempt=3,
            tx_signature="0xabc",
            status="SUCCESS",
            amount=Decimal("9.99"),
            token_mint=job.subscription.token_mint,
            executed_by="0xrelayer",
            executed_at=now,
            error_message=None,
        )

    @pytest.mark.asyncio
    async def test_duplicate_signature_rejected(
        self, execution_repo, make_due_job, now
    ):
        """Test a signature is never recorded as SUCCESS twice."""
        execution_repo.find_success_by_signature.return_value = MagicMock()
        ledger = ExecutionLedger(execution_repo)

        with pytest.raises(DuplicateExecutionError) as exc_info:
            await ledger.record_success(make_due_job(), Decimal("9.99"), "0xabc", now)

        assert isinstance(exc_info.value, PersistenceError)
        assert exc_info.value.tx_signature == "0xabc"
        execution_repo.create.assert_not_awaited()


class TestRecordFailure:
    """Test failed attempt entries."""

    @pytest.mark.asyncio
    async def test_appends_failed_row(self, execution_repo, make_due_job, now):
        """Test FAILED row carries the sentinel and the error."""
        ledger = ExecutionLedger(execution_repo)

        await ledger.record_failure(
            make_due_job(), Decimal("9.99"), "Insufficient allowance", now
        )

        kwargs = execution_repo.create.await_args.kwargs
        assert kwargs["status"] == "FAILED"
        assert kwargs["tx_signature"] == FAILED_TX_SIGNATURE
        assert kwargs["error_message"] == "Insufficient allowance"
        assert kwargs["attempt"] == 1
        execution_repo.find_success_by_signature.assert_not_awaited()


class TestSubscriptionTotals:

    @pytest.mark.asyncio
    async def test_delegates_to_repository(self, execution_repo):
        execution_repo.totals_for_subscription = AsyncMock(
            return_value=(3, Decimal("29.97"))
        )
        ledger = ExecutionLedger(execution_repo)

        assert await ledger.subscription_totals("sub-1") == (3, Decimal("29.97"))
