"""
Unit tests for the batch processor.

Tests cover:
- Per-job failure isolation
- Summary counters
- Empty invocations make no store writes
- Fatal selection errors abort the invocation
"""

from datetime import timedelta
from unittest.mock import AsyncMock, MagicMock

import pytest

from relayer.services.charge_processor import ChargeProcessorService
from relayer.services.charge_processor.processor import ChargeProcessor
from relayer.services.charge_processor.stats import BatchSummary
from relayer.services.charge_processor.types import JobOutcome
from relayer.utils.exceptions import FatalProcessError, PersistenceError


def _selector(jobs):
    selector = AsyncMock()
    selector.select_due = AsyncMock(return_value=iter(jobs))
    return selector


class TestBatchLoop:

    @pytest.mark.asyncio
    async def test_counts_outcomes(self, make_due_job, now):
        jobs = [make_due_job(job_id=f"job-{i}") for i in range(4)]
        handler = AsyncMock()
        handler.process = AsyncMock(
            side_effect=[
                JobOutcome.SUCCEEDED,
                JobOutcome.RETRIED,
                JobOutcome.FAILED,
                JobOutcome.SKIPPED,
            ]
        )

        summary = await ChargeProcessor(_selector(jobs), handler).run(now)

        assert summary.as_dict() == {
            "processed": 3,
            "succeeded": 1,
            "retried": 1,
            "failed": 1,
            "skipped": 1,
            "errored": 0,
        }

    @pytest.mark.asyncio
    async def test_failing_job_does_not_stop_batch(self, make_due_job, now):
        """Test persistence and unexpected errors are isolated per job."""
        jobs = [make_due_job(job_id=f"job-{i}") for i in range(3)]
        handler = AsyncMock()
        handler.process = AsyncMock(
            side_effect=[
                PersistenceError("claim lost"),
                RuntimeError("boom"),
                JobOutcome.SUCCEEDED,
            ]
        )

        summary = await ChargeProcessor(_selector(jobs), handler).run(now)

        assert handler.process.await_count == 3
        assert summary.processed == 3
        assert summary.errored == 2
        assert summary.succeeded == 1

    @pytest.mark.asyncio
    async def test_no_due_jobs(self, now):
        handler = AsyncMock()

        summary = await ChargeProcessor(_selector([]), handler).run(now)

        assert summary == BatchSummary()
        handler.process.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_fatal_selection_propagates(self, now):
        selector = AsyncMock()
        selector.select_due = AsyncMock(side_effect=FatalProcessError("db down"))
        handler = AsyncMock()

        with pytest.raises(FatalProcessError):
            await ChargeProcessor(selector, handler).run(now)

        handler.process.assert_not_awaited()


class TestChargeProcessorService:
    """Wired service against a mocked session."""

    @pytest.fixture
    def empty_session(self, mock_session):
        result = MagicMock()
        result.scalars.return_value.all.return_value = []
        mock_session.execute = AsyncMock(return_value=result)
        return mock_session

    def _service(self, session, chain_adapter, policy, now):
        return ChargeProcessorService(
            session=session,
            chain_adapter=chain_adapter,
            policy=policy,
            claim_ttl=timedelta(minutes=10),
            batch_limit=100,
            call_timeout=5,
            clock=lambda: now,
        )

    @pytest.mark.asyncio
    async def test_zero_due_jobs_makes_no_writes(
        self, empty_session, mock_chain_adapter, policy, now
    ):
        service = self._service(empty_session, mock_chain_adapter, policy, now)

        summary = await service.process_due_jobs()

        assert summary == BatchSummary()
        assert empty_session.execute.await_count == 1
        empty_session.commit.assert_not_awaited()
        empty_session.add.assert_not_called()
        mock_chain_adapter.execute_delegated_transfer.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_repeated_empty_invocation_is_noop(
        self, empty_session, mock_chain_adapter, policy, now
    ):
        service = self._service(empty_session, mock_chain_adapter, policy, now)

        await service.process_due_jobs()
        second = await service.process_due_jobs()

        assert second == BatchSummary()
        empty_session.commit.assert_not_awaited()
        empty_session.rollback.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_preview_does_not_claim(
        self, empty_session, mock_chain_adapter, policy, now
    ):
        service = self._service(empty_session, mock_chain_adapter, policy, now)

        assert await service.preview_due_jobs() == []
        empty_session.commit.assert_not_awaited()

    def test_ledger_records_relayer_address(
        self, mock_session, mock_chain_adapter, policy, now
    ):
        service = self._service(mock_session, mock_chain_adapter, policy, now)

        assert service.ledger.executed_by == mock_chain_adapter.sender_address


class TestBatchSummary:

    def test_str(self):
        summary = BatchSummary()
        summary.record(JobOutcome.SUCCEEDED)
        summary.record_error()

        assert str(summary) == (
            "Processed: 2 | Success: 1 | Retry: 0 | Failed: 0 | "
            "Skipped: 0 | Errored: 1"
        )
