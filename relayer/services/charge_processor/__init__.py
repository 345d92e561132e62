"""
Charge Processor - Main Module.

Recurring-charge batch job: finds due RelayerJobs, executes the
delegated transfer, records every attempt in the ledger and either
advances the subscription or schedules a retry with exponential backoff.

Module Structure:
- types.py: Read-only job snapshots and outcomes
- selector.py: Due-Job Selector
- executor.py: Payment Executor (one chain call per attempt)
- retry_policy.py: Retry Scheduler (pure backoff decision)
- subscription_state.py: Subscription State Manager
- ledger.py: Execution Ledger (append-only)
- job_handler.py: Claim / execute / settle for one job
- processor.py: Batch loop
- stats.py: Invocation counters

Public Interface:
- ChargeProcessorService: Wires the components onto one session
"""

from collections.abc import Callable
from datetime import datetime, timedelta

from sqlalchemy.ext.asyncio import AsyncSession

from relayer.repositories.payment_execution_repository import (
    PaymentExecutionRepository,
)
from relayer.repositories.relayer_job_repository import RelayerJobRepository
from relayer.repositories.subscription_repository import SubscriptionRepository
from relayer.services.blockchain.base import ChainAdapter
from relayer.utils.datetime_utils import utc_now

from .executor import PaymentExecutor
from .job_handler import ChargeJobHandler
from .ledger import ExecutionLedger
from .processor import ChargeProcessor
from .retry_policy import Retry, RetryPolicy, Terminal, decide
from .selector import DueJobSelector
from .stats import BatchSummary
from .subscription_state import SubscriptionStateManager
from .types import DueJob, JobOutcome


class ChargeProcessorService:
    """
    Recurring charge processor.

    One instance per invocation; all store access goes through ``session``.
    """

    def __init__(
        self,
        session: AsyncSession,
        chain_adapter: ChainAdapter,
        policy: RetryPolicy,
        claim_ttl: timedelta,
        batch_limit: int,
        call_timeout: float,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        """Initialize charge processor."""
        self.session = session
        self.clock = clock

        self.job_repo = RelayerJobRepository(session)
        self.subscription_repo = SubscriptionRepository(session)
        self.execution_repo = PaymentExecutionRepository(session)

        self.selector = DueJobSelector(self.job_repo, claim_ttl, batch_limit)
        self.executor = PaymentExecutor(chain_adapter, call_timeout)
        self.ledger = ExecutionLedger(
            self.execution_repo,
            executed_by=getattr(chain_adapter, "sender_address", None),
        )
        self.state_manager = SubscriptionStateManager(self.subscription_repo)
        self.handler = ChargeJobHandler(
            session=session,
            job_repo=self.job_repo,
            executor=self.executor,
            ledger=self.ledger,
            state_manager=self.state_manager,
            policy=policy,
            claim_ttl=claim_ttl,
            clock=clock,
        )
        self.processor = ChargeProcessor(self.selector, self.handler)

    async def process_due_jobs(self) -> BatchSummary:
        """Run one invocation."""
        return await self.processor.run(self.clock())

    async def preview_due_jobs(self) -> list[DueJob]:
        """List the jobs an invocation would pick up, without claiming them."""
        return list(await self.selector.select_due(self.clock()))


__all__ = [
    "BatchSummary",
    "ChargeJobHandler",
    "ChargeProcessor",
    "ChargeProcessorService",
    "DueJob",
    "DueJobSelector",
    "ExecutionLedger",
    "JobOutcome",
    "PaymentExecutor",
    "Retry",
    "RetryPolicy",
    "SubscriptionStateManager",
    "Terminal",
    "decide",
]
