"""
Charge processing task.

Runs one invocation of the recurring charge processor: selects due
relayer jobs, executes the delegated transfers and settles each job.
Overlapping invocations are serialized by a Redis lock.
"""

from collections.abc import Callable
from contextlib import AbstractAsyncContextManager
from datetime import timedelta

import dramatiq
from dramatiq.middleware import CurrentMessage
from loguru import logger
from redis.exceptions import RedisError
from sqlalchemy.ext.asyncio import AsyncSession

import jobs.broker  # noqa: F401  registers the broker before actors
from jobs.async_runner import create_local_session, run_async
from relayer.config.constants import PROCESSOR_LOCK_NAME
from relayer.config.settings import settings
from relayer.repositories.relayer_job_repository import RelayerJobRepository
from relayer.services.blockchain import ChainAdapter, get_chain_adapter, init_chain_adapter
from relayer.services.charge_processor import (
    BatchSummary,
    ChargeProcessorService,
    DueJob,
    DueJobSelector,
)
from relayer.utils.datetime_utils import utc_now
from relayer.utils.distributed_lock import DistributedLock, LockNotAcquiredError
from relayer.utils.exceptions import FatalProcessError
from relayer.utils.redis_utils import get_redis_client

SessionFactory = Callable[[], AbstractAsyncContextManager[AsyncSession]]


@dramatiq.actor(max_retries=0, time_limit=900_000)  # 15 min timeout
def process_due_charges(limit: int | None = None) -> None:
    """
    Process due recurring charges.

    Failed charges are retried through the relayer job table with
    exponential backoff, never by re-enqueuing this message.

    Args:
        limit: Override for the batch limit
    """
    message = CurrentMessage.get_current_message()
    message_id = message.message_id if message else "-"
    logger.info(f"Starting charge processing (message {message_id})...")

    try:
        summary = run_async(run_charge_cycle(limit=limit))
    except FatalProcessError as e:
        logger.error(f"Charge processing aborted: {e}")
        raise

    if summary is not None:
        logger.info(f"Charge processing complete: {summary}")


def _resolve_chain_adapter() -> ChainAdapter:
    try:
        return get_chain_adapter()
    except RuntimeError:
        return init_chain_adapter(settings)


async def _connect_redis():
    """Return a live Redis client, or None when Redis is unreachable."""
    redis_client = await get_redis_client()
    try:
        await redis_client.ping()
    except (RedisError, OSError) as e:
        logger.warning(f"Failed to connect to Redis for lock: {e}")
        await redis_client.aclose()
        return None
    return redis_client


async def run_charge_cycle(
    limit: int | None = None,
    chain_adapter: ChainAdapter | None = None,
    session_factory: SessionFactory = create_local_session,
) -> BatchSummary | None:
    """
    Run one charge processing invocation under the processor lock.

    Args:
        limit: Override for the batch limit
        chain_adapter: Adapter to use (defaults to the process singleton)
        session_factory: Opens the invocation's database session

    Returns:
        Batch summary, or None if another invocation holds the lock

    Raises:
        FatalProcessError: If due jobs could not be read
    """
    if chain_adapter is None:
        chain_adapter = _resolve_chain_adapter()

    redis_client = await _connect_redis()
    lock = DistributedLock(redis_client=redis_client)

    try:
        async with lock.lock(
            PROCESSOR_LOCK_NAME, timeout=settings.processor_lock_timeout_seconds
        ):
            async with session_factory() as session:
                service = ChargeProcessorService(
                    session=session,
                    chain_adapter=chain_adapter,
                    policy=settings.retry_policy(),
                    claim_ttl=timedelta(seconds=settings.job_claim_ttl_seconds),
                    batch_limit=limit or settings.processor_batch_limit,
                    call_timeout=settings.chain_call_timeout_seconds,
                )
                return await service.process_due_jobs()
    except LockNotAcquiredError:
        logger.info("Charge processing already running elsewhere, skipping")
        return None
    finally:
        if redis_client:
            await redis_client.aclose()


async def preview_due_charges(
    limit: int | None = None,
    session_factory: SessionFactory = create_local_session,
) -> list[DueJob]:
    """
    List the jobs the next invocation would pick up.

    Nothing is claimed or executed; no lock is taken.
    """
    async with session_factory() as session:
        selector = DueJobSelector(
            RelayerJobRepository(session),
            claim_ttl=timedelta(seconds=settings.job_claim_ttl_seconds),
            limit=limit or settings.processor_batch_limit,
        )
        return list(await selector.select_due(utc_now()))
