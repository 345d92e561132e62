"""
Distributed lock.

Redis-backed lock that keeps overlapping processor invocations
(two scheduler triggers, two replicas) from running a batch at once.
"""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import redis.asyncio as redis
from loguru import logger
from redis.exceptions import LockError, RedisError

from relayer.config.constants import PROCESSOR_LOCK_BLOCKING_TIMEOUT


class LockNotAcquiredError(Exception):
    """Another holder owns the lock."""
    pass


class DistributedLock:
    """
    Named lock on top of redis-py's Lock.

    Without a Redis client the lock is a no-op: per-job claims in the
    database still keep a job from being executed twice.
    """

    def __init__(
        self,
        redis_client: redis.Redis | None = None,
        blocking_timeout: float = PROCESSOR_LOCK_BLOCKING_TIMEOUT,
    ) -> None:
        self.redis_client = redis_client
        self.blocking_timeout = blocking_timeout

    @asynccontextmanager
    async def lock(self, name: str, timeout: int) -> AsyncIterator[None]:
        """
        Hold lock ``name`` for the duration of the block.

        Args:
            name: Lock key
            timeout: Lock TTL in seconds (released automatically after it)

        Raises:
            LockNotAcquiredError: If the lock is held elsewhere
        """
        if self.redis_client is None:
            logger.warning(
                f"No Redis client - running '{name}' without distributed lock"
            )
            yield
            return

        redis_lock = self.redis_client.lock(
            f"lock:{name}",
            timeout=timeout,
            blocking_timeout=self.blocking_timeout,
        )

        acquired = await redis_lock.acquire()
        if not acquired:
            raise LockNotAcquiredError(f"Lock '{name}' is held by another process")

        logger.debug(f"Acquired distributed lock '{name}'")
        try:
            yield
        finally:
            try:
                await redis_lock.release()
                logger.debug(f"Released distributed lock '{name}'")
            except (LockError, RedisError) as e:
                # Lock expired before release; the holder overran its TTL
                logger.warning(f"Failed to release lock '{name}': {e}")
