"""
Due-Job Selector.

Finds the jobs eligible for processing in this invocation.
"""

from collections.abc import Iterator
from datetime import datetime, timedelta

from loguru import logger
from sqlalchemy.exc import SQLAlchemyError

from relayer.repositories.relayer_job_repository import RelayerJobRepository
from relayer.utils.exceptions import FatalProcessError

from .types import DueJob


class DueJobSelector:
    """Selects PENDING jobs with next_retry_at <= now."""

    def __init__(
        self,
        job_repo: RelayerJobRepository,
        claim_ttl: timedelta,
        limit: int,
    ) -> None:
        self.job_repo = job_repo
        self.claim_ttl = claim_ttl
        self.limit = limit

    async def select_due(self, now: datetime) -> Iterator[DueJob]:
        """
        Load due jobs with their subscription, plan, tokens and payer.

        Args:
            now: Current time

        Returns:
            One-shot iterator of job snapshots (may be empty), fully
            built here and holding no ORM state

        Raises:
            FatalProcessError: If the store cannot be queried
        """
        try:
            jobs = await self.job_repo.get_due_jobs(
                now=now, claim_ttl=self.claim_ttl, limit=self.limit
            )
        except (SQLAlchemyError, OSError) as e:
            raise FatalProcessError(f"Cannot select due jobs: {e}") from e

        if jobs:
            logger.info(f"Found {len(jobs)} due charge jobs")

        snapshots = [DueJob.from_model(job) for job in jobs]
        return iter(snapshots)
