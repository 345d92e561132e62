"""
Charge Processor - Processor Module.

Runs one invocation: select due jobs, then process them one by one.
A failing job never stops the rest of the batch.
"""

from datetime import datetime

from loguru import logger

from relayer.utils.exceptions import JOB_FATAL_ERRORS

from .job_handler import ChargeJobHandler
from .selector import DueJobSelector
from .stats import BatchSummary


class ChargeProcessor:
    """Sequential batch loop over due jobs."""

    def __init__(self, selector: DueJobSelector, handler: ChargeJobHandler) -> None:
        self.selector = selector
        self.handler = handler

    async def run(self, now: datetime) -> BatchSummary:
        """
        Process all jobs due at ``now``.

        Args:
            now: Selection time

        Returns:
            BatchSummary for this invocation

        Raises:
            FatalProcessError: If due jobs cannot be selected; no job has
                been touched in that case
        """
        summary = BatchSummary()

        jobs = await self.selector.select_due(now)

        for job in jobs:
            try:
                outcome = await self.handler.process(job)
            except JOB_FATAL_ERRORS as e:
                logger.error(f"Job {job.id} aborted, store write failed: {e}")
                summary.record_error()
                continue
            except Exception as e:
                logger.exception(f"Unexpected error processing job {job.id}: {e}")
                summary.record_error()
                continue

            summary.record(outcome)

        if summary.processed or summary.skipped:
            logger.info(f"Processor completed - {summary}")
        else:
            logger.info("No due charge jobs found")

        return summary
