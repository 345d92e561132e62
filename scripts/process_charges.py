#!/usr/bin/env python3
"""
Run one charge processing invocation.

Usage:
    python scripts/process_charges.py [--dry-run] [--limit N]

Exit code is 0 when the invocation completes (individual job failures
included) and 1 when due jobs could not be read at all.
"""

import argparse
import asyncio
import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from loguru import logger

from jobs.tasks.charge_processing import preview_due_charges, run_charge_cycle
from relayer.config.settings import settings
from relayer.utils.exceptions import FatalProcessError
from relayer.utils.logging import setup_logging
from relayer.utils.security import mask_address


def positive_int(value: str) -> int:
    """argparse type for --limit."""
    number = int(value)
    if number < 1:
        raise argparse.ArgumentTypeError("must be a positive integer")
    return number


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Process due subscription charges")
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="List due jobs without executing them",
    )
    parser.add_argument(
        "--limit",
        type=positive_int,
        default=None,
        help=f"Max jobs per invocation (default {settings.processor_batch_limit})",
    )
    return parser


async def dry_run(limit: int | None) -> None:
    due_jobs = await preview_due_charges(limit=limit)
    if not due_jobs:
        logger.info("No due charge jobs found")
        return

    for job in due_jobs:
        token = job.plan.token_for(job.subscription.token_mint)
        price = f"{token.price} {token.symbol}" if token else "no matching plan token"
        logger.info(
            f"Job {job.id}: subscription {job.subscription.id}, "
            f"attempt {job.attempt}, payer {mask_address(job.payer.wallet_address)}, "
            f"{price}"
        )
    logger.info(f"{len(due_jobs)} due charge jobs (dry run, nothing executed)")


async def run(limit: int | None) -> None:
    summary = await run_charge_cycle(limit=limit)
    if summary is not None:
        logger.info(f"Charge processing complete: {summary}")


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging(level=settings.log_level)

    try:
        if args.dry_run:
            asyncio.run(dry_run(args.limit))
        else:
            asyncio.run(run(args.limit))
    except FatalProcessError as e:
        logger.error(f"Charge processing aborted: {e}")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
