#!/usr/bin/env python3
"""Initialize database tables."""

import asyncio
import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from loguru import logger
from sqlalchemy.ext.asyncio import create_async_engine

from relayer.config.settings import settings
from relayer.models import Base
from relayer.utils.logging import setup_logging
from relayer.utils.security import mask_database_url


async def init_database() -> None:
    """Create the relayer tables that do not exist yet."""
    logger.info(f"Connecting to {mask_database_url(settings.async_database_url)}...")
    engine = create_async_engine(settings.async_database_url, echo=False)

    try:
        async with engine.begin() as conn:
            logger.info("Creating tables (checkfirst=True)...")
            await conn.run_sync(Base.metadata.create_all, checkfirst=True)
    finally:
        await engine.dispose()

    logger.success(
        f"Database tables ready: {', '.join(sorted(Base.metadata.tables))}"
    )


if __name__ == "__main__":
    setup_logging(level=settings.log_level, log_file=None)
    asyncio.run(init_database())
