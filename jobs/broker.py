"""
Dramatiq broker configuration.

Redis-based message broker for the charge processing actor.
"""

import dramatiq
from dramatiq.brokers.redis import RedisBroker
from dramatiq.middleware import CurrentMessage
from loguru import logger

from relayer.config.settings import settings
from relayer.utils.logging import setup_logging
from relayer.utils.redis_utils import get_redis_url_masked

# Workers log to stderr and a rotating file; tests keep stderr only
setup_logging(
    level=settings.log_level,
    log_file=None if settings.environment == "test" else "logs/relayer.log",
)

redis_broker = RedisBroker(
    host=settings.redis_host,
    port=settings.redis_port,
    password=settings.redis_password if settings.redis_password else None,
    db=settings.redis_db,
)

# CurrentMessage: lets actors log the message they are handling.
# Queue-level retries stay off per actor; charge retries live in relayer_jobs.
redis_broker.add_middleware(CurrentMessage())

dramatiq.set_broker(redis_broker)

broker = redis_broker

logger.info(f"Dramatiq broker initialized: {get_redis_url_masked()}")
