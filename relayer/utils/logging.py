"""
Logging setup.

Configures loguru sinks for workers and CLI runs.
"""

import sys

from loguru import logger


def setup_logging(level: str = "INFO", log_file: str | None = "logs/relayer.log") -> None:
    """
    Configure logger with stderr output and file rotation.

    Args:
        level: Minimum level for both sinks
        log_file: Rotating log file path, None to disable
    """
    logger.remove()
    logger.add(sys.stderr, level=level)

    if log_file:
        logger.add(
            log_file,
            rotation="1 day",
            retention="7 days",
            level=level,
            encoding="utf-8",
        )
