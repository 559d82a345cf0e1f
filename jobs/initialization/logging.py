"""
Indexer Initialization - Logging Module.

Configures loguru logger with file rotation and retention.
"""

import sys

from loguru import logger

from app.config.settings import settings


def setup_logging() -> None:
    """Configure console and rotating file sinks."""
    logger.remove()
    logger.add(sys.stderr, level=settings.log_level)
    logger.add(
        settings.log_file,
        rotation="1 day",
        retention="7 days",
        level=settings.log_level,
        encoding="utf-8",
    )

    logger.info(f"Starting shardscan indexer ({settings.environment})...")
