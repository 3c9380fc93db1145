"""
Logging configuration.

Configures loguru sinks for the API process and job workers.
"""

import sys

from loguru import logger

from app.config.settings import settings


def setup_logging(component: str = "engine") -> None:
    """
    Configure logger with stderr output and file rotation.

    Args:
        component: Process name used for the log file
    """
    logger.remove()
    logger.add(sys.stderr, level=settings.log_level)
    logger.add(
        f"logs/{component}.log",
        rotation="1 day",
        retention="7 days",
        level=settings.log_level,
        encoding="utf-8",
    )

    logger.info(f"Starting liquidity rewards {component}...")
