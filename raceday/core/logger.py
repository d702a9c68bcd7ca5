"""Logging setup for the nutrition planner.

Planner modules log through the shared loguru logger with keyword context
(sport, event counts, carb totals); the sinks configured here append that
context to every line. Nothing is configured at import time: entry points
call setup_from_settings (or setup_logger directly in tests).
"""

import sys
from pathlib import Path

from loguru import logger

from raceday.config.settings import settings


def setup_logger(
    level: str = "INFO",
    log_file: str | None = None,
    rotation: str = "10 MB",
    retention: str = "7 days",
) -> None:
    """Replace all loguru sinks with a stderr sink and an optional rotating file.

    A call such as ``logger.info("Scheduled nutrition events", event_count=12)``
    renders as the message followed by its context dict, so scheduler and
    validator decisions can be traced per request.

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_file: Optional path to log file. If None, only console logging.
        rotation: Log rotation size (e.g., "10 MB", "1 day")
        retention: Log retention period (e.g., "7 days", "1 month")
    """
    logger.remove()

    logger.add(
        sys.stderr,
        format="<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | <cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - <level>{message}</level> {extra}",
        level=level,
        colorize=True,
    )

    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)

        logger.add(
            log_path,
            format="{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {name}:{function}:{line} - {message} {extra}",
            level=level,
            rotation=rotation,
            retention=retention,
            compression="zip",
            backtrace=True,
            diagnose=True,
        )

    logger.info(f"Logger initialized with level={level}")


def setup_from_settings() -> None:
    """Configure logging from RACEDAY_LOG_LEVEL and RACEDAY_LOG_FILE.

    An empty RACEDAY_LOG_FILE keeps logging on the console only.
    """
    setup_logger(level=settings.log_level, log_file=settings.log_file or None)
