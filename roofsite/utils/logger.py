"""
Logging utility with loguru.
Provides structured logging with file rotation.
"""

import sys

from loguru import logger

from roofsite.config.settings import settings, PROJECT_ROOT


def setup_logger():
    """
    Configure loguru logger with console and (optionally) file outputs.
    """
    # Remove default handler
    logger.remove()

    # Console handler with colors
    logger.add(
        sys.stdout,
        colorize=True,
        format="<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | <cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - <level>{message}</level>",
        level=settings.log_level,
    )

    if settings.log_to_file:
        # File handler with rotation
        log_dir = PROJECT_ROOT / "data" / "logs"
        log_dir.mkdir(parents=True, exist_ok=True)

        logger.add(
            log_dir / "roofsite.log",
            rotation="10 MB",
            retention="1 week",
            compression="zip",
            format="{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {name}:{function}:{line} - {message}",
            level="DEBUG",
        )

    logger.info("Logger initialized")
    return logger
