"""Logging setup for applications using the engine."""

import sys
from pathlib import Path
from typing import Optional, Union

from loguru import logger


def setup_logging(level: str = "INFO", log_file: Optional[Union[str, Path]] = None) -> None:
    """Setup logging configuration.

    The engine's log output is disabled on import. This enables it, replaces
    the default handler with a colored console handler and optionally adds a
    rotating file handler.

    Args:
        level: Console log level
        log_file: Path of a log file receiving DEBUG output
    """
    logger.enable("state_machines")

    # Remove default handler
    logger.remove()

    # Add console handler with color
    log_format = (
        "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | "
        "<level>{level: <8}</level> | "
        "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - "
        "<level>{message}</level>"
    )
    logger.add(sys.stderr, format=log_format, level=level)

    if log_file is None:
        return

    log_path = Path(log_file)
    log_path.parent.mkdir(parents=True, exist_ok=True)

    # Add file handler with rotation
    file_format = (
        "{time:YYYY-MM-DD HH:mm:ss} | "
        "{level: <8} | "
        "{name}:{function}:{line} - "
        "{message}"
    )
    logger.add(
        log_path,
        rotation="1 day",
        retention="30 days",
        format=file_format,
        level="DEBUG",
        compression="zip"
    )
