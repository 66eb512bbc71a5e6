"""
Logging utilities for FarmLog

Console logging is set up on import. Processes that know their settings
(the CLI) call ``setup_logging`` again to apply the configured level and log
directory.
"""

import os
import sys
from pathlib import Path
from loguru import logger
from typing import Optional, Union

CONSOLE_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - <level>{message}</level>"
)
FILE_FORMAT = "{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {name}:{function}:{line} - {message}"


def setup_logging(
    log_level: Optional[str] = None,
    log_dir: Optional[Union[str, Path]] = None,
    log_file: str = "farmlog.log"
):
    """
    Set up logging configuration for the application

    Args:
        log_level: Logging level (default: $LOG_LEVEL, then INFO)
        log_dir: Directory for a rotating log file (default: $LOG_DIR; console only when unset)
        log_file: Name of the log file
    """
    # Remove previously added sinks, including loguru's default
    logger.remove()

    level = (log_level or os.getenv("LOG_LEVEL") or "INFO").upper()

    logger.add(sys.stderr, format=CONSOLE_FORMAT, level=level, colorize=True)

    log_dir = log_dir or os.getenv("LOG_DIR")
    if not log_dir:
        return logger

    Path(log_dir).mkdir(parents=True, exist_ok=True)
    log_path = Path(log_dir) / log_file

    logger.add(
        log_path,
        format=FILE_FORMAT,
        level=level,
        rotation="10 MB",
        retention="30 days",
        compression="zip"
    )

    logger.info(f"Logging initialized - Level: {level}, Log file: {log_path}")

    return logger


def get_logger(name: Optional[str] = None):
    """
    Get a logger instance

    Args:
        name: Optional logger name (for context)

    Returns:
        Loguru logger instance
    """
    if name:
        return logger.bind(name=name)
    return logger


# Initialize logging on import
setup_logging()
