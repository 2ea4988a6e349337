"""
================================================================================
Logging Setup
================================================================================

Centralized Loguru configuration for the retry harness.

Settings are read from the `logging` section of config/config.yaml:
    logging.level      Console/file log level (default INFO)
    logging.format     Loguru format string
    logging.file       Optional log file path
    logging.rotation   File rotation policy (default "10 MB")
    logging.retention  File retention policy (default "7 days")

Author: Automation Team
License: MIT
================================================================================
"""

from __future__ import annotations

import sys
from pathlib import Path
from typing import Optional

from loguru import logger

from retry_suites.api_testing.framework.config_loader import ConfigLoader


DEFAULT_LOG_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | "
    "<level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> | "
    "<level>{message}</level>"
)

_logger_initialized = False


def init_logger(
    level: Optional[str] = None,
    format_string: Optional[str] = None,
    log_file: Optional[str] = None,
    config: Optional[ConfigLoader] = None,
) -> None:
    """
    Initializes the loguru logger with standard settings.

    Safe to call more than once; only the first call configures sinks.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR). Defaults to config value.
        format_string: Log format string. Uses DEFAULT_LOG_FORMAT if not provided.
        log_file: Optional file path to write logs to.
        config: Configuration loader. Creates the shared one if None.

    Example:
        init_logger()  # Use config defaults
        init_logger(level="DEBUG", log_file="reports/logs/retry.log")
    """
    global _logger_initialized

    if _logger_initialized:
        return

    config = config or ConfigLoader()
    level = (level or config.get("logging.level", "INFO")).upper()
    format_string = format_string or config.get("logging.format", DEFAULT_LOG_FORMAT)

    logger.remove()
    logger.add(
        sys.stderr,
        format=format_string,
        level=level,
        colorize=True,
        backtrace=True,
        diagnose=False,
    )

    log_file = log_file or config.get("logging.file")
    if log_file:
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
        logger.add(
            log_file,
            format=format_string,
            level=level,
            rotation=config.get("logging.rotation", "10 MB"),
            retention=config.get("logging.retention", "7 days"),
        )

    _logger_initialized = True
    logger.debug(f"Logger initialized with level: {level}")


def reset_logger() -> None:
    """Allow init_logger() to reconfigure sinks again (used by tests)."""
    global _logger_initialized
    _logger_initialized = False
