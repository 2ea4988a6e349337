"""
================================================================================
Retry Suites Common Utilities
================================================================================

Shared logging setup for the retry harness and its test suites.

Usage:
    from retry_suites.common import init_logger

    init_logger()

================================================================================
"""

from .logging_setup import DEFAULT_LOG_FORMAT, init_logger, reset_logger

__all__ = [
    "DEFAULT_LOG_FORMAT",
    "init_logger",
    "reset_logger",
]
