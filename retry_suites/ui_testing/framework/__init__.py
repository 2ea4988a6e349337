"""
================================================================================
UI Testing Framework
================================================================================

Playwright-based retry harness reproducing NUnit [Retry(n)] semantics.

Components:
    - browser_manager: Per-attempt browser/context/page lifecycle
    - retry_policy: RetryPolicy, AttemptResult, RunOutcome and retry errors
    - retry_runner: RetryRunner state machine and with_retry wrapper
    - wait_helpers: expect_with_retry bounded polling
    - pytest_retry: pytest fixtures and the retry_test builder

Author: Automation Team
License: MIT
================================================================================
"""

from .browser_manager import BrowserManager, ResourceProvider, ResourceSet, ResourceTeardownError
from .retry_policy import (
    AttemptResult,
    FailureKind,
    OutcomeStatus,
    RetryAbortedError,
    RetryError,
    RetryExhaustedError,
    RetryPolicy,
    RunOutcome,
)
from .retry_runner import RetryRunner, classify_exception, with_retry
from .wait_helpers import expect_with_retry

__all__ = [
    "AttemptResult",
    "BrowserManager",
    "FailureKind",
    "OutcomeStatus",
    "ResourceProvider",
    "ResourceSet",
    "ResourceTeardownError",
    "RetryAbortedError",
    "RetryError",
    "RetryExhaustedError",
    "RetryPolicy",
    "RetryRunner",
    "RunOutcome",
    "classify_exception",
    "expect_with_retry",
    "with_retry",
]
