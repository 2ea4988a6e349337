"""
================================================================================
Retry Policy and Outcomes
================================================================================

Value objects shared by the retry runner and its callers.

Contents:
    - RetryPolicy: immutable knobs for a retry run (NUnit [Retry(n)] semantics)
    - FailureKind / AttemptResult: tagged result of a single attempt
    - OutcomeStatus / RunOutcome: terminal result of a whole run
    - RetryError family: what RunOutcome.unwrap() raises

NUnit semantics reproduced here:
    attempts counts the total number of runs, including the first one.
    Retry(0) and Retry(1) do nothing: the test runs exactly once.

Author: Automation Team
License: MIT
================================================================================
"""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass
from enum import Enum
from typing import Any, Generic, Optional, TypeVar

from retry_suites.api_testing.framework.config_loader import ConfigLoader


T = TypeVar("T")

# Defaults match NUnit's documented example of 1 initial attempt + 2 retries
DEFAULT_ATTEMPTS = 3
DEFAULT_RETRY_DELAY_MS = 1000


class FailureKind(str, Enum):
    """Classification of a failed attempt."""

    # A test expectation failed; flaky UI/timing may resolve on retry
    ASSERTION_FAILURE = "assertion_failure"
    # Programming error, network abort, etc.; never retried
    UNEXPECTED_EXCEPTION = "unexpected_exception"

    @property
    def retryable(self) -> bool:
        return self is FailureKind.ASSERTION_FAILURE


class OutcomeStatus(str, Enum):
    """Terminal status of a retry run."""

    SUCCESS = "success"
    EXHAUSTED = "exhausted"
    ABORTED = "aborted"


class RetryError(Exception):
    """Base class for terminal retry run failures."""

    def __init__(self, message: str, outcome: "RunOutcome[Any]") -> None:
        super().__init__(message)
        self.outcome = outcome

    @property
    def attempts_used(self) -> int:
        return self.outcome.attempts_used

    @property
    def last_error(self) -> Optional[BaseException]:
        return self.outcome.error


class RetryExhaustedError(RetryError, AssertionError):
    """
    All permitted attempts failed (or the single no-retry attempt failed).

    Subclasses AssertionError so pytest reports it as a test failure.
    """


class RetryAbortedError(RetryError):
    """Retrying was skipped because the failure was not retryable."""


@dataclass(frozen=True)
class RetryPolicy:
    """
    Immutable configuration of a retry run.

    Attributes:
        attempts: Total attempts including the first. 0 and 1 mean "no retry".
        retry_delay_ms: Pause between a failed attempt and the next one
        reset_fixtures_between_attempts: Call the fixture resetter before
            every attempt after the first
        recycle_resources_between_attempts: Tear down and re-acquire the
            browser/context/page before every attempt after the first
        deadline_ms: Optional budget for the whole run; no new attempt is
            started once it is spent
    """

    attempts: int = DEFAULT_ATTEMPTS
    retry_delay_ms: int = DEFAULT_RETRY_DELAY_MS
    reset_fixtures_between_attempts: bool = True
    recycle_resources_between_attempts: bool = True
    deadline_ms: Optional[int] = None

    def __post_init__(self) -> None:
        if isinstance(self.attempts, bool) or not isinstance(self.attempts, int):
            raise TypeError(f"attempts must be an int, got {self.attempts!r}")
        if self.attempts < 0:
            raise ValueError(f"attempts must be >= 0, got {self.attempts}")
        if self.retry_delay_ms < 0:
            raise ValueError(f"retry_delay_ms must be >= 0, got {self.retry_delay_ms}")
        if self.deadline_ms is not None and self.deadline_ms < 0:
            raise ValueError(f"deadline_ms must be >= 0, got {self.deadline_ms}")

    @property
    def effective_attempts(self) -> int:
        """Attempts actually permitted; Retry(0) and Retry(1) run once."""
        return self.attempts if self.attempts >= 2 else 1

    @property
    def retries_enabled(self) -> bool:
        return self.effective_attempts > 1

    @property
    def retry_delay(self) -> float:
        """Delay between attempts in seconds."""
        return self.retry_delay_ms / 1000.0

    @property
    def deadline(self) -> Optional[float]:
        """Overall run budget in seconds, or None."""
        return None if self.deadline_ms is None else self.deadline_ms / 1000.0

    def replace(self, **changes: Any) -> "RetryPolicy":
        """Return a copy with some fields changed."""
        return dataclasses.replace(self, **changes)

    @classmethod
    def from_config(cls, config: Optional[ConfigLoader] = None) -> "RetryPolicy":
        """
        Build a policy from the `retry` configuration section.

        Missing keys fall back to the dataclass defaults; environment
        variables such as RETRY_ATTEMPTS take precedence over YAML.
        """
        config = config or ConfigLoader()
        deadline_ms = config.get("retry.deadline_ms", None)
        return cls(
            attempts=int(config.get("retry.attempts", DEFAULT_ATTEMPTS)),
            retry_delay_ms=int(config.get("retry.retry_delay_ms", DEFAULT_RETRY_DELAY_MS)),
            reset_fixtures_between_attempts=bool(
                config.get("retry.reset_fixtures_between_attempts", True)
            ),
            recycle_resources_between_attempts=bool(
                config.get("retry.recycle_resources_between_attempts", True)
            ),
            deadline_ms=None if deadline_ms in (None, "") else int(deadline_ms),
        )


@dataclass(frozen=True)
class AttemptResult(Generic[T]):
    """
    Outcome of one attempt: success(value) or failure(kind, error).

    Actions may return an AttemptResult themselves to classify their own
    failure instead of relying on the runner's exception classifier.
    """

    value: Optional[T] = None
    kind: Optional[FailureKind] = None
    error: Optional[BaseException] = None

    @classmethod
    def success(cls, value: Optional[T] = None) -> "AttemptResult[T]":
        return cls(value=value)

    @classmethod
    def failure(cls, kind: FailureKind, error: BaseException) -> "AttemptResult[T]":
        return cls(kind=FailureKind(kind), error=error)

    @classmethod
    def assertion_failure(cls, error: BaseException) -> "AttemptResult[T]":
        return cls.failure(FailureKind.ASSERTION_FAILURE, error)

    @classmethod
    def unexpected(cls, error: BaseException) -> "AttemptResult[T]":
        return cls.failure(FailureKind.UNEXPECTED_EXCEPTION, error)

    @property
    def ok(self) -> bool:
        return self.kind is None


@dataclass(frozen=True)
class RunOutcome(Generic[T]):
    """
    Terminal result of a retry run.

    Attributes:
        status: SUCCESS, EXHAUSTED or ABORTED
        attempts_used: Number of attempts that were started (>= 1)
        value: Action result when status is SUCCESS
        error: Last attempt's error otherwise
        kind: Classification of that error
    """

    status: OutcomeStatus
    attempts_used: int
    value: Optional[T] = None
    error: Optional[BaseException] = None
    kind: Optional[FailureKind] = None

    @classmethod
    def success(cls, value: Optional[T], attempts_used: int) -> "RunOutcome[T]":
        return cls(OutcomeStatus.SUCCESS, attempts_used, value=value)

    @classmethod
    def exhausted(
        cls,
        error: BaseException,
        attempts_used: int,
        kind: Optional[FailureKind] = None,
    ) -> "RunOutcome[T]":
        return cls(OutcomeStatus.EXHAUSTED, attempts_used, error=error, kind=kind)

    @classmethod
    def aborted(
        cls,
        error: BaseException,
        attempts_used: int,
        kind: Optional[FailureKind] = FailureKind.UNEXPECTED_EXCEPTION,
    ) -> "RunOutcome[T]":
        return cls(OutcomeStatus.ABORTED, attempts_used, error=error, kind=kind)

    @property
    def ok(self) -> bool:
        return self.status is OutcomeStatus.SUCCESS

    def unwrap(self) -> Optional[T]:
        """
        Return the success value or raise the single terminal error.

        Raises:
            RetryExhaustedError: attempts ran out (chained from the last error)
            RetryAbortedError: a non-retryable failure stopped the run
        """
        if self.status is OutcomeStatus.SUCCESS:
            return self.value

        attempt_word = "attempt" if self.attempts_used == 1 else "attempts"
        if self.status is OutcomeStatus.EXHAUSTED:
            raise RetryExhaustedError(
                f"Failed after {self.attempts_used} {attempt_word}: {self.error}",
                self,
            ) from self.error
        raise RetryAbortedError(
            f"Aborted after {self.attempts_used} {attempt_word} "
            f"({type(self.error).__name__} is not retryable): {self.error}",
            self,
        ) from self.error


__all__ = [
    "AttemptResult",
    "DEFAULT_ATTEMPTS",
    "DEFAULT_RETRY_DELAY_MS",
    "FailureKind",
    "OutcomeStatus",
    "RetryAbortedError",
    "RetryError",
    "RetryExhaustedError",
    "RetryPolicy",
    "RunOutcome",
]
