"""
================================================================================
Retry Runner
================================================================================

Runs a test action up to N times with browser reinitialisation between
attempts, mirroring NUnit's [Retry(n)] attribute.

Per attempt:
    1. Attempt 1, or recycling enabled: release the previous ResourceSet and
       acquire a fresh browser/context/page
    2. Attempt > 1 with fixture reset enabled: reset mock server data
       (failures are logged, never fatal)
    3. Clear client-side storage of the resource set
    4. Run the action and classify the result
    5. Success ends the run; an assertion failure is retried after the
       configured delay; any other exception ends the run immediately

The ResourceSet is released on every exit path, including cancellation.

Usage:
    async with BrowserManager() as manager, MockApiClient() as api:
        runner = RetryRunner(manager, fixture_resetter=api.reset_data)
        outcome = await runner.run(check_login, RetryPolicy(attempts=3))
        outcome.unwrap()

Author: Automation Team
License: MIT
================================================================================
"""

from __future__ import annotations

import asyncio
import inspect
import time
from typing import Any, Awaitable, Callable, Optional, TypeVar, Union

import allure
import pytest
from allure_commons.types import AttachmentType
from loguru import logger

from .browser_manager import ResourceProvider, ResourceSet, ResourceTeardownError
from .retry_policy import (
    AttemptResult,
    FailureKind,
    RetryPolicy,
    RunOutcome,
)


T = TypeVar("T")

Action = Callable[[ResourceSet], Union[T, AttemptResult[T], Awaitable[Any]]]
Classifier = Callable[[BaseException], FailureKind]
FixtureResetter = Callable[[], Awaitable[Any]]
SleepFn = Callable[[float], Awaitable[Any]]


def classify_exception(error: BaseException) -> FailureKind:
    """
    Default failure classifier.

    AssertionError covers plain `assert`, pytest's rewritten assertions and
    Playwright's `expect(...)` failures. `pytest.fail()` counts as an
    assertion failure too. Everything else is unexpected.
    """
    if isinstance(error, (AssertionError, pytest.fail.Exception)):
        return FailureKind.ASSERTION_FAILURE
    return FailureKind.UNEXPECTED_EXCEPTION


class RetryRunner:
    """
    Executes an action with NUnit-style retry semantics.

    A runner holds no per-run state; concurrent run() calls are independent as
    long as the provider hands out a fresh ResourceSet on every acquire().
    """

    def __init__(
        self,
        provider: ResourceProvider,
        fixture_resetter: Optional[FixtureResetter] = None,
        classifier: Optional[Classifier] = None,
        policy: Optional[RetryPolicy] = None,
        sleep: SleepFn = asyncio.sleep,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """
        Initialize the runner.

        Args:
            provider: Source of browser/context/page resource sets
            fixture_resetter: Async callable resetting server-side fixture data
            classifier: Maps an exception to a FailureKind. Defaults to
                classify_exception
            policy: Default policy for run() calls that do not pass one
            sleep: Awaitable sleep used for the inter-attempt delay
            clock: Monotonic clock in seconds, used for the run deadline
        """
        self._provider = provider
        self._fixture_resetter = fixture_resetter
        self._classify = classifier or classify_exception
        self.policy = policy or RetryPolicy()
        self._sleep = sleep
        self._clock = clock

    async def run(
        self,
        action: Action,
        policy: Optional[RetryPolicy] = None,
    ) -> RunOutcome[Any]:
        """
        Run the action until it passes, fails unretryably, or attempts run out.

        Args:
            action: Callable receiving the current ResourceSet. May be sync or
                async, may return a value or an explicit AttemptResult.
            policy: Overrides the runner's default policy for this run

        Returns:
            RunOutcome with status SUCCESS, EXHAUSTED or ABORTED
        """
        policy = policy or self.policy
        effective = policy.effective_attempts
        name = getattr(action, "__name__", type(action).__name__)

        if not policy.retries_enabled:
            logger.warning(
                f"Retry attempts set to {policy.attempts}, but at least 2 are needed "
                f"for a retry; running '{name}' once"
            )

        started = self._clock()
        resources: Optional[ResourceSet] = None
        attempt = 0

        try:
            while True:
                attempt += 1
                logger.info(f"Attempt {attempt}/{effective}: {name}")

                with allure.step(f"Attempt {attempt}/{effective}"):
                    try:
                        if attempt == 1 or policy.recycle_resources_between_attempts:
                            if resources is not None:
                                previous, resources = resources, None
                                await self._release(previous)
                            resources = await self._provider.acquire()

                        if attempt > 1 and policy.reset_fixtures_between_attempts:
                            await self._reset_fixtures(attempt)

                        await self._provider.clear_storage(resources)
                    except Exception as e:
                        logger.error(
                            f"Attempt {attempt}/{effective}: could not prepare browser "
                            f"resources: {type(e).__name__}: {e}"
                        )
                        return RunOutcome.aborted(e, attempt)

                    result = await self._invoke(action, resources)

                    if not result.ok:
                        allure.attach(
                            f"{result.kind.value}: {type(result.error).__name__}: {result.error}",
                            name=f"Attempt {attempt} failure",
                            attachment_type=AttachmentType.TEXT,
                        )

                if result.ok:
                    logger.info(f"Passed on attempt {attempt}/{effective}: {name}")
                    return RunOutcome.success(result.value, attempt)

                logger.warning(
                    f"Attempt {attempt}/{effective} failed ({result.kind.value}): "
                    f"{type(result.error).__name__}: {result.error}"
                )

                if not policy.retries_enabled:
                    return RunOutcome.exhausted(result.error, attempt, result.kind)

                if not result.kind.retryable:
                    logger.error(
                        f"Unexpected exception is not retryable, stopping after "
                        f"attempt {attempt}/{effective}"
                    )
                    return RunOutcome.aborted(result.error, attempt, result.kind)

                if attempt >= effective:
                    logger.error(f"All {effective} attempts failed: {name}")
                    return RunOutcome.exhausted(result.error, attempt, result.kind)

                if self._deadline_reached(policy, started):
                    logger.error(
                        f"Run deadline of {policy.deadline_ms}ms reached after "
                        f"attempt {attempt}/{effective}: {name}"
                    )
                    return RunOutcome.exhausted(result.error, attempt, result.kind)

                if policy.retry_delay_ms:
                    logger.info(f"Waiting {policy.retry_delay_ms}ms before retry...")
                    await self._sleep(policy.retry_delay)
        finally:
            if resources is not None:
                await self._release(resources)

    async def _invoke(self, action: Action, resources: ResourceSet) -> AttemptResult[Any]:
        try:
            result = action(resources)
            if inspect.isawaitable(result):
                result = await result
        except (Exception, pytest.fail.Exception) as error:
            return AttemptResult.failure(self._classify(error), error)

        if isinstance(result, AttemptResult):
            return result
        return AttemptResult.success(result)

    async def _release(self, resources: ResourceSet) -> None:
        try:
            await self._provider.release(resources)
        except ResourceTeardownError as e:
            logger.warning(f"Ignoring teardown error: {e}")
        except Exception as e:
            logger.warning(f"Ignoring teardown error for {resources.label or 'resource set'}: {e}")

    async def _reset_fixtures(self, attempt: int) -> None:
        if self._fixture_resetter is None:
            return
        try:
            await self._fixture_resetter()
            logger.debug(f"Fixtures reset before attempt {attempt}")
        except Exception as e:
            logger.warning(f"Fixture reset before attempt {attempt} failed, continuing: {e}")

    def _deadline_reached(self, policy: RetryPolicy, started: float) -> bool:
        """True if waiting retry_delay would leave no budget for another attempt."""
        if policy.deadline is None:
            return False
        return self._clock() - started + policy.retry_delay >= policy.deadline


def with_retry(
    action: Action,
    policy: Optional[RetryPolicy] = None,
    *,
    provider: ResourceProvider,
    fixture_resetter: Optional[FixtureResetter] = None,
    classifier: Optional[Classifier] = None,
) -> Callable[[], Awaitable[Any]]:
    """
    Wrap an action into a zero-argument coroutine function that runs it with retries.

    The returned callable yields the action's value, or raises
    RetryExhaustedError / RetryAbortedError chained from the last failure.

    Example:
        async def open_dashboard(resources):
            await resources.page.goto(DASHBOARD_URL)
            await expect(resources.page.locator("h1")).to_have_text("Dashboard")

        await with_retry(open_dashboard, RetryPolicy(attempts=3), provider=manager)()
    """
    runner = RetryRunner(
        provider,
        fixture_resetter=fixture_resetter,
        classifier=classifier,
        policy=policy,
    )

    async def run_with_retry() -> Any:
        outcome = await runner.run(action)
        return outcome.unwrap()

    run_with_retry.__name__ = f"{getattr(action, '__name__', 'action')}_with_retry"
    run_with_retry.__doc__ = getattr(action, "__doc__", None)
    return run_with_retry


__all__ = [
    "Action",
    "Classifier",
    "FixtureResetter",
    "RetryRunner",
    "classify_exception",
    "with_retry",
]
