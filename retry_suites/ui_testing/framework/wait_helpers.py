# ================================================================================
# Wait Helpers Module
# ================================================================================
#
# Bounded polling for eventually-consistent UI state.
#
# expect_with_retry() re-reads a value and re-applies an assertion until the
# assertion passes or the time budget is spent. When the budget runs out the
# last assertion error is re-raised unchanged, so the test report shows the
# real mismatch instead of a generic timeout.
#
# Usage:
#   def shows_john(name):
#       assert name == "John Doe"
#
#   await expect_with_retry(
#       lambda: page.locator("#user-name").text_content(),
#       shows_john,
#       timeout_ms=15000,
#       interval_ms=1000,
#   )
#
# ================================================================================

from __future__ import annotations

import asyncio
import inspect
import time
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, Optional, TypeVar, Union

from loguru import logger


T = TypeVar("T")

Producer = Callable[[], Union[T, Awaitable[T]]]
Assertion = Callable[[T], Union[None, Awaitable[None]]]


@dataclass(frozen=True)
class PollConfig:
    """
    Configuration for expect_with_retry.

    Attributes:
        timeout_ms: Total time budget in milliseconds
        interval_ms: Pause between polls in milliseconds
    """
    timeout_ms: int = 10000
    interval_ms: int = 500


# Pre-configured polling budgets for common UI waits
POLL_SCENARIOS: Dict[str, PollConfig] = {
    "default": PollConfig(),
    "fast": PollConfig(timeout_ms=3000, interval_ms=100),
    "element_visible": PollConfig(timeout_ms=10000, interval_ms=500),
    "user_profile": PollConfig(timeout_ms=15000, interval_ms=1000),
}


def get_poll_config(scenario: str) -> PollConfig:
    """Return the polling budget for a scenario, or the default one."""
    return POLL_SCENARIOS.get(scenario, POLL_SCENARIOS["default"])


async def _resolve(value: Any) -> Any:
    if inspect.isawaitable(value):
        return await value
    return value


async def expect_with_retry(
    producer: Producer,
    assertion: Assertion,
    timeout_ms: Optional[int] = None,
    interval_ms: Optional[int] = None,
    scenario: str = "default",
    clock: Callable[[], float] = time.monotonic,
) -> Any:
    """
    Poll producer() and apply assertion() until it passes or time runs out.

    Both callables may be sync or async. At least one poll is always made,
    even with a zero timeout.

    Args:
        producer: Returns the value to check
        assertion: Raises (usually AssertionError) when the value is not yet right
        timeout_ms: Total budget. Defaults to the scenario's budget
        interval_ms: Pause between polls. Defaults to the scenario's interval
        scenario: Name in POLL_SCENARIOS used for unspecified budgets
        clock: Monotonic clock in seconds

    Returns:
        The produced value that passed the assertion

    Raises:
        Exception: The last error raised by producer() or assertion(),
            unchanged, once the budget is exhausted
    """
    config = get_poll_config(scenario)
    timeout = (config.timeout_ms if timeout_ms is None else timeout_ms) / 1000.0
    interval = (config.interval_ms if interval_ms is None else interval_ms) / 1000.0

    start_time = clock()
    poll = 0

    while True:
        poll += 1
        try:
            value = await _resolve(producer())
            await _resolve(assertion(value))
        except Exception as e:
            elapsed = clock() - start_time
            if elapsed + interval >= timeout:
                logger.debug(
                    f"expect_with_retry gave up after {poll} polls "
                    f"({elapsed:.2f}s): {type(e).__name__}: {e}"
                )
                raise
            logger.debug(f"Poll {poll} not satisfied yet: {e}")
            await asyncio.sleep(interval)
            continue

        if poll > 1:
            logger.debug(f"expect_with_retry satisfied after {poll} polls")
        return value


__all__ = [
    "POLL_SCENARIOS",
    "PollConfig",
    "expect_with_retry",
    "get_poll_config",
]
