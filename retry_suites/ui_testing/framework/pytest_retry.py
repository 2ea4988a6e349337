"""
================================================================================
Pytest Retry Integration
================================================================================

Pytest plugin exposing the retry harness to test modules.

Fixtures:
    - retry_resource_provider: BrowserManager owned by the requesting test
    - mock_api_client: MockApiClient bound to mock_api.base_url
    - fixture_resetter: `mock_api_client.reset_data`

Test builder:
    - retry_test(action, policy): returns an async pytest test that runs the
      action through a RetryRunner. Bind it to a module-level `test_*` name:

        async def _login_shows_profile(resources):
            ...

        test_login_shows_profile = retry_test(
            _login_shows_profile, RetryPolicy(attempts=3, retry_delay_ms=2000)
        )

Registered through `pytest_plugins` in the repository conftest.

Author: Automation Team
License: MIT
================================================================================
"""

from __future__ import annotations

from typing import Any, AsyncGenerator, Callable, Optional

import pytest

from retry_suites.api_testing.framework.mock_api_client import MockApiClient

from .browser_manager import BrowserManager
from .retry_policy import RetryPolicy
from .retry_runner import Action, Classifier, FixtureResetter, RetryRunner


@pytest.fixture
async def retry_resource_provider() -> AsyncGenerator[BrowserManager, None]:
    """
    Function-scoped browser manager.

    Each test gets its own Playwright driver; every retry attempt launches its
    own browser through it.
    """
    async with BrowserManager() as manager:
        yield manager


@pytest.fixture
async def mock_api_client() -> AsyncGenerator[MockApiClient, None]:
    """Mock fixture server client, closed after the test."""
    async with MockApiClient() as client:
        yield client


@pytest.fixture
def fixture_resetter(mock_api_client: MockApiClient) -> FixtureResetter:
    """Fixture reset callable handed to the retry runner."""
    return mock_api_client.reset_data


def retry_test(
    action: Action,
    policy: Optional[RetryPolicy] = None,
    *,
    classifier: Optional[Classifier] = None,
) -> Callable[..., Any]:
    """
    Build a pytest test function that runs `action` with retries.

    Args:
        action: Receives the attempt's ResourceSet; sync or async
        policy: Retry policy. Defaults to RetryPolicy.from_config() at run time
        classifier: Optional failure classifier for the runner

    Returns:
        Async test function requesting `retry_resource_provider` and
        `fixture_resetter`. Must be bound at module level, not inside a class.
    """

    async def test_with_retry(
        retry_resource_provider: BrowserManager,
        fixture_resetter: Optional[FixtureResetter],
    ) -> None:
        runner = RetryRunner(
            retry_resource_provider,
            fixture_resetter=fixture_resetter,
            classifier=classifier,
            policy=policy or RetryPolicy.from_config(),
        )
        outcome = await runner.run(action)
        outcome.unwrap()

    # No functools.wraps: pytest would follow __wrapped__ to the action's signature
    name = getattr(action, "__name__", "retry_action").lstrip("_")
    test_with_retry.__name__ = name
    test_with_retry.__qualname__ = name
    test_with_retry.__doc__ = getattr(action, "__doc__", None)
    test_with_retry.__module__ = getattr(action, "__module__", __name__)
    return pytest.mark.asyncio(test_with_retry)


__all__ = [
    "fixture_resetter",
    "mock_api_client",
    "retry_resource_provider",
    "retry_test",
]
