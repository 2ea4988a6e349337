"""
================================================================================
NUnit Retry Semantics UI Tests (Async / Playwright)
================================================================================

Runs the retry harness against a real Chromium instance.

The demo page is served from http://retry.test/ through Playwright request
routing, so no web server is needed. Fixture reset is disabled in these
tests because no mock server is assumed to be running.

================================================================================
"""

import allure
import pytest
from playwright.async_api import expect

from retry_suites.ui_testing.framework.pytest_retry import retry_test
from retry_suites.ui_testing.framework.retry_policy import OutcomeStatus, RetryPolicy
from retry_suites.ui_testing.framework.retry_runner import RetryRunner
from retry_suites.ui_testing.framework.wait_helpers import expect_with_retry


DEMO_URL = "http://retry.test/"

DEMO_HTML = """
<!DOCTYPE html>
<html>
  <head><title>Retry demo</title></head>
  <body>
    <h1 id="title">Retry demo</h1>
    <div id="user-name"></div>
    <script>
      setTimeout(() => {
        document.getElementById('user-name').textContent = 'John Doe';
      }, 300);
    </script>
  </body>
</html>
"""

NO_RESET = dict(retry_delay_ms=0, reset_fixtures_between_attempts=False)


async def open_demo(page):
    """Serve DEMO_HTML for retry.test and navigate to it."""

    async def fulfill(route):
        await route.fulfill(status=200, content_type="text/html", body=DEMO_HTML)

    await page.route("http://retry.test/**", fulfill)
    await page.goto(DEMO_URL)


async def bump_window_counter(page) -> int:
    return await page.evaluate(
        "() => { window._attempts = (window._attempts || 0) + 1; return window._attempts; }"
    )


@allure.epic("UI Testing")
@allure.feature("NUnit Retry Semantics")
class TestRetrySemantics:
    """Retry runner against a real browser."""

    @allure.story("Browser Reinitialisation")
    @allure.title("Storage and window state never leak into the next attempt")
    @allure.severity(allure.severity_level.CRITICAL)
    @pytest.mark.P0
    @pytest.mark.retry
    @pytest.mark.asyncio
    async def test_browser_reinitialised_between_attempts(self, retry_resource_provider):
        markers = []
        counters = []

        async def action(resources):
            page = resources.page
            await open_demo(page)
            markers.append(await page.evaluate("() => localStorage.getItem('retry-test')"))
            counters.append(await bump_window_counter(page))
            await page.evaluate("() => localStorage.setItem('retry-test', 'attempt-marker')")
            # Fail the first two attempts (initial + 1 retry)
            assert len(counters) >= 3, f"attempt {len(counters)} fails on purpose"

        outcome = await RetryRunner(retry_resource_provider).run(
            action, RetryPolicy(attempts=3, **NO_RESET)
        )

        assert outcome.status is OutcomeStatus.SUCCESS
        assert outcome.attempts_used == 3
        assert markers == [None, None, None]
        assert counters == [1, 1, 1]
        assert retry_resource_provider.acquired_count == 3
        assert retry_resource_provider.live_count == 0

    @allure.story("Browser Reinitialisation")
    @allure.title("Without recycling, storage is still cleared between attempts")
    @allure.severity(allure.severity_level.NORMAL)
    @pytest.mark.P1
    @pytest.mark.retry
    @pytest.mark.asyncio
    async def test_storage_cleared_when_reusing_browser(self, retry_resource_provider):
        markers = []

        async def action(resources):
            page = resources.page
            if not markers:
                await open_demo(page)
            else:
                await page.reload()
            markers.append(await page.evaluate("() => localStorage.getItem('retry-test')"))
            await page.evaluate("() => localStorage.setItem('retry-test', 'attempt-marker')")
            assert len(markers) >= 2

        outcome = await RetryRunner(retry_resource_provider).run(
            action,
            RetryPolicy(attempts=2, recycle_resources_between_attempts=False, **NO_RESET),
        )

        assert outcome.ok
        assert markers == [None, None]
        assert retry_resource_provider.acquired_count == 1
        assert retry_resource_provider.live_count == 0

    @allure.story("Failure Classification")
    @allure.title("Playwright expect() failures are retried")
    @allure.severity(allure.severity_level.CRITICAL)
    @pytest.mark.P0
    @pytest.mark.retry
    @pytest.mark.asyncio
    async def test_expect_failures_are_retried(self, retry_resource_provider):
        calls = []

        async def action(resources):
            calls.append(resources)
            await open_demo(resources.page)
            expected = "Retry demo" if len(calls) == 2 else "Something else"
            await expect(resources.page.locator("#title")).to_have_text(expected, timeout=500)

        outcome = await RetryRunner(retry_resource_provider).run(
            action, RetryPolicy(attempts=3, **NO_RESET)
        )

        assert outcome.ok
        assert outcome.attempts_used == 2

    @allure.story("Failure Classification")
    @allure.title("Unexpected exceptions are not retried")
    @allure.severity(allure.severity_level.CRITICAL)
    @pytest.mark.P0
    @pytest.mark.retry
    @pytest.mark.asyncio
    async def test_unexpected_exception_not_retried(self, retry_resource_provider):
        calls = []

        async def action(resources):
            calls.append(resources)
            await open_demo(resources.page)
            raise TypeError("This is an unexpected exception, not an assertion failure")

        outcome = await RetryRunner(retry_resource_provider).run(
            action, RetryPolicy(attempts=3, **NO_RESET)
        )

        assert outcome.status is OutcomeStatus.ABORTED
        assert len(calls) == 1
        assert retry_resource_provider.live_count == 0

    @allure.story("Failure Classification")
    @allure.title("Retry(1) runs once and does not retry")
    @allure.severity(allure.severity_level.NORMAL)
    @pytest.mark.P1
    @pytest.mark.retry
    @pytest.mark.asyncio
    async def test_single_attempt_does_not_retry(self, retry_resource_provider):
        calls = []

        async def action(resources):
            calls.append(resources)
            await open_demo(resources.page)
            assert await bump_window_counter(resources.page) > 5

        outcome = await RetryRunner(retry_resource_provider).run(
            action, RetryPolicy(attempts=1, recycle_resources_between_attempts=False, **NO_RESET)
        )

        assert outcome.status is OutcomeStatus.EXHAUSTED
        assert outcome.attempts_used == 1
        assert len(calls) == 1

    @allure.story("Polling")
    @allure.title("expect_with_retry waits for delayed text")
    @allure.severity(allure.severity_level.NORMAL)
    @pytest.mark.P1
    @pytest.mark.asyncio
    async def test_expect_with_retry_waits_for_delayed_text(self, retry_resource_provider):
        resources = await retry_resource_provider.acquire()
        try:
            await open_demo(resources.page)

            def shows_john(text):
                assert text == "John Doe"

            name = await expect_with_retry(
                lambda: resources.page.locator("#user-name").text_content(),
                shows_john,
                timeout_ms=5000,
                interval_ms=100,
            )
        finally:
            await retry_resource_provider.release(resources)

        assert name == "John Doe"


async def _demo_title_visible(resources):
    """Demo title renders (built with retry_test)."""
    await open_demo(resources.page)
    await expect(resources.page.locator("#title")).to_have_text("Retry demo")


test_demo_title_visible_with_retry = pytest.mark.retry(
    retry_test(_demo_title_visible, RetryPolicy(attempts=2, **NO_RESET))
)
