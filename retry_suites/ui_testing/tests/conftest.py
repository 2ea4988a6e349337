"""
================================================================================
UI Testing Pytest Configuration
================================================================================

Fixtures for retry tests that drive a real browser.

Overrides `retry_resource_provider` from the retry plugin so UI tests skip
cleanly when the Playwright browser binary has not been installed
(`playwright install chromium`).

================================================================================
"""

from typing import AsyncGenerator

import pytest
from loguru import logger

from retry_suites.ui_testing.framework.browser_manager import BrowserManager


@pytest.fixture
async def retry_resource_provider() -> AsyncGenerator[BrowserManager, None]:
    """
    Function-scoped browser manager for UI retry tests.

    Skips the test when the configured browser is not installed.
    """
    async with BrowserManager() as manager:
        if not manager.is_browser_installed():
            pytest.skip(
                f"Playwright {manager.browser_type} not installed; "
                f"run `playwright install {manager.browser_type}`"
            )
        yield manager
        if manager.live_count:
            logger.warning(f"{manager.live_count} resource set(s) leaked by the test")
