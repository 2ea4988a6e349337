"""
================================================================================
Browser Manager
================================================================================

Browser lifecycle management for retry runs.

Every acquire() launches a brand-new browser, context and page and hands them
back as a ResourceSet owned by exactly one retry run. Nothing is shared
between resource sets except the Playwright driver connection, so a value
written to storage in one attempt can never be observed by the next one.

Features:
    - Fresh browser/context/page per ResourceSet
    - Teardown attempts every close, then reports failures as ResourceTeardownError
    - Client-side storage clearing (cookies, localStorage, sessionStorage)
    - Browser type, headless and slow-mo settings from configuration

Author: Automation Team
License: MIT
================================================================================
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional, Protocol, runtime_checkable

from loguru import logger
from playwright.async_api import (
    async_playwright,
    Browser,
    BrowserContext,
    Page,
    Playwright,
)

from retry_suites.api_testing.framework.config_loader import ConfigLoader


SUPPORTED_BROWSERS = ("chromium", "firefox", "webkit")

# Runs inside the page; storage access throws SecurityError on opaque origins
# such as about:blank, which is expected for a fresh page.
_CLEAR_STORAGE_SCRIPT = """
() => {
    try {
        if (typeof localStorage !== 'undefined') { localStorage.clear(); }
        if (typeof sessionStorage !== 'undefined') { sessionStorage.clear(); }
        return true;
    } catch (error) {
        return false;
    }
}
"""


class ResourceTeardownError(Exception):
    """Raised by release() when closing a page, context or browser failed."""
    pass


@dataclass(eq=False)
class ResourceSet:
    """
    Browser, context and page bound to a single retry attempt.

    Attributes:
        browser: Browser instance launched for this set
        context: Isolated browsing context inside the browser
        page: Page inside the context handed to the test action
        label: Human-readable identifier used in log lines
    """
    browser: Browser
    context: BrowserContext
    page: Page
    label: str = ""


@runtime_checkable
class ResourceProvider(Protocol):
    """Supplies and tears down ResourceSets for the retry runner."""

    async def acquire(self) -> ResourceSet:
        ...

    async def release(self, resources: ResourceSet) -> None:
        """Tear the set down. May raise ResourceTeardownError once everything was tried."""
        ...

    async def clear_storage(self, resources: ResourceSet) -> None:
        ...


class BrowserManager:
    """
    Playwright-backed ResourceProvider.

    Features:
        - One browser launch per ResourceSet (no shared browser handles)
        - Live resource set tracking for leak detection
        - Configurable browser type, headless mode and slow motion

    Usage:
        async with BrowserManager() as manager:
            resources = await manager.acquire()
            try:
                await resources.page.goto("https://example.com")
            finally:
                await manager.release(resources)

        # Or through the retry runner
        async with BrowserManager() as manager:
            runner = RetryRunner(manager)
            outcome = await runner.run(my_action)
    """

    DEFAULT_LAUNCH_OPTIONS: Dict[str, Any] = {
        "args": [
            "--ignore-certificate-errors",
        ],
    }

    DEFAULT_CONTEXT_OPTIONS: Dict[str, Any] = {
        "viewport": {"width": 1280, "height": 720},
        "ignore_https_errors": True,
    }

    def __init__(
        self,
        headless: Optional[bool] = None,
        browser_type: Optional[str] = None,
        slow_mo: Optional[int] = None,
        context_options: Optional[Dict[str, Any]] = None,
        config: Optional[ConfigLoader] = None,
    ):
        """
        Initialize browser manager.

        Args:
            headless: Run browser in headless mode. Defaults to browser.headless
            browser_type: 'chromium', 'firefox' or 'webkit'. Defaults to browser.type
            slow_mo: Milliseconds to slow each Playwright operation by
            context_options: Extra options merged into DEFAULT_CONTEXT_OPTIONS
            config: Configuration loader. Creates the shared one if None.
        """
        config = config or ConfigLoader()
        self.headless = (
            headless if headless is not None else config.get("browser.headless", True)
        )
        self.browser_type = browser_type or config.get("browser.type", "chromium")
        self.slow_mo = slow_mo if slow_mo is not None else int(config.get("browser.slow_mo", 0))
        self.context_options = {**self.DEFAULT_CONTEXT_OPTIONS, **(context_options or {})}

        if self.browser_type not in SUPPORTED_BROWSERS:
            raise ValueError(
                f"Unsupported browser type {self.browser_type!r}, "
                f"expected one of {SUPPORTED_BROWSERS}"
            )

        self._playwright: Optional[Playwright] = None
        self._live: List[ResourceSet] = []
        self._acquired = 0

    async def __aenter__(self) -> "BrowserManager":
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    async def start(self) -> None:
        """Start the Playwright driver (idempotent)."""
        if self._playwright is None:
            self._playwright = await async_playwright().start()
            logger.debug(f"Playwright started for {self.browser_type}")

    async def close(self) -> None:
        """Release any resource set still live, then stop Playwright."""
        for resources in list(self._live):
            logger.warning(f"Releasing leaked resource set {resources.label}")
            try:
                await self.release(resources)
            except ResourceTeardownError as e:
                logger.warning(str(e))

        if self._playwright:
            await self._playwright.stop()
            self._playwright = None

        logger.debug("Browser manager closed")

    async def acquire(self) -> ResourceSet:
        """
        Launch a browser, open a context and a page.

        Returns:
            New ResourceSet owned by the caller

        Raises:
            playwright.async_api.Error: If the browser cannot be launched
        """
        await self.start()

        launcher = getattr(self._playwright, self.browser_type)
        browser = await launcher.launch(
            **self.DEFAULT_LAUNCH_OPTIONS,
            headless=self.headless,
            slow_mo=self.slow_mo,
        )
        try:
            context = await browser.new_context(**self.context_options)
            page = await context.new_page()
        except Exception:
            await browser.close()
            raise

        self._acquired += 1
        resources = ResourceSet(
            browser=browser,
            context=context,
            page=page,
            label=f"{self.browser_type}#{self._acquired}",
        )
        self._live.append(resources)
        logger.debug(
            f"Acquired resource set {resources.label} "
            f"(headless={self.headless}, slow_mo={self.slow_mo})"
        )
        return resources

    async def release(self, resources: ResourceSet) -> None:
        """
        Close page, context and browser.

        Every close is attempted even if an earlier one fails.

        Raises:
            ResourceTeardownError: If any close failed
        """
        failures = []
        for name, closeable in (
            ("page", resources.page),
            ("context", resources.context),
            ("browser", resources.browser),
        ):
            try:
                await closeable.close()
            except Exception as e:
                failures.append(f"{name}: {e}")

        if resources in self._live:
            self._live.remove(resources)

        if failures:
            raise ResourceTeardownError(
                f"Failed to close {resources.label or 'resource set'} ({'; '.join(failures)})"
            )
        logger.debug(f"Released resource set {resources.label}")

    async def clear_storage(self, resources: ResourceSet) -> None:
        """Clear cookies, permissions, localStorage and sessionStorage."""
        await resources.context.clear_cookies()
        await resources.context.clear_permissions()
        cleared = await resources.page.evaluate(_CLEAR_STORAGE_SCRIPT)
        if not cleared:
            logger.debug(f"Web storage not accessible on {resources.page.url}")

    def is_browser_installed(self) -> bool:
        """Whether the configured browser binary is present (`playwright install`)."""
        if self._playwright is None:
            raise RuntimeError("Browser manager not started. Call start() first.")
        launcher = getattr(self._playwright, self.browser_type)
        return Path(launcher.executable_path).exists()

    @property
    def live_count(self) -> int:
        """Number of resource sets acquired and not yet released."""
        return len(self._live)

    @property
    def acquired_count(self) -> int:
        """Number of resource sets acquired over the manager's lifetime."""
        return self._acquired


__all__ = [
    "BrowserManager",
    "ResourceProvider",
    "ResourceSet",
    "ResourceTeardownError",
    "SUPPORTED_BROWSERS",
]
