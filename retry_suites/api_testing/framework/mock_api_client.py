"""
================================================================================
Mock API Client with Allure Integration
================================================================================

Async HTTP client for the local mock backend that serves fixture data to the
UI suites. Its main job in the retry harness is fixture reset: before every
retried attempt the runner calls `reset_data()`, which posts to /api/reset so
the next attempt starts from pristine server-side state.

Features:
    - httpx.AsyncClient lifecycle via `async with`
    - Fixture reset with response validation
    - Allure step per request with masked headers
    - Injectable transport for offline tests

Author: Automation Team
License: MIT
================================================================================
"""

from __future__ import annotations

import json
from typing import Any, Dict, Optional

import allure
import httpx
from allure_commons.types import AttachmentType
from loguru import logger

from .config_loader import ConfigLoader


MAX_RESPONSE_LENGTH = 3000

SENSITIVE_HEADERS = {"authorization", "x-api-key", "cookie", "set-cookie"}


class MockApiError(Exception):
    """Base exception for mock API client errors."""
    pass


class FixtureResetError(MockApiError):
    """Raised when the mock server refuses or fails a fixture reset."""
    pass


class MockApiClient:
    """
    Async client for the mock fixture server.

    Usage:
        >>> async with MockApiClient() as client:
        ...     await client.reset_data()
        ...     response = await client.get("/api/users")

    The bound `reset_data` method is what the retry runner expects as its
    fixture resetter:

        >>> runner = RetryRunner(manager, fixture_resetter=client.reset_data)
    """

    def __init__(
        self,
        config: Optional[ConfigLoader] = None,
        base_url: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        """
        Initialize the client.

        Args:
            config: Configuration loader. Creates the shared one if None.
            base_url: Overrides mock_api.base_url
            transport: Custom httpx transport (httpx.MockTransport in tests)
        """
        config = config or ConfigLoader()
        self.base_url = (base_url or config.get("mock_api.base_url", "http://localhost:3001")).rstrip("/")
        self.timeout = float(config.get("mock_api.timeout", 10))
        self.reset_path = config.get("mock_api.reset_path", "/api/reset")
        self._transport = transport
        self.session: Optional[httpx.AsyncClient] = None

    async def __aenter__(self) -> "MockApiClient":
        self.session = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=httpx.Timeout(self.timeout),
            transport=self._transport,
        )
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        if self.session:
            await self.session.aclose()
            self.session = None

    async def request(self, method: str, url: str, **kwargs: Any) -> httpx.Response:
        """
        Execute an HTTP request and log it to Allure.

        Raises:
            MockApiError: If used outside `async with`
            httpx.HTTPError: On network failure
        """
        if self.session is None:
            raise MockApiError(
                "MockApiClient must be used within an async context manager. "
                "Use 'async with MockApiClient() as client:'"
            )

        response = await self.session.request(method, url, **kwargs)
        logger.debug(f"{method} {url} -> {response.status_code}")
        self._log_to_allure(method, url, kwargs, response)
        return response

    async def get(self, url: str, **kwargs: Any) -> httpx.Response:
        return await self.request("GET", url, **kwargs)

    async def post(self, url: str, **kwargs: Any) -> httpx.Response:
        return await self.request("POST", url, **kwargs)

    async def health(self) -> bool:
        """Return True when the mock server answers GET /api/health with 200."""
        try:
            response = await self.get("/api/health")
        except httpx.HTTPError as e:
            logger.debug(f"Mock server health check failed: {e}")
            return False
        return response.status_code == 200

    async def reset_data(self) -> None:
        """
        Reset all server-side fixture data.

        Raises:
            FixtureResetError: Non-200 status, non-JSON body, or success != true
        """
        with allure.step("Reset mock fixture data"):
            try:
                response = await self.post(self.reset_path)
            except httpx.HTTPError as e:
                raise FixtureResetError(f"Fixture reset request failed: {e}") from e

            if response.status_code != 200:
                raise FixtureResetError(
                    f"Fixture reset returned HTTP {response.status_code}: {response.text[:200]}"
                )

            try:
                body = response.json()
            except ValueError as e:
                raise FixtureResetError(
                    f"Fixture reset returned a non-JSON body: {response.text[:200]}"
                ) from e

            if not isinstance(body, dict) or body.get("success") is not True:
                message = body.get("message") if isinstance(body, dict) else None
                raise FixtureResetError(
                    f"Failed to reset data: {message or 'Unknown error'}"
                )

        logger.info("Mock fixture data reset")

    def _log_to_allure(
        self,
        method: str,
        url: str,
        kwargs: Dict[str, Any],
        response: httpx.Response,
    ) -> None:
        """Attach request/response details to the current Allure step."""
        step_title = f"{method} {url} -> {response.status_code}"

        with allure.step(step_title):
            allure.attach(
                f"{self.base_url}/{url.lstrip('/')}",
                name="Request URL",
                attachment_type=AttachmentType.TEXT,
            )

            headers = self._redact_headers(kwargs.get("headers") or {})
            if headers:
                allure.attach(
                    json.dumps(headers, ensure_ascii=False, indent=2),
                    name="Request Headers",
                    attachment_type=AttachmentType.JSON,
                )

            body = kwargs.get("json")
            if body is not None:
                allure.attach(
                    json.dumps(body, ensure_ascii=False, indent=2),
                    name="Request Body",
                    attachment_type=AttachmentType.JSON,
                )

            content = response.text or "<empty>"
            if len(content) > MAX_RESPONSE_LENGTH:
                content = (
                    f"{content[:MAX_RESPONSE_LENGTH]}\n\n"
                    f"... [Truncated, full length: {len(content)} chars] ..."
                )
            allure.attach(
                content,
                name=f"Response Body ({response.status_code})",
                attachment_type=AttachmentType.TEXT,
            )

    @staticmethod
    def _redact_headers(headers: Dict[str, Any]) -> Dict[str, Any]:
        return {
            key: "***MASKED***" if key.lower() in SENSITIVE_HEADERS else value
            for key, value in headers.items()
        }


__all__ = [
    "FixtureResetError",
    "MockApiClient",
    "MockApiError",
]
