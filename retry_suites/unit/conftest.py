"""
Unit test fixtures: in-memory stand-ins for the browser and the clock.

FakeResourceProvider hands out ResourceSets whose page keeps a plain dict as
its web storage, so retry semantics can be checked without a browser.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

import pytest

from retry_suites.api_testing.framework.config_loader import ConfigLoader
from retry_suites.ui_testing.framework.browser_manager import ResourceSet, ResourceTeardownError


class FakeCloseable:
    def __init__(self, fail: bool = False):
        self.closed = False
        self.fail = fail

    async def close(self) -> None:
        if self.fail:
            raise RuntimeError("close failed")
        self.closed = True


class FakePage(FakeCloseable):
    def __init__(self, fail: bool = False):
        super().__init__(fail)
        self.storage: Dict[str, str] = {}


class FakeResourceProvider:
    """Records every acquire/release/clear_storage call."""

    def __init__(
        self,
        fail_release: bool = False,
        fail_acquire: bool = False,
        fail_clear: bool = False,
    ):
        self.fail_release = fail_release
        self.fail_acquire = fail_acquire
        self.fail_clear = fail_clear
        self.acquired: List[ResourceSet] = []
        self.released: List[ResourceSet] = []
        self.cleared: List[ResourceSet] = []
        self.max_live = 0

    @property
    def live(self) -> int:
        return len(self.acquired) - len(self.released)

    async def acquire(self) -> ResourceSet:
        if self.fail_acquire:
            raise RuntimeError("browser launch failed")
        resources = ResourceSet(
            browser=FakeCloseable(),
            context=FakeCloseable(),
            page=FakePage(),
            label=f"fake#{len(self.acquired) + 1}",
        )
        self.acquired.append(resources)
        self.max_live = max(self.max_live, self.live)
        return resources

    async def release(self, resources: ResourceSet) -> None:
        self.released.append(resources)
        if self.fail_release:
            raise ResourceTeardownError("teardown exploded")

    async def clear_storage(self, resources: ResourceSet) -> None:
        if self.fail_clear:
            raise RuntimeError("storage not reachable")
        resources.page.storage.clear()
        self.cleared.append(resources)


class FakeClock:
    """Monotonic clock advanced by hand."""

    def __init__(self, now: float = 0.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class RecordingSleep:
    def __init__(self):
        self.calls: List[float] = []

    async def __call__(self, seconds: float) -> None:
        self.calls.append(seconds)


class DummyConfig:
    def __init__(self, data: Optional[Dict[str, Any]] = None):
        self.data = data or {}

    def get(self, key, default=None):
        return self.data.get(key, default)


@pytest.fixture(autouse=True)
def _fresh_config_singleton():
    ConfigLoader.reset()
    yield
    ConfigLoader.reset()


@pytest.fixture
def provider() -> FakeResourceProvider:
    return FakeResourceProvider()


@pytest.fixture
def sleep() -> RecordingSleep:
    return RecordingSleep()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def make_provider():
    """Factory for providers with failure switches."""
    return FakeResourceProvider


@pytest.fixture
def make_config():
    """Factory for dict-backed config objects."""
    return DummyConfig


@pytest.fixture
def make_closeable():
    """Factory for fake page/context/browser handles."""
    return FakeCloseable
