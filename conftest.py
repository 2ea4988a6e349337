"""
Repository-level pytest configuration (showcase-safe).

Why this exists:
  - Provide safe defaults for demo environments (no secrets embedded)
  - Register the retry harness plugin (fixtures used by `retry_test`)
  - Configure loguru once per session

Important:
  Values below are placeholders for a locally running mock server.
  CI should export MOCK_API_BASE_URL and friends explicitly.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Generator

import pytest

from retry_suites.common import init_logger


pytest_plugins = ["retry_suites.ui_testing.framework.pytest_retry"]


@pytest.fixture(scope="session")
def project_root() -> Path:
    """Return repo root path."""
    return Path(__file__).parent


@pytest.fixture(scope="session", autouse=True)
def _demo_safe_env_defaults() -> Generator[None, None, None]:
    """
    Set demo-safe environment defaults if not already provided by the user/CI.
    """
    defaults = {
        "MOCK_API_BASE_URL": "http://localhost:3001",
        "BROWSER_HEADLESS": "true",
    }

    for k, v in defaults.items():
        os.environ.setdefault(k, v)

    init_logger()
    yield
