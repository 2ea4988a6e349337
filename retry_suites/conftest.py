"""
================================================================================
Root Pytest Configuration
================================================================================

This module provides the root pytest configuration for the retry suites.
It registers common markers and tags tests by directory.

================================================================================
"""

import pytest


def pytest_configure(config):
    """Configure pytest with project-wide custom markers."""

    # Priority markers
    config.addinivalue_line(
        "markers", "P0: Critical priority tests - must pass for deployment"
    )
    config.addinivalue_line(
        "markers", "P1: High priority tests - important functionality"
    )
    config.addinivalue_line(
        "markers", "P2: Medium priority tests - edge cases and minor features"
    )
    config.addinivalue_line(
        "markers", "P3: Low priority tests - extensive validation"
    )

    # Test type markers
    config.addinivalue_line(
        "markers", "smoke: Quick verification tests"
    )
    config.addinivalue_line(
        "markers", "unit: Tests that need neither a browser nor a server"
    )

    # Domain markers
    config.addinivalue_line(
        "markers", "ui: Tests that launch a real browser"
    )
    config.addinivalue_line(
        "markers", "api: Tests of HTTP collaborators"
    )
    config.addinivalue_line(
        "markers", "retry: Tests of NUnit-style retry semantics"
    )


def pytest_collection_modifyitems(config, items):
    """Auto-mark tests by the directory they live in."""
    for item in items:
        parts = item.path.parts
        if "unit" in parts:
            item.add_marker(pytest.mark.unit)
        if "ui_testing" in parts:
            item.add_marker(pytest.mark.ui)


def pytest_report_header(config):
    """Add custom header to pytest output."""
    return [
        "",
        "=" * 60,
        "NUnit-style Retry Harness for Playwright",
        "=" * 60,
        "",
    ]
