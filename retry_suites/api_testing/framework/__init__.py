"""
================================================================================
API Testing Framework
================================================================================

HTTP-side collaborators of the retry harness.

Modules:
    - config_loader: YAML configuration with environment overrides
    - mock_api_client: Async client for the mock fixture server (fixture reset)

Author: Automation Team
License: MIT
================================================================================
"""

from .config_loader import ConfigLoader, ConfigurationError
from .mock_api_client import FixtureResetError, MockApiClient, MockApiError

__all__ = [
    "ConfigLoader",
    "ConfigurationError",
    "FixtureResetError",
    "MockApiClient",
    "MockApiError",
]
