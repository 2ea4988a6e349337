"""
================================================================================
Configuration Loader
================================================================================

YAML-based configuration for the retry harness with environment overrides.

Features:
    - Single YAML file (config/config.yaml) with logging, retry, browser and
      mock_api sections
    - Environment variable override (RETRY_ATTEMPTS overrides retry.attempts)
    - Dot notation path access with type coercion against the default
    - Singleton per process, resettable for tests

Author: Automation Team
License: MIT
================================================================================
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from loguru import logger


DEFAULT_CONFIG_PATH = Path(__file__).parent.parent.parent.parent / "config" / "config.yaml"

_TRUE_STRINGS = ("true", "1", "yes", "on")


class ConfigurationError(Exception):
    """Raised when configuration loading or access fails."""
    pass


class ConfigLoader:
    """
    Configuration loader with YAML and environment variable support.

    Lookup order (highest priority first):
        1. Environment variable derived from the key (retry.attempts -> RETRY_ATTEMPTS)
        2. YAML configuration file
        3. Caller-supplied default

    Usage:
        >>> config = ConfigLoader()
        >>> config.get("retry.attempts", 3)
        3
        >>> config.get("browser.headless", True)
        True
    """

    _instance: Optional["ConfigLoader"] = None

    def __new__(cls, config_path: Optional[Path] = None) -> "ConfigLoader":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
            cls._instance._initialized = False
        return cls._instance

    def __init__(self, config_path: Optional[Path] = None) -> None:
        """
        Initialize configuration loader.

        Args:
            config_path: Path to YAML configuration file.
                        Uses DEFAULT_CONFIG_PATH if not specified.
        """
        if getattr(self, "_initialized", False):
            return

        self._config_path = Path(config_path) if config_path else DEFAULT_CONFIG_PATH
        self._config: Dict[str, Any] = {}
        self._load_config()
        self._initialized = True

    @property
    def path(self) -> Path:
        return self._config_path

    def _load_config(self) -> None:
        if not self._config_path.exists():
            logger.warning(
                f"Configuration file not found: {self._config_path}. "
                f"Using defaults and environment variables only."
            )
            self._config = {}
            return

        try:
            with open(self._config_path, "r", encoding="utf-8") as f:
                loaded = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigurationError(
                f"Invalid YAML in configuration file {self._config_path}: {e}"
            ) from e

        if not isinstance(loaded, dict):
            raise ConfigurationError(
                f"Top level of {self._config_path} must be a mapping, "
                f"got {type(loaded).__name__}"
            )

        self._config = loaded
        logger.debug(f"Loaded configuration from: {self._config_path}")

    def get(self, key: str, default: Any = None) -> Any:
        """
        Get configuration value by dot-notation path.

        Args:
            key: Dot-notation path (e.g., "retry.retry_delay_ms")
            default: Default value if key not found; also used as the type
                reference when coercing environment variable strings

        Returns:
            Configuration value or default
        """
        env_value = os.environ.get(self.env_name(key))
        if env_value is not None:
            return self._convert_type(env_value, default)

        value: Any = self._config
        for part in key.split("."):
            if not isinstance(value, dict) or part not in value:
                return default
            value = value[part]

        return default if value is None else value

    def get_section(self, section: str) -> Dict[str, Any]:
        """Return a top-level section, or an empty dict if it is missing."""
        section_value = self._config.get(section)
        return dict(section_value) if isinstance(section_value, dict) else {}

    def reload(self) -> None:
        """Reload configuration from file."""
        self._load_config()
        logger.info(f"Configuration reloaded from: {self._config_path}")

    @staticmethod
    def env_name(key: str) -> str:
        """Environment variable consulted for a dot-notation key."""
        return key.upper().replace(".", "_")

    @staticmethod
    def _convert_type(value: str, reference: Any) -> Any:
        """Coerce an environment string to the type of the reference default."""
        if reference is None:
            return value

        # bool is checked before int: bool is an int subclass
        if isinstance(reference, bool):
            return value.strip().lower() in _TRUE_STRINGS
        if isinstance(reference, int):
            try:
                return int(value)
            except ValueError:
                raise ConfigurationError(
                    f"Expected an integer, got {value!r}"
                ) from None
        if isinstance(reference, float):
            try:
                return float(value)
            except ValueError:
                raise ConfigurationError(
                    f"Expected a number, got {value!r}"
                ) from None

        return value

    @classmethod
    def reset(cls) -> None:
        """Drop the singleton so the next ConfigLoader() reloads from disk."""
        cls._instance = None


__all__ = [
    "ConfigLoader",
    "ConfigurationError",
    "DEFAULT_CONFIG_PATH",
]
