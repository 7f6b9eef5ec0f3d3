"""Configuration management for stackfolio.

This module provides YAML configuration loading and access, plus the
defaults every engine falls back to when a key is not configured.
"""

import copy
from pathlib import Path
from typing import Any

import yaml

from stackfolio.utils.exceptions import ConfigurationError

# Engine defaults. Thresholds are percent of portfolio NAV.
DEFAULT_CONFIG: dict[str, Any] = {
    "allocation": {
        "precision": "basis_points",
        "total_tolerance": 0.1,
    },
    "warnings": {
        "concentration_threshold": 25.0,
        "daily_reset_leverage_threshold": 2.0,
        "min_international_developed": 10.0,
        "min_emerging_markets": 10.0,
        "min_small_cap": 10.0,
    },
    "catalog": {
        "path": None,
    },
    "logging": {
        "level": "INFO",
        "format": None,
        "file": None,
        "json": False,
        "max_bytes": 10 * 1024 * 1024,
        "backup_count": 5,
    },
}


def _merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    merged = copy.deepcopy(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _merge(merged[key], value)
        else:
            merged[key] = value
    return merged


class Config:
    """Configuration loader and accessor.

    Loads YAML configuration files and provides dict-like access to settings.

    Example:
        >>> config = Config.from_file("config/default.yaml")
        >>> precision = config.get("allocation.precision", "basis_points")
    """

    def __init__(self, config_dict: dict[str, Any]) -> None:
        """Initialize with configuration dictionary.

        Args:
            config_dict: Configuration data as nested dictionary
        """
        self._config = config_dict

    @classmethod
    def from_file(cls, filepath: str | Path) -> "Config":
        """Load configuration from YAML file.

        Args:
            filepath: Path to YAML configuration file

        Returns:
            Config instance with loaded configuration

        Raises:
            FileNotFoundError: If config file doesn't exist
            ConfigurationError: If the file is not a YAML mapping
            yaml.YAMLError: If YAML parsing fails
        """
        path = Path(filepath)
        if not path.exists():
            raise FileNotFoundError(f"Configuration file not found: {filepath}")

        with open(path, "r", encoding="utf-8") as f:
            config_dict = yaml.safe_load(f)

        if config_dict is None:
            config_dict = {}

        if not isinstance(config_dict, dict):
            raise ConfigurationError(
                f"Configuration file must contain a mapping: {filepath}"
            )

        return cls(config_dict)

    @classmethod
    def with_defaults(cls, config_dict: dict[str, Any] | None = None) -> "Config":
        """Create a Config whose missing keys fall back to DEFAULT_CONFIG.

        Args:
            config_dict: Partial configuration overriding the defaults

        Returns:
            Config instance
        """
        return cls(_merge(DEFAULT_CONFIG, config_dict or {}))

    def get(self, key: str, default: Any = None) -> Any:
        """Get configuration value using dot notation.

        Supports nested keys using dot notation (e.g., "warnings.min_small_cap").

        Args:
            key: Configuration key (supports dot notation for nested keys)
            default: Default value if key not found

        Returns:
            Configuration value or default

        Example:
            >>> config.get("allocation.total_tolerance")
            0.1
            >>> config.get("missing.key", "fallback")
            'fallback'
        """
        keys = key.split(".")
        value = self._config

        for k in keys:
            if isinstance(value, dict):
                value = value.get(k)
                if value is None:
                    return default
            else:
                return default

        return value

    def section(self, key: str) -> dict[str, Any]:
        """Get a nested section as a plain dictionary.

        Args:
            key: Section key (supports dot notation)

        Returns:
            Copy of the section, or an empty dict if missing
        """
        value = self.get(key)
        if not isinstance(value, dict):
            return {}
        return dict(value)

    def __getitem__(self, key: str) -> Any:
        """Get configuration value using bracket notation.

        Args:
            key: Configuration key (supports dot notation)

        Returns:
            Configuration value

        Raises:
            KeyError: If key not found
        """
        value = self.get(key)
        if value is None:
            raise KeyError(f"Configuration key not found: {key}")
        return value

    def to_dict(self) -> dict[str, Any]:
        """Get the full configuration as dictionary.

        Returns:
            Complete configuration dictionary
        """
        return self._config.copy()


def load_config(filepath: str | Path | None = None) -> Config:
    """Load configuration, filling unset keys from DEFAULT_CONFIG.

    Args:
        filepath: Path to YAML configuration file. If None, uses
            config/default.yaml at the project root when it exists, and
            the built-in defaults otherwise.

    Returns:
        Config instance
    """
    if filepath is None:
        root_dir = Path(__file__).parent.parent.parent
        default_path = root_dir / "config" / "default.yaml"
        if not default_path.exists():
            return Config.with_defaults()
        filepath = default_path

    loaded = Config.from_file(filepath)
    return Config.with_defaults(loaded.to_dict())
