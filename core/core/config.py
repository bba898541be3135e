"""Configuration management for converge-all.

This module provides YAML-based configuration loading and saving,
following the XDG Base Directory Specification.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any

import structlog
import yaml
from pydantic import ValidationError

from .errors import ConvergeError
from .models import AgentConfig

logger = structlog.get_logger(__name__)


class ConfigError(ConvergeError):
    """Configuration file is invalid."""


def get_config_dir() -> Path:
    """Get the configuration directory following XDG spec.

    Returns:
        Path to the configuration directory.
    """
    xdg_config_home = os.environ.get("XDG_CONFIG_HOME")
    base = Path(xdg_config_home) if xdg_config_home else Path.home() / ".config"
    return base / "converge-all"


def get_default_config_path() -> Path:
    """Get the default configuration file path.

    Returns:
        Path to the default config file.
    """
    return get_config_dir() / "config.yaml"


class YamlConfigLoader:
    """Loads and saves configuration dictionaries from/to YAML files."""

    def load(self, path: Path) -> dict[str, Any]:
        """Load configuration from a YAML file.

        Args:
            path: Path to the configuration file.

        Returns:
            Configuration dictionary.

        Raises:
            FileNotFoundError: If the file doesn't exist.
            ConfigError: If the file is not valid YAML or not a mapping.
        """
        if not path.exists():
            logger.debug("config_file_not_found", path=str(path))
            raise FileNotFoundError(f"Configuration file not found: {path}")

        try:
            data = yaml.safe_load(path.read_text())
        except yaml.YAMLError as e:
            raise ConfigError(f"Invalid YAML in {path}: {e}") from e

        if data is None:
            return {}
        if not isinstance(data, dict):
            raise ConfigError(f"Configuration in {path} must be a mapping")
        return data

    def save(self, config: dict[str, Any], path: Path) -> None:
        """Save configuration to a YAML file.

        Args:
            config: Configuration dictionary.
            path: Path to save the configuration.
        """
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(yaml.dump(config, default_flow_style=False, sort_keys=False))
        logger.info("config_saved", path=str(path))


class ConfigManager:
    """Manages agent configuration.

    Provides high-level methods for loading, saving, and accessing
    configuration values.
    """

    def __init__(self, config_path: Path | None = None) -> None:
        """Initialize the configuration manager.

        Args:
            config_path: Optional path to configuration file.
                        Uses default path if not provided.
        """
        self.config_path = config_path or get_default_config_path()
        self._loader = YamlConfigLoader()
        self._config: AgentConfig | None = None

    def load(self) -> AgentConfig:
        """Load configuration from file.

        Returns:
            AgentConfig with loaded values, or defaults if file doesn't exist.

        Raises:
            ConfigError: If the file content is invalid.
        """
        try:
            data = self._loader.load(self.config_path)
        except FileNotFoundError:
            logger.info("using_default_config")
            self._config = AgentConfig()
            return self._config

        try:
            self._config = AgentConfig(**data.get("agent", {}))
        except ValidationError as e:
            raise ConfigError(f"Invalid configuration in {self.config_path}: {e}") from e
        return self._config

    def save(self, config: AgentConfig | None = None) -> None:
        """Save configuration to file.

        Args:
            config: Configuration to save. Uses current config if not provided.
        """
        if config is not None:
            self._config = config
        if self._config is None:
            self._config = AgentConfig()

        data = {"agent": self._config.model_dump(mode="json", exclude_defaults=True)}
        self._loader.save(data, self.config_path)

    def get_config(self) -> AgentConfig:
        """Get the current configuration, loading from file if needed."""
        if self._config is None:
            self.load()
        return self._config or AgentConfig()

    def init_config(self, force: bool = False) -> bool:
        """Initialize a new configuration file with defaults.

        Args:
            force: If True, overwrite existing configuration.

        Returns:
            True if configuration was created, False if it already exists.
        """
        if self.config_path.exists() and not force:
            logger.info("config_exists", path=str(self.config_path))
            return False

        self.save(AgentConfig())
        logger.info("config_initialized", path=str(self.config_path))
        return True
