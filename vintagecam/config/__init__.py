"""Configuration management for vintagecam."""

from vintagecam.config.manager import ConfigManager, ConfigError
from vintagecam.config.defaults import DEFAULT_CONFIG

__all__ = ["ConfigManager", "ConfigError", "DEFAULT_CONFIG"]
