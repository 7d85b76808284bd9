"""Configuration manager for vintagecam.

Settings come from three layers, applied in order: the built-in
``DEFAULT_CONFIG``, an optional YAML file, and a small set of environment
variables (``REDIS_URL`` and ``PORT``) used by container deployments.
"""

import copy
import logging
import os
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

import yaml

from vintagecam.config.defaults import (
    DEFAULT_CONFIG,
    ENV_OVERRIDES,
    REQUIRED_FIELDS,
)

logger = logging.getLogger(__name__)

CONFIG_FILENAME = "config.yaml"
INTEGER_FIELDS = {"server.port"}


class ConfigError(Exception):
    """Raised when configuration cannot be read, parsed or validated."""
    pass


def deep_merge(base: dict, updates: dict) -> dict:
    """Return a copy of ``base`` with ``updates`` merged in recursively.

    Nested dictionaries are merged key by key. Any other value in ``updates``
    replaces the value in ``base`` outright, including lists.
    """
    merged = copy.deepcopy(base)
    for key, value in updates.items():
        current = merged.get(key)
        if isinstance(current, dict) and isinstance(value, dict):
            merged[key] = deep_merge(current, value)
        else:
            merged[key] = copy.deepcopy(value)
    return merged


def lookup(config: Mapping[str, Any], dotted_key: str) -> Any:
    """Follow a dotted key such as ``storage.redis_url`` into ``config``."""
    node: Any = config
    for part in dotted_key.split("."):
        if not isinstance(node, Mapping) or part not in node:
            return None
        node = node[part]
    return node


def assign(config: Dict[str, Any], dotted_key: str, value: Any) -> None:
    """Set a dotted key, creating intermediate sections as needed."""
    *parents, leaf = dotted_key.split(".")
    node = config
    for part in parents:
        child = node.get(part)
        if not isinstance(child, dict):
            child = node[part] = {}
        node = child
    node[leaf] = value


def candidate_paths() -> List[Path]:
    """Locations searched when no explicit config path is given."""
    return [
        Path.home() / ".vintagecam" / CONFIG_FILENAME,
        Path.cwd() / CONFIG_FILENAME,
    ]


def read_yaml(path: Path) -> Dict[str, Any]:
    """Read a YAML mapping from ``path``. An empty file reads as ``{}``.

    Raises:
        ConfigError: If the file is unreadable, malformed or not a mapping
    """
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigError(f"Malformed YAML in {path}: {e}") from e
    except OSError as e:
        raise ConfigError(f"Cannot read config file {path}: {e}") from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(
            f"Config file {path} must contain a mapping at the top level, "
            f"not {type(data).__name__}"
        )
    return data


def write_yaml(data: Dict[str, Any], path: Path) -> None:
    """Write ``data`` to ``path`` as block-style YAML, keeping key order.

    Raises:
        ConfigError: If the file cannot be written
    """
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w", encoding="utf-8") as f:
            yaml.safe_dump(data, f, default_flow_style=False, sort_keys=False)
    except OSError as e:
        raise ConfigError(f"Cannot write config file {path}: {e}") from e


class ConfigManager:
    """Layered vintagecam settings with dot-notation access.

    Attributes:
        config: Merged configuration dictionary
        config_path: File the configuration was read from (or will be
            saved to), if any

    Examples:
        >>> config = ConfigManager.load("config.yaml")
        >>> config.get("storage.ttl_seconds")
        86400
        >>> config.get("server.port")
        5000
    """

    def __init__(self, config: Dict[str, Any], config_path: Optional[Path] = None):
        self.config = config
        self.config_path = config_path

    @classmethod
    def load(
        cls,
        config_path: Optional[str] = None,
        create_if_missing: bool = False,
        environ: Optional[Mapping[str, str]] = None
    ) -> "ConfigManager":
        """Build the effective configuration.

        Args:
            config_path: Explicit YAML file. When omitted the first existing
                file from ``candidate_paths()`` is used
            create_if_missing: Write the defaults out when no file exists
            environ: Environment to read overrides from (``os.environ`` by
                default)

        Returns:
            ConfigManager with defaults, file values and overrides applied

        Raises:
            ConfigError: On unreadable files, bad overrides or missing
                required fields
        """
        if config_path:
            path: Optional[Path] = Path(config_path).expanduser()
        else:
            path = next((p for p in candidate_paths() if p.exists()), None)

        if path is not None and path.exists():
            logger.info(f"Reading vintagecam config: {path}")
            config = deep_merge(DEFAULT_CONFIG, read_yaml(path))
        else:
            config = copy.deepcopy(DEFAULT_CONFIG)
            path = path or candidate_paths()[0]
            if create_if_missing:
                write_yaml(config, path)
                logger.info(f"Wrote default vintagecam config to {path}")
            else:
                logger.info("No vintagecam config file, running on defaults")

        apply_env_overrides(config, os.environ if environ is None else environ)
        validate(config)
        return cls(config, path)

    @classmethod
    def from_dict(cls, overrides: Optional[Dict[str, Any]] = None) -> "ConfigManager":
        """Build a configuration from defaults plus ``overrides`` (no file I/O)."""
        config = deep_merge(DEFAULT_CONFIG, overrides or {})
        validate(config)
        return cls(config)

    def get(self, key: str, default: Any = None) -> Any:
        """Return the value at a dotted ``key``, or ``default`` if unset."""
        value = lookup(self.config, key)
        return default if value is None else value

    def set(self, key: str, value: Any) -> None:
        assign(self.config, key, value)

    def save(self, path: Optional[str] = None) -> None:
        """Persist the configuration as YAML.

        Args:
            path: Destination file. Defaults to the file it was loaded from

        Raises:
            ConfigError: If there is nowhere to save to
        """
        target = Path(path).expanduser() if path else self.config_path
        if target is None:
            raise ConfigError("No config path known; pass one to save()")
        write_yaml(self.config, target)
        logger.info(f"Saved vintagecam config to {target}")

    def to_dict(self) -> Dict[str, Any]:
        return copy.deepcopy(self.config)

    def __repr__(self) -> str:
        source = self.config_path or "defaults"
        return f"ConfigManager(source={source})"


def apply_env_overrides(config: Dict[str, Any], environ: Mapping[str, str]) -> None:
    """Copy non-empty override variables into ``config``.

    Raises:
        ConfigError: If an integer field receives a non-integer value
    """
    for variable, dotted_key in ENV_OVERRIDES.items():
        raw = environ.get(variable)
        if not raw:
            continue
        value: Any = raw
        if dotted_key in INTEGER_FIELDS:
            try:
                value = int(raw)
            except ValueError as e:
                raise ConfigError(f"{variable} must be an integer, got {raw!r}") from e
        logger.debug(f"{variable} overrides {dotted_key}")
        assign(config, dotted_key, value)


def validate(config: Mapping[str, Any]) -> None:
    """Check that every entry of ``REQUIRED_FIELDS`` is set and non-empty.

    Raises:
        ConfigError: Listing every missing field
    """
    missing = [key for key in REQUIRED_FIELDS if not lookup(config, key)]
    if missing:
        raise ConfigError(f"Missing required config values: {', '.join(missing)}")
