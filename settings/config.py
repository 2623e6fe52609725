"""Configuration management for unithost.

Loads configuration from:
1. config.toml (defaults)
2. Environment variables (overrides)

Example config.toml:
    extensions = ["audit_log"]
    addons = []

    [disable]
    "database.extensions" = false
    "database.addons" = "no"

    [paths]
    extensions_dir = "units/extensions"
    addons_dir = "units/addons"
    storage_path = ".unithost/options.json"
"""

import os
import sys
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any

if sys.version_info >= (3, 11):
    import tomllib
else:
    import tomli as tomllib

from dotenv import load_dotenv

# Load .env file if present
load_dotenv()


class ConfigError(Exception):
    """Raised when the configuration file cannot be used."""

    pass


@dataclass
class PathsConfig:
    """Filesystem locations."""

    extensions_dir: str = "units/extensions"
    addons_dir: str = "units/addons"
    storage_path: str = ".unithost/options.json"


@dataclass
class LoggingConfig:
    """Logging configuration."""

    level: str = "INFO"


@dataclass
class HostConfig:
    """Main configuration container.

    extensions and addons are the allow-lists of statically enabled units.
    disable holds flags such as "database.extensions" that turn off
    persisted activations for a category.
    """

    extensions: list[str] = field(default_factory=list)
    addons: list[str] = field(default_factory=list)
    disable: dict[str, Any] = field(default_factory=dict)
    paths: PathsConfig = field(default_factory=PathsConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    def get(self, key: str, default: Any = None) -> Any:
        """Look up a top-level setting by name."""
        if key in {f.name for f in fields(self)}:
            return getattr(self, key)
        return default

    def __getitem__(self, key: str) -> Any:
        if key not in {f.name for f in fields(self)}:
            raise KeyError(key)
        return getattr(self, key)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "HostConfig":
        """Create HostConfig from dictionary."""
        paths_data = data.get("paths", {})
        logging_data = data.get("logging", {})
        disable_data = data.get("disable", {})

        if not isinstance(disable_data, dict):
            raise ConfigError("[disable] must be a table")

        try:
            return cls(
                extensions=_as_list(data.get("extensions")),
                addons=_as_list(data.get("addons")),
                disable=dict(disable_data),
                paths=PathsConfig(**paths_data),
                logging=LoggingConfig(**logging_data),
            )
        except TypeError as e:
            raise ConfigError(f"Invalid configuration: {e}")


def _as_list(value: Any) -> list[str]:
    """Accept a list or a single value for allow-lists."""
    if value is None:
        return []
    if isinstance(value, (list, tuple)):
        return list(value)
    return [value]


def find_config_file() -> Path | None:
    """Find config.toml in current or parent directories.

    Returns:
        Path to config.toml or None if not found.
    """
    current = Path.cwd()

    for directory in [current, *current.parents]:
        config_path = directory / "config.toml"
        if config_path.exists():
            return config_path

    return None


def load_config(config_path: Path | str | None = None) -> HostConfig:
    """Load configuration from file and environment.

    Args:
        config_path: Optional explicit path to config.toml

    Returns:
        HostConfig object with merged settings.

    Raises:
        ConfigError: If the file is not valid TOML or has bad sections.
    """
    config_data: dict[str, Any] = {}

    if config_path is None:
        config_path = find_config_file()

    if config_path is not None:
        path = Path(config_path)
        if path.exists():
            try:
                with open(path, "rb") as f:
                    config_data = tomllib.load(f)
            except tomllib.TOMLDecodeError as e:
                raise ConfigError(f"Invalid TOML in {path}: {e}")

    # Apply environment variable overrides
    env_overrides = {
        "paths": {
            "extensions_dir": os.getenv("UNITHOST_EXTENSIONS_DIR"),
            "addons_dir": os.getenv("UNITHOST_ADDONS_DIR"),
            "storage_path": os.getenv("UNITHOST_STORAGE_PATH"),
        },
        "logging": {
            "level": os.getenv("LOG_LEVEL"),
        },
    }

    # Merge env overrides (only non-None values)
    for section, values in env_overrides.items():
        if section not in config_data:
            config_data[section] = {}
        for key, value in values.items():
            if value is not None:
                config_data[section][key] = value

    return HostConfig.from_dict(config_data)


# Global config instance (lazy loaded)
_config: HostConfig | None = None


def get_config() -> HostConfig:
    """Get the global configuration instance.

    Returns:
        HostConfig object (loaded once, cached).
    """
    global _config
    if _config is None:
        _config = load_config()
    return _config


def reload_config(config_path: Path | str | None = None) -> HostConfig:
    """Force reload of configuration.

    Returns:
        Fresh HostConfig object.
    """
    global _config
    _config = load_config(config_path)
    return _config
