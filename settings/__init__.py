"""Host configuration and logging setup."""

from settings.config import ConfigError, HostConfig, get_config, load_config, reload_config
from settings.logging import setup_logging

__all__ = [
    "ConfigError",
    "HostConfig",
    "get_config",
    "load_config",
    "reload_config",
    "setup_logging",
]
