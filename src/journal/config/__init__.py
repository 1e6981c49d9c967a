"""Configuration package for the journal service."""

from journal.config.app_config import (
    AppConfig,
    ConfigError,
    HTTPServerConfig,
    clear_config_cache,
    load_app_config,
)

__all__ = [
    "AppConfig",
    "ConfigError",
    "HTTPServerConfig",
    "clear_config_cache",
    "load_app_config",
]
