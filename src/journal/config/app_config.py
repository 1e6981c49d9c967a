"""Application configuration loader.

Loads the service configuration from a YAML file. The path comes from the
`--config` CLI option or the CONFIG_PATH environment variable.

Usage:
    from journal.config.app_config import load_app_config

    config = load_app_config("config/local.yaml")
    config.http_server.address  # "localhost:9999"

Example file:
    env: local
    storage_path: storage/journal.db
    secret: 0123456789abcdef0123456789abcdef
    http_server:
      address: localhost:9999
      timeout: 4s
      idle_timeout: 60s
"""

from __future__ import annotations

import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import structlog
import yaml

logger = structlog.get_logger(__name__)

CONFIG_PATH_ENV = "CONFIG_PATH"

ENV_LOCAL = "local"
ENV_DEV = "dev"
ENV_PROD = "prod"
KNOWN_ENVS = (ENV_LOCAL, ENV_DEV, ENV_PROD)

# AES-128/192/256
SECRET_SIZES = (16, 24, 32)

_DURATION_RE = re.compile(r"^\s*(\d+(?:\.\d+)?)\s*(ms|s|m|h)?\s*$")
_DURATION_UNITS = {"ms": 0.001, "s": 1.0, "m": 60.0, "h": 3600.0}


class ConfigError(Exception):
    """Configuration file is missing or invalid."""

    pass


@dataclass
class HTTPServerConfig:
    """Listener settings.

    `timeout` is parsed and validated but not applied: uvicorn has no
    per-request read/write timeout. `idle_timeout` becomes uvicorn's
    keep-alive timeout. An address with an empty host (":9999") listens on
    all interfaces.
    """

    address: str = "localhost:9999"
    timeout: float = 4.0
    idle_timeout: float = 60.0

    @property
    def host(self) -> str:
        host, _, _ = self.address.rpartition(":")
        return host or "0.0.0.0"

    @property
    def port(self) -> int:
        _, _, port = self.address.rpartition(":")
        return int(port)


@dataclass
class AppConfig:
    """Application-wide configuration."""

    storage_path: Path
    secret: str
    env: str = ENV_LOCAL
    http_server: HTTPServerConfig = field(default_factory=HTTPServerConfig)


# Module-level cache
_cached_config: AppConfig | None = None


def parse_duration(value: Any) -> float:
    """Parse a duration into seconds.

    Accepts numbers (seconds) and strings such as "500ms", "4s", "1m", "2h".

    Raises:
        ConfigError: If the value cannot be parsed
    """
    if isinstance(value, bool):
        raise ConfigError(f"invalid duration: {value!r}")
    if isinstance(value, (int, float)):
        return float(value)

    match = _DURATION_RE.match(str(value))
    if not match:
        raise ConfigError(f"invalid duration: {value!r}")

    amount, unit = match.groups()
    return float(amount) * _DURATION_UNITS[unit or "s"]


def _parse_config(data: dict[str, Any]) -> AppConfig:
    """Parse configuration dictionary into AppConfig object."""
    storage_path = data.get("storage_path")
    if not storage_path:
        raise ConfigError("storage_path is required")

    secret = data.get("secret")
    if not secret:
        raise ConfigError("secret is required")
    secret = str(secret)
    if len(secret.encode("utf-8")) not in SECRET_SIZES:
        raise ConfigError("secret must be 16, 24 or 32 bytes long")

    env = data.get("env") or ENV_LOCAL
    if env not in KNOWN_ENVS:
        raise ConfigError(f"unknown env '{env}', expected one of {KNOWN_ENVS}")

    server_data = data.get("http_server") or {}
    defaults = HTTPServerConfig()
    http_server = HTTPServerConfig(
        address=str(server_data.get("address", defaults.address)),
        timeout=parse_duration(server_data.get("timeout", defaults.timeout)),
        idle_timeout=parse_duration(
            server_data.get("idle_timeout", defaults.idle_timeout)
        ),
    )
    try:
        http_server.port
    except ValueError:
        raise ConfigError(f"invalid address: {http_server.address!r}") from None

    return AppConfig(
        storage_path=Path(storage_path),
        secret=secret,
        env=env,
        http_server=http_server,
    )


def resolve_config_path(path: str | Path | None = None) -> Path:
    """Pick the config path from the argument or CONFIG_PATH.

    Raises:
        ConfigError: If neither is set or the file does not exist
    """
    raw = path or os.environ.get(CONFIG_PATH_ENV)
    if not raw:
        raise ConfigError(f"config path is empty (use --config or {CONFIG_PATH_ENV})")

    config_path = Path(raw)
    if not config_path.exists():
        raise ConfigError(f"config file does not exist: {config_path}")

    return config_path


def load_app_config(
    path: str | Path | None = None, force_reload: bool = False
) -> AppConfig:
    """Load application config.

    Args:
        path: Config file path. Defaults to $CONFIG_PATH.
        force_reload: If True, ignore cached config and reload from file.

    Returns:
        AppConfig object with all settings.

    Raises:
        ConfigError: If the file is missing, unreadable or invalid
    """
    global _cached_config

    if _cached_config is not None and not force_reload and path is None:
        return _cached_config

    config_path = resolve_config_path(path)
    logger.debug("config.loading", source=str(config_path))

    try:
        data = yaml.safe_load(config_path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"failed to read config: {e}") from e

    if not isinstance(data, dict):
        raise ConfigError("config root must be a mapping")

    _cached_config = _parse_config(data)
    return _cached_config


def clear_config_cache() -> None:
    """Clear cached configuration (for testing)."""
    global _cached_config
    _cached_config = None
