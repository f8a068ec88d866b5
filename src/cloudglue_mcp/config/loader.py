"""
Unified configuration loader with priority resolution.

Root directory (CLOUDGLUE_MCP_ROOT):
- macOS/Linux: ~/.cloudglue-mcp
- Windows: %APPDATA%\\cloudglue-mcp
- Override: CLOUDGLUE_MCP_ROOT environment variable

Priority for every setting (highest to lowest):
1. Command-line argument (--api-key, --base-url, --working-dir)
2. Environment variable (CLOUDGLUE_API_KEY, CLOUDGLUE_BASE_URL, ...)
3. .env file in the current directory or a parent (never overrides 2)
4. Project config (.cloudglue-mcp/config.yaml)
5. User config ({root_dir}/config.yaml)
6. Default (config/defaults.py)
"""

from __future__ import annotations

import logging
import os
import sys
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any

import yaml
from dotenv import find_dotenv, load_dotenv

from cloudglue_mcp.config.defaults import (
    DEFAULT_BASE_URL,
    POLL_INTERVAL,
    REQUEST_TIMEOUT,
)
from cloudglue_mcp.exceptions import ConfigError

logger = logging.getLogger(__name__)

# config key -> environment variable
ENV_VARS = {
    "api_key": "CLOUDGLUE_API_KEY",
    "base_url": "CLOUDGLUE_BASE_URL",
    "working_dir": "CLOUDGLUE_WORKING_DIR",
    "poll_interval": "CLOUDGLUE_POLL_INTERVAL",
    "max_poll_attempts": "CLOUDGLUE_MAX_POLL_ATTEMPTS",
    "poll_timeout": "CLOUDGLUE_POLL_TIMEOUT",
    "request_timeout": "CLOUDGLUE_REQUEST_TIMEOUT",
    "log_level": "CLOUDGLUE_LOG_LEVEL",
}


class ConfigSource(Enum):
    """Source of the configuration value."""

    CLI = "cli"
    ENV = "env"
    PROJECT = "project"
    USER = "user"
    DEFAULT = "default"


@dataclass(frozen=True)
class CloudglueConfig:
    """Resolved cloudglue-mcp configuration."""

    api_key: str | None
    base_url: str
    working_dir: Path
    poll_interval: float = POLL_INTERVAL
    max_poll_attempts: int | None = None
    poll_timeout: float | None = None
    request_timeout: float = REQUEST_TIMEOUT
    log_level: str = "INFO"
    source: ConfigSource = ConfigSource.DEFAULT

    def __repr__(self) -> str:
        masked = f"{self.api_key[:4]}..." if self.api_key else None
        return (
            f"CloudglueConfig(api_key={masked!r}, base_url={self.base_url!r}, "
            f"working_dir={self.working_dir!r}, source={self.source.value!r})"
        )

    def require_api_key(self) -> str:
        """Return the API key or raise ConfigError if none was configured."""
        if not self.api_key:
            raise ConfigError(
                "Cloudglue API key not set. Pass --api-key or set the "
                "CLOUDGLUE_API_KEY environment variable."
            )
        return self.api_key

    def to_dict(self) -> dict[str, Any]:
        return {
            "api_key_set": bool(self.api_key),
            "api_key_source": self.source.value,
            "base_url": self.base_url,
            "working_dir": str(self.working_dir),
            "poll_interval": self.poll_interval,
            "max_poll_attempts": self.max_poll_attempts,
            "poll_timeout": self.poll_timeout,
            "request_timeout": self.request_timeout,
            "log_level": self.log_level,
        }


def _load_yaml_config(config_path: Path) -> dict[str, Any] | None:
    """Load configuration from a YAML file.

    Args:
        config_path: Path to the YAML config file.

    Returns:
        Parsed config dict, or None if file doesn't exist or fails to parse.
    """
    if not config_path.exists():
        return None

    try:
        with open(config_path) as f:
            config = yaml.safe_load(f)
    except (OSError, yaml.YAMLError) as e:
        logger.warning(f"Failed to load config from {config_path}: {e}")
        return None

    if config is None:
        return {}
    if not isinstance(config, dict):
        logger.warning(f"Config file {config_path} is not a valid YAML dict")
        return None
    return config


def _find_project_config() -> Path | None:
    """Find project-level config by walking up from cwd.

    Returns:
        Path to .cloudglue-mcp/config.yaml if found, None otherwise.
    """
    cwd = Path.cwd()
    for parent in [cwd, *cwd.parents]:
        config_path = parent / ".cloudglue-mcp" / "config.yaml"
        if config_path.exists():
            return config_path
    return None


def _get_root_dir() -> Path:
    """Get the cloudglue-mcp root directory.

    Priority:
    1. CLOUDGLUE_MCP_ROOT environment variable
    2. Platform-specific default:
       - Windows: %APPDATA%\\cloudglue-mcp
       - macOS/Linux: ~/.cloudglue-mcp
    """
    env_root = os.environ.get("CLOUDGLUE_MCP_ROOT")
    if env_root:
        return Path(env_root).expanduser().resolve()

    if sys.platform == "win32":
        appdata = os.environ.get("APPDATA")
        if appdata:
            return Path(appdata) / "cloudglue-mcp"
        return Path.home() / "AppData" / "Roaming" / "cloudglue-mcp"
    return Path.home() / ".cloudglue-mcp"


def _get_user_config_path() -> Path:
    """Get the user-level config path ({root_dir}/config.yaml)."""
    return _get_root_dir() / "config.yaml"


def _load_env_file() -> Path | None:
    """Load the nearest .env file into os.environ without overriding it.

    Returns:
        Path of the loaded file, or None if no .env file was found.
    """
    env_path = find_dotenv(usecwd=True)
    if not env_path:
        return None
    load_dotenv(env_path, override=False)
    logger.debug(f"Loaded environment from {env_path}")
    return Path(env_path)


def _coerce_float(key: str, value: Any) -> float:
    try:
        result = float(value)
    except (TypeError, ValueError) as e:
        raise ConfigError(f"Invalid value for {key}: {value!r}") from e
    if result <= 0:
        raise ConfigError(f"{key} must be positive, got {value!r}")
    return result


def _coerce_int(key: str, value: Any) -> int:
    try:
        result = int(value)
    except (TypeError, ValueError) as e:
        raise ConfigError(f"Invalid value for {key}: {value!r}") from e
    if result < 1:
        raise ConfigError(f"{key} must be at least 1, got {value!r}")
    return result


def _lookup(
    key: str,
    cli_value: Any,
    project: dict[str, Any],
    user: dict[str, Any],
) -> tuple[Any, ConfigSource]:
    """Find the highest-priority value for a config key."""
    if cli_value is not None:
        return cli_value, ConfigSource.CLI
    env_value = os.environ.get(ENV_VARS[key])
    if env_value:
        return env_value, ConfigSource.ENV
    if project.get(key) is not None:
        return project[key], ConfigSource.PROJECT
    if user.get(key) is not None:
        return user[key], ConfigSource.USER
    return None, ConfigSource.DEFAULT


def resolve_config(
    api_key: str | None = None,
    base_url: str | None = None,
    working_dir: str | Path | None = None,
    *,
    load_env_file: bool = True,
) -> CloudglueConfig:
    """Resolve configuration from all sources in priority order.

    Args:
        api_key: Value of --api-key, if given.
        base_url: Value of --base-url, if given.
        working_dir: Value of --working-dir, if given.
        load_env_file: Read a .env file before consulting the environment.

    Returns:
        Resolved CloudglueConfig. The source attribute records where the
        API key came from.

    Raises:
        ConfigError: If a numeric setting has an invalid value.
    """
    if load_env_file:
        _load_env_file()

    project: dict[str, Any] = {}
    project_path = _find_project_config()
    if project_path:
        project = _load_yaml_config(project_path) or {}

    user = _load_yaml_config(_get_user_config_path()) or {}

    key, source = _lookup("api_key", api_key, project, user)
    url, _ = _lookup("base_url", base_url, project, user)
    wd, _ = _lookup("working_dir", working_dir, project, user)
    interval, _ = _lookup("poll_interval", None, project, user)
    attempts, _ = _lookup("max_poll_attempts", None, project, user)
    poll_timeout, _ = _lookup("poll_timeout", None, project, user)
    request_timeout, _ = _lookup("request_timeout", None, project, user)
    log_level, _ = _lookup("log_level", None, project, user)

    config = CloudglueConfig(
        api_key=str(key) if key else None,
        base_url=str(url or DEFAULT_BASE_URL).rstrip("/"),
        working_dir=Path(wd).expanduser().resolve() if wd else Path.cwd(),
        poll_interval=(
            _coerce_float("poll_interval", interval) if interval else POLL_INTERVAL
        ),
        max_poll_attempts=(
            _coerce_int("max_poll_attempts", attempts) if attempts else None
        ),
        poll_timeout=(
            _coerce_float("poll_timeout", poll_timeout) if poll_timeout else None
        ),
        request_timeout=(
            _coerce_float("request_timeout", request_timeout)
            if request_timeout
            else REQUEST_TIMEOUT
        ),
        log_level=str(log_level or "INFO").upper(),
        source=source,
    )
    logger.debug(f"Resolved {config!r}")
    return config
