"""
Configuration for cloudglue-mcp.

Contains the config loader and default settings.
"""

from cloudglue_mcp.config.defaults import DEFAULT_BASE_URL, POLL_INTERVAL
from cloudglue_mcp.config.loader import (
    CloudglueConfig,
    ConfigSource,
    resolve_config,
)

__all__ = [
    "DEFAULT_BASE_URL",
    "POLL_INTERVAL",
    "CloudglueConfig",
    "ConfigSource",
    "resolve_config",
]
