"""Configuration module for RuntimeKit.

This module provides YAML configuration parsing and validation for runtimekit.yaml.
"""

from runtimekit.config.parser import (
    GoConfig,
    CacheConfig,
    NetworkConfig,
    RuntimeKitConfig,
    ConfigError,
    parse_config,
    load_config,
)

__all__ = [
    "GoConfig",
    "CacheConfig",
    "NetworkConfig",
    "RuntimeKitConfig",
    "ConfigError",
    "parse_config",
    "load_config",
]
