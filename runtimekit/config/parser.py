"""YAML configuration parser for RuntimeKit.

This module provides parsing and validation for runtimekit.yaml configuration files.
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

import yaml

from runtimekit.core.directory import DATA_ROOT_ENV, get_default_data_root
from runtimekit.core.exceptions import RuntimeKitError
from runtimekit.golang.release_index import DOWNLOAD_URL, RELEASE_FEED_URL
from runtimekit.golang.releases import GITHUB_API, GITHUB_HOST
from runtimekit.golang.runtime import DEFAULT_VERSION

DEFAULT_CONFIG_NAME = "runtimekit.yaml"


class ConfigError(RuntimeKitError):
    """Configuration parsing or validation error."""

    pass


@dataclass
class GoConfig:
    """Go toolchain settings."""

    version: str = DEFAULT_VERSION
    download_url: str = DOWNLOAD_URL
    digests: Optional[str] = None  # alternative manifest path
    release_feed: str = RELEASE_FEED_URL  # "" disables the feed lookup


@dataclass
class CacheConfig:
    """Toolchain cache settings."""

    lock: bool = True
    lock_timeout: int = 300


@dataclass
class NetworkConfig:
    """Network settings."""

    timeout: int = 30
    github_host: str = GITHUB_HOST
    github_api: str = GITHUB_API


@dataclass
class RuntimeKitConfig:
    """Complete RuntimeKit configuration."""

    version: int = 1
    data_root: Optional[str] = None
    go: GoConfig = field(default_factory=GoConfig)
    cache: CacheConfig = field(default_factory=CacheConfig)
    network: NetworkConfig = field(default_factory=NetworkConfig)

    def resolved_data_root(self) -> Path:
        """Data root after applying RUNTIMEKIT_DATA_ROOT and defaults."""
        if os.environ.get(DATA_ROOT_ENV) or not self.data_root:
            return get_default_data_root()
        return Path(self.data_root).expanduser()


def parse_config(config_path: Path) -> RuntimeKitConfig:
    """
    Parse runtimekit.yaml configuration file.

    Args:
        config_path: Path to runtimekit.yaml

    Returns:
        Parsed and validated configuration

    Raises:
        ConfigError: If configuration is invalid
    """
    if not config_path.exists():
        raise ConfigError(f"Configuration file not found: {config_path}")

    try:
        with open(config_path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML syntax: {e}")

    if data is None:
        raise ConfigError("Configuration file is empty")

    return _parse_and_validate(data)


def load_config(config_path: Optional[Path] = None) -> RuntimeKitConfig:
    """
    Load configuration, falling back to defaults.

    An explicit config_path must exist; otherwise ./runtimekit.yaml is used
    when present.
    """
    if config_path is not None:
        return parse_config(Path(config_path))

    default_path = Path.cwd() / DEFAULT_CONFIG_NAME
    if default_path.exists():
        return parse_config(default_path)

    return RuntimeKitConfig()


def _parse_and_validate(data: dict) -> RuntimeKitConfig:
    """Parse and validate configuration data."""
    if not isinstance(data, dict):
        raise ConfigError("Configuration must be a mapping")

    if "version" not in data:
        raise ConfigError("Missing required field: version")

    if data["version"] != 1:
        raise ConfigError(f"Unsupported version: {data['version']} (expected 1)")

    data_root = data.get("data_root")
    if data_root is not None and not isinstance(data_root, str):
        raise ConfigError("data_root must be a string")

    go_data = _section(data, "go")
    go = GoConfig(
        version=str(go_data.get("version", DEFAULT_VERSION)),
        download_url=_typed(go_data, "go.download_url", "download_url", str, DOWNLOAD_URL),
        digests=_typed(go_data, "go.digests", "digests", str, None),
        release_feed=_typed(
            go_data, "go.release_feed", "release_feed", str, RELEASE_FEED_URL
        ),
    )
    if not go.download_url.endswith("/"):
        go.download_url += "/"

    cache_data = _section(data, "cache")
    cache = CacheConfig(
        lock=_typed(cache_data, "cache.lock", "lock", bool, True),
        lock_timeout=_typed(cache_data, "cache.lock_timeout", "lock_timeout", int, 300),
    )

    network_data = _section(data, "network")
    network = NetworkConfig(
        timeout=_typed(network_data, "network.timeout", "timeout", int, 30),
        github_host=_typed(network_data, "network.github_host", "github_host", str, GITHUB_HOST),
        github_api=_typed(network_data, "network.github_api", "github_api", str, GITHUB_API),
    )

    if cache.lock_timeout < 0 or network.timeout <= 0:
        raise ConfigError("Timeouts must be positive")

    return RuntimeKitConfig(
        version=1, data_root=data_root, go=go, cache=cache, network=network
    )


def _section(data: dict, name: str) -> dict:
    section = data.get(name) or {}
    if not isinstance(section, dict):
        raise ConfigError(f"'{name}' must be a mapping")
    return section


def _typed(section: dict, label: str, key: str, expected: type, default):
    value = section.get(key, default)
    if value is None:
        return default
    # bool is a subclass of int; reject it where a number is expected
    if not isinstance(value, expected) or (expected is int and isinstance(value, bool)):
        raise ConfigError(f"'{label}' must be of type {expected.__name__}")
    return value
