"""
Shared utilities for CLI commands.
"""

import logging
from pathlib import Path
from typing import Optional

import requests

from runtimekit.config import RuntimeKitConfig, load_config
from runtimekit.core.context import OperationContext
from runtimekit.golang.release_index import load_index
from runtimekit.golang.releases import ReleaseResolver
from runtimekit.golang.runtime import GoRuntime

logger = logging.getLogger(__name__)

# Exit code for "not available" results (unresolvable release, no binary)
EXIT_UNAVAILABLE = 3


def load_cli_config(args) -> RuntimeKitConfig:
    """Load the configuration selected by --config."""
    return load_config(getattr(args, "config", None))


def make_context(args) -> OperationContext:
    """Operation context honoring --timeout."""
    return OperationContext(timeout=getattr(args, "timeout", None))


def make_resolver(config: RuntimeKitConfig, session: requests.Session) -> ReleaseResolver:
    return ReleaseResolver(
        session=session,
        host=config.network.github_host,
        api_url=config.network.github_api,
        timeout=config.network.timeout,
    )


def make_runtime(config: RuntimeKitConfig, version: Optional[str] = None) -> GoRuntime:
    """
    Build a GoRuntime from configuration.

    Args:
        config: Loaded configuration
        version: Go version overriding config.go.version
    """
    digests = Path(config.go.digests).expanduser() if config.go.digests else None
    session = requests.Session()

    return GoRuntime(
        version=version or config.go.version,
        index=load_index(digests, config.go.download_url),
        resolver=make_resolver(config, session),
        session=session,
        cache_lock=config.cache.lock,
        lock_timeout=config.cache.lock_timeout,
        timeout=config.network.timeout,
        release_feed=config.go.release_feed or None,
    )
