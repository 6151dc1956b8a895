"""
Go runtime: toolchain provisioning, release resolution and tool builds.
"""

from .cache import ToolchainCache, cache_fingerprint
from .checksums import fetch_checksum, parse_checksum_manifest
from .release_index import ReleaseIndex, ToolchainRelease, load_index
from .releases import (
    ReleaseResolver,
    RemoteRelease,
    parse_repo_root,
    platform_binary_names,
)
from .runtime import BINARY_COMMAND, GoRuntime

__all__ = [
    "ToolchainCache",
    "cache_fingerprint",
    "fetch_checksum",
    "parse_checksum_manifest",
    "ReleaseIndex",
    "ToolchainRelease",
    "load_index",
    "ReleaseResolver",
    "RemoteRelease",
    "parse_repo_root",
    "platform_binary_names",
    "BINARY_COMMAND",
    "GoRuntime",
]
