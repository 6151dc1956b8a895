"""
Core functionality for RuntimeKit.

This package contains the runtime-agnostic modules the language runtimes
depend on: verified downloads, archive extraction, process execution,
environment handling, cancellation and cache locking.
"""

from .context import OperationContext

from .download import (
    StreamingHasher,
    download_file,
    download_and_extract,
    fetch_text,
)

from .environment import (
    append_path,
    current_env,
    env_to_dict,
    strip_prefixed,
)

from .locking import LockManager

from .platform import (
    PlatformInfo,
    detect_platform,
    clear_platform_cache,
)

from .process import run_command

from .exceptions import (
    RuntimeKitError,
    DownloadError,
    ChecksumError,
    ReleaseNotFoundError,
    CommandError,
    OperationCancelled,
    CacheLockTimeout,
)

__all__ = [
    "OperationContext",
    "StreamingHasher",
    "download_file",
    "download_and_extract",
    "fetch_text",
    "append_path",
    "current_env",
    "env_to_dict",
    "strip_prefixed",
    "LockManager",
    "PlatformInfo",
    "detect_platform",
    "clear_platform_cache",
    "run_command",
    "RuntimeKitError",
    "DownloadError",
    "ChecksumError",
    "ReleaseNotFoundError",
    "CommandError",
    "OperationCancelled",
    "CacheLockTimeout",
]
