"""
Centralized exception hierarchy for RuntimeKit.

Negative results on best-effort lookups (an unresolvable release, a missing
checksum) are not exceptions; they are returned as ``None`` or ``""``.
Everything defined here is a hard failure for the current invocation.
"""

from typing import Optional


# ============================================================================
# Base Exceptions
# ============================================================================


class RuntimeKitError(Exception):
    """Base exception for all RuntimeKit errors."""

    pass


# ============================================================================
# Transport / Integrity Exceptions
# ============================================================================


class DownloadError(RuntimeKitError):
    """Raised when a remote fetch fails (network error or bad HTTP status)."""

    def __init__(self, url: str, message: str, status_code: Optional[int] = None):
        self.url = url
        self.status_code = status_code
        super().__init__(message)


class ChecksumError(RuntimeKitError):
    """Raised when downloaded content does not match the expected digest."""

    def __init__(self, expected: str, actual: str, name: str = ""):
        self.expected = expected
        self.actual = actual
        target = f" for {name}" if name else ""
        super().__init__(f"Checksum mismatch{target}: {actual} != {expected}")


# ============================================================================
# Release Index Exceptions
# ============================================================================


class ReleaseNotFoundError(RuntimeKitError):
    """Raised when the release index has no entry for the platform key."""

    def __init__(self, toolchain_id: str, os_name: str, arch: str):
        self.toolchain_id = toolchain_id
        self.os = os_name
        self.arch = arch
        super().__init__(
            f"failed to find {toolchain_id} release for os={os_name} arch={arch}"
        )


# ============================================================================
# Process / Cancellation Exceptions
# ============================================================================


class CommandError(RuntimeKitError):
    """Raised when a child process exits with a non-zero status."""

    def __init__(self, command: list, returncode: int, stderr: str = ""):
        self.command = command
        self.returncode = returncode
        self.stderr = stderr
        msg = f"Command {command[0]!s} exited with status {returncode}"
        if stderr:
            msg += f": {stderr.strip()}"
        super().__init__(msg)


class OperationCancelled(RuntimeKitError):
    """Raised when an operation context is cancelled or its deadline passes."""

    pass


# ============================================================================
# Cache Exceptions
# ============================================================================


class CacheLockTimeout(RuntimeKitError):
    """Raised when the per-fingerprint cache lock cannot be acquired."""

    pass
