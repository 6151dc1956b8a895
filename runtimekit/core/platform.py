"""
Platform detection for RuntimeKit.

Platforms are described in Go's vocabulary (GOOS/GOARCH) because both the
toolchain release index and published tool binaries are named that way:
'linux', 'darwin', 'windows' and 'amd64', 'arm64', '386', 'arm'.

Usage:
    from runtimekit.core.platform import detect_platform

    info = detect_platform()
    print(info.platform_string())   # e.g. 'linux-amd64'
"""

import functools
import platform
from dataclasses import dataclass

# Architectures whose release archives use a different name than GOARCH
_DIST_ARCH = {
    "arm": "armv6l",
}


@dataclass(frozen=True)
class PlatformInfo:
    """
    Operating system and architecture of a build host.

    Attributes:
        os: GOOS value ('linux', 'darwin', 'windows', ...)
        arch: GOARCH value ('amd64', 'arm64', '386', 'arm', ...)
    """

    os: str
    arch: str

    @property
    def dist_arch(self) -> str:
        """Architecture as spelled in toolchain archive names."""
        return _DIST_ARCH.get(self.arch, self.arch)

    @property
    def exe_suffix(self) -> str:
        """Executable file suffix ('.exe' on Windows, '' elsewhere)."""
        return ".exe" if self.os == "windows" else ""

    def platform_string(self) -> str:
        """
        Get canonical platform string.

        Example:
            >>> PlatformInfo('linux', 'amd64').platform_string()
            'linux-amd64'
        """
        return f"{self.os}-{self.arch}"

    def __str__(self) -> str:
        return self.platform_string()


@functools.lru_cache(maxsize=1)
def detect_platform() -> PlatformInfo:
    """
    Detect current platform information.

    This function is cached - it only runs detection once per process.

    Returns:
        PlatformInfo for the running interpreter
    """
    return PlatformInfo(os=_detect_os(), arch=_detect_architecture())


def _detect_os() -> str:
    """
    Detect operating system.

    Returns:
        GOOS name; unknown systems are returned lowercased as-is
    """
    system = platform.system().lower()

    if system == "darwin":
        return "darwin"
    elif system.startswith(("cygwin", "msys")):
        return "windows"
    return system


def _detect_architecture() -> str:
    """
    Detect CPU architecture.

    Returns:
        GOARCH name; unknown machines are returned lowercased as-is
    """
    machine = platform.machine().lower()

    if machine in ("x86_64", "amd64", "x64"):
        return "amd64"
    elif machine in ("aarch64", "arm64"):
        return "arm64"
    elif machine in ("i386", "i686", "x86"):
        return "386"
    elif machine.startswith("arm"):
        return "arm"
    return machine


def clear_platform_cache():
    """Clear the cached detection result (used by tests)."""
    detect_platform.cache_clear()
