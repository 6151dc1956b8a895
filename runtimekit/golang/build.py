"""
Go build invocation.

Builds run with the cached toolchain's go binary, with every GO* variable
from the caller's environment removed so ambient GOROOT/GOPATH/GOFLAGS
settings cannot leak into the child build. VCS stamping is disabled so
builds of checkouts without git metadata behave the same as clones.
"""

import logging
from pathlib import Path
from typing import List, Optional

from runtimekit.core.context import OperationContext
from runtimekit.core.environment import strip_prefixed
from runtimekit.core.platform import PlatformInfo, detect_platform
from runtimekit.core.process import run_command
from runtimekit.golang.releases import TOOL_BINARY_NAME

logger = logging.getLogger(__name__)

RESERVED_ENV_PREFIX = "GO"
BUILD_FLAGS = ["build", "-buildvcs=false"]
CREDENTIAL_HELPER_PREFIX = "gptscript-credential-"


def strip_go(env: List[str]) -> List[str]:
    """Remove entries whose key starts with GO."""
    return strip_prefixed(env, RESERVED_ENV_PREFIX)


def artifact_name(platform: Optional[PlatformInfo] = None) -> str:
    """Build output path, relative to the tool source directory."""
    platform = platform or detect_platform()
    return str(Path("bin") / f"{TOOL_BINARY_NAME}{platform.exe_suffix}")


def go_executable(bin_dir: Path, platform: Optional[PlatformInfo] = None) -> Path:
    """Path of the go binary inside a toolchain bin directory."""
    platform = platform or detect_platform()
    return Path(bin_dir) / f"go{platform.exe_suffix}"


def run_build(
    tool_source: Path,
    bin_dir: Path,
    env: List[str],
    platform: Optional[PlatformInfo] = None,
    context: Optional[OperationContext] = None,
):
    """
    Run ``go build`` in tool_source producing bin/gptscript-go-tool.

    Args:
        tool_source: Directory holding the tool's Go module
        bin_dir: Toolchain bin directory
        env: Environment entries (GO* entries are stripped)
        platform: Target platform (detected if None)
        context: Optional operation context

    Raises:
        CommandError: If go build fails
        OSError: If go cannot be started
    """
    logger.info(f"Running go build in {tool_source}")
    run_command(
        go_executable(bin_dir, platform),
        [*BUILD_FLAGS, "-o", artifact_name(platform)],
        cwd=tool_source,
        env=strip_go(env),
        context=context,
    )


def build_credential_helper_binary(
    helper_name: str,
    bin_dir: Path,
    output_dir: Path,
    source_dir: Path,
    env: List[str],
    platform: Optional[PlatformInfo] = None,
    context: Optional[OperationContext] = None,
) -> Path:
    """
    Build the ``./<helper>/cmd/`` package of a credential helper checkout.

    Args:
        helper_name: Helper name, e.g. 'osxkeychain', 'wincred'
        bin_dir: Toolchain bin directory
        output_dir: Directory receiving gptscript-credential-<helper>
        source_dir: Checkout of the credential helpers repository
        env: Environment entries (GO* entries are stripped)
        platform: Target platform (detected if None)
        context: Optional operation context

    Returns:
        Path of the built helper binary
    """
    suffix = ".exe" if helper_name == "wincred" else ""
    output = Path(output_dir) / f"{CREDENTIAL_HELPER_PREFIX}{helper_name}{suffix}"

    logger.info(f"Building credential helper {helper_name}")
    run_command(
        go_executable(bin_dir, platform),
        [*BUILD_FLAGS, "-o", str(output), f"./{helper_name}/cmd/"],
        cwd=source_dir,
        env=strip_go(env),
        context=context,
    )
    return output
