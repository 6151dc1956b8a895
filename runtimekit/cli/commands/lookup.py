"""
Lookup command implementation.

Prints the toolchain archive URL and digest from the release index.
"""

import logging

from runtimekit.cli.utils import load_cli_config, make_context, make_runtime
from runtimekit.core.platform import PlatformInfo

logger = logging.getLogger(__name__)


def run(args) -> int:
    """
    Run the lookup command.

    Args:
        args: Parsed command-line arguments

    Returns:
        Exit code (0 for success)
    """
    config = load_cli_config(args)
    runtime = make_runtime(config, args.go_version)

    if args.os or args.arch:
        runtime.platform = PlatformInfo(
            os=args.os or runtime.platform.os,
            arch=args.arch or runtime.platform.arch,
        )

    release = runtime.get_release_and_digest(context=make_context(args))
    print(f"{release.url}  {release.sha256}")
    return 0
