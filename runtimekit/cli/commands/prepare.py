"""
Prepare command implementation.

Provisions the Go toolchain and builds the tool in the source directory.
"""

import logging

from runtimekit.cli.utils import load_cli_config, make_context, make_runtime
from runtimekit.core.environment import current_env
from runtimekit.types import ToolDescriptor

logger = logging.getLogger(__name__)


def run(args) -> int:
    """
    Run the prepare command.

    Args:
        args: Parsed command-line arguments

    Returns:
        Exit code (0 for success)
    """
    config = load_cli_config(args)
    runtime = make_runtime(config, args.go_version)
    source = args.source.resolve()

    if not source.is_dir():
        logger.error(f"Source directory not found: {source}")
        return 1

    tool = ToolDescriptor(name=source.name)
    new_env = runtime.prepare_and_build(
        tool,
        config.resolved_data_root(),
        source,
        current_env(),
        context=make_context(args),
    )

    logger.info(f"Built {source / 'bin'}")
    for entry in new_env:
        print(entry)
    return 0
