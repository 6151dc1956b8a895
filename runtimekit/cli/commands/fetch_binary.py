"""
Fetch-binary command implementation.

Installs a prebuilt tool binary from the GitHub release matching a revision.
"""

import logging

from runtimekit.cli.utils import (
    EXIT_UNAVAILABLE,
    load_cli_config,
    make_context,
    make_runtime,
)
from runtimekit.core.environment import current_env
from runtimekit.golang.build import artifact_name
from runtimekit.types import Repo, ToolDescriptor, ToolSource

logger = logging.getLogger(__name__)


def run(args) -> int:
    """
    Run the fetch-binary command.

    Args:
        args: Parsed command-line arguments

    Returns:
        0 when the binary was installed, 3 when none is available
    """
    config = load_cli_config(args)
    runtime = make_runtime(config)
    source = args.source.resolve()

    tool = ToolDescriptor(
        name=source.name,
        source=ToolSource(location=args.repo, repo=Repo(args.repo, args.revision)),
    )
    found, _ = runtime.fetch_prebuilt_binary(
        tool, source, current_env(), context=make_context(args)
    )

    if not found:
        logger.info("No prebuilt binary available")
        return EXIT_UNAVAILABLE

    print(source / artifact_name(runtime.platform))
    return 0
