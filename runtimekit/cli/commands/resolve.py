"""
Resolve command implementation.

Prints the GitHub release label matching a repository revision.
"""

import logging

import requests

from runtimekit.cli.utils import (
    EXIT_UNAVAILABLE,
    load_cli_config,
    make_context,
    make_resolver,
)
from runtimekit.types import Repo

logger = logging.getLogger(__name__)


def run(args) -> int:
    """
    Run the resolve command.

    Args:
        args: Parsed command-line arguments

    Returns:
        0 when resolved, 3 when not resolvable
    """
    config = load_cli_config(args)
    resolver = make_resolver(config, requests.Session())

    release = resolver.resolve(Repo(args.repo, args.revision), context=make_context(args))
    if release is None:
        logger.info(f"No release found for {args.repo}")
        return EXIT_UNAVAILABLE

    print(release.label)
    return 0
