"""
RuntimeKit CLI argument parser.

This module implements the command-line interface for RuntimeKit using argparse.
"""

import argparse
import importlib
import logging
import sys
from pathlib import Path
from typing import List, Optional

from runtimekit import __version__
from runtimekit.core.exceptions import RuntimeKitError

logger = logging.getLogger(__name__)


class CLI:
    """RuntimeKit command-line interface."""

    def __init__(self):
        """Initialize CLI with argument parser."""
        self.parser = self._create_parser()

    def _create_parser(self) -> argparse.ArgumentParser:
        """
        Create argument parser with all subcommands.

        Returns:
            Configured ArgumentParser instance
        """
        parser = argparse.ArgumentParser(
            prog="runtimekit",
            description="RuntimeKit - on-demand Go toolchains for tool execution",
            epilog='Use "runtimekit COMMAND --help" for command-specific help',
            formatter_class=argparse.RawDescriptionHelpFormatter,
        )

        parser.add_argument(
            "--version", action="version", version=f"RuntimeKit {__version__}"
        )
        parser.add_argument(
            "--verbose", "-v", action="store_true", help="Enable verbose output"
        )
        parser.add_argument(
            "--quiet",
            "-q",
            action="store_true",
            help="Enable minimal output (errors only)",
        )
        parser.add_argument(
            "--config",
            type=Path,
            metavar="PATH",
            help="Path to configuration file (default: ./runtimekit.yaml)",
        )
        parser.add_argument(
            "--timeout",
            type=float,
            metavar="SECONDS",
            help="Overall deadline for the command",
        )

        subparsers = parser.add_subparsers(
            dest="command", help="Available commands", metavar="COMMAND"
        )

        self._add_lookup_command(subparsers)
        self._add_prepare_command(subparsers)
        self._add_fetch_binary_command(subparsers)
        self._add_resolve_command(subparsers)

        return parser

    def _add_lookup_command(self, subparsers):
        """Add 'lookup' subcommand."""
        parser = subparsers.add_parser(
            "lookup",
            help="Show the toolchain archive for a platform",
            description="Look up the Go toolchain URL and digest in the release index",
        )
        parser.add_argument("--go-version", metavar="VERSION", help="Go version")
        parser.add_argument("--os", metavar="OS", help="GOOS (default: host)")
        parser.add_argument("--arch", metavar="ARCH", help="GOARCH (default: host)")

    def _add_prepare_command(self, subparsers):
        """Add 'prepare' subcommand."""
        parser = subparsers.add_parser(
            "prepare",
            help="Provision Go and build a tool",
            description="Download the Go toolchain if needed and run go build in SOURCE",
        )
        parser.add_argument(
            "--source",
            type=Path,
            required=True,
            metavar="DIR",
            help="Tool source directory",
        )
        parser.add_argument("--go-version", metavar="VERSION", help="Go version")

    def _add_fetch_binary_command(self, subparsers):
        """Add 'fetch-binary' subcommand."""
        parser = subparsers.add_parser(
            "fetch-binary",
            help="Install a prebuilt tool binary from a GitHub release",
            description="Download the release binary matching REPO at REVISION",
        )
        parser.add_argument(
            "--source",
            type=Path,
            required=True,
            metavar="DIR",
            help="Tool source directory (binary is written to DIR/bin)",
        )
        self._add_repo_arguments(parser)

    def _add_resolve_command(self, subparsers):
        """Add 'resolve' subcommand."""
        parser = subparsers.add_parser(
            "resolve",
            help="Resolve the GitHub release for a revision",
            description="Print the release label matching REPO at REVISION",
        )
        self._add_repo_arguments(parser)

    def _add_repo_arguments(self, parser):
        parser.add_argument(
            "--repo", required=True, metavar="URL", help="Repository root URL"
        )
        parser.add_argument(
            "--revision", default="", metavar="SHA", help="Pinned commit hash"
        )

    def run(self, argv: Optional[List[str]] = None) -> int:
        """
        Parse arguments and run command.

        Args:
            argv: Command-line arguments (default: sys.argv[1:])

        Returns:
            Exit code
        """
        args = self.parser.parse_args(argv)

        self._configure_logging(args)

        if not args.command:
            self.parser.print_help()
            return 0

        return self._dispatch_command(args)

    def _configure_logging(self, args):
        """
        Configure logging based on verbose/quiet flags.

        Args:
            args: Parsed arguments with verbose/quiet flags
        """
        if args.verbose:
            level = logging.DEBUG
            format_str = "%(levelname)s [%(name)s] %(message)s"
        elif args.quiet:
            level = logging.ERROR
            format_str = "%(levelname)s: %(message)s"
        else:
            level = logging.INFO
            format_str = "%(message)s"

        logging.basicConfig(
            level=level,
            format=format_str,
            force=True,
        )

    def _dispatch_command(self, args) -> int:
        """
        Dispatch to appropriate command handler.

        Args:
            args: Parsed arguments with command field

        Returns:
            Exit code from command handler
        """
        command_map = {
            "lookup": "runtimekit.cli.commands.lookup",
            "prepare": "runtimekit.cli.commands.prepare",
            "fetch-binary": "runtimekit.cli.commands.fetch_binary",
            "resolve": "runtimekit.cli.commands.resolve",
        }

        module_name = command_map.get(args.command)
        if not module_name:
            logger.error(f"Unknown command: {args.command}")
            return 1

        module = importlib.import_module(module_name)

        try:
            return module.run(args)
        except RuntimeKitError as e:
            logger.error(f"Error: {e}")
            if args.verbose:
                import traceback

                traceback.print_exc()
            return 1
        except KeyboardInterrupt:
            logger.error("Interrupted")
            return 130


def main():
    """Main entry point for CLI."""
    cli = CLI()
    sys.exit(cli.run())


if __name__ == "__main__":
    main()
