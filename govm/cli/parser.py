"""
govm CLI argument parser.

This module implements the ``govm`` management command using argparse.
Each subcommand lives in ``govm.cli.commands.<name>`` and exposes
``run(args) -> int``.
"""

import argparse
import importlib
import logging
import sys
from pathlib import Path
from typing import List, Optional

from govm import __version__
from govm.core.exceptions import GovmError

logger = logging.getLogger(__name__)


COMMAND_MODULES = {
    "install": "govm.cli.commands.install",
    "uninstall": "govm.cli.commands.uninstall",
    "use": "govm.cli.commands.use",
    "global": "govm.cli.commands.global_version",
    "local": "govm.cli.commands.local_version",
    "version": "govm.cli.commands.current",
    "versions": "govm.cli.commands.versions",
    "list-remote": "govm.cli.commands.list_remote",
    "which": "govm.cli.commands.which",
    "exec": "govm.cli.commands.exec_command",
    "rehash": "govm.cli.commands.rehash",
    "prune": "govm.cli.commands.prune",
}

COMMAND_ALIASES = {
    "i": "install",
    "rm": "uninstall",
    "ls": "versions",
    "ls-remote": "list-remote",
}


class CLI:
    """govm command-line interface."""

    def __init__(self):
        self.parser = self._create_parser()

    def _create_parser(self) -> argparse.ArgumentParser:
        """
        Create argument parser with all subcommands.

        Returns:
            Configured ArgumentParser instance
        """
        parser = argparse.ArgumentParser(
            prog="govm",
            description="Go Version Manager (shim-based) - Install, use, and manage Go versions",
            epilog='Use "govm COMMAND --help" for command-specific help',
            formatter_class=argparse.RawDescriptionHelpFormatter,
        )

        parser.add_argument(
            "--version", action="version", version=f"govm {__version__}"
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
            "--root",
            type=Path,
            metavar="PATH",
            help="Version store root (default: $GOVM_ROOT or ~/.govm)",
        )

        subparsers = parser.add_subparsers(
            dest="command", help="Available commands", metavar="COMMAND"
        )

        self._add_install_command(subparsers)
        self._add_uninstall_command(subparsers)
        self._add_use_command(subparsers)
        self._add_global_command(subparsers)
        self._add_local_command(subparsers)
        self._add_version_command(subparsers)
        self._add_versions_command(subparsers)
        self._add_list_remote_command(subparsers)
        self._add_which_command(subparsers)
        self._add_exec_command(subparsers)
        self._add_rehash_command(subparsers)
        self._add_prune_command(subparsers)

        return parser

    def _add_install_command(self, subparsers):
        parser = subparsers.add_parser(
            "install",
            aliases=["i"],
            help="Install a specific Go version",
            description="Download, verify and install a Go version",
        )
        parser.add_argument(
            "go_version",
            metavar="VERSION",
            help="The Go version to install (e.g., 1.21.0, 1.22.0)",
        )

    def _add_uninstall_command(self, subparsers):
        parser = subparsers.add_parser(
            "uninstall",
            aliases=["rm"],
            help="Uninstall a specific Go version",
        )
        parser.add_argument(
            "go_version", metavar="VERSION", help="The Go version to uninstall"
        )
        parser.add_argument(
            "--force",
            "-f",
            action="store_true",
            help="Remove even if it is the global default (clears the default)",
        )

    def _add_use_command(self, subparsers):
        parser = subparsers.add_parser(
            "use",
            help="Switch to a specific Go version (installs if needed)",
        )
        parser.add_argument(
            "go_version", metavar="VERSION", help="The Go version to switch to"
        )
        parser.add_argument(
            "--local",
            "-l",
            action="store_true",
            help="Set as local version (.go-version) instead of global",
        )

    def _add_global_command(self, subparsers):
        parser = subparsers.add_parser(
            "global",
            help="Set or show the global Go version",
        )
        parser.add_argument(
            "go_version",
            metavar="VERSION",
            nargs="?",
            help="The Go version to set as global default (omit to show current)",
        )

    def _add_local_command(self, subparsers):
        parser = subparsers.add_parser(
            "local",
            help="Set the local Go version (creates .go-version file)",
        )
        parser.add_argument(
            "go_version",
            metavar="VERSION",
            help="The Go version for the current directory",
        )

    def _add_version_command(self, subparsers):
        subparsers.add_parser(
            "version",
            help="Show the current Go version (resolved for current directory)",
        )

    def _add_versions_command(self, subparsers):
        subparsers.add_parser(
            "versions",
            aliases=["ls"],
            help="List installed Go versions",
        )

    def _add_list_remote_command(self, subparsers):
        parser = subparsers.add_parser(
            "list-remote",
            aliases=["ls-remote"],
            help="List available Go versions for download",
        )
        parser.add_argument(
            "--all",
            "-a",
            action="store_true",
            help="Show all versions including release candidates and betas",
        )
        parser.add_argument(
            "--limit",
            "-n",
            type=int,
            default=20,
            metavar="N",
            help="Maximum number of versions to show (default: 20)",
        )

    def _add_which_command(self, subparsers):
        parser = subparsers.add_parser(
            "which",
            help="Show path to the Go executable that will be used",
        )
        parser.add_argument(
            "binary",
            metavar="COMMAND",
            nargs="?",
            default="go",
            help="The command to look up (default: go)",
        )

    def _add_exec_command(self, subparsers):
        parser = subparsers.add_parser(
            "exec",
            help="Execute a command with the resolved Go version",
        )
        parser.add_argument("binary", metavar="COMMAND", help="The command to execute")
        parser.add_argument(
            "args",
            nargs=argparse.REMAINDER,
            help="Arguments to pass to the command",
        )

    def _add_rehash_command(self, subparsers):
        subparsers.add_parser(
            "rehash",
            help="Regenerate shims for all Go binaries",
        )

    def _add_prune_command(self, subparsers):
        parser = subparsers.add_parser(
            "prune",
            help="Prune old/unused Go versions",
            description=(
                "Remove installed versions that are not the global default, "
                "not named by any .go-version under the search roots, and "
                "outside the most recent --keep versions"
            ),
        )
        parser.add_argument(
            "--keep",
            "-k",
            type=int,
            default=3,
            metavar="N",
            help="Keep this many latest versions (default: 3)",
        )
        parser.add_argument(
            "--older-than",
            type=float,
            metavar="DAYS",
            help="Only remove versions installed more than DAYS days ago",
        )
        parser.add_argument(
            "--search-root",
            type=Path,
            action="append",
            dest="search_roots",
            metavar="DIR",
            help="Directory to scan for .go-version files (repeatable)",
        )
        parser.add_argument(
            "--dry-run",
            action="store_true",
            help="Show what would be removed without removing anything",
        )
        parser.add_argument(
            "--yes",
            "-y",
            action="store_true",
            help="Do not ask for confirmation",
        )

    def parse_args(self, args: Optional[List[str]] = None):
        """
        Parse command-line arguments.

        Args:
            args: Arguments to parse (uses sys.argv if None)

        Returns:
            Parsed arguments namespace
        """
        argv = list(sys.argv[1:] if args is None else args)

        # Everything after "exec COMMAND" belongs to the wrapped binary,
        # including a leading "--" that argparse would consume
        passthrough = None
        index = self._command_index(argv)
        if index is not None and argv[index] == "exec" and len(argv) > index + 1:
            argv, passthrough = argv[: index + 2], argv[index + 2 :]

        parsed = self.parser.parse_args(argv)
        if passthrough is not None:
            parsed.args = passthrough
        if parsed.command in COMMAND_ALIASES:
            parsed.command = COMMAND_ALIASES[parsed.command]
        return parsed

    @staticmethod
    def _command_index(argv: List[str]) -> Optional[int]:
        """Position of the subcommand name, skipping global options."""
        skip_value = False
        for index, token in enumerate(argv):
            if skip_value:
                skip_value = False
            elif token == "--root":
                skip_value = True
            elif not token.startswith("-"):
                return index
        return None

    def run(self, args: Optional[List[str]] = None) -> int:
        """
        Run CLI with given arguments.

        Returns:
            Exit code (0 for success, non-zero for error)
        """
        parsed_args = self.parse_args(args)

        self._configure_logging(parsed_args)

        if not parsed_args.command:
            self.parser.print_help()
            return 1

        try:
            return self._dispatch_command(parsed_args)
        except KeyboardInterrupt:
            logger.info("Operation cancelled by user")
            return 130  # Standard exit code for SIGINT
        except GovmError as e:
            logger.error(f"{type(e).__name__}: {e}")
            return 1
        except Exception as e:
            logger.error(f"Error: {e}")
            if parsed_args.verbose:
                import traceback

                traceback.print_exc()
            return 1

    def _configure_logging(self, args):
        """
        Configure logging based on verbose/quiet flags.
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
            force=True,  # Reconfigure if already configured
        )

    def _dispatch_command(self, args) -> int:
        """
        Dispatch to appropriate command handler.

        Returns:
            Exit code from command handler
        """
        module_name = COMMAND_MODULES.get(args.command)
        if not module_name:
            logger.error(f"Unknown command: {args.command}")
            return 1

        module = importlib.import_module(module_name)
        return module.run(args)


def main():
    """Main entry point for CLI."""
    cli = CLI()
    sys.exit(cli.run())


if __name__ == "__main__":
    main()
