"""
Global command implementation.

Shows or sets the global default version.
"""

import logging

from govm.cli.utils import get_store, require_installed

logger = logging.getLogger(__name__)


def run(args) -> int:
    """
    Run the global command.

    Args:
        args: Parsed command-line arguments with:
            - go_version: Version to set, or None to show the current default

    Returns:
        Exit code (0 for success, 1 if no default is set when showing)
    """
    store = get_store(args)

    if args.go_version is None:
        current = store.read_global()
        if current is None:
            print("No global version set")
            return 1
        print(current)
        return 0

    version = require_installed(store, args.go_version)
    store.ensure()
    store.write_global(version)
    print(f"Global Go version set to {version}")
    return 0
