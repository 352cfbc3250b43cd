"""
List-remote command implementation.

Lists versions published in the release catalog.
"""

import logging

from govm.cli.utils import get_config
from govm.core import version as versions
from govm.core.store import VersionStore
from govm.toolchain.catalog import ReleaseCatalog

logger = logging.getLogger(__name__)


def run(args) -> int:
    """
    Run the list-remote command.

    Args:
        args: Parsed command-line arguments with:
            - all: Include release candidates and betas
            - limit: Maximum number of versions to show (0 for no limit)

    Returns:
        Exit code (0 for success)
    """
    config = get_config(args)
    store = VersionStore(config.root)

    releases = ReleaseCatalog(config).fetch()
    available = [r.version for r in releases if args.all or r.stable]
    available = versions.sort_versions(set(available))

    if args.limit and args.limit > 0:
        available = available[: args.limit]

    if not available:
        print("No versions available")
        return 0

    raw_global = store.read_global()
    global_default = versions.normalize(raw_global) if raw_global else None

    print("Available Go versions:")
    for version in available:
        tags = []
        if store.is_installed(version):
            tags.append("installed")
        if version == global_default:
            tags.append("global")
        suffix = f" ({', '.join(tags)})" if tags else ""
        print(f"  {version}{suffix}")

    return 0
