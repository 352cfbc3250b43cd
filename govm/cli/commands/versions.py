"""
Versions command implementation.

Lists installed versions, newest first.
"""

import logging

from govm.cli.utils import get_store
from govm.core import version as versions
from govm.toolchain.resolver import Resolved, VersionResolver

logger = logging.getLogger(__name__)


def run(args) -> int:
    """
    Run the versions command.

    The version in effect for the current directory is marked with ``*``;
    the global default is tagged ``(global)``.
    """
    store = get_store(args)
    installed = store.sorted()

    if not installed:
        print("No Go versions installed")
        print("Run 'govm install <version>' to install one")
        return 0

    resolution = VersionResolver(store).resolve()
    current = resolution.version if isinstance(resolution, Resolved) else None

    raw_global = store.read_global()
    global_default = versions.normalize(raw_global) if raw_global else None

    for version in installed:
        marker = "*" if version == current else " "
        suffix = " (global)" if version == global_default else ""
        print(f"{marker} {version}{suffix}")

    return 0
