"""
Version command implementation.

Shows the version resolved for the current directory and where it came from.
"""

import logging

from govm.cli.utils import get_store, print_warning
from govm.toolchain.resolver import Unresolved, VersionResolver

logger = logging.getLogger(__name__)


def run(args) -> int:
    store = get_store(args)
    resolution = VersionResolver(store).resolve()

    if isinstance(resolution, Unresolved):
        if resolution.version is not None:
            print(f"{resolution.version} (not installed)")
            print_warning(resolution.reason)
        else:
            print(f"No Go version configured: {resolution.reason}")
        return 1

    print(f"{resolution.version} ({resolution.describe()})")
    if not store.is_installed(resolution.version):
        print_warning(
            f"Go {resolution.version} is not installed. "
            f"Run 'govm install {resolution.version}'."
        )
    return 0
