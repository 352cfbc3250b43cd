"""
Install command implementation.

Downloads, verifies and installs a Go version.
"""

import logging

from govm.cli.utils import get_config, log_download_progress
from govm.core.store import VersionStore
from govm.toolchain.installer import Installer
from govm.toolchain.shim import ensure_shims

logger = logging.getLogger(__name__)


def run(args) -> int:
    """
    Run the install command.

    Args:
        args: Parsed command-line arguments with:
            - go_version: Version to install

    Returns:
        Exit code (0 for success)
    """
    config = get_config(args)
    store = VersionStore(config.root)
    installer = Installer(store, config)

    result = installer.install(args.go_version, progress_callback=log_download_progress)

    if result.was_cached:
        print(f"Go {result.version} is already installed at {result.path}")
    else:
        print(f"Go {result.version} installed at {result.path}")
        logger.debug(
            f"Download took {result.download_time:.1f}s, "
            f"extraction took {result.extraction_time:.1f}s"
        )

    for shim in ensure_shims(store.shims_dir):
        logger.info(f"Created shim: {shim}")

    # First install becomes the default
    if store.read_global() is None:
        store.write_global(result.version)
        print(f"Set Go {result.version} as the global default")

    return 0
