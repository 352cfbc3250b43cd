"""
Use command implementation.

Installs a version if needed, then selects it globally or for the current
directory.
"""

import logging
from pathlib import Path

from govm.cli.utils import get_config, log_download_progress
from govm.core.store import VersionStore
from govm.toolchain.installer import Installer
from govm.toolchain.shim import ensure_shims

logger = logging.getLogger(__name__)


def run(args) -> int:
    config = get_config(args)
    store = VersionStore(config.root)
    installer = Installer(store, config)

    result = installer.install(args.go_version, progress_callback=log_download_progress)
    if not result.was_cached:
        print(f"Go {result.version} installed at {result.path}")

    ensure_shims(store.shims_dir)

    if args.local:
        marker = store.write_local(Path.cwd(), result.version)
        print(f"Now using Go {result.version} in {marker.parent} ({marker.name})")
    else:
        store.write_global(result.version)
        print(f"Now using Go {result.version} globally")

    return 0
