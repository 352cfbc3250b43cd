"""
Uninstall command implementation.
"""

import logging

from govm.cli.utils import get_config
from govm.core import version as versions
from govm.core.store import VersionStore
from govm.toolchain.installer import Installer

logger = logging.getLogger(__name__)


def run(args) -> int:
    """
    Run the uninstall command.

    With ``--force``, removing the global default also clears it so the
    shims report "not configured" instead of pointing at a missing version.
    """
    config = get_config(args)
    store = VersionStore(config.root)
    installer = Installer(store, config)

    version = versions.validate(args.go_version)
    path = installer.remove(version, force=args.force)
    print(f"Removed Go {version} from {path}")

    global_default = store.read_global()
    if args.force and global_default and versions.normalize(global_default) == version:
        store.clear_global()
        logger.warning(
            f"Go {version} was the global default; no global version is set now. "
            "Run 'govm global <version>' to choose another."
        )

    return 0
