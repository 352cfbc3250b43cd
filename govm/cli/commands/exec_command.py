"""
Exec command implementation.

Runs a toolchain command with the version resolved for the current
directory. This is what the shim scripts call.
"""

import logging

from govm.cli.utils import get_config
from govm.core.exceptions import ConfigurationError
from govm.core.store import VersionStore
from govm.toolchain.shim import EXIT_NOT_CONFIGURED, ShimDispatcher

logger = logging.getLogger(__name__)


def run(args) -> int:
    """
    Run the exec command.

    Only returns when the command could not be started; on success the
    process is replaced by the toolchain binary.

    Returns:
        Dispatcher exit code
    """
    try:
        config = get_config(args)
    except ConfigurationError as e:
        logger.error(f"govm: {e}")
        return EXIT_NOT_CONFIGURED

    dispatcher = ShimDispatcher(VersionStore(config.root), mode="exec")
    return dispatcher.dispatch(args.binary, args.args)
