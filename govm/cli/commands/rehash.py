"""
Rehash command implementation.

Regenerates the shim scripts.
"""

import logging

from govm.cli.utils import get_store
from govm.toolchain.shim import create_all_shims

logger = logging.getLogger(__name__)


def run(args) -> int:
    store = get_store(args)
    store.ensure()

    for shim in create_all_shims(store.shims_dir):
        logger.info(f"Rehashed shim: {shim}")

    print(f"Shims regenerated in {store.shims_dir}")
    return 0
