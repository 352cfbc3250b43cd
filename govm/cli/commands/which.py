"""
Which command implementation.

Prints the binary a shim would run in the current directory.
"""

from govm.cli.utils import get_store
from govm.toolchain.shim import ShimDispatcher


def run(args) -> int:
    store = get_store(args)
    _, binary = ShimDispatcher(store).locate(args.binary)
    print(binary)
    return 0
