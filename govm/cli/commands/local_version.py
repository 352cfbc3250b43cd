"""
Local command implementation.

Writes a .go-version marker in the current directory.
"""

from pathlib import Path

from govm.cli.utils import get_store, require_installed


def run(args) -> int:
    store = get_store(args)
    version = require_installed(store, args.go_version)

    marker = store.write_local(Path.cwd(), version)
    print(f"Local Go version set to {version} ({marker})")
    return 0
