"""
Toolchain management for govm.

This package provides:
- The remote release catalog
- Version resolution (environment, .go-version files, global default)
- Installation, removal and pruning of versions
- The shim dispatcher that runs the resolved binary
"""

from govm.toolchain.catalog import GoFile, GoRelease, ReleaseCatalog
from govm.toolchain.installer import (
    Installer,
    InstallResult,
    InstalledVersion,
    PruneResult,
    keep_latest,
    older_than,
    all_of,
)
from govm.toolchain.resolver import (
    VersionResolver,
    VersionSource,
    Resolved,
    Unresolved,
)
from govm.toolchain.shim import (
    ShimDispatcher,
    EXIT_NOT_CONFIGURED,
    EXIT_NOT_INSTALLED,
    EXIT_COMMAND_NOT_FOUND,
    create_all_shims,
    ensure_shims,
)

__all__ = [
    "GoFile",
    "GoRelease",
    "ReleaseCatalog",
    "Installer",
    "InstallResult",
    "InstalledVersion",
    "PruneResult",
    "keep_latest",
    "older_than",
    "all_of",
    "VersionResolver",
    "VersionSource",
    "Resolved",
    "Unresolved",
    "ShimDispatcher",
    "EXIT_NOT_CONFIGURED",
    "EXIT_NOT_INSTALLED",
    "EXIT_COMMAND_NOT_FOUND",
    "create_all_shims",
    "ensure_shims",
]
