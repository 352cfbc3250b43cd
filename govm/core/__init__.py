"""
Core functionality for govm.

This package contains the foundational modules the resolver, installer and
shim dispatcher depend on: configuration, the on-disk version store, locking,
downloads, file system helpers and the error taxonomy.
"""

from .config import (
    GovmConfig,
    load_config,
    get_default_root,
    GO_BINARIES,
    LOCAL_MARKER_NAME,
    ROOT_ENV_VAR,
    VERSION_ENV_VAR,
)

from .exceptions import (
    GovmError,
    ConfigurationError,
    VersionNotAvailableError,
    NotInstalledError,
    InUseError,
    LockContention,
    FilesystemError,
    DownloadError,
    IntegrityError,
    CommandNotFoundError,
)

from .locking import LockManager, try_lock

from .platform import PlatformInfo, detect_platform

from .store import VersionStore, read_marker

__all__ = [
    "GovmConfig",
    "load_config",
    "get_default_root",
    "GO_BINARIES",
    "LOCAL_MARKER_NAME",
    "ROOT_ENV_VAR",
    "VERSION_ENV_VAR",
    "GovmError",
    "ConfigurationError",
    "VersionNotAvailableError",
    "NotInstalledError",
    "InUseError",
    "LockContention",
    "FilesystemError",
    "DownloadError",
    "IntegrityError",
    "CommandNotFoundError",
    "LockManager",
    "try_lock",
    "PlatformInfo",
    "detect_platform",
    "VersionStore",
    "read_marker",
]
