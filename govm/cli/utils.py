"""
Shared utilities for CLI commands.

Provides common functionality used across multiple CLI commands to
eliminate duplication and ensure consistent behavior.
"""

import logging
import sys
from pathlib import Path
from typing import Optional

from govm.core.config import GovmConfig, load_config
from govm.core.download import DownloadProgress
from govm.core.exceptions import NotInstalledError
from govm.core.store import VersionStore
from govm.core import version as versions
from govm.toolchain.installer import Installer

logger = logging.getLogger(__name__)


# ============================================================================
# Context
# ============================================================================


def get_config(args) -> GovmConfig:
    """
    Load configuration honoring the global ``--root`` option.

    Args:
        args: Parsed arguments (``root`` may be None)
    """
    root = getattr(args, "root", None)
    return load_config(root=Path(root) if root else None)


def get_store(args) -> VersionStore:
    return VersionStore(get_config(args).root)


def get_installer(args) -> Installer:
    config = get_config(args)
    return Installer(VersionStore(config.root), config)


def require_installed(store: VersionStore, version: str) -> str:
    """
    Normalize a version and check that it is installed.

    Raises:
        ConfigurationError: If the version is malformed
        NotInstalledError: If it is not installed
    """
    version = versions.validate(version)
    if not store.is_installed(version):
        raise NotInstalledError(version)
    return version


# ============================================================================
# Output Formatting
# ============================================================================


def print_error(message: str, details: Optional[str] = None):
    """
    Print formatted error message to stderr.

    Args:
        message: Main error message
        details: Optional additional details
    """
    print(f"Error: {message}", file=sys.stderr)
    if details:
        print(f"  {details}", file=sys.stderr)


def print_warning(message: str):
    print(f"Warning: {message}", file=sys.stderr)


def confirm(prompt: str) -> bool:
    """Ask a yes/no question on stdin; anything but 'y' means no."""
    try:
        answer = input(f"{prompt} [y/N] ")
    except EOFError:
        return False
    return answer.strip().lower() in ("y", "yes")


def log_download_progress(progress: DownloadProgress) -> None:
    logger.debug(f"  {progress}")
