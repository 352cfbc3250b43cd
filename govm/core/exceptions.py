"""
Centralized exception hierarchy for govm.

Every failure the engine reports maps to one of these kinds. Each exception
carries the context needed to act on it (which version, which marker file,
which lock), so callers can report precisely without re-deriving it.
"""

from pathlib import Path
from typing import Optional


# ============================================================================
# Base Exception
# ============================================================================


class GovmError(Exception):
    """Base exception for all govm errors."""

    pass


# ============================================================================
# Configuration Exceptions
# ============================================================================


class ConfigurationError(GovmError):
    """Malformed or missing version selection or configuration."""

    def __init__(self, message: str, path: Optional[Path] = None):
        self.path = path
        super().__init__(message)


class VersionNotAvailableError(ConfigurationError):
    """Requested version is not published for the current platform."""

    def __init__(self, version: str, platform: str = ""):
        self.version = version
        self.platform = platform
        msg = f"Go {version} is not available"
        if platform:
            msg += f" for {platform}"
        super().__init__(msg + ". Run 'govm list-remote --all' to see versions.")


# ============================================================================
# Store Exceptions
# ============================================================================


class NotInstalledError(GovmError):
    """Resolved or requested version is absent from the store."""

    def __init__(self, version: str):
        self.version = version
        super().__init__(
            f"Go {version} is not installed. Run 'govm install {version}'."
        )


class InUseError(GovmError):
    """Raised when removing the global default without force."""

    def __init__(self, version: str):
        self.version = version
        super().__init__(
            f"Go {version} is the global default. "
            "Use --force to remove it anyway."
        )


class LockContention(GovmError):
    """Another process holds the lock for this version."""

    def __init__(self, version: str, lock_path: Path, timeout: float):
        self.version = version
        self.lock_path = lock_path
        self.timeout = timeout
        super().__init__(
            f"Could not acquire lock for Go {version} after {timeout}s "
            f"({lock_path}). Another govm process may be installing or "
            "removing this version."
        )


class FilesystemError(GovmError):
    """Permission, space or layout problem while mutating the store."""

    def __init__(self, message: str, path: Optional[Path] = None):
        self.path = path
        super().__init__(message)


# ============================================================================
# Download Exceptions
# ============================================================================


class DownloadError(GovmError):
    """Network failure after bounded retries."""

    def __init__(self, message: str, url: str = ""):
        self.url = url
        super().__init__(message)


class IntegrityError(GovmError):
    """Downloaded artifact failed verification."""

    def __init__(self, message: str, path: Optional[Path] = None):
        self.path = path
        super().__init__(message)


class CommandNotFoundError(GovmError):
    """The resolved version ships no binary with the requested name."""

    def __init__(self, command: str, version: str):
        self.command = command
        self.version = version
        super().__init__(f"Command '{command}' not found in Go {version}")
