"""
Platform detection for govm.

Maps the running interpreter's OS and CPU architecture onto the names the Go
release catalog uses (``linux``/``darwin``, ``amd64``/``arm64``/...), so the
installer can pick the matching archive.

Usage:
    from govm.core.platform import detect_platform

    info = detect_platform()
    print(info.platform_string())  # e.g. 'linux-amd64'
"""

import functools
import platform
from dataclasses import dataclass

from govm.core.exceptions import ConfigurationError

SUPPORTED_OS = ("linux", "darwin", "freebsd")


@dataclass(frozen=True)
class PlatformInfo:
    """
    Platform information in Go's naming.

    Attributes:
        os: GOOS value ('linux', 'darwin', 'freebsd')
        arch: GOARCH value ('amd64', 'arm64', '386', 'armv6l', ...)
    """

    os: str
    arch: str

    def platform_string(self) -> str:
        """
        Get canonical platform string (e.g., 'linux-amd64').

        Example:
            >>> PlatformInfo('darwin', 'arm64').platform_string()
            'darwin-arm64'
        """
        return f"{self.os}-{self.arch}"

    def __str__(self) -> str:
        return self.platform_string()


@functools.lru_cache(maxsize=1)
def detect_platform() -> PlatformInfo:
    """
    Detect the current platform.

    Cached: detection runs once per process.

    Raises:
        ConfigurationError: If the OS is not a supported POSIX system
    """
    return PlatformInfo(os=_detect_os(), arch=_detect_architecture())


def _detect_os() -> str:
    system = platform.system().lower()

    if system not in SUPPORTED_OS:
        raise ConfigurationError(
            f"Unsupported operating system: {platform.system()}. "
            f"govm supports {', '.join(SUPPORTED_OS)}."
        )
    return system


def _detect_architecture() -> str:
    """
    Detect CPU architecture.

    Returns:
        GOARCH name, or the raw machine string for unknown architectures
    """
    machine = platform.machine().lower()

    if machine in ("x86_64", "amd64", "x64"):
        return "amd64"
    elif machine in ("aarch64", "arm64"):
        return "arm64"
    elif machine in ("i386", "i686", "x86"):
        return "386"
    elif machine.startswith("arm"):
        # Go publishes 32-bit ARM builds as armv6l only
        return "armv6l"
    else:
        # ppc64le, s390x, riscv64 and loong64 already match Go's names
        return machine


def clear_platform_cache() -> None:
    """Clear the cached detection result (used by tests)."""
    detect_platform.cache_clear()
