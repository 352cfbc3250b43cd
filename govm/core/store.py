"""
On-disk version store.

Layout under the store root (``~/.govm`` by default):
    versions/<version>/   : One extracted Go toolchain per installed version
    versions/.tmp-*       : Installer scratch (never reported as installed)
    downloads/            : Installer scratch for archives
    lock/                 : Per-version lock files
    shims/                : `go` / `gofmt` shim scripts
    version               : Global default version (optional)
    config.yaml           : Optional configuration

Every query is answered from the file system at call time. Installs and
removals run concurrently in other processes, so nothing here is cached.
"""

import logging
from pathlib import Path
from typing import Iterator, List, Optional

from govm.core import version as versions
from govm.core.config import LOCAL_MARKER_NAME
from govm.core.exceptions import FilesystemError
from govm.core.filesystem import atomic_write

logger = logging.getLogger(__name__)

SCRATCH_PREFIX = "."


class VersionStore:
    """
    Read access to installed versions plus marker file I/O.

    Only the installer mutates ``versions/``; the marker writers here are
    called by user commands.

    Example:
        >>> store = VersionStore(Path.home() / ".govm")
        >>> store.is_installed("1.22.0")
        True
        >>> store.bin_path("1.22.0", "go")
        PosixPath('/home/me/.govm/versions/1.22.0/bin/go')
    """

    def __init__(self, root: Path):
        self.root = Path(root)

    @property
    def versions_dir(self) -> Path:
        return self.root / "versions"

    @property
    def downloads_dir(self) -> Path:
        return self.root / "downloads"

    @property
    def lock_dir(self) -> Path:
        return self.root / "lock"

    @property
    def shims_dir(self) -> Path:
        return self.root / "shims"

    @property
    def global_version_file(self) -> Path:
        return self.root / "version"

    def ensure(self) -> None:
        """
        Create the directory skeleton.

        Only mutating commands call this; read paths treat a missing root
        as an empty store.

        Raises:
            FilesystemError: If a directory cannot be created
        """
        for directory in (
            self.versions_dir,
            self.downloads_dir,
            self.lock_dir,
            self.shims_dir,
        ):
            try:
                directory.mkdir(parents=True, exist_ok=True)
            except OSError as e:
                raise FilesystemError(
                    f"Failed to create {directory}: {e}", path=directory
                ) from e

    # ------------------------------------------------------------------
    # Installed versions
    # ------------------------------------------------------------------

    def list(self) -> Iterator[str]:
        """
        Enumerate installed versions.

        Lazily scans ``versions/`` on every call. A missing store root
        yields nothing.
        """
        try:
            entries = list(self.versions_dir.iterdir())
        except FileNotFoundError:
            return
        except NotADirectoryError:
            return

        for entry in entries:
            if entry.name.startswith(SCRATCH_PREFIX):
                continue
            if entry.is_dir():
                yield entry.name

    def sorted(self, newest_first: bool = True) -> List[str]:
        """Installed versions in release order."""
        return versions.sort_versions(self.list(), newest_first=newest_first)

    def path_of(self, version: str) -> Path:
        """Directory for a version, whether or not it is installed."""
        return self.versions_dir / version

    def bin_path(self, version: str, command: str) -> Path:
        """Path of a toolchain binary inside a version directory."""
        return self.path_of(version) / "bin" / command

    def is_installed(self, version: str) -> bool:
        if not version or version.startswith(SCRATCH_PREFIX):
            return False
        return self.path_of(version).is_dir()

    # ------------------------------------------------------------------
    # Marker files
    # ------------------------------------------------------------------

    def read_global(self) -> Optional[str]:
        """
        Raw content of the global default file.

        Returns:
            Stripped content, or None if the file is absent or blank
        """
        return read_marker(self.global_version_file)

    def write_global(self, version: str) -> Path:
        atomic_write(self.global_version_file, f"{version}\n")
        logger.debug(f"Wrote global version {version} to {self.global_version_file}")
        return self.global_version_file

    def clear_global(self) -> None:
        self.global_version_file.unlink(missing_ok=True)
        logger.debug(f"Cleared global version file {self.global_version_file}")

    def write_local(self, directory: Path, version: str) -> Path:
        """Write a ``.go-version`` marker in ``directory``."""
        marker = Path(directory) / LOCAL_MARKER_NAME
        atomic_write(marker, f"{version}\n")
        logger.debug(f"Wrote local version {version} to {marker}")
        return marker


def read_marker(path: Path) -> Optional[str]:
    """
    Read a marker file.

    Returns:
        Stripped content, or None if the file is missing or whitespace-only

    Raises:
        OSError: If the file exists but cannot be read
    """
    try:
        content = Path(path).read_text(encoding="utf-8")
    except FileNotFoundError:
        return None

    content = content.strip()
    return content or None
