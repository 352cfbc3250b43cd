"""
Version resolution.

Decides which Go version applies to an invocation. Sources are consulted in
strict precedence order, the first match wins:

    1. GOVM_VERSION environment variable (not required to be installed)
    2. The nearest ``.go-version`` file, walking up from the start directory
    3. The global default file ``<root>/version`` (must be installed)

Resolution is a pure read of the environment and file system. It never
installs, downloads or locks anything and never raises for configuration
problems: it returns ``Unresolved`` with a reason instead.
"""

import logging
import os
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Mapping, Optional, Union

from govm.core import version as versions
from govm.core.config import LOCAL_MARKER_NAME, VERSION_ENV_VAR
from govm.core.store import VersionStore, read_marker

logger = logging.getLogger(__name__)


class VersionSource(Enum):
    """Where a resolved version came from."""

    ENVIRONMENT = "environment"
    LOCAL_FILE = "local"
    GLOBAL_FILE = "global"


@dataclass(frozen=True)
class Resolved:
    """
    A version was configured.

    Attributes:
        version: Normalized version string
        source: Which precedence level supplied it
        origin: Marker file path, or the environment variable name
    """

    version: str
    source: VersionSource
    origin: str

    def describe(self) -> str:
        return f"set by {self.origin}"


@dataclass(frozen=True)
class Unresolved:
    """
    No usable version.

    Attributes:
        reason: Human-readable explanation naming the offending file/variable
        version: Set when a version was named but cannot be used because it
            is not installed (global default pointing at a removed version)
        origin: File path or variable name involved, if any
    """

    reason: str
    version: Optional[str] = None
    origin: Optional[str] = None


Resolution = Union[Resolved, Unresolved]


class VersionResolver:
    """
    Resolve the effective version for a directory.

    Example:
        >>> resolver = VersionResolver(store)
        >>> result = resolver.resolve(Path.cwd())
        >>> if isinstance(result, Resolved):
        ...     print(result.version, result.source)
    """

    def __init__(self, store: VersionStore, environ: Optional[Mapping[str, str]] = None):
        self.store = store
        self.environ = os.environ if environ is None else environ

    def resolve(self, start_dir: Optional[Path] = None) -> Resolution:
        """
        Resolve the version that applies in ``start_dir``.

        Args:
            start_dir: Directory to start the marker search from (default: cwd)

        Returns:
            Resolved or Unresolved
        """
        result = self._from_environment()
        if result is not None:
            return result

        result = self._from_local_marker(Path.cwd() if start_dir is None else Path(start_dir))
        if result is not None:
            return result

        result = self._from_global_file()
        if result is not None:
            return result

        return Unresolved("no version configured")

    def find_local_marker(self, start_dir: Path) -> Optional[Path]:
        """
        Find the nearest non-blank ``.go-version`` at or above ``start_dir``.

        Walks parent directories iteratively until the file system root.
        Unreadable markers are returned so the caller can report them.
        """
        current = Path(os.path.abspath(start_dir))

        while True:
            marker = current / LOCAL_MARKER_NAME
            if marker.is_file():
                try:
                    if read_marker(marker) is not None:
                        return marker
                except OSError:
                    return marker

            parent = current.parent
            if parent == current:
                return None
            current = parent

    def _from_environment(self) -> Optional[Resolution]:
        raw = self.environ.get(VERSION_ENV_VAR, "")
        if not raw.strip():
            return None

        normalized = versions.normalize(raw)
        if not versions.is_valid(normalized):
            return Unresolved(
                f"malformed version in {VERSION_ENV_VAR}: {raw.strip()!r}",
                origin=VERSION_ENV_VAR,
            )

        logger.debug(f"Resolved {normalized} from {VERSION_ENV_VAR}")
        return Resolved(normalized, VersionSource.ENVIRONMENT, VERSION_ENV_VAR)

    def _from_local_marker(self, start_dir: Path) -> Optional[Resolution]:
        marker = self.find_local_marker(start_dir)
        if marker is None:
            return None

        try:
            raw = read_marker(marker)
        except OSError as e:
            return Unresolved(f"cannot read {marker}: {e}", origin=str(marker))

        if raw is None:
            # Emptied between the walk and the read: treat as absent
            return None

        normalized = versions.normalize(raw)
        if not versions.is_valid(normalized):
            return Unresolved(f"malformed version in {marker}", origin=str(marker))

        logger.debug(f"Resolved {normalized} from {marker}")
        return Resolved(normalized, VersionSource.LOCAL_FILE, str(marker))

    def _from_global_file(self) -> Optional[Resolution]:
        path = self.store.global_version_file
        try:
            raw = read_marker(path)
        except OSError as e:
            return Unresolved(f"cannot read {path}: {e}", origin=str(path))

        if raw is None:
            return None

        normalized = versions.normalize(raw)
        if not versions.is_valid(normalized):
            return Unresolved(f"malformed version in {path}", origin=str(path))

        if not self.store.is_installed(normalized):
            return Unresolved(
                f"global default {normalized} in {path} is not installed",
                version=normalized,
                origin=str(path),
            )

        logger.debug(f"Resolved {normalized} from {path}")
        return Resolved(normalized, VersionSource.GLOBAL_FILE, str(path))
