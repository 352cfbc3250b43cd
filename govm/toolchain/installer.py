"""
Installation manager for the version store.

This module owns every mutation of ``<root>/versions/``:

- ``install``: download, verify and atomically publish a version
- ``remove``: atomically unpublish and delete a version
- ``prune``: remove unreferenced versions selected by a retention predicate

Mutations of one version are serialized with a per-version lock file.
Visibility changes happen only through a single ``rename`` of a scratch
directory, so a concurrent reader sees a version either complete or absent:

    install:  versions/.tmp-<v>-<token>/go  --rename-->  versions/<v>
    remove:   versions/<v>  --rename-->  versions/.trash-<v>-<token>  --> rmtree

Scratch directories left behind by a killed process are swept at the start
of the next installer operation, once no live process holds their lock.
"""

import logging
import os
import secrets
import time
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from pathlib import Path
from typing import Callable, Iterable, List, Optional, Set

from govm.core import version as versions
from govm.core.config import GO_BINARIES, LOCAL_MARKER_NAME, GovmConfig
from govm.core.download import DownloadProgress, download_file
from govm.core.exceptions import (
    FilesystemError,
    GovmError,
    InUseError,
    IntegrityError,
    NotInstalledError,
)
from govm.core.filesystem import extract_archive, is_executable, safe_rmtree
from govm.core.locking import LockManager, try_lock
from govm.core.platform import PlatformInfo, detect_platform
from govm.core.store import VersionStore, read_marker
from govm.toolchain.catalog import GoFile, ReleaseCatalog

logger = logging.getLogger(__name__)

TMP_PREFIX = ".tmp-"
TRASH_PREFIX = ".trash-"
SCRATCH_PREFIXES = (TMP_PREFIX, TRASH_PREFIX)


@dataclass
class InstallResult:
    """Result of an install operation."""

    version: str
    path: Path
    download_time: float = 0.0
    extraction_time: float = 0.0
    was_cached: bool = False
    """True when the version was already installed (no download happened)"""


@dataclass
class InstalledVersion:
    """An installed version as seen by retention predicates."""

    version: str
    path: Path
    rank: int
    """Position in newest-first order (0 = newest installed)"""

    installed_at: datetime


@dataclass
class PruneResult:
    """Result of a prune operation."""

    removed: List[str] = field(default_factory=list)
    kept: List[str] = field(default_factory=list)
    failed: List[str] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)
    dry_run: bool = False


RetentionPredicate = Callable[[InstalledVersion], bool]


# ============================================================================
# Retention predicates
# ============================================================================


def keep_latest(count: int) -> RetentionPredicate:
    """Select every version outside the ``count`` most recent releases."""
    return lambda info: info.rank >= count


def older_than(days: float, now: Optional[datetime] = None) -> RetentionPredicate:
    """Select versions installed more than ``days`` days ago."""
    cutoff = (now or datetime.now()) - timedelta(days=days)
    return lambda info: info.installed_at < cutoff


def all_of(*predicates: RetentionPredicate) -> RetentionPredicate:
    """Select versions matched by every predicate."""
    return lambda info: all(predicate(info) for predicate in predicates)


# ============================================================================
# Installer
# ============================================================================


class Installer:
    """
    Installs and removes Go versions in a version store.

    Example:
        >>> installer = Installer(store, config)
        >>> result = installer.install("1.22.0")
        >>> print(f"Installed at: {result.path}")
        >>> installer.remove("1.21.0")
    """

    def __init__(
        self,
        store: VersionStore,
        config: GovmConfig,
        catalog: Optional[ReleaseCatalog] = None,
        lock_manager: Optional[LockManager] = None,
        platform: Optional[PlatformInfo] = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.store = store
        self.config = config
        self.catalog = catalog or ReleaseCatalog(config, sleep=sleep)
        self.lock_manager = lock_manager or LockManager(store.lock_dir)
        self._platform = platform
        self._sleep = sleep

    @property
    def platform(self) -> PlatformInfo:
        if self._platform is None:
            self._platform = detect_platform()
        return self._platform

    # ------------------------------------------------------------------
    # install
    # ------------------------------------------------------------------

    def install(
        self,
        version: str,
        progress_callback: Optional[Callable[[DownloadProgress], None]] = None,
    ) -> InstallResult:
        """
        Install a version, or return immediately if it is already installed.

        Args:
            version: Version to install (``go``/``v`` prefix allowed)
            progress_callback: Optional download progress callback

        Returns:
            InstallResult

        Raises:
            ConfigurationError: If the version string is malformed
            VersionNotAvailableError: If the catalog has no archive for it
            LockContention: If another process holds the lock past the timeout
            DownloadError: If the download fails after retries
            IntegrityError: If the archive fails verification
            FilesystemError: If extraction or publishing fails
        """
        version = versions.validate(version)
        self.store.ensure()
        self.sweep_scratch()

        final_dir = self.store.path_of(version)
        if self.store.is_installed(version):
            logger.info(f"Go {version} is already installed")
            return InstallResult(version=version, path=final_dir, was_cached=True)

        with self.lock_manager.version_lock(version, timeout=self.config.lock_timeout):
            # Another process may have finished while we waited
            if self.store.is_installed(version):
                logger.info(f"Go {version} was installed by another process")
                return InstallResult(version=version, path=final_dir, was_cached=True)

            return self._download_and_publish(version, final_dir, progress_callback)

    def _download_and_publish(
        self,
        version: str,
        final_dir: Path,
        progress_callback: Optional[Callable[[DownloadProgress], None]],
    ) -> InstallResult:
        _, archive = self.catalog.artifact_for(version, self.platform)
        if not archive.sha256:
            raise IntegrityError(
                f"The catalog publishes no checksum for {archive.filename}; "
                "refusing to install an unverifiable archive."
            )

        token = secrets.token_hex(4)
        download_dir = self.store.downloads_dir / f"{TMP_PREFIX}{version}-{token}"
        extract_dir = self.store.versions_dir / f"{TMP_PREFIX}{version}-{token}"

        try:
            download_start = time.time()
            archive_path = self._download(archive, download_dir, progress_callback)
            download_time = time.time() - download_start

            logger.info(f"Extracting {archive.filename}")
            extraction_start = time.time()
            extract_archive(archive_path, extract_dir)
            toolchain_root = self._normalize_root_directory(extract_dir)
            self._verify_layout(version, toolchain_root)
            self._publish(toolchain_root, final_dir)
            extraction_time = time.time() - extraction_start
        finally:
            self._discard(download_dir, self.store.downloads_dir)
            self._discard(extract_dir, self.store.versions_dir)

        logger.info(f"Go {version} installed successfully")
        return InstallResult(
            version=version,
            path=final_dir,
            download_time=download_time,
            extraction_time=extraction_time,
        )

    def _download(
        self,
        archive: GoFile,
        download_dir: Path,
        progress_callback: Optional[Callable[[DownloadProgress], None]],
    ) -> Path:
        try:
            download_dir.mkdir(parents=True)
        except OSError as e:
            raise FilesystemError(f"Cannot create {download_dir}: {e}", path=download_dir) from e

        destination = download_dir / archive.filename
        try:
            return download_file(
                url=self.catalog.download_url(archive),
                destination=destination,
                expected_sha256=archive.sha256,
                progress_callback=progress_callback,
                timeout=self.config.request_timeout,
                max_retries=self.config.max_retries,
                sleep=self._sleep,
            )
        except OSError as e:
            # Transport errors already surface as DownloadError; this is local I/O
            raise FilesystemError(
                f"Cannot write {destination}: {e}", path=destination
            ) from e

    def _normalize_root_directory(self, extract_dir: Path) -> Path:
        """
        Return the toolchain root inside an extraction directory.

        Go archives wrap everything in a single ``go/`` folder; archives
        without a wrapper are used as-is.
        """
        items = list(extract_dir.iterdir())
        if len(items) == 1 and items[0].is_dir():
            return items[0]
        return extract_dir

    def _verify_layout(self, version: str, toolchain_root: Path) -> None:
        for binary in GO_BINARIES:
            binary_path = toolchain_root / "bin" / binary
            if not is_executable(binary_path):
                raise IntegrityError(
                    f"Archive for Go {version} has no executable bin/{binary}",
                    path=binary_path,
                )

    def _publish(self, toolchain_root: Path, final_dir: Path) -> None:
        """Make a fully extracted toolchain visible with one rename."""
        try:
            os.rename(toolchain_root, final_dir)
        except OSError as e:
            raise FilesystemError(
                f"Failed to publish {final_dir}: {e}", path=final_dir
            ) from e
        logger.debug(f"Published {toolchain_root} as {final_dir}")

        # The archive's own mtime is the release date; retention wants install time
        try:
            os.utime(final_dir)
        except OSError as e:
            logger.debug(f"Could not update mtime of {final_dir}: {e}")

    # ------------------------------------------------------------------
    # remove
    # ------------------------------------------------------------------

    def remove(self, version: str, force: bool = False) -> Path:
        """
        Remove an installed version.

        Args:
            version: Version to remove
            force: Allow removing the current global default

        Returns:
            Path the version was installed at

        Raises:
            NotInstalledError: If the version is not installed
            InUseError: If it is the global default and force is False
            LockContention: If another process holds the lock past the timeout
            FilesystemError: If the version directory cannot be moved aside
        """
        version = versions.validate(version)
        self.store.ensure()
        self.sweep_scratch()

        final_dir = self.store.path_of(version)

        with self.lock_manager.version_lock(version, timeout=self.config.lock_timeout):
            if not self.store.is_installed(version):
                raise NotInstalledError(version)

            if not force and self._global_default() == version:
                raise InUseError(version)

            trash_dir = (
                self.store.versions_dir
                / f"{TRASH_PREFIX}{version}-{secrets.token_hex(4)}"
            )
            try:
                os.rename(final_dir, trash_dir)
            except OSError as e:
                raise FilesystemError(
                    f"Failed to remove {final_dir}: {e}", path=final_dir
                ) from e

            self._discard(trash_dir, self.store.versions_dir)

        logger.info(f"Go {version} has been uninstalled")
        return final_dir

    def _global_default(self) -> Optional[str]:
        try:
            raw = self.store.read_global()
        except OSError as e:
            raise FilesystemError(
                f"Cannot read {self.store.global_version_file}: {e}",
                path=self.store.global_version_file,
            ) from e
        return versions.normalize(raw) if raw else None

    # ------------------------------------------------------------------
    # prune
    # ------------------------------------------------------------------

    def installed_versions(self) -> List[InstalledVersion]:
        """Installed versions newest first, with rank and install time."""
        result = []
        for rank, version in enumerate(self.store.sorted()):
            path = self.store.path_of(version)
            try:
                installed_at = datetime.fromtimestamp(path.stat().st_mtime)
            except FileNotFoundError:
                # Removed concurrently
                continue
            result.append(InstalledVersion(version, path, rank, installed_at))
        return result

    def referenced_versions(self, search_roots: Iterable[Path]) -> Set[str]:
        """
        Versions named by the global default or any discoverable marker.

        Args:
            search_roots: Directories scanned (up to ``config.search_depth``
                levels deep) for ``.go-version`` files
        """
        referenced = set()

        global_default = self._global_default()
        if global_default:
            referenced.add(global_default)

        for marker in self._find_markers(search_roots):
            try:
                raw = read_marker(marker)
            except OSError as e:
                logger.warning(f"Skipping unreadable marker {marker}: {e}")
                continue
            if raw and versions.is_valid(versions.normalize(raw)):
                referenced.add(versions.normalize(raw))

        logger.debug(f"Referenced versions: {sorted(referenced)}")
        return referenced

    def _find_markers(self, search_roots: Iterable[Path]) -> Iterable[Path]:
        store_root = os.path.abspath(self.store.root)
        max_depth = self.config.search_depth

        for search_root in search_roots:
            base = os.path.abspath(os.path.expanduser(str(search_root)))
            base_depth = base.rstrip(os.sep).count(os.sep)

            for dirpath, dirnames, filenames in os.walk(base):
                if LOCAL_MARKER_NAME in filenames:
                    yield Path(dirpath) / LOCAL_MARKER_NAME

                depth = dirpath.rstrip(os.sep).count(os.sep) - base_depth
                if depth >= max_depth:
                    dirnames[:] = []
                    continue

                dirnames[:] = [
                    d
                    for d in dirnames
                    if not d.startswith(".")
                    and os.path.join(dirpath, d) != store_root
                ]

    def prune(
        self,
        should_remove: RetentionPredicate,
        search_roots: Optional[Iterable[Path]] = None,
        dry_run: bool = False,
    ) -> PruneResult:
        """
        Remove unreferenced versions selected by a retention predicate.

        A version is a candidate when neither the global default nor any
        ``.go-version`` under the search roots names it, and
        ``should_remove`` returns True for it. Candidates go through
        ``remove`` and inherit its locking and atomicity.

        Args:
            should_remove: Predicate over InstalledVersion
            search_roots: Directories to scan for markers
                (default: ``config.search_roots``)
            dry_run: Report candidates without removing them

        Returns:
            PruneResult
        """
        self.sweep_scratch()

        roots = self.config.search_roots if search_roots is None else list(search_roots)
        referenced = self.referenced_versions(roots)
        result = PruneResult(dry_run=dry_run)

        for info in self.installed_versions():
            if info.version in referenced or not should_remove(info):
                result.kept.append(info.version)
                continue

            if dry_run:
                logger.info(f"[DRY RUN] Would remove: Go {info.version}")
                result.removed.append(info.version)
                continue

            try:
                self.remove(info.version)
                result.removed.append(info.version)
            except NotInstalledError:
                logger.debug(f"Go {info.version} already removed by another process")
            except GovmError as e:
                logger.error(f"Failed to remove Go {info.version}: {e}")
                result.failed.append(info.version)
                result.errors.append(f"{info.version}: {e}")

        return result

    # ------------------------------------------------------------------
    # scratch handling
    # ------------------------------------------------------------------

    def sweep_scratch(self) -> int:
        """
        Delete scratch left by interrupted installs and removals.

        A scratch directory is only deleted when its version lock is free,
        so a concurrent install in another process is never disturbed.

        Returns:
            Number of scratch entries removed
        """
        removed = 0
        for parent in (self.store.versions_dir, self.store.downloads_dir):
            try:
                entries = list(parent.iterdir())
            except FileNotFoundError:
                continue

            for entry in entries:
                version = _scratch_version(entry.name)
                if version is None:
                    continue

                with try_lock(self.lock_manager.lock_path(version)) as acquired:
                    if not acquired:
                        logger.debug(f"Scratch in use, skipping: {entry}")
                        continue
                    if self._discard(entry, parent):
                        logger.info(f"Removed stale scratch: {entry}")
                        removed += 1

        return removed

    def _discard(self, path: Path, parent: Path) -> bool:
        """Best-effort removal of a scratch path; failures are left for the next sweep."""
        try:
            if path.is_dir() and not path.is_symlink():
                safe_rmtree(path, require_prefix=parent)
            elif path.exists() or path.is_symlink():
                path.unlink()
            else:
                return False
        except (OSError, FilesystemError) as e:
            logger.warning(f"Could not remove scratch {path}: {e}")
            return False
        return True


def _scratch_version(name: str) -> Optional[str]:
    """Version encoded in a scratch entry name, or None if not scratch."""
    for prefix in SCRATCH_PREFIXES:
        if name.startswith(prefix):
            remainder = name[len(prefix):]
            return remainder.rsplit("-", 1)[0] if "-" in remainder else remainder
    return None
