"""
Cross-process locking for the version store.

Every mutation of ``versions/<version>/`` (install or remove) happens under a
per-version advisory lock file in ``<root>/lock/``. Locks for different
versions are independent, so installing 1.21.0 never waits on 1.22.0.

Readers (the resolver and the shim dispatcher) never take locks: they rely
on mutations becoming visible through a single atomic rename.

Usage:
    from govm.core.locking import LockManager

    lock_manager = LockManager(store.lock_dir)
    with lock_manager.version_lock("1.22.0", timeout=300):
        # Safely install or remove 1.22.0
        pass
"""

import logging
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Union

from filelock import FileLock, Timeout as LockTimeout

from govm.core.exceptions import LockContention

logger = logging.getLogger(__name__)


class LockManager:
    """
    Manages per-version lock files.

    Uses file-based locking with the `filelock` library; the OS releases the
    lock automatically if the holding process dies.

    Attributes:
        lock_dir: Directory where lock files are stored
    """

    def __init__(self, lock_dir: Path):
        self.lock_dir = Path(lock_dir)

    def lock_path(self, version: str) -> Path:
        """Lock file guarding one version."""
        safe_id = version.replace("/", "-").replace("\\", "-").replace(":", "-")
        return self.lock_dir / f"version-{safe_id}.lock"

    @contextmanager
    def version_lock(self, version: str, timeout: float = 300) -> Iterator[Path]:
        """
        Acquire the exclusive lock for one version.

        Blocks for at most ``timeout`` seconds.

        Args:
            version: Version being installed or removed
            timeout: Maximum wait time in seconds

        Yields:
            Path of the held lock file

        Raises:
            LockContention: If the lock can't be acquired within timeout

        Example:
            >>> with lock_manager.version_lock('1.22.0', timeout=10):
            ...     install('1.22.0')
        """
        lock_path = self.lock_path(version)
        self.lock_dir.mkdir(parents=True, exist_ok=True)
        lock = FileLock(lock_path, timeout=timeout)

        try:
            lock.acquire()
        except LockTimeout as e:
            logger.error(
                f"Could not acquire lock for {version} after {timeout}s: {lock_path}"
            )
            raise LockContention(version, lock_path, timeout) from e

        logger.debug(f"Acquired version lock: {lock_path}")
        try:
            yield lock_path
        finally:
            lock.release()
            logger.debug(f"Released version lock: {lock_path}")

    def is_locked(self, version: str) -> bool:
        """Non-blocking probe: is some process holding this version's lock?"""
        lock_path = self.lock_path(version)
        if not lock_path.exists():
            return False
        with try_lock(lock_path) as acquired:
            return not acquired


@contextmanager
def try_lock(lock_path: Union[str, Path], timeout: float = 0) -> Iterator[bool]:
    """
    Try to acquire lock without blocking (or with short timeout).

    Useful for "try-and-skip" patterns, e.g. sweeping scratch directories
    only when no live process owns them.

    Yields:
        bool: True if lock acquired, False otherwise

    Example:
        >>> with try_lock(Path('/tmp/my.lock')) as acquired:
        ...     if acquired:
        ...         do_work()
    """
    Path(lock_path).parent.mkdir(parents=True, exist_ok=True)
    lock = FileLock(lock_path, timeout=timeout)

    acquired = False
    try:
        lock.acquire(timeout=timeout)
        acquired = True
        logger.debug(f"Acquired lock (try_lock): {lock_path}")
    except LockTimeout:
        logger.debug(f"Could not acquire lock (try_lock): {lock_path}")

    try:
        yield acquired
    finally:
        if acquired:
            lock.release()
            logger.debug(f"Released lock (try_lock): {lock_path}")


__all__ = ["LockManager", "try_lock", "LockTimeout"]
