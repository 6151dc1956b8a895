"""
Advisory locking for the shared toolchain cache.

Concurrent invocations that need the same toolchain race on the same cache
fingerprint. A per-fingerprint lock file serializes the
check-stage-rename sequence across processes so that only one of them
downloads and extracts.

Usage:
    from runtimekit.core.locking import LockManager

    lock_manager = LockManager(cache_root)
    with lock_manager.cache_lock(fingerprint, timeout=300):
        # At most one process provisions this fingerprint here
        pass
"""

import logging
from contextlib import contextmanager
from pathlib import Path

from filelock import FileLock, Timeout as LockTimeout

from runtimekit.core.exceptions import CacheLockTimeout

logger = logging.getLogger(__name__)


class LockManager:
    """
    Manages lock files for cache entries.

    Uses the `filelock` library for cross-platform, cross-process locks that
    are released automatically if the holding process dies.

    Attributes:
        lock_dir: Directory where lock files are stored
    """

    def __init__(self, lock_dir: Path):
        """
        Initialize lock manager.

        Args:
            lock_dir: Directory for lock files (created if absent)
        """
        self.lock_dir = Path(lock_dir)
        self.lock_dir.mkdir(parents=True, exist_ok=True)

    def lock_path(self, fingerprint: str) -> Path:
        """Lock file used for fingerprint."""
        safe_id = fingerprint.replace("/", "-").replace("\\", "-").replace(":", "-")
        return self.lock_dir / f"{safe_id}.lock"

    @contextmanager
    def cache_lock(self, fingerprint: str, timeout: int = 300):
        """
        Acquire the lock for one cache fingerprint.

        Args:
            fingerprint: Cache fingerprint being provisioned
            timeout: Maximum wait time in seconds (long, downloads are slow)

        Yields:
            None

        Raises:
            CacheLockTimeout: If lock can't be acquired within timeout
        """
        lock_path = self.lock_path(fingerprint)
        lock = FileLock(lock_path, timeout=timeout)

        try:
            with lock:
                logger.debug(f"Acquired cache lock: {lock_path}")
                yield
                logger.debug(f"Released cache lock: {lock_path}")
        except LockTimeout as e:
            raise CacheLockTimeout(
                f"Could not acquire cache lock for {fingerprint} after {timeout}s. "
                "Another process may be downloading this toolchain."
            ) from e
