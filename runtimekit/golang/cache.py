"""
Content-addressed toolchain cache.

Each cache entry lives at ``<cache_root>/<fingerprint>`` where the
fingerprint is derived from the archive URL and its expected digest. An
entry is staged in ``<fingerprint>.download`` and renamed into place only
after extraction succeeds, so a directory at the final path always holds a
complete toolchain. Existing entries are trusted without re-verification.

Concurrent provisioning of the same fingerprint is serialized with an
advisory lock file when locking is enabled (the default). With locking
disabled two invocations may both download; the loser's rename fails and
surfaces as an OSError.
"""

import hashlib
import logging
from pathlib import Path
from typing import Callable, Optional

from runtimekit.core.context import OperationContext
from runtimekit.core.download import download_and_extract
from runtimekit.core.filesystem import FilesystemError, safe_rmtree
from runtimekit.core.locking import LockManager

logger = logging.getLogger(__name__)

STAGING_SUFFIX = ".download"

# extract(url, sha256, destination, context=...) -> None
Extractor = Callable[..., None]


def cache_fingerprint(*parts: str) -> str:
    """
    Stable identifier for a set of strings.

    Parts are NUL-separated before hashing so ("ab", "c") and ("a", "bc")
    differ.

    Example:
        >>> len(cache_fingerprint("https://go.dev/dl/go1.22.1.linux-amd64.tar.gz", "abc"))
        16
    """
    digest = hashlib.sha256("\x00".join(parts).encode("utf-8")).hexdigest()
    return digest[:16]


class ToolchainCache:
    """
    Maps (url, sha256) to an extracted directory, extracting at most once.

    Attributes:
        root: Directory holding cache entries
    """

    def __init__(
        self,
        root: Path,
        extractor: Optional[Extractor] = None,
        lock: bool = True,
        lock_timeout: int = 300,
    ):
        """
        Initialize cache.

        Args:
            root: Cache directory for one runtime (e.g. <data_root>/golang)
            extractor: Archive extraction service; must verify the digest
            lock: Serialize provisioning per fingerprint across processes
            lock_timeout: Seconds to wait for another process's provisioning
        """
        self.root = Path(root)
        self.extractor = extractor or download_and_extract
        self.lock = lock
        self.lock_timeout = lock_timeout

    def entry_path(self, url: str, sha256: str) -> Path:
        """Final path of the entry for (url, sha256)."""
        return self.root / cache_fingerprint(url, sha256)

    def ensure(
        self, url: str, sha256: str, context: Optional[OperationContext] = None
    ) -> Path:
        """
        Return the entry for (url, sha256), provisioning it on a miss.

        Args:
            url: Archive URL
            sha256: Expected archive digest
            context: Optional operation context

        Returns:
            Path of the extracted entry

        Raises:
            DownloadError: If the archive cannot be fetched
            ChecksumError: If the archive digest does not match
            ArchiveExtractionError: If extraction fails
            CacheLockTimeout: If another process holds the lock too long
            OSError: On filesystem errors other than a missing entry
        """
        target = self.entry_path(url, sha256)
        if self._exists(target):
            logger.debug(f"Cache hit: {target}")
            return target

        if not self.lock:
            self._provision(url, sha256, target, context)
            return target

        lock_manager = LockManager(self.root)
        with lock_manager.cache_lock(target.name, timeout=self.lock_timeout):
            # Another process may have committed while we waited
            if self._exists(target):
                logger.debug(f"Cache entry committed by another process: {target}")
                return target
            self._clear_stale_staging(target)
            self._provision(url, sha256, target, context)

        return target

    def _exists(self, target: Path) -> bool:
        try:
            target.stat()
        except FileNotFoundError:
            return False
        return True

    def _staging_path(self, target: Path) -> Path:
        return target.with_name(target.name + STAGING_SUFFIX)

    def _clear_stale_staging(self, target: Path):
        staging = self._staging_path(target)
        if staging.exists():
            logger.debug(f"Removing stale staging directory: {staging}")
            safe_rmtree(staging, require_prefix=self.root)

    def _provision(
        self,
        url: str,
        sha256: str,
        target: Path,
        context: Optional[OperationContext],
    ):
        staging = self._staging_path(target)
        try:
            staging.mkdir(parents=True, exist_ok=True)
            self.extractor(url, sha256, staging, context=context)
            staging.rename(target)
        finally:
            if staging.exists():
                try:
                    safe_rmtree(staging, require_prefix=self.root)
                except FilesystemError as e:
                    # Must not mask the provisioning error being raised
                    logger.warning(f"Failed to remove staging directory {staging}: {e}")
