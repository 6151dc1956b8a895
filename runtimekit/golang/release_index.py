"""
Embedded Go toolchain release index.

The index maps a toolchain ID plus platform to a download URL and the
archive's SHA256. It is read from a bundled manifest of
``<digest>  <filename>`` lines (see scripts/update_go_digests.py) once per
process and never mutated afterwards.

Versions missing from the bundled manifest can be looked up in the release
feed published at go.dev (the same feed the manifest is generated from).
"""

import functools
import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, List, Optional, Tuple

import requests

from runtimekit.core.context import OperationContext
from runtimekit.core.download import DEFAULT_TIMEOUT, fetch_text
from runtimekit.core.exceptions import DownloadError, ReleaseNotFoundError
from runtimekit.core.filesystem import is_archive

logger = logging.getLogger(__name__)

DOWNLOAD_URL = "https://go.dev/dl/"
RELEASE_FEED_URL = "https://go.dev/dl/?mode=json&include=all"


@dataclass(frozen=True)
class ToolchainRelease:
    """A resolved toolchain archive."""

    url: str
    """Download URL of the archive"""

    sha256: str
    """Expected SHA256 of the archive"""


@dataclass(frozen=True)
class ManifestEntry:
    digest: str
    filename: str


class ReleaseIndex:
    """
    Immutable lookup table over a digests manifest.

    Example:
        >>> index = ReleaseIndex.from_text("deadbeef  go1.22.1.linux-amd64.tar.gz")
        >>> index.lookup("go1.22.1", "linux", "amd64").url
        'https://go.dev/dl/go1.22.1.linux-amd64.tar.gz'
    """

    def __init__(
        self,
        entries: Tuple[ManifestEntry, ...],
        download_url: str = DOWNLOAD_URL,
        name_prefix: str = "go",
    ):
        self.entries = tuple(entries)
        self.download_url = download_url
        # Manifests may list archives without the distribution name prefix
        self.name_prefix = name_prefix

    @classmethod
    def from_text(cls, text: str, download_url: str = DOWNLOAD_URL) -> "ReleaseIndex":
        """
        Parse manifest text.

        Blank lines, ``#`` comments and lines that are not exactly a digest
        and a filename are skipped.
        """
        entries = []
        for line in text.splitlines():
            fields = line.split()
            if len(fields) != 2 or fields[0].startswith("#"):
                continue
            entries.append(ManifestEntry(digest=fields[0], filename=fields[1]))
        return cls(tuple(entries), download_url=download_url)

    @classmethod
    def load(cls, path: Path, download_url: str = DOWNLOAD_URL) -> "ReleaseIndex":
        """Load manifest from a file."""
        index = cls.from_text(Path(path).read_text(encoding="utf-8"), download_url)
        logger.debug(f"Loaded {len(index.entries)} release entries from {path}")
        return index

    def lookup(self, toolchain_id: str, os_name: str, arch: str) -> ToolchainRelease:
        """
        Find the archive for toolchain_id on os_name/arch.

        The first entry whose filename starts with ``<id>.<os>-<arch>`` and
        names an extractable archive wins.

        Args:
            toolchain_id: Toolchain ID, e.g. 'go1.22.1'
            os_name: GOOS value
            arch: Architecture as spelled in archive names

        Returns:
            ToolchainRelease with URL and expected digest

        Raises:
            ReleaseNotFoundError: If no entry matches the platform key
        """
        key = f"{toolchain_id}.{os_name}-{arch}"
        for entry in self.entries:
            if self._matches(entry.filename, key) and is_archive(entry.filename):
                return ToolchainRelease(
                    url=self.download_url + entry.filename, sha256=entry.digest
                )

        raise ReleaseNotFoundError(toolchain_id, os_name, arch)

    def _matches(self, filename: str, key: str) -> bool:
        return filename.startswith(key) or (self.name_prefix + filename).startswith(key)


def default_manifest_path() -> Path:
    """Path to the bundled digests manifest."""
    return Path(__file__).parent.parent / "data" / "go-digests.txt"


@functools.lru_cache(maxsize=None)
def load_index(
    path: Optional[Path] = None, download_url: str = DOWNLOAD_URL
) -> ReleaseIndex:
    """
    Load (once per process) the index at path, or the bundled one.

    Returns:
        Shared ReleaseIndex instance
    """
    return ReleaseIndex.load(path or default_manifest_path(), download_url)


def entries_from_feed(
    releases, versions: Optional[Iterable[str]] = None
) -> List[ManifestEntry]:
    """
    Archive entries of the go.dev JSON release feed.

    Args:
        releases: Decoded feed (a list of release objects)
        versions: Only keep these toolchain IDs, e.g. {'go1.22.1'}

    Returns:
        Manifest entries in feed order; installers and entries without a
        digest are skipped
    """
    wanted = set(versions) if versions is not None else None
    entries = []

    if not isinstance(releases, list):
        return entries

    for release in releases:
        if not isinstance(release, dict):
            continue
        if wanted is not None and release.get("version") not in wanted:
            continue
        for f in release.get("files") or []:
            if not isinstance(f, dict) or f.get("kind") != "archive":
                continue
            if f.get("sha256") and f.get("filename"):
                entries.append(ManifestEntry(digest=f["sha256"], filename=f["filename"]))

    return entries


def fetch_release_feed(
    feed_url: str = RELEASE_FEED_URL,
    download_url: str = DOWNLOAD_URL,
    session: Optional[requests.Session] = None,
    context: Optional[OperationContext] = None,
    timeout: float = DEFAULT_TIMEOUT,
) -> ReleaseIndex:
    """
    Build an index from the published release feed.

    Raises:
        DownloadError: If the feed cannot be fetched or is not valid JSON
    """
    text = fetch_text(feed_url, session=session, context=context, timeout=timeout)
    try:
        releases = json.loads(text)
    except ValueError as e:
        raise DownloadError(feed_url, f"Invalid release feed from {feed_url}: {e}") from e

    index = ReleaseIndex(tuple(entries_from_feed(releases)), download_url=download_url)
    logger.debug(f"Loaded {len(index.entries)} release entries from {feed_url}")
    return index
