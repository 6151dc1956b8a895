"""
Checksum manifest lookup for published releases.

Release pipelines publish a ``checksums.txt`` asset next to the binaries,
one ``<sha256>  <filename>`` pair per line. An empty string means the
checksum is unavailable and the binary must not be used.
"""

import logging
from typing import Optional

import requests

from runtimekit.core.context import OperationContext
from runtimekit.core.download import DEFAULT_TIMEOUT, fetch_text
from runtimekit.core.exceptions import DownloadError
from runtimekit.golang.releases import RemoteRelease

logger = logging.getLogger(__name__)


def parse_checksum_manifest(text: str, filename: str) -> str:
    """
    Find the digest listed for filename.

    Only lines with exactly two whitespace-separated fields qualify; the
    first one whose second field equals filename wins.

    Args:
        text: Manifest content
        filename: Asset name to look for

    Returns:
        Digest string, or "" if not listed

    Example:
        >>> parse_checksum_manifest("abc123  tool-linux-amd64\\n", "tool-linux-amd64")
        'abc123'
    """
    for line in text.splitlines():
        fields = line.split()
        if len(fields) != 2 or fields[1] != filename:
            continue
        return fields[0]

    return ""


def fetch_checksum(
    release: RemoteRelease,
    filename: str,
    session: Optional[requests.Session] = None,
    context: Optional[OperationContext] = None,
    timeout: float = DEFAULT_TIMEOUT,
) -> str:
    """
    Fetch the release manifest and return the digest for filename.

    Transport failures are not raised; they return "" like a missing entry.
    """
    url = release.checksum_url()
    try:
        text = fetch_text(url, session=session, context=context, timeout=timeout)
    except DownloadError as e:
        logger.debug(f"Checksum manifest unavailable at {url}: {e}")
        return ""

    digest = parse_checksum_manifest(text, filename)
    if not digest:
        logger.debug(f"No checksum for {filename} in {url}")
    return digest
