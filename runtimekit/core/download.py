"""
Verified downloads for RuntimeKit.

This module provides:
- Streaming HTTP/HTTPS downloads with checksum verification during download
- A distinct error for transport failures (DownloadError) and for digest
  mismatches (ChecksumError)
- Small text fetches for manifests and API responses
- The archive extraction service: download, verify, then extract

No retries are performed anywhere in this module; a failed request is final
for the invocation and the caller may re-invoke.
"""

import hashlib
import logging
import os
import tempfile
from pathlib import Path
from typing import Optional
from urllib.parse import urlparse

import requests
from requests.exceptions import RequestException

from runtimekit.core.context import OperationContext, ensure_context
from runtimekit.core.exceptions import ChecksumError, DownloadError
from runtimekit.core.filesystem import extract_archive, make_executable

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 30
CHUNK_SIZE = 64 * 1024


class StreamingHasher:
    """Compute hash incrementally for streaming downloads."""

    def __init__(self, algorithm: str = "sha256"):
        """
        Initialize streaming hasher.

        Args:
            algorithm: Hash algorithm ('sha256', 'sha512')

        Raises:
            ValueError: If algorithm is not supported
        """
        self.algorithm = algorithm.lower()

        if self.algorithm == "sha256":
            self.hasher = hashlib.sha256()
        elif self.algorithm == "sha512":
            self.hasher = hashlib.sha512()
        else:
            raise ValueError(f"Unsupported hash algorithm: {algorithm}")

    def update(self, data: bytes):
        """Add data to hash computation."""
        self.hasher.update(data)

    def finalize(self) -> str:
        """Get final hash value as lowercase hex string."""
        return self.hasher.hexdigest()

    def verify(self, expected_hash: str) -> bool:
        """
        Check if computed hash matches expected value.

        Args:
            expected_hash: Expected hash value (hex string)

        Returns:
            True if hashes match, False otherwise
        """
        return self.finalize() == expected_hash.lower()


def get(
    url: str,
    session: Optional[requests.Session] = None,
    context: Optional[OperationContext] = None,
    timeout: float = DEFAULT_TIMEOUT,
    stream: bool = False,
) -> requests.Response:
    """
    Issue a GET request and require HTTP 200.

    Args:
        url: URL to fetch
        session: Optional requests session (defaults to module-level requests)
        context: Optional operation context for deadline/cancellation
        timeout: Per-request timeout in seconds
        stream: Stream the response body

    Returns:
        Response with status 200

    Raises:
        DownloadError: On connection failure or any status other than 200
        OperationCancelled: If the context is no longer live
    """
    context = ensure_context(context)
    context.check()

    client = session or requests
    logger.debug(f"GET {url}")
    try:
        response = client.get(url, stream=stream, timeout=context.timeout(timeout))
    except RequestException as e:
        raise DownloadError(url, f"Request to {url} failed: {e}") from e

    if response.status_code != 200:
        response.close()
        raise DownloadError(
            url,
            f"bad HTTP status code: {response.status_code}",
            status_code=response.status_code,
        )

    return response


def fetch_text(
    url: str,
    session: Optional[requests.Session] = None,
    context: Optional[OperationContext] = None,
    timeout: float = DEFAULT_TIMEOUT,
) -> str:
    """
    Fetch a URL and return its body as text.

    Raises:
        DownloadError: On transport failure or non-200 status
    """
    response = get(url, session=session, context=context, timeout=timeout)
    try:
        return response.text
    finally:
        response.close()


def download_file(
    url: str,
    destination: Path,
    expected_sha256: str,
    executable: bool = False,
    session: Optional[requests.Session] = None,
    context: Optional[OperationContext] = None,
    timeout: float = DEFAULT_TIMEOUT,
) -> Path:
    """
    Stream url to destination while computing its SHA256.

    The destination is written directly under its final name. It is only
    left in place when the computed digest matches; on mismatch or on any
    error mid-stream the partial file is removed.

    Args:
        url: URL to download from
        destination: Local path to save file (parent created if absent)
        expected_sha256: Expected SHA256 hex digest
        executable: Mark the file executable after a verified write
        session: Optional requests session
        context: Optional operation context for deadline/cancellation
        timeout: Per-request timeout in seconds

    Returns:
        Path to downloaded file

    Raises:
        DownloadError: If the request fails or returns a non-200 status
        ChecksumError: If the digest does not match expected_sha256
        OperationCancelled: If the context is cancelled mid-download

    Example:
        >>> download_file(
        ...     "https://github.com/acme/tool/releases/download/v1/tool-linux-amd64",
        ...     Path("bin/gptscript-go-tool"),
        ...     expected_sha256="abc123...",
        ...     executable=True,
        ... )
    """
    if not url:
        raise ValueError("URL cannot be empty")

    context = ensure_context(context)
    destination = Path(destination)

    # Status is checked before anything touches the filesystem
    response = get(url, session=session, context=context, timeout=timeout, stream=True)

    hasher = StreamingHasher("sha256")
    try:
        destination.parent.mkdir(parents=True, exist_ok=True)
        with open(destination, "wb") as f:
            for chunk in response.iter_content(chunk_size=CHUNK_SIZE):
                context.check()
                if chunk:
                    f.write(chunk)
                    hasher.update(chunk)
    except RequestException as e:
        destination.unlink(missing_ok=True)
        raise DownloadError(url, f"Download of {url} interrupted: {e}") from e
    except BaseException:
        destination.unlink(missing_ok=True)
        raise
    finally:
        response.close()

    if not hasher.verify(expected_sha256):
        destination.unlink(missing_ok=True)
        raise ChecksumError(expected_sha256, hasher.finalize(), destination.name)

    if executable:
        make_executable(destination)

    logger.debug(f"Download complete: {destination}")
    return destination


def archive_name_from_url(url: str) -> str:
    """Final path segment of url, used to detect the archive format."""
    return urlparse(url).path.rstrip("/").split("/")[-1]


def download_and_extract(
    url: str,
    expected_sha256: str,
    destination: Path,
    session: Optional[requests.Session] = None,
    context: Optional[OperationContext] = None,
    timeout: float = DEFAULT_TIMEOUT,
) -> None:
    """
    Download an archive, verify its digest, then extract it.

    Extraction only starts after the digest has been verified. The
    temporary archive file is removed on every exit path.

    Args:
        url: Archive URL (its file name selects the archive format)
        expected_sha256: Expected SHA256 of the archive
        destination: Directory to extract into
        session: Optional requests session
        context: Optional operation context
        timeout: Per-request timeout in seconds

    Raises:
        DownloadError: On transport failure
        ChecksumError: On digest mismatch
        ArchiveExtractionError: If the archive cannot be extracted
    """
    fd, tmp_name = tempfile.mkstemp(prefix="runtimekit-", suffix=".archive")
    os.close(fd)
    archive = Path(tmp_name)

    try:
        download_file(
            url,
            archive,
            expected_sha256,
            session=session,
            context=context,
            timeout=timeout,
        )
        ensure_context(context).check()
        logger.debug(f"Extracting {url} to {destination}")
        extract_archive(archive, destination, archive_name=archive_name_from_url(url))
    finally:
        archive.unlink(missing_ok=True)
