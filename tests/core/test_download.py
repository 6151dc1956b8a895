"""
Unit tests for download module.

Tests download functionality with mocked network requests.
"""

import hashlib
import os

import pytest
import requests
import responses

from runtimekit.core.context import OperationContext
from runtimekit.core.download import (
    StreamingHasher,
    archive_name_from_url,
    download_and_extract,
    download_file,
    fetch_text,
)
from runtimekit.core.exceptions import ChecksumError, DownloadError, OperationCancelled
from runtimekit.core.filesystem import ArchiveExtractionError
from tests.utils import make_tar_gz, sha256_hex

URL = "https://example.com/file.bin"


class TestStreamingHasher:
    """Test StreamingHasher class."""

    def test_create_sha256_hasher(self):
        """Test creating SHA256 hasher."""
        hasher = StreamingHasher("sha256")
        assert hasher.algorithm == "sha256"

    def test_unsupported_algorithm(self):
        """Test unsupported algorithm raises ValueError."""
        with pytest.raises(ValueError, match="Unsupported hash algorithm"):
            StreamingHasher("md5")

    def test_update_and_finalize(self):
        """Test incremental updates produce the digest of the whole input."""
        hasher = StreamingHasher("sha256")
        hasher.update(b"hello ")
        hasher.update(b"world")

        assert hasher.finalize() == hashlib.sha256(b"hello world").hexdigest()

    def test_case_insensitive_verify(self):
        """Test verify accepts an uppercase expected digest."""
        hasher = StreamingHasher("sha256")
        hasher.update(b"test")

        assert hasher.verify(hashlib.sha256(b"test").hexdigest().upper()) is True
        assert hasher.verify("a" * 64) is False


class TestDownloadFile:
    """Test download_file function."""

    @responses.activate
    def test_download_verified(self, tmp_path):
        """Test a body matching its digest is written to the destination."""
        content = b"tool binary"
        responses.add(responses.GET, URL, body=content, status=200)

        dest = tmp_path / "bin" / "tool"
        result = download_file(URL, dest, sha256_hex(content))

        assert result == dest
        assert dest.read_bytes() == content

    @responses.activate
    def test_checksum_mismatch_removes_file(self, tmp_path):
        """Test a digest mismatch raises ChecksumError and leaves nothing behind."""
        responses.add(responses.GET, URL, body=b"tampered", status=200)

        dest = tmp_path / "tool"
        with pytest.raises(ChecksumError) as exc_info:
            download_file(URL, dest, sha256_hex(b"original"))

        assert not dest.exists()
        assert exc_info.value.expected == sha256_hex(b"original")
        assert exc_info.value.actual == sha256_hex(b"tampered")

    @responses.activate
    def test_bad_status_raises_download_error(self, tmp_path):
        """Test non-200 status is a transport error and nothing is created."""
        responses.add(responses.GET, URL, status=404)

        dest = tmp_path / "sub" / "tool"
        with pytest.raises(DownloadError, match="bad HTTP status code: 404") as exc_info:
            download_file(URL, dest, "a" * 64)

        assert exc_info.value.status_code == 404
        assert not dest.parent.exists()

    @responses.activate
    def test_connection_error_raises_download_error(self, tmp_path):
        """Test connection failures surface as DownloadError."""
        responses.add(
            responses.GET, URL, body=requests.exceptions.ConnectionError("refused")
        )

        with pytest.raises(DownloadError):
            download_file(URL, tmp_path / "tool", "a" * 64)

    @responses.activate
    @pytest.mark.skipif(os.name == "nt", reason="POSIX permissions")
    def test_executable_mode(self, tmp_path):
        """Test executable downloads get mode 0755."""
        content = b"#!/bin/sh\n"
        responses.add(responses.GET, URL, body=content, status=200)

        dest = download_file(URL, tmp_path / "tool", sha256_hex(content), executable=True)

        assert dest.stat().st_mode & 0o777 == 0o755

    def test_empty_url(self, tmp_path):
        """Test empty URL is rejected."""
        with pytest.raises(ValueError, match="URL cannot be empty"):
            download_file("", tmp_path / "tool", "a" * 64)

    def test_cancelled_context(self, tmp_path):
        """Test a cancelled context stops before any request."""
        context = OperationContext()
        context.cancel()

        with pytest.raises(OperationCancelled):
            download_file(URL, tmp_path / "tool", "a" * 64, context=context)

        assert not (tmp_path / "tool").exists()

    @responses.activate
    def test_uses_session(self, tmp_path):
        """Test the request goes through the supplied session."""
        content = b"data"
        responses.add(responses.GET, URL, body=content, status=200)

        session = requests.Session()
        download_file(URL, tmp_path / "f", sha256_hex(content), session=session)

        assert len(responses.calls) == 1


class TestFetchText:
    """Test fetch_text function."""

    @responses.activate
    def test_fetch_text(self):
        """Test body is returned as text."""
        responses.add(responses.GET, URL, body="abc  file\n", status=200)

        assert fetch_text(URL) == "abc  file\n"

    @responses.activate
    def test_fetch_text_error(self):
        """Test server errors raise DownloadError."""
        responses.add(responses.GET, URL, status=500)

        with pytest.raises(DownloadError):
            fetch_text(URL)


class TestDownloadAndExtract:
    """Test the verified archive extraction service."""

    ARCHIVE_URL = "https://go.dev/dl/go1.22.1.linux-amd64.tar.gz"

    def test_archive_name_from_url(self):
        """Test the archive name is the last URL path segment."""
        assert archive_name_from_url(self.ARCHIVE_URL) == "go1.22.1.linux-amd64.tar.gz"
        assert archive_name_from_url("https://x.test/a/b.zip?sig=1") == "b.zip"

    @responses.activate
    def test_extracts_verified_archive(self, tmp_path):
        """Test archive contents land in the destination."""
        archive = make_tar_gz({"go/bin/go": b"binary"})
        responses.add(responses.GET, self.ARCHIVE_URL, body=archive, status=200)

        dest = tmp_path / "out"
        download_and_extract(self.ARCHIVE_URL, sha256_hex(archive), dest)

        assert (dest / "go" / "bin" / "go").read_bytes() == b"binary"

    @responses.activate
    def test_mismatch_does_not_extract(self, tmp_path):
        """Test nothing is extracted when the digest does not match."""
        archive = make_tar_gz({"go/bin/go": b"binary"})
        responses.add(responses.GET, self.ARCHIVE_URL, body=archive, status=200)

        dest = tmp_path / "out"
        with pytest.raises(ChecksumError):
            download_and_extract(self.ARCHIVE_URL, "0" * 64, dest)

        assert not dest.exists()

    @responses.activate
    def test_corrupt_archive(self, tmp_path):
        """Test a verified but unreadable archive raises ArchiveExtractionError."""
        body = b"not a tarball"
        responses.add(responses.GET, self.ARCHIVE_URL, body=body, status=200)

        with pytest.raises(ArchiveExtractionError):
            download_and_extract(self.ARCHIVE_URL, sha256_hex(body), tmp_path / "out")
