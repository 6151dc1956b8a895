"""
Unit tests for GoRuntime.

Network access is mocked with `responses`; go itself is never executed.
"""

import os
from pathlib import Path
from unittest.mock import Mock, patch

import pytest
import requests
import responses

from runtimekit.core.exceptions import ChecksumError, DownloadError, ReleaseNotFoundError
from runtimekit.core.platform import PlatformInfo
from runtimekit.golang.cache import cache_fingerprint
from runtimekit.golang.release_index import RELEASE_FEED_URL, ReleaseIndex
from runtimekit.golang.releases import ReleaseResolver, RemoteRelease
from runtimekit.golang.runtime import BINARY_COMMAND, GoRuntime
from runtimekit.types import CredentialHelperDirs, Repo, ToolDescriptor, ToolSource
from tests.utils import fake_go_archive, sha256_hex

ARCHIVE = fake_go_archive()
ARCHIVE_URL = "https://go.dev/dl/go1.22.1.linux-amd64.tar.gz"

GIT_TOOL = ToolDescriptor(
    name="tool",
    source=ToolSource(
        location="https://github.com/acme/tool.git",
        repo=Repo("https://github.com/acme/tool.git", "1a2b3c"),
    ),
)
LOCAL_TOOL = ToolDescriptor(name="tool", source=ToolSource(location="/tools/tool"))


def make_runtime(digest=None, **kwargs):
    index = ReleaseIndex.from_text(
        f"{digest or sha256_hex(ARCHIVE)}  go1.22.1.linux-amd64.tar.gz\n"
    )
    kwargs.setdefault("platform", PlatformInfo("linux", "amd64"))
    kwargs.setdefault("release_feed", None)
    return GoRuntime("1.22.1", index=index, session=requests.Session(), **kwargs)


class TestGoRuntimeBasics:
    """Test identity and mode selection."""

    def test_id(self):
        """Test the toolchain ID carries the go prefix."""
        assert make_runtime().id == "go1.22.1"

    def test_get_hash_empty(self):
        """Test the runtime contributes nothing to tool hashes."""
        assert make_runtime().get_hash(GIT_TOOL) == ""

    def test_supports_binary_mode(self):
        """Test binary mode needs a git source and the tool binary command."""
        runtime = make_runtime()

        assert runtime.supports_binary_mode(GIT_TOOL, [BINARY_COMMAND, "--flag"])
        assert not runtime.supports_binary_mode(GIT_TOOL, ["go", "run", "."])
        assert not runtime.supports_binary_mode(GIT_TOOL, [])
        assert not runtime.supports_binary_mode(LOCAL_TOOL, [BINARY_COMMAND])

    def test_release_and_digest(self):
        """Test index lookup for the runtime platform."""
        release = make_runtime().get_release_and_digest()

        assert release.url == ARCHIVE_URL
        assert release.sha256 == sha256_hex(ARCHIVE)

    def test_release_not_found(self):
        """Test a platform missing from the index."""
        runtime = make_runtime(platform=PlatformInfo("freebsd", "riscv64"))

        with pytest.raises(ReleaseNotFoundError):
            runtime.get_release_and_digest()


class TestPrepareAndBuild:
    """Test build mode."""

    @responses.activate
    @patch("runtimekit.golang.runtime.run_build")
    def test_first_run_downloads_and_builds(self, mock_build, tmp_path):
        """Test toolchain provisioning, PATH entries and the build call."""
        responses.add(responses.GET, ARCHIVE_URL, body=ARCHIVE, status=200)
        runtime = make_runtime()
        source = tmp_path / "src"
        source.mkdir()
        env = ["PATH=/usr/bin", "GOPATH=/gp"]

        new_env = runtime.prepare_and_build(LOCAL_TOOL, tmp_path / "data", source, env)

        bin_dir = (
            tmp_path / "data" / "golang"
            / cache_fingerprint(ARCHIVE_URL, sha256_hex(ARCHIVE)) / "go" / "bin"
        )
        assert (bin_dir / "go").exists()
        assert new_env == [f"PATH={bin_dir}{os.pathsep}/usr/bin"]

        args, kwargs = mock_build.call_args
        assert args == (source, bin_dir, [*env, *new_env])
        assert kwargs["platform"] == PlatformInfo("linux", "amd64")

    @responses.activate
    @patch("runtimekit.golang.runtime.run_build")
    def test_second_run_uses_cache(self, mock_build, tmp_path):
        """Test a populated cache makes no network request."""
        responses.add(responses.GET, ARCHIVE_URL, body=ARCHIVE, status=200)
        runtime = make_runtime()

        first = runtime.prepare_and_build(LOCAL_TOOL, tmp_path, tmp_path, [])
        second = runtime.prepare_and_build(LOCAL_TOOL, tmp_path, tmp_path, [])

        assert first == second
        assert len(responses.calls) == 1
        assert mock_build.call_count == 2

    @responses.activate
    @patch("runtimekit.golang.runtime.run_build")
    def test_checksum_mismatch(self, mock_build, tmp_path):
        """Test a tampered archive fails integrity and builds nothing."""
        responses.add(responses.GET, ARCHIVE_URL, body=ARCHIVE, status=200)
        runtime = make_runtime(digest="0" * 64)

        with pytest.raises(ChecksumError):
            runtime.prepare_and_build(LOCAL_TOOL, tmp_path, tmp_path, [])

        mock_build.assert_not_called()
        assert list((tmp_path / "golang").glob("*.download")) == []
        assert not (tmp_path / "golang" / cache_fingerprint(ARCHIVE_URL, "0" * 64)).exists()

    @responses.activate
    @patch("runtimekit.golang.runtime.run_build")
    def test_transport_failure(self, mock_build, tmp_path):
        """Test a server error is reported as a transport failure."""
        responses.add(responses.GET, ARCHIVE_URL, status=503)

        with pytest.raises(DownloadError) as exc_info:
            make_runtime().prepare_and_build(LOCAL_TOOL, tmp_path, tmp_path, [])

        assert exc_info.value.status_code == 503
        mock_build.assert_not_called()


class TestFetchPrebuiltBinary:
    """Test binary mode."""

    RELEASE = RemoteRelease("acme", "tool", "v0.3.0")
    BINARY = b"\x7fELF prebuilt"

    def runtime_with_release(self, release):
        resolver = Mock(spec=ReleaseResolver)
        resolver.resolve.return_value = release
        return make_runtime(resolver=resolver)

    def test_non_git_source(self, tmp_path):
        """Test tools without a git source are not eligible."""
        runtime = self.runtime_with_release(self.RELEASE)

        assert runtime.fetch_prebuilt_binary(LOCAL_TOOL, tmp_path, []) == (False, None)
        runtime.resolver.resolve.assert_not_called()

    def test_unresolvable(self, tmp_path):
        """Test no release means no binary."""
        runtime = self.runtime_with_release(None)

        assert runtime.fetch_prebuilt_binary(GIT_TOOL, tmp_path, []) == (False, None)

    @responses.activate
    def test_installs_binary(self, tmp_path):
        """Test the verified binary is installed executable under bin/."""
        platform = PlatformInfo("linux", "amd64")
        responses.add(
            responses.GET,
            self.RELEASE.checksum_url(),
            body=f"{sha256_hex(self.BINARY)}  tool-linux-amd64\n",
        )
        responses.add(responses.GET, self.RELEASE.bin_url(platform), body=self.BINARY)
        env = ["PATH=/usr/bin"]

        found, result_env = self.runtime_with_release(self.RELEASE).fetch_prebuilt_binary(
            GIT_TOOL, tmp_path, env
        )

        target = tmp_path / "bin" / "gptscript-go-tool"
        assert found is True
        assert result_env == env
        assert target.read_bytes() == self.BINARY
        if os.name != "nt":
            assert os.access(target, os.X_OK)

    @responses.activate
    def test_missing_checksum_entry(self, tmp_path):
        """Test a binary not listed in checksums.txt is never downloaded."""
        responses.add(
            responses.GET,
            self.RELEASE.checksum_url(),
            body="abc123  tool-darwin-arm64\n",
        )

        found, _ = self.runtime_with_release(self.RELEASE).fetch_prebuilt_binary(
            GIT_TOOL, tmp_path, []
        )

        assert found is False
        assert len(responses.calls) == 1

    @responses.activate
    def test_digest_mismatch_falls_back(self, tmp_path):
        """Test a mismatching binary is removed and reported unavailable."""
        platform = PlatformInfo("linux", "amd64")
        responses.add(
            responses.GET,
            self.RELEASE.checksum_url(),
            body=f"{'0' * 64}  tool-linux-amd64\n",
        )
        responses.add(responses.GET, self.RELEASE.bin_url(platform), body=self.BINARY)

        found, env = self.runtime_with_release(self.RELEASE).fetch_prebuilt_binary(
            GIT_TOOL, tmp_path, []
        )

        assert (found, env) == (False, None)
        assert not (tmp_path / "bin" / "gptscript-go-tool").exists()


class TestBuildCredentialHelper:
    """Test credential helper builds."""

    def test_file_helper_needs_no_build(self, tmp_path):
        """Test the built-in file helper returns None without provisioning."""
        runtime = make_runtime()
        dirs = CredentialHelperDirs(bin_dir=tmp_path / "bin", repo_dir=tmp_path / "repo")

        with patch.object(runtime, "get_runtime") as mock_get:
            assert runtime.build_credential_helper("file", dirs, tmp_path, "abc", []) is None

        mock_get.assert_not_called()

    @patch("runtimekit.golang.runtime.build_credential_helper_binary")
    def test_builds_from_revision_checkout(self, mock_helper, tmp_path):
        """Test helpers build from <repo_dir>/<revision> with Go on PATH."""
        runtime = make_runtime()
        dirs = CredentialHelperDirs(bin_dir=tmp_path / "bin", repo_dir=tmp_path / "repo")
        bin_path = Path("/cache/go/bin")
        mock_helper.return_value = tmp_path / "bin" / "gptscript-credential-osxkeychain"

        with patch.object(runtime, "get_runtime", return_value=bin_path):
            result = runtime.build_credential_helper(
                "osxkeychain", dirs, tmp_path, "abc", ["PATH=/usr/bin"]
            )

        assert result == mock_helper.return_value
        args, kwargs = mock_helper.call_args
        assert args[:4] == ("osxkeychain", bin_path, dirs.bin_dir, tmp_path / "repo" / "abc")
        assert args[4] == ["PATH=/usr/bin", f"PATH={bin_path}{os.pathsep}/usr/bin"]


class TestGetRuntime:
    """Test toolchain provisioning through the release index."""

    @patch("runtimekit.golang.runtime.download_and_extract")
    def test_unprefixed_manifest_entry(self, mock_extract, tmp_path):
        """Test one download and extract for a manifest row without the go prefix."""

        def extract(url, sha256, destination, **kwargs):
            (destination / "go" / "bin").mkdir(parents=True)

        mock_extract.side_effect = extract
        runtime = GoRuntime(
            "1.22.1",
            index=ReleaseIndex.from_text("deadbeef  1.22.1.linux-amd64.tar.gz\n"),
            platform=PlatformInfo("linux", "amd64"),
        )

        bin_dir = runtime.get_runtime(tmp_path)

        mock_extract.assert_called_once()
        url, sha256, _ = mock_extract.call_args.args
        assert url == "https://go.dev/dl/1.22.1.linux-amd64.tar.gz"
        assert sha256 == "deadbeef"
        assert bin_dir == (
            tmp_path / "golang" / cache_fingerprint(url, sha256) / "go" / "bin"
        )
        assert bin_dir.is_dir()


class TestReleaseFeedFallback:
    """Test lookups for versions missing from the bundled index."""

    FEED_DIGEST = "c" * 64
    FEED = [
        {
            "version": "go1.22.1",
            "files": [
                {
                    "filename": "go1.22.1.linux-amd64.tar.gz",
                    "kind": "archive",
                    "sha256": "c" * 64,
                },
            ],
        }
    ]

    def feed_runtime(self, index):
        return GoRuntime(
            "1.22.1",
            index=index,
            platform=PlatformInfo("linux", "amd64"),
            session=requests.Session(),
        )

    @responses.activate
    def test_default_index_resolves(self):
        """Test the default runtime finds go1.22.1 for linux/amd64."""
        responses.add(responses.GET, RELEASE_FEED_URL, json=self.FEED)
        runtime = GoRuntime("1.22.1", platform=PlatformInfo("linux", "amd64"))

        release = runtime.get_release_and_digest()

        assert release.url == ARCHIVE_URL
        assert len(release.sha256) == 64

    @responses.activate
    def test_feed_used_when_missing(self):
        """Test the feed answers when the bundled index has no entry."""
        responses.add(responses.GET, RELEASE_FEED_URL, json=self.FEED)
        runtime = self.feed_runtime(ReleaseIndex.from_text(""))

        release = runtime.get_release_and_digest()

        assert release.url == ARCHIVE_URL
        assert release.sha256 == self.FEED_DIGEST

    @responses.activate
    def test_feed_fetched_once(self):
        """Test repeated lookups reuse the fetched feed."""
        responses.add(responses.GET, RELEASE_FEED_URL, json=self.FEED)
        runtime = self.feed_runtime(ReleaseIndex.from_text(""))

        runtime.get_release_and_digest()
        runtime.get_release_and_digest()

        assert len(responses.calls) == 1

    @responses.activate
    def test_bundled_entry_wins(self):
        """Test the feed is not fetched when the bundled index has the entry."""
        runtime = self.feed_runtime(
            ReleaseIndex.from_text(f"{'a' * 64}  go1.22.1.linux-amd64.tar.gz\n")
        )

        assert runtime.get_release_and_digest().sha256 == "a" * 64
        assert len(responses.calls) == 0

    @responses.activate
    def test_missing_everywhere(self):
        """Test a platform absent from the feed is still not found."""
        responses.add(responses.GET, RELEASE_FEED_URL, json=self.FEED)
        runtime = self.feed_runtime(ReleaseIndex.from_text(""))
        runtime.platform = PlatformInfo("plan9", "amd64")

        with pytest.raises(ReleaseNotFoundError):
            runtime.get_release_and_digest()

    @responses.activate
    def test_feed_unavailable(self):
        """Test a feed outage surfaces as a transport error."""
        responses.add(responses.GET, RELEASE_FEED_URL, status=503)

        with pytest.raises(DownloadError):
            self.feed_runtime(ReleaseIndex.from_text("")).get_release_and_digest()

    def test_feed_disabled(self):
        """Test no feed lookup happens when it is disabled."""
        runtime = make_runtime(platform=PlatformInfo("plan9", "amd64"))

        with pytest.raises(ReleaseNotFoundError):
            runtime.get_release_and_digest()
