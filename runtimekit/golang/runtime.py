"""
Go runtime for tool execution.

GoRuntime prepares tools written in Go in one of two ways:

- Prebuilt binary mode (fetch_prebuilt_binary): when the tool comes from a
  GitHub repository with a published release, download the platform binary
  listed in the release's checksums.txt. Any failure falls through.
- Build mode (prepare_and_build): provision the pinned Go toolchain into
  the content-addressed cache and run ``go build`` in the tool source.

Example:
    >>> runtime = GoRuntime("1.22.1")
    >>> env = current_env()
    >>> found, env = runtime.fetch_prebuilt_binary(tool, tool_source, env)
    >>> if not found:
    ...     env = env + runtime.prepare_and_build(tool, data_root, tool_source, env)
"""

import logging
from pathlib import Path
from typing import List, Optional, Sequence, Tuple

import requests

from runtimekit.core.context import OperationContext
from runtimekit.core.download import DEFAULT_TIMEOUT, download_and_extract, download_file
from runtimekit.core.environment import append_path
from runtimekit.core.exceptions import ChecksumError, DownloadError, ReleaseNotFoundError
from runtimekit.core.platform import PlatformInfo, detect_platform
from runtimekit.golang.build import build_credential_helper_binary, run_build
from runtimekit.golang.cache import ToolchainCache
from runtimekit.golang.checksums import fetch_checksum
from runtimekit.golang.release_index import (
    RELEASE_FEED_URL,
    ReleaseIndex,
    ToolchainRelease,
    fetch_release_feed,
    load_index,
)
from runtimekit.golang.releases import TOOL_BINARY_NAME, ReleaseResolver
from runtimekit.types import CredentialHelperDirs, ToolDescriptor

logger = logging.getLogger(__name__)

RUNTIME_NAME = "golang"
DEFAULT_VERSION = "1.22.1"
TOOL_DIR_VAR = "${GPTSCRIPT_TOOL_DIR}"
BINARY_COMMAND = f"{TOOL_DIR_VAR}/bin/{TOOL_BINARY_NAME}"


class GoRuntime:
    """
    Go toolchain provisioning and tool builds.

    Attributes:
        version: Go version, e.g. '1.22.1'
        platform: Host platform used for release and asset selection
    """

    def __init__(
        self,
        version: str = DEFAULT_VERSION,
        index: Optional[ReleaseIndex] = None,
        platform: Optional[PlatformInfo] = None,
        resolver: Optional[ReleaseResolver] = None,
        session: Optional[requests.Session] = None,
        cache_lock: bool = True,
        lock_timeout: int = 300,
        timeout: float = DEFAULT_TIMEOUT,
        release_feed: Optional[str] = RELEASE_FEED_URL,
    ):
        """
        Initialize runtime.

        Args:
            version: Go version to provision
            index: Release index (bundled manifest if None)
            platform: Host platform (detected if None)
            resolver: GitHub release resolver for prebuilt binaries
            session: requests session shared by all downloads
            cache_lock: Serialize cache provisioning across processes
            lock_timeout: Seconds to wait for the cache lock
            timeout: Per-request network timeout in seconds
            release_feed: Published release feed consulted for versions
                missing from index (None disables the lookup)
        """
        self.version = version
        self._index = index
        self.platform = platform or detect_platform()
        self.session = session or requests.Session()
        self.resolver = resolver or ReleaseResolver(session=self.session, timeout=timeout)
        self.cache_lock = cache_lock
        self.lock_timeout = lock_timeout
        self.timeout = timeout
        self.release_feed = release_feed
        self._feed_index: Optional[ReleaseIndex] = None

    @property
    def id(self) -> str:
        """Toolchain ID, e.g. 'go1.22.1'."""
        return "go" + self.version

    @property
    def index(self) -> ReleaseIndex:
        if self._index is None:
            self._index = load_index()
        return self._index

    def get_hash(self, tool: ToolDescriptor) -> str:
        """The Go runtime adds nothing to a tool's hash."""
        return ""

    def supports_binary_mode(self, tool: ToolDescriptor, cmd: Sequence[str]) -> bool:
        """
        True when tool comes from git and its command runs the built binary.
        """
        return tool.source.is_git() and len(cmd) > 0 and cmd[0] == BINARY_COMMAND

    # ------------------------------------------------------------------
    # Prebuilt binary mode
    # ------------------------------------------------------------------

    def fetch_prebuilt_binary(
        self,
        tool: ToolDescriptor,
        tool_source: Path,
        env: List[str],
        context: Optional[OperationContext] = None,
    ) -> Tuple[bool, Optional[List[str]]]:
        """
        Install a published release binary instead of building.

        Args:
            tool: Tool descriptor
            tool_source: Tool source directory; the binary goes to bin/
            env: Caller environment entries
            context: Optional operation context

        Returns:
            (True, env) when installed, (False, None) when not available
        """
        if not tool.source.is_git():
            return False, None

        release = self.resolver.resolve(tool.source.repo, context=context)
        if release is None:
            return False, None

        checksum = fetch_checksum(
            release,
            release.src_bin_name(self.platform),
            session=self.session,
            context=context,
            timeout=self.timeout,
        )
        if not checksum:
            return False, None

        target = Path(tool_source) / "bin" / release.target_bin_name(self.platform)
        try:
            download_file(
                release.bin_url(self.platform),
                target,
                checksum,
                executable=True,
                session=self.session,
                context=context,
                timeout=self.timeout,
            )
        except (DownloadError, ChecksumError, OSError) as e:
            logger.warning(
                f"Prebuilt binary for {release.account}/{release.repo}@{release.label} "
                f"unavailable, falling back to build: {e}"
            )
            return False, None

        logger.info(f"Installed prebuilt {release.repo} {release.label}")
        return True, env

    # ------------------------------------------------------------------
    # Build mode
    # ------------------------------------------------------------------

    def get_release_and_digest(
        self, context: Optional[OperationContext] = None
    ) -> ToolchainRelease:
        """
        Look up the toolchain archive for this version and platform.

        The bundled index is consulted first, then the published release
        feed when one is configured.

        Raises:
            ReleaseNotFoundError: If no index has a matching entry
            DownloadError: If the release feed cannot be fetched
        """
        key = (self.id, self.platform.os, self.platform.dist_arch)
        try:
            return self.index.lookup(*key)
        except ReleaseNotFoundError:
            if not self.release_feed:
                raise

        if self._feed_index is None:
            logger.info(f"Go {self.version} not in the bundled index, using {self.release_feed}")
            self._feed_index = fetch_release_feed(
                self.release_feed,
                download_url=self.index.download_url,
                session=self.session,
                context=context,
                timeout=self.timeout,
            )
        return self._feed_index.lookup(*key)

    def cache_dir(self, data_root: Path) -> Path:
        return Path(data_root) / RUNTIME_NAME

    def bin_dir(self, entry: Path) -> Path:
        """Executable directory inside an extracted toolchain."""
        return Path(entry) / "go" / "bin"

    def get_runtime(
        self, data_root: Path, context: Optional[OperationContext] = None
    ) -> Path:
        """
        Provision the toolchain and return its bin directory.

        Args:
            data_root: Root of the on-disk cache
            context: Optional operation context

        Returns:
            Path to <data_root>/golang/<fingerprint>/go/bin
        """
        release = self.get_release_and_digest(context=context)
        cache = ToolchainCache(
            self.cache_dir(data_root),
            extractor=self._extract,
            lock=self.cache_lock,
            lock_timeout=self.lock_timeout,
        )

        if not cache.entry_path(release.url, release.sha256).exists():
            logger.info(f"Downloading Go {self.version}")

        return self.bin_dir(cache.ensure(release.url, release.sha256, context=context))

    def _extract(
        self,
        url: str,
        sha256: str,
        destination: Path,
        context: Optional[OperationContext] = None,
    ):
        download_and_extract(
            url,
            sha256,
            destination,
            session=self.session,
            context=context,
            timeout=self.timeout,
        )

    def prepare_and_build(
        self,
        tool: ToolDescriptor,
        data_root: Path,
        tool_source: Path,
        env: List[str],
        context: Optional[OperationContext] = None,
    ) -> List[str]:
        """
        Provision the toolchain and build the tool.

        Args:
            tool: Tool descriptor
            data_root: Root of the on-disk cache
            tool_source: Directory holding the tool's Go module
            env: Caller environment entries
            context: Optional operation context

        Returns:
            PATH entries putting the toolchain first; the caller appends them
            to its environment

        Raises:
            ReleaseNotFoundError: No toolchain for this platform
            DownloadError: Toolchain download failed
            ChecksumError: Toolchain archive digest mismatch
            CommandError: go build failed
        """
        bin_path = self.get_runtime(data_root, context=context)

        new_env = append_path(env, str(bin_path))
        run_build(
            Path(tool_source),
            bin_path,
            [*env, *new_env],
            platform=self.platform,
            context=context,
        )

        return new_env

    def build_credential_helper(
        self,
        helper_name: str,
        dirs: CredentialHelperDirs,
        data_root: Path,
        revision: str,
        env: List[str],
        context: Optional[OperationContext] = None,
    ) -> Optional[Path]:
        """
        Build a credential helper from its checkout.

        The "file" helper is built in and needs no binary.

        Returns:
            Path of the built helper, or None for the "file" helper
        """
        if helper_name == "file":
            return None

        bin_path = self.get_runtime(data_root, context=context)
        new_env = append_path(env, str(bin_path))

        return build_credential_helper_binary(
            helper_name,
            bin_path,
            dirs.bin_dir,
            Path(dirs.repo_dir) / revision,
            [*env, *new_env],
            platform=self.platform,
            context=context,
        )
