"""
GitHub release resolution for tools distributed as prebuilt Go binaries.

A tool pinned to a git revision may have a published release whose assets
include a binary per platform. ReleaseResolver finds that release:

1. A tag whose commit equals the pinned revision (first match wins).
2. Otherwise the repository's "latest release" redirect.

Resolution is best-effort. Every failure, from an unexpected repository URL
to a network error, yields None so callers fall back to building from
source.
"""

import logging
from dataclasses import dataclass
from typing import Optional, Tuple
from urllib.parse import urlparse

import requests
from requests.exceptions import RequestException

from runtimekit.core.context import OperationContext, ensure_context
from runtimekit.core.platform import PlatformInfo
from runtimekit.types import Repo

logger = logging.getLogger(__name__)

GITHUB_HOST = "github.com"
GITHUB_API = "https://api.github.com"

# Name the built or downloaded tool binary is installed under
TOOL_BINARY_NAME = "gptscript-go-tool"


def platform_binary_names(repo: str, platform: PlatformInfo) -> Tuple[str, str]:
    """
    Release asset name and installed name of a tool binary.

    Args:
        repo: Repository name (asset names start with it)
        platform: Target platform

    Returns:
        (source asset name, installed binary name)

    Example:
        >>> platform_binary_names("tool", PlatformInfo("windows", "amd64"))
        ('tool-windows-amd64.exe', 'gptscript-go-tool.exe')
    """
    suffix = platform.exe_suffix
    return (
        f"{repo}-{platform.os}-{platform.arch}{suffix}",
        f"{TOOL_BINARY_NAME}{suffix}",
    )


@dataclass(frozen=True)
class RemoteRelease:
    """A published release of a GitHub repository."""

    account: str
    repo: str
    label: str
    host: str = GITHUB_HOST

    @property
    def download_base(self) -> str:
        return f"https://{self.host}/{self.account}/{self.repo}/releases/download/{self.label}"

    def checksum_url(self) -> str:
        """URL of the release's checksums.txt asset."""
        return f"{self.download_base}/checksums.txt"

    def src_bin_name(self, platform: PlatformInfo) -> str:
        return platform_binary_names(self.repo, platform)[0]

    def target_bin_name(self, platform: PlatformInfo) -> str:
        return platform_binary_names(self.repo, platform)[1]

    def bin_url(self, platform: PlatformInfo) -> str:
        """URL of the platform binary asset."""
        return f"{self.download_base}/{self.src_bin_name(platform)}"


def parse_repo_root(root: str, host: str = GITHUB_HOST) -> Optional[Tuple[str, str]]:
    """
    Split https://<host>/<account>/<repo>[.git] into (account, repo).

    Returns:
        (account, repo), or None for any other URL shape
    """
    prefix = f"https://{host}/"
    if not root.startswith(prefix):
        return None

    trimmed = root[: -len(".git")] if root.endswith(".git") else root
    parts = trimmed[len("https://") :].split("/")
    if len(parts) != 3 or not parts[1] or not parts[2]:
        return None

    return parts[1], parts[2]


class ReleaseResolver:
    """
    Resolve the release matching a repository revision.

    Example:
        >>> resolver = ReleaseResolver()
        >>> release = resolver.resolve(Repo("https://github.com/acme/tool.git", "1a2b3c"))
        >>> release.label if release else None
        'v0.3.0'
    """

    def __init__(
        self,
        session: Optional[requests.Session] = None,
        host: str = GITHUB_HOST,
        api_url: str = GITHUB_API,
        timeout: float = 30,
    ):
        """
        Initialize resolver.

        Args:
            session: requests session; redirects are never followed
            host: Web host of the repositories
            api_url: REST API base URL
            timeout: Per-request timeout in seconds
        """
        self.session = session or requests.Session()
        self.host = host
        self.api_url = api_url.rstrip("/")
        self.timeout = timeout

    def resolve(
        self, repo: Optional[Repo], context: Optional[OperationContext] = None
    ) -> Optional[RemoteRelease]:
        """
        Find the release for repo.revision.

        Args:
            repo: Repository reference (None is never resolvable)
            context: Optional operation context

        Returns:
            RemoteRelease, or None when not resolvable
        """
        if repo is None:
            return None

        parsed = parse_repo_root(repo.root, self.host)
        if parsed is None:
            logger.debug(f"Not a {self.host} repository root: {repo.root}")
            return None

        account, name = parsed
        context = ensure_context(context)

        label = self._tag_for_revision(account, name, repo.revision, context)
        if label is None:
            label = self._latest_label(account, name, context)
        if label is None:
            return None

        return RemoteRelease(account=account, repo=name, label=label, host=self.host)

    def _get(self, url: str, context: OperationContext) -> Optional[requests.Response]:
        context.check()
        try:
            return self.session.get(
                url, allow_redirects=False, timeout=context.timeout(self.timeout)
            )
        except RequestException as e:
            logger.debug(f"Request to {url} failed: {e}")
            return None

    def _tag_for_revision(
        self, account: str, repo: str, revision: str, context: OperationContext
    ) -> Optional[str]:
        url = f"{self.api_url}/repos/{account}/{repo}/tags"
        response = self._get(url, context)
        if response is None:
            return None

        try:
            if response.status_code != 200:
                logger.debug(f"Tag listing for {account}/{repo}: HTTP {response.status_code}")
                return None
            tags = response.json()
        except ValueError:
            return None
        finally:
            response.close()

        if not isinstance(tags, list):
            return None

        for tag in tags:
            if not isinstance(tag, dict):
                continue
            commit = tag.get("commit")
            if not isinstance(commit, dict):
                continue
            if revision and commit.get("sha") == revision and tag.get("name"):
                return tag["name"]

        return None

    def _latest_label(
        self, account: str, repo: str, context: OperationContext
    ) -> Optional[str]:
        url = f"https://{self.host}/{account}/{repo}/releases/latest"
        response = self._get(url, context)
        if response is None:
            return None

        try:
            if not response.is_redirect:
                return None
            target = response.headers.get("Location", "")
        finally:
            response.close()

        label = urlparse(target).path.rstrip("/").split("/")[-1]
        # Repositories without releases redirect to the release listing
        if not label or label == "releases":
            return None
        return label
