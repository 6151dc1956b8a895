"""Tool descriptor types shared with the tool-execution engine."""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional


@dataclass(frozen=True)
class Repo:
    """A version-controlled source location for a tool."""

    root: str
    """Repository root URL, e.g. https://github.com/acme/tool.git"""

    revision: str = ""
    """Commit hash the tool is pinned to"""

    vcs: str = "git"


@dataclass(frozen=True)
class ToolSource:
    """Where a tool definition came from."""

    location: str = ""
    repo: Optional[Repo] = None

    def is_git(self) -> bool:
        """True when the tool was loaded from a git repository."""
        return self.repo is not None and self.repo.vcs == "git"


@dataclass(frozen=True)
class ToolDescriptor:
    """The parts of a tool definition the runtimes look at."""

    name: str
    source: ToolSource = field(default_factory=ToolSource)


@dataclass(frozen=True)
class CredentialHelperDirs:
    """Locations used when building credential helpers."""

    bin_dir: Path
    """Destination directory for built helper binaries"""

    repo_dir: Path
    """Checkout root; helpers are built from <repo_dir>/<revision>"""
