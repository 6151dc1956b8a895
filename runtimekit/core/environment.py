"""
Helpers for environments expressed as ordered ``KEY=VALUE`` lists.

Lists keep the order callers built them in; when a list is turned into a
mapping for a child process, later entries win over earlier ones.
"""

import os
from typing import Dict, Iterable, List, Optional


def current_env() -> List[str]:
    """Return the calling process environment as a KEY=VALUE list."""
    return [f"{key}={value}" for key, value in os.environ.items()]


def append_path(env: Iterable[str], directory: str) -> List[str]:
    """
    Build PATH entries with directory prepended.

    Only the new PATH entries are returned, one per PATH entry found in env;
    callers append them to env so they take precedence.

    Args:
        env: KEY=VALUE entries
        directory: Directory to put first on the search path

    Returns:
        List of new PATH=... entries

    Example:
        >>> append_path(["HOME=/root", "PATH=/usr/bin"], "/opt/go/bin")
        ['PATH=/opt/go/bin:/usr/bin']
    """
    new_env = []
    for entry in env:
        if entry.startswith("PATH="):
            current = entry[len("PATH=") :]
            new_env.append(f"PATH={directory}{os.pathsep}{current}")

    if not new_env:
        new_env.append(f"PATH={directory}")

    return new_env


def strip_prefixed(env: Iterable[str], prefix: str) -> List[str]:
    """Drop every entry whose key starts with prefix."""
    return [entry for entry in env if not entry.startswith(prefix)]


def env_to_dict(env: Optional[Iterable[str]]) -> Optional[Dict[str, str]]:
    """
    Convert KEY=VALUE entries to a mapping for subprocess.

    Entries without '=' are ignored. Returns None when env is None so the
    child inherits the parent environment.
    """
    if env is None:
        return None

    result = {}
    for entry in env:
        key, sep, value = entry.partition("=")
        if sep and key:
            result[key] = value
    return result
