"""
Data root resolution for RuntimeKit.

Layout under the data root:
    <data_root>/
        golang/
            <fingerprint>/          : extracted toolchain (go/bin inside)
            <fingerprint>.download/ : transient staging directory
            <fingerprint>.lock      : advisory cache lock
"""

import os
from pathlib import Path

DATA_ROOT_ENV = "RUNTIMEKIT_DATA_ROOT"


def get_default_data_root() -> Path:
    """
    Get the platform-specific default data root.

    RUNTIMEKIT_DATA_ROOT overrides the default.

    Returns:
        Path: ~/.runtimekit on Linux/macOS, %LOCALAPPDATA%\\runtimekit on Windows
    """
    override = os.environ.get(DATA_ROOT_ENV)
    if override:
        return Path(override).expanduser()

    if os.name == "nt":
        local_app_data = os.environ.get("LOCALAPPDATA")
        if local_app_data:
            return Path(local_app_data) / "runtimekit"
    return Path.home() / ".runtimekit"
