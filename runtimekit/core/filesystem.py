"""
File system utilities for RuntimeKit.

This module provides:
- Archive extraction (tar.gz, zip) with directory traversal protection
- Safe directory deletion bounded to a required prefix
- Path helpers
"""

import os
import shutil
import sys
import tarfile
import zipfile
from pathlib import Path
from typing import Optional, Union

from runtimekit.core.exceptions import RuntimeKitError

IS_WINDOWS = os.name == "nt"

# Extensions extract_archive() understands, longest first.
ARCHIVE_SUFFIXES = (".tar.gz", ".tgz", ".zip")


# ============================================================================
# Error Handling
# ============================================================================


class FilesystemError(RuntimeKitError):
    """Base exception for filesystem operations."""

    pass


class ArchiveExtractionError(FilesystemError):
    """Raised when archive extraction fails."""

    pass


class UnsupportedArchiveFormat(ArchiveExtractionError):
    """Raised when the archive format is not recognized."""

    pass


class InsecureArchiveError(ArchiveExtractionError):
    """Raised when an archive member would escape the destination."""

    pass


# ============================================================================
# Path Utilities
# ============================================================================


def is_relative_to(path: Path, parent: Path) -> bool:
    """
    Check whether path is located under parent.

    Args:
        path: Path to check
        parent: Potential parent directory

    Returns:
        True if path is parent or below it
    """
    try:
        path.relative_to(parent)
        return True
    except ValueError:
        return False


def is_archive(name: str) -> bool:
    """Return True if name carries an extension extract_archive() handles."""
    return name.lower().endswith(ARCHIVE_SUFFIXES)


# ============================================================================
# Archive Extraction
# ============================================================================


def _validate_archive_path(path: str, destination: Path) -> None:
    """
    Validate that an archive member path is safe to extract.

    Args:
        path: Member path from archive
        destination: Extraction destination

    Raises:
        InsecureArchiveError: If path attempts directory traversal
    """
    member_path = (destination / path).resolve()

    if not is_relative_to(member_path, destination.resolve()):
        raise InsecureArchiveError(
            f"Archive member '{path}' attempts directory traversal. "
            "This is a security risk and extraction has been blocked."
        )


def extract_archive(
    archive_path: Union[str, Path],
    destination: Union[str, Path],
    archive_name: Optional[str] = None,
) -> None:
    """
    Extract an archive to a destination directory.

    The format is detected from archive_name (defaults to the archive file
    name), which lets callers extract temporary files whose own name carries
    no extension.

    Args:
        archive_path: Path to the archive file
        destination: Directory to extract to
        archive_name: Name used for format detection

    Raises:
        UnsupportedArchiveFormat: If archive format is not recognized
        ArchiveExtractionError: If extraction fails
        InsecureArchiveError: If archive contains malicious paths

    Example:
        >>> extract_archive('go1.22.1.linux-amd64.tar.gz', '/tmp/go')
    """
    archive_path = Path(archive_path)
    destination = Path(destination)
    name = (archive_name or archive_path.name).lower()

    if not archive_path.exists():
        raise ArchiveExtractionError(f"Archive not found: {archive_path}")

    destination.mkdir(parents=True, exist_ok=True)

    try:
        if name.endswith(".zip"):
            _extract_zip(archive_path, destination)
        elif name.endswith((".tar.gz", ".tgz")):
            _extract_tar(archive_path, destination, "r:gz")
        else:
            raise UnsupportedArchiveFormat(
                f"Unsupported archive format: {name}. Supported: .zip, .tar.gz"
            )
    except (InsecureArchiveError, UnsupportedArchiveFormat):
        raise
    except Exception as e:
        raise ArchiveExtractionError(f"Failed to extract {name}: {e}") from e


def _extract_zip(archive_path: Path, destination: Path) -> None:
    """Extract a .zip archive."""
    with zipfile.ZipFile(archive_path, "r") as zf:
        for member in zf.namelist():
            _validate_archive_path(member, destination)
        zf.extractall(destination)


def _extract_tar(archive_path: Path, destination: Path, mode: str) -> None:
    """Extract a tar archive with specified compression."""
    with tarfile.open(archive_path, mode) as tar:
        for member in tar.getmembers():
            _validate_archive_path(member.name, destination)

        # Paths are validated above for interpreters without filters
        if sys.version_info >= (3, 12):
            tar.extractall(destination, filter="data")
        else:
            tar.extractall(destination)


# ============================================================================
# Safe File Operations
# ============================================================================


def safe_rmtree(
    path: Union[str, Path], require_prefix: Optional[Union[str, Path]] = None
) -> None:
    """
    Safely remove a directory tree with safeguards.

    Args:
        path: Directory to remove
        require_prefix: If specified, path must be under this directory

    Raises:
        ValueError: If path is not under require_prefix
        FilesystemError: If deletion fails

    Example:
        >>> safe_rmtree('/tmp/build', require_prefix='/tmp')
    """
    path = Path(path).resolve()

    if require_prefix is not None:
        require_prefix = Path(require_prefix).resolve()
        if not is_relative_to(path, require_prefix):
            raise ValueError(
                f"Refusing to delete '{path}': not under required prefix '{require_prefix}'"
            )

    if not path.exists():
        return

    if not path.is_dir():
        raise FilesystemError(f"Path is not a directory: {path}")

    try:
        if IS_WINDOWS:

            def handle_remove_readonly(func, path, exc):
                """Error handler for Windows read-only files."""
                if not os.access(path, os.W_OK):
                    os.chmod(path, 0o777)
                    func(path)
                else:
                    raise

            if sys.version_info >= (3, 12):
                shutil.rmtree(path, onexc=handle_remove_readonly)
            else:
                shutil.rmtree(path, onerror=handle_remove_readonly)
        else:
            shutil.rmtree(path)

    except Exception as e:
        raise FilesystemError(f"Failed to remove directory '{path}': {e}") from e


def make_executable(path: Union[str, Path]) -> None:
    """Set mode 0755 on path."""
    os.chmod(path, 0o755)


__all__ = [
    "FilesystemError",
    "ArchiveExtractionError",
    "UnsupportedArchiveFormat",
    "InsecureArchiveError",
    "ARCHIVE_SUFFIXES",
    "is_relative_to",
    "is_archive",
    "extract_archive",
    "safe_rmtree",
    "make_executable",
]
