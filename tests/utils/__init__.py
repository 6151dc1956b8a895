"""
Test utilities for RuntimeKit testing.

Builders for in-memory toolchain archives and checksum manifests.
"""

from .archives import (
    make_tar_gz,
    make_zip,
    sha256_hex,
    fake_go_archive,
)

__all__ = [
    "make_tar_gz",
    "make_zip",
    "sha256_hex",
    "fake_go_archive",
]
