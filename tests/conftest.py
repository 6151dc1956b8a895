"""
Pytest configuration and shared fixtures for RuntimeKit tests.
"""

import pytest

from runtimekit.core.platform import PlatformInfo


def pytest_addoption(parser):
    """Add custom command line options."""
    parser.addoption(
        "--integration",
        action="store_true",
        default=False,
        help="run integration tests that require network access",
    )


def pytest_collection_modifyitems(config, items):
    """Skip integration tests unless --integration flag is provided."""
    if not config.getoption("--integration"):
        skip_integration = pytest.mark.skip(reason="need --integration option to run")
        for item in items:
            if "integration" in item.keywords:
                item.add_marker(skip_integration)


# ============================================================================
# Shared Test Fixtures
# ============================================================================


@pytest.fixture
def linux_amd64() -> PlatformInfo:
    """Linux x86-64 platform."""
    return PlatformInfo("linux", "amd64")


@pytest.fixture
def windows_amd64() -> PlatformInfo:
    """Windows x86-64 platform."""
    return PlatformInfo("windows", "amd64")


@pytest.fixture
def isolated_data_root(tmp_path, monkeypatch):
    """Data root under tmp_path with RUNTIMEKIT_DATA_ROOT cleared."""
    monkeypatch.delenv("RUNTIMEKIT_DATA_ROOT", raising=False)
    root = tmp_path / "data"
    root.mkdir()
    return root


@pytest.fixture(autouse=True)
def reset_caches():
    """Reset module-level caches between tests."""
    from runtimekit.core.platform import clear_platform_cache
    from runtimekit.golang.release_index import load_index

    clear_platform_cache()
    load_index.cache_clear()

    yield

    clear_platform_cache()
    load_index.cache_clear()
