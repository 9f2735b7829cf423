"""Test configuration and shared fixtures.

Pattern: Pytest fixtures, conftest.py
"""

from __future__ import annotations

from collections.abc import Callable, Iterator
from pathlib import Path

import pytest

from depcache.cache.platform import PlatformAdapter
from depcache.core.config import Settings, get_settings
from tests.fakes.fake_clients import (
    FakeArtifactStore,
    FakeOutputWriter,
    InMemoryStateStore,
)


# ============================================================================
# Configuration Fixtures
# ============================================================================

@pytest.fixture(autouse=True)
def clear_settings_cache() -> Iterator[None]:
    """Make every test read settings fresh from its own environment."""
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def test_settings(tmp_path: Path) -> Settings:
    """Create test settings isolated under tmp_path."""
    return Settings(
        environment="test",
        log_level="DEBUG",
        log_format="console",
        runner_os="Linux",
        github_actions=False,
        github_state=None,
        github_output=None,
        github_workspace=None,
        state_file=tmp_path / "state" / "state.json",
        output_file=tmp_path / "state" / "outputs.json",
        store_dir=tmp_path / "store",
    )


# ============================================================================
# Workspace Fixtures
# ============================================================================

@pytest.fixture
def workspace(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Create an empty project checkout and chdir into it."""
    path = tmp_path / "workspace"
    path.mkdir()
    monkeypatch.chdir(path)
    return path.resolve()


@pytest.fixture
def home(tmp_path: Path) -> Path:
    path = tmp_path / "home"
    path.mkdir()
    return path


@pytest.fixture
def linux_platform(home: Path) -> PlatformAdapter:
    return PlatformAdapter(system="Linux", home=home, runner_os="Linux")


@pytest.fixture
def windows_platform(home: Path) -> PlatformAdapter:
    return PlatformAdapter(system="Windows", home=home, runner_os="Windows")


# ============================================================================
# Collaborator Fixtures
# ============================================================================

@pytest.fixture
def state_store() -> InMemoryStateStore:
    return InMemoryStateStore()


@pytest.fixture
def output_writer() -> FakeOutputWriter:
    return FakeOutputWriter()


@pytest.fixture
def artifact_store() -> FakeArtifactStore:
    return FakeArtifactStore()


@pytest.fixture
def create_file() -> Callable[..., Path]:
    """Return a helper creating a file (and its parents) with content."""

    def _create(path: Path, content: str = "") -> Path:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")
        return path

    return _create
