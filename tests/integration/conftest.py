"""Integration Test Fixtures.

Pattern: Shared fixtures for integration tests

Provides an isolated environment for running the CLI end to end:
a checkout, a home directory, and local state/output/store locations
configured through DEPCACHE_ variables.
"""

from __future__ import annotations

from collections.abc import Iterator
from pathlib import Path

import pytest
import structlog

import depcache.core.logging as logging_module


# Variables the CI runner may set that would redirect the tool
RUNNER_VARIABLES = (
    "RUNNER_OS",
    "GITHUB_ACTIONS",
    "GITHUB_STATE",
    "GITHUB_OUTPUT",
    "GITHUB_WORKSPACE",
)


@pytest.fixture
def cli_env(
    tmp_path: Path,
    workspace: Path,
    home: Path,
    monkeypatch: pytest.MonkeyPatch,
) -> Iterator[Path]:
    """Point the CLI at tmp_path and return the local state directory."""
    for name in RUNNER_VARIABLES:
        monkeypatch.delenv(name, raising=False)

    state_dir = tmp_path / "state"
    monkeypatch.setenv("HOME", str(home))
    monkeypatch.setenv("USERPROFILE", str(home))
    monkeypatch.setenv("DEPCACHE_RUNNER_OS", "Linux")
    monkeypatch.setenv("DEPCACHE_LOG_FORMAT", "console")
    monkeypatch.setenv("DEPCACHE_STATE_FILE", str(state_dir / "state.json"))
    monkeypatch.setenv("DEPCACHE_OUTPUT_FILE", str(state_dir / "outputs.json"))
    monkeypatch.setenv("DEPCACHE_STORE_DIR", str(tmp_path / "store"))

    yield state_dir

    logging_module._configured = False
    structlog.reset_defaults()
