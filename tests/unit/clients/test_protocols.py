"""Unit tests for collaborator protocols.

Verifies that the runtime adapters and the test fakes both satisfy the
runtime_checkable protocols the coordinators depend on.
"""

from __future__ import annotations

from pathlib import Path

import pytest

from depcache.clients.artifact_store import LocalArtifactStore
from depcache.clients.github_actions import (
    GitHubActionsOutputWriter,
    GitHubActionsStateStore,
    JsonFileOutputWriter,
    JsonFileStateStore,
)
from depcache.clients.hashing import GlobFileHasher
from depcache.clients.protocols import (
    ArtifactStoreProtocol,
    FileHasherProtocol,
    OutputWriterProtocol,
    StateStoreProtocol,
)
from tests.fakes.fake_clients import (
    FakeArtifactStore,
    FakeFileHasher,
    FakeOutputWriter,
    InMemoryStateStore,
    SpyFileHasher,
)


class TestRuntimeAdapters:
    """Real adapters implement their protocols."""

    def test_glob_file_hasher(self, tmp_path: Path) -> None:
        assert isinstance(GlobFileHasher(tmp_path), FileHasherProtocol)

    def test_local_artifact_store(self, tmp_path: Path) -> None:
        assert isinstance(LocalArtifactStore(tmp_path), ArtifactStoreProtocol)

    @pytest.mark.parametrize(
        "store_factory",
        [
            lambda p: GitHubActionsStateStore(p / "state", environ={}),
            lambda p: JsonFileStateStore(p / "state.json"),
        ],
    )
    def test_state_stores(self, store_factory, tmp_path: Path) -> None:
        assert isinstance(store_factory(tmp_path), StateStoreProtocol)

    @pytest.mark.parametrize(
        "writer_factory",
        [
            lambda p: GitHubActionsOutputWriter(p / "output"),
            lambda p: JsonFileOutputWriter(p / "outputs.json"),
        ],
    )
    def test_output_writers(self, writer_factory, tmp_path: Path) -> None:
        assert isinstance(writer_factory(tmp_path), OutputWriterProtocol)


class TestFakes:
    """Fakes used by the coordinator tests implement the same protocols."""

    def test_fake_artifact_store(self) -> None:
        assert isinstance(FakeArtifactStore(), ArtifactStoreProtocol)

    def test_fake_hashers(self, tmp_path: Path) -> None:
        assert isinstance(FakeFileHasher(), FileHasherProtocol)
        assert isinstance(SpyFileHasher(GlobFileHasher(tmp_path)), FileHasherProtocol)

    def test_in_memory_state_store(self) -> None:
        assert isinstance(InMemoryStateStore(), StateStoreProtocol)

    def test_fake_output_writer(self) -> None:
        assert isinstance(FakeOutputWriter(), OutputWriterProtocol)

    def test_state_store_is_not_an_output_writer(self) -> None:
        assert not isinstance(InMemoryStateStore(), OutputWriterProtocol)
