"""Unit tests for depcache/cache/restore module.

Tests RestoreCoordinator: key computation, state persistence, the
restore call with its fallback key, and the cache-hit output.
"""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path

import pytest
from structlog.testing import capture_logs

from depcache.cache.package_managers import GRADLE_PATTERNS, SBT_PATTERNS
from depcache.cache.platform import PlatformAdapter
from depcache.cache.restore import RestoreCoordinator, RestoreResult
from depcache.clients.hashing import GlobFileHasher
from depcache.core.config import Settings
from depcache.core.constants import (
    OUTPUT_CACHE_HIT,
    STATE_CACHE_MATCHED_KEY,
    STATE_CACHE_PRIMARY_KEY,
)
from depcache.core.exceptions import NoMatchingFilesError, UnsupportedPackageManagerError
from tests.fakes.fake_clients import (
    FakeArtifactStore,
    FakeFileHasher,
    FakeOutputWriter,
    InMemoryStateStore,
    SpyFileHasher,
)


GRADLE_JOINED = "\n".join(GRADLE_PATTERNS)
SBT_JOINED = "\n".join(SBT_PATTERNS)


def _messages(logs: list[dict], level: str) -> list[str]:
    return [entry["event"] for entry in logs if entry["log_level"] == level]


class TestRestoreCoordinator:
    """Tests for RestoreCoordinator.restore()."""

    @pytest.fixture
    def hasher(self, workspace: Path) -> SpyFileHasher:
        return SpyFileHasher(GlobFileHasher(workspace))

    @pytest.fixture
    def coordinator(
        self,
        artifact_store: FakeArtifactStore,
        state_store: InMemoryStateStore,
        output_writer: FakeOutputWriter,
        hasher: SpyFileHasher,
        linux_platform: PlatformAdapter,
        test_settings: Settings,
    ) -> RestoreCoordinator:
        return RestoreCoordinator(
            artifact_store=artifact_store,
            state=state_store,
            outputs=output_writer,
            hasher=hasher,
            platform=linux_platform,
            settings=test_settings,
        )

    @pytest.mark.asyncio
    async def test_unsupported_package_manager_raises(
        self, coordinator: RestoreCoordinator
    ) -> None:
        """Test restore('ant') fails before touching anything."""
        with pytest.raises(UnsupportedPackageManagerError) as exc_info:
            await coordinator.restore("ant", "")
        assert "unknown package manager specified: ant" in str(exc_info.value)

    @pytest.mark.asyncio
    async def test_maven_without_pom_raises(
        self,
        coordinator: RestoreCoordinator,
        workspace: Path,
        state_store: InMemoryStateStore,
    ) -> None:
        """Test missing pom.xml aborts with the working directory and patterns."""
        with pytest.raises(NoMatchingFilesError) as exc_info:
            await coordinator.restore("maven", "")

        assert str(exc_info.value) == (
            f"No file in {workspace} matched to [**/pom.xml], "
            "make sure you have checked out the target repository"
        )
        assert exc_info.value.patterns == ["**/pom.xml"]
        assert state_store.get_state(STATE_CACHE_PRIMARY_KEY) == ""

    @pytest.mark.asyncio
    async def test_maven_cache_miss(
        self,
        coordinator: RestoreCoordinator,
        workspace: Path,
        create_file: Callable[..., Path],
        artifact_store: FakeArtifactStore,
        hasher: SpyFileHasher,
        output_writer: FakeOutputWriter,
    ) -> None:
        """Test a miss logs the not-found line and reports cache-hit=false."""
        create_file(workspace / "pom.xml", "<project/>")

        with capture_logs() as logs:
            result = await coordinator.restore("maven", "")

        assert hasher.call_history == ["**/pom.xml"]
        assert len(artifact_store.calls("restore")) == 1
        assert _messages(logs, "warning") == []
        assert f"maven cache is not found for key {result.primary_key}" in _messages(logs, "info")
        assert output_writer.outputs == {OUTPUT_CACHE_HIT: "false"}
        assert result.matched_key is None
        assert result.cache_hit is False

    @pytest.mark.asyncio
    async def test_primary_key_format_and_fallback(
        self,
        coordinator: RestoreCoordinator,
        workspace: Path,
        create_file: Callable[..., Path],
        artifact_store: FakeArtifactStore,
        linux_platform: PlatformAdapter,
    ) -> None:
        """Test the key layout and the single hash-less fallback key."""
        create_file(workspace / "pom.xml", "<project/>")

        result = await coordinator.restore("maven", "")

        assert result.primary_key.startswith("setup-java-Linux-maven-")
        assert len(result.primary_key) > len("setup-java-Linux-maven-")
        call = artifact_store.calls("restore")[0]["args"]
        assert call["primary_key"] == result.primary_key
        assert call["restore_keys"] == ["setup-java-Linux-maven"]
        assert call["paths"] == [str(linux_platform.home_path(".m2", "repository"))]

    @pytest.mark.asyncio
    async def test_primary_key_persisted(
        self,
        coordinator: RestoreCoordinator,
        workspace: Path,
        create_file: Callable[..., Path],
        state_store: InMemoryStateStore,
    ) -> None:
        """Test the primary key lands in state and no matched key on a miss."""
        create_file(workspace / "pom.xml")

        result = await coordinator.restore("maven", "")

        assert state_store.get_state(STATE_CACHE_PRIMARY_KEY) == result.primary_key
        assert state_store.get_state(STATE_CACHE_MATCHED_KEY) == ""

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "relative_path",
        [
            "build.gradle",
            "build.gradle.kts",
            "gradle/libs.versions.toml",
            "buildSrc/Versions.kt",
            "versions.properties",
        ],
    )
    async def test_gradle_default_patterns(
        self,
        coordinator: RestoreCoordinator,
        workspace: Path,
        create_file: Callable[..., Path],
        hasher: SpyFileHasher,
        artifact_store: FakeArtifactStore,
        relative_path: str,
    ) -> None:
        """Test each gradle dependency file alone is enough to build a key."""
        create_file(workspace / relative_path, "content")

        with capture_logs() as logs:
            await coordinator.restore("gradle", "")

        assert hasher.call_history == [GRADLE_JOINED]
        assert len(artifact_store.calls("restore")) == 1
        assert _messages(logs, "warning") == []
        assert any(m.startswith("gradle cache is not found") for m in _messages(logs, "info"))

    @pytest.mark.asyncio
    async def test_gradle_without_build_file_raises(
        self, coordinator: RestoreCoordinator, workspace: Path
    ) -> None:
        """Test the error lists every default gradle pattern, comma-joined."""
        with pytest.raises(NoMatchingFilesError) as exc_info:
            await coordinator.restore("gradle", "")
        assert f"matched to [{','.join(GRADLE_PATTERNS)}]" in str(exc_info.value)

    @pytest.mark.asyncio
    async def test_sbt_cache_miss(
        self,
        coordinator: RestoreCoordinator,
        workspace: Path,
        create_file: Callable[..., Path],
        hasher: SpyFileHasher,
    ) -> None:
        """Test sbt uses its own default patterns."""
        create_file(workspace / "build.sbt", 'name := "demo"')

        with capture_logs() as logs:
            await coordinator.restore("sbt", "")

        assert hasher.call_history == [SBT_JOINED]
        assert any(m.startswith("sbt cache is not found") for m in _messages(logs, "info"))

    @pytest.mark.asyncio
    async def test_sbt_without_build_file_raises(
        self, coordinator: RestoreCoordinator, workspace: Path
    ) -> None:
        with pytest.raises(NoMatchingFilesError) as exc_info:
            await coordinator.restore("sbt", "")
        assert (
            "matched to [**/*.sbt,**/project/build.properties,"
            "**/project/**.scala,**/project/**.sbt]"
        ) in str(exc_info.value)

    @pytest.mark.asyncio
    async def test_sbt_detects_project_folder_changes(
        self,
        coordinator: RestoreCoordinator,
        workspace: Path,
        create_file: Callable[..., Path],
    ) -> None:
        """Test keys are stable across runs and change when project/ gains a file."""
        create_file(workspace / "build.sbt")
        create_file(workspace / "project" / "DependenciesV1.scala", "object V1")

        first = await coordinator.restore("sbt", "")
        second = await coordinator.restore("sbt", "")
        assert first.primary_key == second.primary_key

        create_file(workspace / "project" / "DependenciesV2.scala", "object V2")
        third = await coordinator.restore("sbt", "")
        assert third.primary_key != first.primary_key

    @pytest.mark.asyncio
    async def test_key_changes_when_content_changes(
        self,
        coordinator: RestoreCoordinator,
        workspace: Path,
        create_file: Callable[..., Path],
    ) -> None:
        pom = create_file(workspace / "pom.xml", "<project>v1</project>")
        first = await coordinator.restore("maven", "")

        pom.write_text("<project>v2</project>", encoding="utf-8")
        second = await coordinator.restore("maven", "")

        assert first.primary_key != second.primary_key


class TestCacheDependencyPath:
    """Tests for the user-supplied dependency path override."""

    @pytest.fixture
    def hasher(self, workspace: Path) -> SpyFileHasher:
        return SpyFileHasher(GlobFileHasher(workspace))

    @pytest.fixture
    def coordinator(
        self,
        artifact_store: FakeArtifactStore,
        state_store: InMemoryStateStore,
        output_writer: FakeOutputWriter,
        hasher: SpyFileHasher,
        linux_platform: PlatformAdapter,
        test_settings: Settings,
    ) -> RestoreCoordinator:
        return RestoreCoordinator(
            artifact_store=artifact_store,
            state=state_store,
            outputs=output_writer,
            hasher=hasher,
            platform=linux_platform,
            settings=test_settings,
        )

    @pytest.fixture
    def multi_project(self, workspace: Path, create_file: Callable[..., Path]) -> Path:
        create_file(workspace / "build.gradle.kts", "root")
        create_file(workspace / "sub-project1" / "build.gradle.kts", "one")
        create_file(workspace / "sub-project2" / "build.gradle.kts", "two")
        return workspace

    @pytest.mark.asyncio
    async def test_no_matching_override_raises(
        self,
        coordinator: RestoreCoordinator,
        workspace: Path,
        create_file: Callable[..., Path],
    ) -> None:
        create_file(workspace / "build.gradle.kts")
        with pytest.raises(NoMatchingFilesError) as exc_info:
            await coordinator.restore("gradle", "sub-project/**/build.gradle.kts")
        assert str(exc_info.value) == (
            f"No file in {workspace} matched to [sub-project/**/build.gradle.kts], "
            "make sure you have checked out the target repository"
        )

    @pytest.mark.asyncio
    async def test_override_replaces_defaults(
        self,
        coordinator: RestoreCoordinator,
        multi_project: Path,
        hasher: SpyFileHasher,
    ) -> None:
        """Test patterns are trimmed, split on newlines and used verbatim."""
        await coordinator.restore("gradle", "build.gradle.kts")
        await coordinator.restore("gradle", "sub-project1/**/*.gradle*\n")
        await coordinator.restore("gradle", "*.gradle*\nsub-project2/**/*.gradle*\n")

        assert hasher.call_history == [
            "build.gradle.kts",
            "sub-project1/**/*.gradle*",
            "*.gradle*\nsub-project2/**/*.gradle*",
        ]

    @pytest.mark.asyncio
    async def test_override_narrows_the_hash(
        self,
        coordinator: RestoreCoordinator,
        multi_project: Path,
    ) -> None:
        """Test a subtree override hashes a different file set than the defaults."""
        unrestricted = await coordinator.restore("gradle", "")
        narrowed = await coordinator.restore("gradle", "sub-project1/**/*.gradle*")
        root_only = await coordinator.restore("gradle", "build.gradle.kts")

        assert narrowed.primary_key != unrestricted.primary_key
        assert narrowed.primary_key != root_only.primary_key


class TestRestoreOutcomes:
    """Tests for matched keys, cache-hit output and skipped restores."""

    @pytest.fixture
    def build(
        self,
        state_store: InMemoryStateStore,
        output_writer: FakeOutputWriter,
        linux_platform: PlatformAdapter,
        test_settings: Settings,
    ) -> Callable[[FakeArtifactStore], RestoreCoordinator]:
        def _build(store: FakeArtifactStore) -> RestoreCoordinator:
            return RestoreCoordinator(
                artifact_store=store,
                state=state_store,
                outputs=output_writer,
                hasher=FakeFileHasher("feedbeef"),
                platform=linux_platform,
                settings=test_settings,
            )

        return _build

    @pytest.mark.asyncio
    async def test_exact_hit(
        self,
        build: Callable[[FakeArtifactStore], RestoreCoordinator],
        state_store: InMemoryStateStore,
        output_writer: FakeOutputWriter,
    ) -> None:
        primary = "setup-java-Linux-maven-feedbeef"
        coordinator = build(FakeArtifactStore(restore_response=primary))

        with capture_logs() as logs:
            result = await coordinator.restore("maven", "")

        assert result == RestoreResult(primary_key=primary, matched_key=primary, cache_hit=True)
        assert state_store.get_state(STATE_CACHE_MATCHED_KEY) == primary
        assert output_writer.outputs == {OUTPUT_CACHE_HIT: "true"}
        assert f"Cache restored from key: {primary}" in _messages(logs, "info")

    @pytest.mark.asyncio
    async def test_fallback_hit_is_not_a_cache_hit(
        self,
        build: Callable[[FakeArtifactStore], RestoreCoordinator],
        state_store: InMemoryStateStore,
        output_writer: FakeOutputWriter,
    ) -> None:
        """Test a prefix match is restored but reported as cache-hit=false."""
        older = "setup-java-Linux-maven-0ld"
        coordinator = build(FakeArtifactStore(restore_response=older))

        result = await coordinator.restore("maven", "")

        assert result.matched_key == older
        assert result.cache_hit is False
        assert state_store.get_state(STATE_CACHE_MATCHED_KEY) == older
        assert output_writer.outputs == {OUTPUT_CACHE_HIT: "false"}

    @pytest.mark.asyncio
    async def test_miss_drops_matched_key_from_earlier_job(
        self,
        build: Callable[[FakeArtifactStore], RestoreCoordinator],
        state_store: InMemoryStateStore,
    ) -> None:
        """Test state is reset before the new primary key is written."""
        state_store.save_state(STATE_CACHE_PRIMARY_KEY, "setup-java-Linux-maven-feedbeef")
        state_store.save_state(STATE_CACHE_MATCHED_KEY, "setup-java-Linux-maven-feedbeef")
        coordinator = build(FakeArtifactStore(restore_response=None))

        await coordinator.restore("maven", "")

        assert state_store.as_dict() == {STATE_CACHE_PRIMARY_KEY: "setup-java-Linux-maven-feedbeef"}

    @pytest.mark.asyncio
    async def test_skip_restore_still_persists_primary_key(
        self,
        build: Callable[[FakeArtifactStore], RestoreCoordinator],
        state_store: InMemoryStateStore,
        output_writer: FakeOutputWriter,
    ) -> None:
        """Test perform_restore=False never contacts the store."""
        store = FakeArtifactStore(restore_response="unused")
        coordinator = build(store)

        result = await coordinator.restore("maven", "", perform_restore=False)

        assert result.performed is False
        assert store.call_history == []
        assert state_store.as_dict() == {STATE_CACHE_PRIMARY_KEY: "setup-java-Linux-maven-feedbeef"}
        assert output_writer.outputs == {}

    @pytest.mark.asyncio
    async def test_custom_prefix_and_runner_os(
        self,
        state_store: InMemoryStateStore,
        output_writer: FakeOutputWriter,
        test_settings: Settings,
        home: Path,
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        monkeypatch.delenv("RUNNER_OS", raising=False)
        store = FakeArtifactStore()
        coordinator = RestoreCoordinator(
            artifact_store=store,
            state=state_store,
            outputs=output_writer,
            hasher=FakeFileHasher("cafe"),
            platform=PlatformAdapter(system="Darwin", home=home),
            settings=test_settings.model_copy(update={"key_prefix": "ci"}),
        )

        result = await coordinator.restore("gradle", "")

        assert result.primary_key == "ci-macOS-gradle-cafe"
        assert store.calls("restore")[0]["args"]["restore_keys"] == ["ci-macOS-gradle"]
