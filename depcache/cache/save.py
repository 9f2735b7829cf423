"""SaveCoordinator - second phase of the dependency cache.

Runs in a later process than restore and relies only on persisted state:
- no primary key in state: restore never ran, warn and skip
- matched key equals primary key: exact hit, nothing changed, skip
- otherwise (or when forced): save under the primary key

A fallback restore matches a coarser key, never the primary key, so it
always leads to a save in this phase.

Store failures arrive as ArtifactStoreError with a SaveFailureKind:
- RESERVED: another job is writing the same key; logged, not raised
- ARCHIVE for gradle on Windows: warn about the Gradle daemon, then raise
- anything else: raised unchanged
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING

from depcache.cache.package_managers import PackageManager, PackageManagerId, find_package_manager
from depcache.cache.platform import PlatformAdapter
from depcache.core.config import Settings, get_settings
from depcache.core.constants import (
    MSG_CACHE_HIT_NOT_SAVING,
    MSG_CACHE_SAVED,
    MSG_GRADLE_WINDOWS_TAR,
    MSG_STATE_MISSING,
    STATE_CACHE_MATCHED_KEY,
    STATE_CACHE_PRIMARY_KEY,
)
from depcache.core.exceptions import ArtifactStoreError, SaveFailureKind
from depcache.core.logging import get_logger


if TYPE_CHECKING:
    from depcache.clients.protocols import ArtifactStoreProtocol, StateStoreProtocol


logger = get_logger(__name__)


class SaveStatus(str, Enum):
    """How a save call ended without raising."""

    SAVED = "saved"
    SKIPPED_NO_STATE = "skipped_no_state"
    SKIPPED_HIT = "skipped_hit"
    RESERVED = "reserved"


@dataclass(frozen=True)
class SaveResult:
    """Outcome of a save call.

    Attributes:
        status: SaveStatus
        primary_key: Key read from state ("" if missing)
        matched_key: Matched key read from state ("" if missing)
        cache_id: Store-assigned id when saved
    """

    status: SaveStatus
    primary_key: str = ""
    matched_key: str = ""
    cache_id: int | None = None


class SaveCoordinator:
    """Coordinates the save/skip decision and the cache upload."""

    def __init__(
        self,
        artifact_store: ArtifactStoreProtocol | None = None,
        state: StateStoreProtocol | None = None,
        platform: PlatformAdapter | None = None,
        settings: Settings | None = None,
    ) -> None:
        """Initialize the coordinator.

        Args:
            artifact_store: Blob cache to save into
            state: Store holding the values written by restore
            platform: Platform adapter for cache paths and OS checks
            settings: Settings (defaults to get_settings())
        """
        self._settings = settings or get_settings()

        if artifact_store is None:
            from depcache.clients.artifact_store import LocalArtifactStore

            artifact_store = LocalArtifactStore(
                self._settings.store_dir, self._settings.archive_compression
            )
        if state is None:
            from depcache.clients.github_actions import build_state_store

            state = build_state_store(self._settings)

        self._artifact_store = artifact_store
        self._state = state
        self._platform = platform or PlatformAdapter(runner_os=self._settings.runner_os)

    async def save(self, package_manager_id: str, force_update: bool = False) -> SaveResult:
        """Save the dependency cache if it may have changed.

        Args:
            package_manager_id: maven, gradle or sbt
            force_update: Save even on an exact hit or without restore state

        Returns:
            SaveResult describing the outcome

        Raises:
            UnsupportedPackageManagerError: Unknown package manager id
            ArtifactStoreError: Any store failure other than a reservation conflict
        """
        package_manager = find_package_manager(package_manager_id, self._platform)
        matched_key = self._state.get_state(STATE_CACHE_MATCHED_KEY)
        # Inputs may have changed since restore; the key used for restore wins
        primary_key = self._state.get_state(STATE_CACHE_PRIMARY_KEY)

        if not force_update:
            if not primary_key:
                logger.warning(MSG_STATE_MISSING)
                return SaveResult(status=SaveStatus.SKIPPED_NO_STATE, matched_key=matched_key)
            if matched_key == primary_key:
                logger.info(MSG_CACHE_HIT_NOT_SAVING.format(key=primary_key))
                return SaveResult(
                    status=SaveStatus.SKIPPED_HIT,
                    primary_key=primary_key,
                    matched_key=matched_key,
                )

        try:
            cache_id = await self._artifact_store.save(list(package_manager.paths), primary_key)
        except ArtifactStoreError as exc:
            if exc.kind is SaveFailureKind.RESERVED:
                logger.info(exc.message)
                return SaveResult(
                    status=SaveStatus.RESERVED,
                    primary_key=primary_key,
                    matched_key=matched_key,
                )
            if self._is_probably_gradle_daemon_problem(package_manager, exc):
                logger.warning(MSG_GRADLE_WINDOWS_TAR)
            raise

        logger.info(MSG_CACHE_SAVED.format(key=primary_key))
        return SaveResult(
            status=SaveStatus.SAVED,
            primary_key=primary_key,
            matched_key=matched_key,
            cache_id=cache_id,
        )

    def _is_probably_gradle_daemon_problem(
        self,
        package_manager: PackageManager,
        error: ArtifactStoreError,
    ) -> bool:
        """Return True for tar failures of the gradle cache on Windows.

        A running Gradle daemon keeps cache files locked, so tar.exe cannot
        read them (https://github.com/actions/cache/issues/454).
        """
        return (
            package_manager.id is PackageManagerId.GRADLE
            and self._platform.is_windows
            and error.kind is SaveFailureKind.ARCHIVE
        )


async def save(package_manager_id: str, force_update: bool = False) -> SaveResult:
    """Save the dependency cache with collaborators built from settings.

    See SaveCoordinator.save().
    """
    coordinator = SaveCoordinator()
    return await coordinator.save(package_manager_id, force_update)
