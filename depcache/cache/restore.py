"""RestoreCoordinator - first phase of the dependency cache.

Flow:
1. Resolve the package manager descriptor
2. Compute the primary key from the dependency files
3. Clear state left by an earlier job, then persist the primary key
   (always, so the save phase knows what to use)
4. Optionally restore from the artifact store, with one fallback key of
   "{prefix}-{platform}-{package_manager}"
5. Persist the matched key and publish the cache-hit output

Unsupported package managers and unmatched patterns abort the job: an
incomplete checkout is a caller error, not a transient condition.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from depcache.cache.keys import compute_cache_key, fallback_key
from depcache.cache.package_managers import find_package_manager
from depcache.cache.platform import PlatformAdapter
from depcache.core.config import Settings, get_settings
from depcache.core.constants import (
    MSG_CACHE_NOT_FOUND,
    MSG_CACHE_RESTORED,
    MSG_PRIMARY_KEY,
    OUTPUT_CACHE_HIT,
    STATE_CACHE_MATCHED_KEY,
    STATE_CACHE_PRIMARY_KEY,
)
from depcache.core.logging import get_logger


if TYPE_CHECKING:
    from depcache.clients.protocols import (
        ArtifactStoreProtocol,
        FileHasherProtocol,
        OutputWriterProtocol,
        StateStoreProtocol,
    )


logger = get_logger(__name__)


@dataclass(frozen=True)
class RestoreResult:
    """Outcome of a restore call.

    Attributes:
        primary_key: Key computed from the dependency files
        matched_key: Key the store restored from, None on a miss or when
            restore was not performed
        cache_hit: True only when the matched key equals the primary key
        performed: Whether the artifact store was asked at all
    """

    primary_key: str
    matched_key: str | None = None
    cache_hit: bool = False
    performed: bool = True


class RestoreCoordinator:
    """Coordinates key computation, state persistence and cache restore."""

    def __init__(
        self,
        artifact_store: ArtifactStoreProtocol | None = None,
        state: StateStoreProtocol | None = None,
        outputs: OutputWriterProtocol | None = None,
        hasher: FileHasherProtocol | None = None,
        platform: PlatformAdapter | None = None,
        settings: Settings | None = None,
    ) -> None:
        """Initialize the coordinator.

        Collaborators that are not provided are built from settings.

        Args:
            artifact_store: Blob cache to restore from
            state: Store for values the save phase reads back
            outputs: Writer for the cache-hit output
            hasher: File hashing primitive
            platform: Platform adapter for keys and cache paths
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
        if outputs is None:
            from depcache.clients.github_actions import build_output_writer

            outputs = build_output_writer(self._settings)
        if hasher is None:
            from depcache.clients.hashing import GlobFileHasher

            hasher = GlobFileHasher(self._settings.github_workspace)

        self._artifact_store = artifact_store
        self._state = state
        self._outputs = outputs
        self._hasher = hasher
        self._platform = platform or PlatformAdapter(runner_os=self._settings.runner_os)

    async def restore(
        self,
        package_manager_id: str,
        cache_dependency_path: str | None = None,
        perform_restore: bool = True,
    ) -> RestoreResult:
        """Restore the dependency cache.

        Args:
            package_manager_id: maven, gradle or sbt
            cache_dependency_path: Optional newline-delimited glob patterns
                replacing the default dependency file patterns
            perform_restore: When False only the primary key is computed and
                persisted; the artifact store is not contacted

        Returns:
            RestoreResult describing the outcome

        Raises:
            UnsupportedPackageManagerError: Unknown package manager id
            NoMatchingFilesError: No dependency file matched
        """
        package_manager = find_package_manager(package_manager_id, self._platform)
        self._state.clear()
        primary = await compute_cache_key(
            package_manager,
            cache_dependency_path,
            hasher=self._hasher,
            platform=self._platform,
            prefix=self._settings.key_prefix,
        )
        primary_key = str(primary)
        logger.debug(MSG_PRIMARY_KEY.format(key=primary_key))
        self._state.save_state(STATE_CACHE_PRIMARY_KEY, primary_key)

        if not perform_restore:
            return RestoreResult(primary_key=primary_key, performed=False)

        # Only the coarse fallback is offered as a restore key, so a
        # dependency change starts from the latest cache instead of a stale match.
        restore_keys = [fallback_key(package_manager, platform=self._platform, prefix=primary.prefix)]
        matched_key = await self._artifact_store.restore(
            list(package_manager.paths), primary_key, restore_keys
        )

        if matched_key:
            cache_hit = matched_key == primary_key
            self._state.save_state(STATE_CACHE_MATCHED_KEY, matched_key)
            self._outputs.set_output(OUTPUT_CACHE_HIT, _bool_output(cache_hit))
            logger.info(MSG_CACHE_RESTORED.format(key=matched_key))
            return RestoreResult(
                primary_key=primary_key,
                matched_key=matched_key,
                cache_hit=cache_hit,
            )

        self._outputs.set_output(OUTPUT_CACHE_HIT, _bool_output(False))
        logger.info(MSG_CACHE_NOT_FOUND.format(id=package_manager.name, key=primary_key))
        return RestoreResult(primary_key=primary_key)


def _bool_output(value: bool) -> str:
    return "true" if value else "false"


async def restore(
    package_manager_id: str,
    cache_dependency_path: str | None = None,
    perform_restore: bool = True,
) -> RestoreResult:
    """Restore the dependency cache with collaborators built from settings.

    See RestoreCoordinator.restore().
    """
    coordinator = RestoreCoordinator()
    return await coordinator.restore(
        package_manager_id,
        cache_dependency_path,
        perform_restore,
    )
