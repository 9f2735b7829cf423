"""PackageManagerRegistry - supported build tools and what to cache for them.

Each package manager maps to:
- paths: directories that make up its dependency cache. Entries starting
  with "!" exclude matches from the archive even though a parent directory
  is included (lock files and snapshot resolution metadata churn without
  affecting correctness).
- patterns: default globs for files whose content defines the cache key.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from depcache.cache.platform import PlatformAdapter
from depcache.core.constants import EXCLUDE_PREFIX
from depcache.core.exceptions import UnsupportedPackageManagerError


class PackageManagerId(str, Enum):
    """Closed set of supported package managers."""

    MAVEN = "maven"
    GRADLE = "gradle"
    SBT = "sbt"


@dataclass(frozen=True)
class PackageManager:
    """Immutable cache descriptor for one package manager.

    Attributes:
        id: Package manager identity
        paths: Cache roots, in order; "!"-prefixed entries are exclusions
        patterns: Default fingerprint globs, in order
    """

    id: PackageManagerId
    paths: tuple[str, ...]
    patterns: tuple[str, ...]

    @property
    def name(self) -> str:
        return self.id.value

    @property
    def included_paths(self) -> tuple[str, ...]:
        """Cache roots without the exclusion entries."""
        return tuple(p for p in self.paths if not p.startswith(EXCLUDE_PREFIX))

    @property
    def excluded_paths(self) -> tuple[str, ...]:
        """Exclusion globs with the leading "!" removed."""
        return tuple(
            p[len(EXCLUDE_PREFIX):] for p in self.paths if p.startswith(EXCLUDE_PREFIX)
        )


# https://github.com/actions/cache/blob/main/examples.md#java---maven
MAVEN_PATTERNS: tuple[str, ...] = ("**/pom.xml",)

# https://github.com/actions/cache/blob/main/examples.md#java---gradle
GRADLE_PATTERNS: tuple[str, ...] = (
    "**/*.gradle*",
    "**/gradle-wrapper.properties",
    "buildSrc/**/Versions.kt",
    "buildSrc/**/Dependencies.kt",
    "gradle/*.versions.toml",
    "**/versions.properties",
)

SBT_PATTERNS: tuple[str, ...] = (
    "**/*.sbt",
    "**/project/build.properties",
    "**/project/**.scala",
    "**/project/**.sbt",
)


def _build_catalog(platform: PlatformAdapter) -> dict[PackageManagerId, PackageManager]:
    home = platform.home_path
    cache_root = platform.home_cache_root
    return {
        PackageManagerId.MAVEN: PackageManager(
            id=PackageManagerId.MAVEN,
            paths=(str(cache_root(PackageManagerId.MAVEN.value) / "repository"),),
            patterns=MAVEN_PATTERNS,
        ),
        PackageManagerId.GRADLE: PackageManager(
            id=PackageManagerId.GRADLE,
            paths=(
                str(cache_root(PackageManagerId.GRADLE.value) / "caches"),
                str(cache_root(PackageManagerId.GRADLE.value) / "wrapper"),
            ),
            patterns=GRADLE_PATTERNS,
        ),
        PackageManagerId.SBT: PackageManager(
            id=PackageManagerId.SBT,
            paths=(
                str(home(".ivy2", "cache")),
                str(home(".sbt")),
                str(cache_root(PackageManagerId.SBT.value)),
                # Snapshot resolution differs between maven and ivy; keep
                # resolution metadata out of the cache.
                EXCLUDE_PREFIX + str(home(".sbt", "*.lock")),
                EXCLUDE_PREFIX + str(home("**", "ivydata-*.properties")),
            ),
            patterns=SBT_PATTERNS,
        ),
    }


def supported_package_managers(
    platform: PlatformAdapter | None = None,
) -> list[PackageManager]:
    """Return every supported package manager, in declaration order."""
    return list(_build_catalog(platform or PlatformAdapter()).values())


def find_package_manager(
    package_manager_id: str,
    platform: PlatformAdapter | None = None,
) -> PackageManager:
    """Look up the cache descriptor for a package manager id.

    Args:
        package_manager_id: maven, gradle or sbt
        platform: Platform to resolve home-relative paths against

    Returns:
        The immutable PackageManager descriptor

    Raises:
        UnsupportedPackageManagerError: If the id is not supported
    """
    try:
        key = PackageManagerId(package_manager_id)
    except ValueError:
        raise UnsupportedPackageManagerError(package_manager_id) from None
    return _build_catalog(platform or PlatformAdapter())[key]
