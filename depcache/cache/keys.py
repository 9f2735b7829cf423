"""CacheKeyComputer - deterministic cache keys from dependency files.

Key format: "{prefix}-{platform}-{package_manager}-{content_hash}"

The content hash covers every file matched by the effective fingerprint
patterns. A user-supplied dependency path replaces the package manager's
default patterns entirely.

The restore lookup also uses a coarser fallback key,
"{prefix}-{platform}-{package_manager}", built without the content hash.
The primary key is never used as a prefix itself, so a dependency change
always produces a fresh cache instead of silently extending a stale one.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import TYPE_CHECKING

from depcache.core.constants import CACHE_KEY_PREFIX, CACHE_KEY_SEPARATOR
from depcache.core.exceptions import NoMatchingFilesError


if TYPE_CHECKING:
    from depcache.cache.package_managers import PackageManager
    from depcache.cache.platform import PlatformAdapter
    from depcache.clients.protocols import FileHasherProtocol


@dataclass(frozen=True)
class CacheKey:
    """A composed cache key.

    Attributes:
        prefix: Constant leading segment
        platform: Runner OS name (Linux, macOS, Windows)
        package_manager: Package manager id
        content_hash: Hash of the matched dependency files

    Example:
        >>> key = CacheKey("setup-java", "Linux", "maven", "abc123")
        >>> str(key)
        'setup-java-Linux-maven-abc123'
    """

    prefix: str
    platform: str
    package_manager: str
    content_hash: str

    def __post_init__(self) -> None:
        """Reject keys that would not identify content."""
        if not self.prefix:
            raise ValueError("prefix cannot be empty")
        if not self.platform:
            raise ValueError("platform cannot be empty")
        if not self.content_hash:
            raise ValueError("content_hash cannot be empty")

    def __str__(self) -> str:
        return CACHE_KEY_SEPARATOR.join(
            (self.prefix, self.platform, self.package_manager, self.content_hash)
        )


def build_fallback_key(prefix: str, platform: str, package_manager: str) -> str:
    """Build "{prefix}-{platform}-{package_manager}"."""
    return CACHE_KEY_SEPARATOR.join((prefix, platform, package_manager))


def fallback_key(
    package_manager: PackageManager,
    *,
    platform: PlatformAdapter,
    prefix: str = CACHE_KEY_PREFIX,
) -> str:
    """Return the restore key shared by every primary key of a package manager."""
    return build_fallback_key(prefix, platform.runner_os, package_manager.name)


def parse_dependency_path(cache_dependency_path: str | None) -> list[str]:
    """Split a raw dependency path input into glob patterns.

    The input is trimmed and split on newlines; blank lines are dropped.

    Example:
        >>> parse_dependency_path("*.gradle*\\nsub-project2/**/*.gradle*\\n")
        ['*.gradle*', 'sub-project2/**/*.gradle*']
    """
    if not cache_dependency_path:
        return []
    lines = cache_dependency_path.strip().splitlines()
    return [line.strip() for line in lines if line.strip()]


def effective_patterns(
    package_manager: PackageManager,
    cache_dependency_path: str | None,
) -> list[str]:
    """Return the override patterns if any, else the defaults.

    No merging happens: an override replaces every default pattern.
    """
    override = parse_dependency_path(cache_dependency_path)
    return override or list(package_manager.patterns)


async def compute_cache_key(
    package_manager: PackageManager,
    cache_dependency_path: str | None,
    *,
    hasher: FileHasherProtocol,
    platform: PlatformAdapter,
    prefix: str = CACHE_KEY_PREFIX,
    working_directory: str | None = None,
) -> CacheKey:
    """Compute the primary cache key for the current checkout.

    Args:
        package_manager: Descriptor of the package manager being cached
        cache_dependency_path: Optional newline-delimited override patterns
        hasher: File hashing primitive
        platform: Platform the key is computed for
        prefix: Leading key segment
        working_directory: Directory reported when nothing matches
            (defaults to the current working directory)

    Returns:
        The composed CacheKey

    Raises:
        NoMatchingFilesError: If no file matched the effective patterns
    """
    patterns = effective_patterns(package_manager, cache_dependency_path)
    file_hash = await hasher.hash_files("\n".join(patterns))
    if not file_hash:
        raise NoMatchingFilesError(working_directory or os.getcwd(), patterns)

    return CacheKey(
        prefix=prefix,
        platform=platform.runner_os,
        package_manager=package_manager.name,
        content_hash=file_hash,
    )
