"""Custom exceptions for the dependency cache.

All exceptions are namespaced under DepCacheError so callers can catch
every fatal cache condition with a single except clause, and none of
them shadow Python builtins.

Artifact store adapters translate their raw failures into
ArtifactStoreError carrying a SaveFailureKind. The coordinators branch
on that kind and never inspect error messages themselves.
"""

from __future__ import annotations

from collections.abc import Sequence
from enum import Enum

from depcache.core.constants import (
    MSG_NO_MATCHING_FILES,
    MSG_UNKNOWN_PACKAGE_MANAGER,
    TAR_FAILURE_PREFIX,
)


class DepCacheError(Exception):
    """Base exception for all dependency cache errors.

    Attributes:
        message: Human-readable error description.
        cause: Original exception that caused this error (optional).
    """

    def __init__(self, message: str, cause: Exception | None = None) -> None:
        """Initialize dependency cache error.

        Args:
            message: Human-readable error description.
            cause: Original exception that caused this error.
        """
        self.message = message
        self.cause = cause
        super().__init__(message)
        if cause is not None:
            self.__cause__ = cause


class UnsupportedPackageManagerError(DepCacheError):
    """Raised when the package manager id is outside the supported set."""

    def __init__(self, package_manager: str) -> None:
        """Initialize unsupported package manager error.

        Args:
            package_manager: The id the caller asked for.
        """
        super().__init__(MSG_UNKNOWN_PACKAGE_MANAGER.format(id=package_manager))
        self.package_manager = package_manager


class NoMatchingFilesError(DepCacheError):
    """Raised when the fingerprint patterns match nothing in the workspace.

    Usually means the project was not checked out, or it uses a layout the
    default patterns do not cover.

    Attributes:
        working_directory: Directory that was scanned.
        patterns: Effective glob patterns, in the order they were given.
    """

    def __init__(self, working_directory: str, patterns: Sequence[str]) -> None:
        """Initialize no matching files error.

        Args:
            working_directory: Directory that was scanned.
            patterns: Effective glob patterns.
        """
        super().__init__(
            MSG_NO_MATCHING_FILES.format(
                cwd=working_directory,
                patterns=",".join(patterns),
            )
        )
        self.working_directory = working_directory
        self.patterns = list(patterns)


class SaveFailureKind(str, Enum):
    """Structured classification of artifact store failures."""

    RESERVED = "reserved"  # Another writer already holds the key
    ARCHIVE = "archive"  # tar could not build the archive
    VALIDATION = "validation"  # Paths or key rejected by the store
    UNKNOWN = "unknown"


class ArtifactStoreError(DepCacheError):
    """Raised by artifact store adapters when restore or save fails.

    Attributes:
        kind: Classification the coordinators act on.
        key: Cache key involved, when known.
    """

    def __init__(
        self,
        message: str,
        kind: SaveFailureKind = SaveFailureKind.UNKNOWN,
        key: str | None = None,
        cause: Exception | None = None,
    ) -> None:
        """Initialize artifact store error.

        Args:
            message: Human-readable error description.
            kind: Failure classification.
            key: Cache key involved.
            cause: Original exception that caused this error.
        """
        super().__init__(message, cause)
        self.kind = kind
        self.key = key


class ArchiveError(DepCacheError):
    """Raised when building or extracting a tar archive fails.

    The message always starts with TAR_FAILURE_PREFIX.
    """

    def __init__(self, detail: str, cause: Exception | None = None) -> None:
        super().__init__(f"{TAR_FAILURE_PREFIX}{detail}", cause)


class CacheReservedError(DepCacheError):
    """Raised when a cache key is already reserved by another writer."""

    def __init__(self, key: str) -> None:
        super().__init__(
            f"Unable to reserve cache with key {key}, another job may be "
            "creating this cache."
        )
        self.key = key


def classify_save_failure(error: Exception) -> SaveFailureKind:
    """Map a raw adapter failure to a SaveFailureKind.

    Args:
        error: Exception raised while talking to the storage backend.

    Returns:
        The matching failure kind. Other errors, such as a raw OSError from
        the filesystem, are UNKNOWN.
    """
    if isinstance(error, ArtifactStoreError):
        return error.kind
    if isinstance(error, CacheReservedError):
        return SaveFailureKind.RESERVED
    if isinstance(error, ArchiveError):
        return SaveFailureKind.ARCHIVE
    return SaveFailureKind.UNKNOWN


def as_store_error(error: Exception, key: str | None = None) -> ArtifactStoreError:
    """Wrap a raw adapter failure in a classified ArtifactStoreError.

    The original message is kept so it can be surfaced as-is.
    """
    if isinstance(error, ArtifactStoreError):
        return error
    return ArtifactStoreError(
        str(error),
        kind=classify_save_failure(error),
        key=key,
        cause=error,
    )
