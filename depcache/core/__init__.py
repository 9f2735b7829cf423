"""Core module - Configuration, logging, constants and exceptions.

Exports:
    - Settings, get_settings: Pydantic Settings configuration
    - configure_logging, get_logger: Structured logging (structlog)
    - Exception classes: DepCacheError, NoMatchingFilesError, etc.
"""

from depcache.core.config import Settings, get_settings
from depcache.core.exceptions import (
    ArchiveError,
    ArtifactStoreError,
    CacheReservedError,
    DepCacheError,
    NoMatchingFilesError,
    SaveFailureKind,
    UnsupportedPackageManagerError,
    as_store_error,
    classify_save_failure,
)
from depcache.core.logging import configure_logging, get_logger


__all__ = [
    "ArchiveError",
    "ArtifactStoreError",
    "CacheReservedError",
    # Exceptions
    "DepCacheError",
    "NoMatchingFilesError",
    "SaveFailureKind",
    # Configuration
    "Settings",
    "UnsupportedPackageManagerError",
    "as_store_error",
    "classify_save_failure",
    # Logging
    "configure_logging",
    "get_logger",
    "get_settings",
]
