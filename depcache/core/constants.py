"""Dependency cache constants.

Centralizes strings shared between the restore and save phases:
- Cache key prefix
- Persisted state slot names
- Step output names
- Log messages consumed by downstream log parsers

The restore and save phases run in separate processes, so every value
that crosses the boundary must be spelled identically on both sides.
"""

from __future__ import annotations

from typing import Final


# =============================================================================
# Cache Key
# =============================================================================

CACHE_KEY_PREFIX: Final[str] = "setup-java"
"""Default leading segment of every cache key."""

CACHE_KEY_SEPARATOR: Final[str] = "-"

# =============================================================================
# Persisted State Slots
# =============================================================================

STATE_CACHE_PRIMARY_KEY: Final[str] = "cache-primary-key"
"""Key computed at restore time; read back by the save phase."""

STATE_CACHE_MATCHED_KEY: Final[str] = "cache-matched-key"
"""Key the artifact store reported as present (exact or fallback)."""

# =============================================================================
# Step Outputs
# =============================================================================

OUTPUT_CACHE_HIT: Final[str] = "cache-hit"

# =============================================================================
# Log Messages
# =============================================================================

MSG_STATE_MISSING: Final[str] = "Error retrieving key from state."
MSG_PRIMARY_KEY: Final[str] = "primary key is {key}"
MSG_CACHE_RESTORED: Final[str] = "Cache restored from key: {key}"
MSG_CACHE_NOT_FOUND: Final[str] = "{id} cache is not found for key {key}"
MSG_CACHE_SAVED: Final[str] = "Cache saved with the key: {key}"
MSG_CACHE_HIT_NOT_SAVING: Final[str] = (
    "Cache hit occurred on the primary key {key}, not saving cache."
)
MSG_NO_MATCHING_FILES: Final[str] = (
    "No file in {cwd} matched to [{patterns}], "
    "make sure you have checked out the target repository"
)
MSG_UNKNOWN_PACKAGE_MANAGER: Final[str] = "unknown package manager specified: {id}"
MSG_GRADLE_WINDOWS_TAR: Final[str] = (
    "Failed to save Gradle cache on Windows. If tar.exe reported "
    '"Permission denied", try to run Gradle with `--no-daemon` option. '
    "Refer to https://github.com/actions/cache/issues/454 for details."
)

# =============================================================================
# Artifact Store
# =============================================================================

TAR_FAILURE_PREFIX: Final[str] = "Tar failed with error: "
"""Message prefix used by archive failures raised while saving."""

EXCLUDE_PREFIX: Final[str] = "!"
"""Marks a cache path entry as an exclusion pattern."""
