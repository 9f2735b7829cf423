"""Collaborator Protocols.

Duck typing protocols for the external collaborators of the cache
coordinators. Enables fake substitution in tests.

Pattern: Protocol duck typing
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Protocol, runtime_checkable


@runtime_checkable
class FileHasherProtocol(Protocol):
    """Protocol for the file hashing primitive.

    Methods:
        hash_files: Hash every file matched by newline-joined glob patterns
    """

    async def hash_files(self, patterns: str) -> str:
        """Hash the files matched by the patterns.

        Args:
            patterns: Glob patterns joined with newlines

        Returns:
            Stable hex digest, or "" if no file matched
        """
        ...


@runtime_checkable
class ArtifactStoreProtocol(Protocol):
    """Protocol for the blob cache keyed by string.

    Implementations raise ArtifactStoreError with a SaveFailureKind so
    callers never need to inspect messages.

    Methods:
        restore: Restore paths by key, falling back to prefix matches
        save: Save paths under a key
    """

    async def restore(
        self,
        paths: Sequence[str],
        primary_key: str,
        restore_keys: Sequence[str] = (),
    ) -> str | None:
        """Restore cached paths.

        Args:
            paths: Cache roots (and "!" exclusions)
            primary_key: Exact key to look up first
            restore_keys: Prefixes tried in order when the exact key misses

        Returns:
            The key that matched, or None on a miss
        """
        ...

    async def save(self, paths: Sequence[str], key: str) -> int:
        """Save cached paths under a key.

        Args:
            paths: Cache roots (and "!" exclusions)
            key: Key to save under

        Returns:
            Store-assigned cache id (-1 when nothing was reserved)
        """
        ...


@runtime_checkable
class StateStoreProtocol(Protocol):
    """Protocol for the key-value state passed from restore to save."""

    def save_state(self, name: str, value: str) -> None:
        """Persist a value for the later phase."""
        ...

    def get_state(self, name: str) -> str:
        """Read a persisted value; "" when absent."""
        ...

    def clear(self) -> None:
        """Drop every value so the current job starts from empty state."""
        ...


@runtime_checkable
class OutputWriterProtocol(Protocol):
    """Protocol for publishing step outputs (e.g. cache-hit)."""

    def set_output(self, name: str, value: str) -> None:
        """Publish an output value."""
        ...
