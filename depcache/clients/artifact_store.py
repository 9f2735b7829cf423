"""LocalArtifactStore - tar archives of cache directories on local disk.

Layout under the store root, one set of files per (key, version):
- {digest}.lock   reservation, created exclusively before writing
- {digest}.tar.*  the archive
- {digest}.json   metadata, written last; its presence marks the entry
                  as committed

The version is a hash of the cache paths and compression, so an entry is
only restored into the same set of paths it was created from.

Failures are raised as ArtifactStoreError with a SaveFailureKind. Restore
failures other than validation errors are logged and reported as a miss.
"""

from __future__ import annotations

import asyncio
import fnmatch
import hashlib
import json
import os
import shutil
import tarfile
import tempfile
from collections.abc import Sequence
from dataclasses import asdict, dataclass
from datetime import UTC, datetime
from pathlib import Path
from typing import Literal

from depcache.core.constants import EXCLUDE_PREFIX
from depcache.core.exceptions import (
    ArchiveError,
    ArtifactStoreError,
    CacheReservedError,
    SaveFailureKind,
    as_store_error,
)
from depcache.core.logging import get_logger


logger = get_logger(__name__)

Compression = Literal["gz", "xz", "none"]

_TAR_MODES: dict[str, tuple[str, str, str]] = {
    # compression -> (write mode, read mode, suffix)
    "gz": ("w:gz", "r:gz", ".tar.gz"),
    "xz": ("w:xz", "r:xz", ".tar.xz"),
    "none": ("w", "r:", ".tar"),
}

MAX_KEY_LENGTH = 512


@dataclass(frozen=True)
class CacheEntryMetadata:
    """Committed cache entry, as stored in {digest}.json."""

    key: str
    version: str
    cache_id: int
    archive: str
    size_bytes: int
    created_at: str
    paths: list[str]

    @property
    def created(self) -> datetime:
        return datetime.fromisoformat(self.created_at)


def cache_version(paths: Sequence[str], compression: str) -> str:
    """Hash of the cache paths and compression; entries only match their own version."""
    components = [*paths, compression]
    return hashlib.sha256("|".join(components).encode("utf-8")).hexdigest()


def validate_key(key: str) -> None:
    """Reject keys the store cannot hold.

    Raises:
        ArtifactStoreError: VALIDATION kind for empty, too long or comma keys
    """
    if not key:
        raise ArtifactStoreError("Key cannot be empty.", SaveFailureKind.VALIDATION, key)
    if len(key) > MAX_KEY_LENGTH:
        raise ArtifactStoreError(
            f"Key Validation Error: {key} cannot be larger than {MAX_KEY_LENGTH} characters.",
            SaveFailureKind.VALIDATION,
            key,
        )
    if "," in key:
        raise ArtifactStoreError(
            f"Key Validation Error: {key} cannot contain commas.",
            SaveFailureKind.VALIDATION,
            key,
        )


class LocalArtifactStore:
    """Blob cache keyed by string, stored as tar archives in a directory.

    Implements ArtifactStoreProtocol.

    Example:
        >>> store = LocalArtifactStore(root="/var/cache/depcache")
        >>> cache_id = await store.save(["/home/me/.m2/repository"], "setup-java-Linux-maven-abc")
        >>> await store.restore(["/home/me/.m2/repository"], "setup-java-Linux-maven-def",
        ...                     ["setup-java-Linux-maven"])
        'setup-java-Linux-maven-abc'
    """

    def __init__(self, root: str | Path, compression: Compression = "gz") -> None:
        """Initialize the store.

        Args:
            root: Directory holding archives and metadata
            compression: Archive compression (gz, xz or none)
        """
        if compression not in _TAR_MODES:
            raise ValueError(f"Unsupported compression '{compression}'")
        self._root = Path(root)
        self._compression = compression

    @property
    def root(self) -> Path:
        return self._root

    @property
    def compression(self) -> str:
        return self._compression

    # ------------------------------------------------------------------
    # Lookup
    # ------------------------------------------------------------------

    def _digest(self, key: str, version: str) -> str:
        return hashlib.sha256(f"{key}\0{version}".encode("utf-8")).hexdigest()

    def list_entries(self) -> list[CacheEntryMetadata]:
        """Return every committed entry, newest first."""
        if not self._root.is_dir():
            return []
        entries = []
        for meta_path in self._root.glob("*.json"):
            payload = json.loads(meta_path.read_text(encoding="utf-8"))
            entries.append(CacheEntryMetadata(**payload))
        return sorted(entries, key=lambda e: e.created, reverse=True)

    def find_entry(
        self,
        primary_key: str,
        restore_keys: Sequence[str],
        version: str,
    ) -> CacheEntryMetadata | None:
        """Find the exact key first, then the newest entry for each prefix in order."""
        entries = [e for e in self.list_entries() if e.version == version]
        for entry in entries:
            if entry.key == primary_key:
                return entry
        for prefix in restore_keys:
            for entry in entries:
                if entry.key.startswith(prefix):
                    return entry
        return None

    # ------------------------------------------------------------------
    # Restore
    # ------------------------------------------------------------------

    async def restore(
        self,
        paths: Sequence[str],
        primary_key: str,
        restore_keys: Sequence[str] = (),
    ) -> str | None:
        """Restore paths from the best matching entry.

        Returns:
            The matched key, or None on a miss

        Raises:
            ArtifactStoreError: VALIDATION kind for invalid keys or paths
        """
        for key in (primary_key, *restore_keys):
            validate_key(key)
        if not paths:
            raise ArtifactStoreError(
                "Path Validation Error: At least one directory or file path is required",
                SaveFailureKind.VALIDATION,
                primary_key,
            )
        try:
            return await asyncio.to_thread(self._restore_sync, list(paths), primary_key, list(restore_keys))
        except (ArchiveError, OSError, tarfile.TarError, ValueError) as exc:
            logger.warning(f"Failed to restore: {exc}")
            return None

    def _restore_sync(
        self,
        paths: list[str],
        primary_key: str,
        restore_keys: list[str],
    ) -> str | None:
        included = [p for p in paths if not p.startswith(EXCLUDE_PREFIX)]
        version = cache_version(included, self._compression)
        entry = self.find_entry(primary_key, restore_keys, version)
        if entry is None:
            return None

        archive_path = self._root / entry.archive
        logger.debug("Restoring cache archive", key=entry.key, archive=str(archive_path))
        self._extract(archive_path, entry.paths)
        logger.info(
            f"Cache Size: ~{round(entry.size_bytes / (1024 * 1024))} MB ({entry.size_bytes} B)"
        )
        return entry.key

    def _extract(self, archive_path: Path, paths: list[str]) -> None:
        _, read_mode, _ = _TAR_MODES[self._compression]
        with tempfile.TemporaryDirectory(prefix="depcache-") as tmp:
            try:
                with tarfile.open(archive_path, read_mode) as tar:
                    tar.extractall(tmp, filter="data")
            except (OSError, tarfile.TarError) as exc:
                raise ArchiveError(str(exc), exc) from exc

            for index, target in enumerate(paths):
                source = Path(tmp) / str(index)
                if not source.exists():
                    continue
                if source.is_dir():
                    shutil.copytree(source, target, dirs_exist_ok=True)
                else:
                    Path(target).parent.mkdir(parents=True, exist_ok=True)
                    shutil.copy2(source, target)

    # ------------------------------------------------------------------
    # Save
    # ------------------------------------------------------------------

    async def save(self, paths: Sequence[str], key: str) -> int:
        """Archive paths under a key.

        Returns:
            Numeric cache id of the committed entry

        Raises:
            ArtifactStoreError: RESERVED if the key already exists or is
                being written, ARCHIVE if tar fails, VALIDATION for bad input
        """
        validate_key(key)
        try:
            return await asyncio.to_thread(self._save_sync, list(paths), key)
        except (ArchiveError, CacheReservedError, OSError, tarfile.TarError) as exc:
            raise as_store_error(exc, key) from exc

    def _save_sync(self, paths: list[str], key: str) -> int:
        included = [p for p in paths if not p.startswith(EXCLUDE_PREFIX)]
        excluded = [p[len(EXCLUDE_PREFIX):] for p in paths if p.startswith(EXCLUDE_PREFIX)]
        if not any(Path(p).exists() for p in included):
            raise ArtifactStoreError(
                "Path Validation Error: Path(s) specified in the action for caching "
                "do(es) not exist, hence no cache is being saved.",
                SaveFailureKind.VALIDATION,
                key,
            )

        version = cache_version(included, self._compression)
        digest = self._digest(key, version)
        self._root.mkdir(parents=True, exist_ok=True)
        lock_path = self._root / f"{digest}.lock"
        self._reserve(lock_path, key)

        write_mode, _, suffix = _TAR_MODES[self._compression]
        archive_path = self._root / f"{digest}{suffix}"
        try:
            self._archive(archive_path, write_mode, included, excluded)
            size = archive_path.stat().st_size
            metadata = CacheEntryMetadata(
                key=key,
                version=version,
                cache_id=int(digest[:12], 16),
                archive=archive_path.name,
                size_bytes=size,
                created_at=datetime.now(UTC).isoformat(),
                paths=included,
            )
            meta_path = self._root / f"{digest}.json"
            tmp_meta = meta_path.with_suffix(".json.tmp")
            tmp_meta.write_text(json.dumps(asdict(metadata), indent=2), encoding="utf-8")
            os.replace(tmp_meta, meta_path)
        except BaseException:
            archive_path.unlink(missing_ok=True)
            lock_path.unlink(missing_ok=True)
            raise

        logger.debug("Cache archive committed", key=key, size_bytes=size)
        return metadata.cache_id

    def _reserve(self, lock_path: Path, key: str) -> None:
        try:
            fd = os.open(lock_path, os.O_CREAT | os.O_EXCL | os.O_WRONLY)
        except FileExistsError as exc:
            raise CacheReservedError(key) from exc
        with os.fdopen(fd, "w", encoding="utf-8") as handle:
            handle.write(key)

    def _archive(
        self,
        archive_path: Path,
        write_mode: str,
        included: list[str],
        excluded: list[str],
    ) -> None:
        def _filter(info: tarfile.TarInfo, source_root: str) -> tarfile.TarInfo | None:
            relative = info.name.split("/", 1)[1] if "/" in info.name else ""
            full = os.path.join(source_root, relative) if relative else source_root
            if any(fnmatch.fnmatch(full, pattern) for pattern in excluded):
                return None
            return info

        try:
            with tarfile.open(archive_path, write_mode) as tar:
                for index, source in enumerate(included):
                    if not Path(source).exists():
                        continue
                    tar.add(
                        source,
                        arcname=str(index),
                        filter=lambda info, root=source: _filter(info, root),
                    )
        except (OSError, tarfile.TarError) as exc:
            raise ArchiveError(str(exc), exc) from exc

    def __repr__(self) -> str:
        return f"LocalArtifactStore(root={str(self._root)!r}, compression={self._compression!r})"
