"""GlobFileHasher - content hash over files matched by glob patterns.

Follows the hashFiles() contract of GitHub Actions:
- patterns are newline-separated, resolved relative to the workspace
- "**" as a whole path component matches any number of directories
- a line starting with "!" removes earlier matches
- only regular files inside the workspace are considered
- each file's SHA-256 digest is fed into an outer SHA-256
- "" is returned when nothing matched

Matches are deduplicated and hashed in sorted order, so the result does
not depend on pattern order or directory listing order.
"""

from __future__ import annotations

import asyncio
import fnmatch
import glob
import hashlib
import os
from pathlib import Path

from depcache.core.logging import get_logger


logger = get_logger(__name__)

NEGATE_PREFIX = "!"
_CHUNK_SIZE = 1024 * 1024


def sha256_file(path: str | Path, *, chunk_size: int = _CHUNK_SIZE) -> bytes:
    """Return the raw SHA-256 digest of a file, streamed in chunks."""
    hasher = hashlib.sha256()
    with Path(path).open("rb") as handle:
        while True:
            chunk = handle.read(chunk_size)
            if not chunk:
                break
            hasher.update(chunk)
    return hasher.digest()


def split_patterns(patterns: str) -> list[str]:
    """Split newline-joined patterns, dropping blanks and # comments."""
    lines = (line.strip() for line in patterns.splitlines())
    return [line for line in lines if line and not line.startswith("#")]


class GlobFileHasher:
    """Hash dependency declaration files under a workspace.

    Implements FileHasherProtocol.

    Example:
        >>> hasher = GlobFileHasher(workspace="/work/project")
        >>> await hasher.hash_files("**/pom.xml")
        '5f1c...'
    """

    def __init__(self, workspace: str | Path | None = None) -> None:
        """Initialize the hasher.

        Args:
            workspace: Root directory patterns are resolved against and
                files must live under. Defaults to the current directory.
        """
        self._workspace = Path(workspace) if workspace is not None else None

    @property
    def workspace(self) -> Path:
        return (self._workspace or Path.cwd()).resolve()

    def match_files(self, patterns: str) -> list[Path]:
        """Resolve patterns to the sorted list of matching files."""
        root = self.workspace
        matched: set[Path] = set()

        for line in split_patterns(patterns):
            if line.startswith(NEGATE_PREFIX):
                exclude = line[len(NEGATE_PREFIX):].strip()
                matched = {p for p in matched if not _matches(p, root, exclude)}
                continue
            for candidate in _expand(root, line):
                if not candidate.is_file():
                    continue
                resolved = candidate.resolve()
                if not resolved.is_relative_to(root):
                    logger.debug(
                        "Ignore file since it is not under the workspace",
                        path=str(resolved),
                        workspace=str(root),
                    )
                    continue
                matched.add(resolved)

        return sorted(matched, key=lambda p: p.relative_to(root).as_posix())

    def hash_files_sync(self, patterns: str) -> str:
        """Blocking variant of hash_files()."""
        files = self.match_files(patterns)
        if not files:
            return ""

        outer = hashlib.sha256()
        for path in files:
            outer.update(sha256_file(path))
        logger.debug("Hashed dependency files", count=len(files))
        return outer.hexdigest()

    async def hash_files(self, patterns: str) -> str:
        """Hash the files matched by newline-joined patterns.

        Returns:
            Hex digest, or "" if no regular file matched
        """
        return await asyncio.to_thread(self.hash_files_sync, patterns)

    def __repr__(self) -> str:
        return f"GlobFileHasher(workspace={str(self.workspace)!r})"


def _expand(root: Path, pattern: str) -> list[Path]:
    if os.path.isabs(pattern):
        return [Path(p) for p in glob.glob(pattern, recursive=True, include_hidden=True)]
    found = glob.glob(pattern, root_dir=root, recursive=True, include_hidden=True)
    return [root / p for p in found]


def _matches(path: Path, root: Path, pattern: str) -> bool:
    if os.path.isabs(pattern):
        return fnmatch.fnmatch(str(path), pattern)
    relative = path.relative_to(root).as_posix()
    # "**/x" also covers "x" at the root, as in the positive match
    if pattern.startswith("**/") and fnmatch.fnmatch(relative, pattern[3:]):
        return True
    return fnmatch.fnmatch(relative, pattern)
