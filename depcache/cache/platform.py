"""PlatformAdapter - OS-specific filesystem roots for dependency caches.

Resolves the runner OS name embedded in cache keys and the home-relative
cache directories each package manager uses. Pure functions of the detected
OS family and home directory; nothing here touches the filesystem.
"""

from __future__ import annotations

import os
import platform
from pathlib import Path


RUNNER_OS_LINUX = "Linux"
RUNNER_OS_MACOS = "macOS"
RUNNER_OS_WINDOWS = "Windows"

# platform.system() -> runner OS name
_SYSTEM_TO_RUNNER_OS: dict[str, str] = {
    "Linux": RUNNER_OS_LINUX,
    "Darwin": RUNNER_OS_MACOS,
    "Windows": RUNNER_OS_WINDOWS,
}

# Dependency cache roots under the home directory
_HOME_CACHE_ROOTS: dict[str, tuple[str, ...]] = {
    "maven": (".m2",),
    "gradle": (".gradle",),
}


class PlatformAdapter:
    """Detected OS family plus home directory.

    Every argument defaults to the current process environment, so tests
    can pin any of them without touching globals.

    Example:
        >>> adapter = PlatformAdapter(system="Darwin", home=Path("/Users/me"))
        >>> adapter.runner_os
        'macOS'
        >>> adapter.home_cache_root("sbt")
        PosixPath('/Users/me/Library/Caches/Coursier')
    """

    def __init__(
        self,
        system: str | None = None,
        home: Path | str | None = None,
        runner_os: str | None = None,
    ) -> None:
        self._system = system or platform.system()
        self._home = Path(home) if home is not None else Path.home()
        self._runner_os = runner_os or os.environ.get("RUNNER_OS") or None

    @property
    def system(self) -> str:
        """Return the platform.system() style OS family name."""
        return self._system

    @property
    def home(self) -> Path:
        return self._home

    @property
    def runner_os(self) -> str:
        """Return the OS name used in cache keys.

        RUNNER_OS wins when the runner provides it; otherwise the OS family
        is mapped to the same vocabulary (Darwin becomes macOS).
        """
        if self._runner_os:
            return self._runner_os
        return _SYSTEM_TO_RUNNER_OS.get(self._system, self._system)

    @property
    def is_windows(self) -> bool:
        return self.runner_os == RUNNER_OS_WINDOWS

    def home_path(self, *parts: str) -> Path:
        """Join parts onto the home directory."""
        return self._home.joinpath(*parts)

    def coursier_cache_path(self) -> Path:
        """Return the default Coursier cache directory for this OS."""
        if self._system == "Linux":
            return self.home_path(".cache", "coursier")
        if self._system == "Darwin":
            return self.home_path("Library", "Caches", "Coursier")
        return self.home_path("AppData", "Local", "Coursier", "Cache")

    def home_cache_root(self, package_manager_id: str) -> Path:
        """Return the OS-specific cache root for a package manager.

        Args:
            package_manager_id: maven, gradle or sbt

        Returns:
            Root directory the package manager keeps downloaded artifacts in.
            For sbt this is the secondary Coursier resolution cache.

        Raises:
            ValueError: If the id has no known cache root
        """
        if package_manager_id == "sbt":
            return self.coursier_cache_path()
        parts = _HOME_CACHE_ROOTS.get(package_manager_id)
        if parts is None:
            raise ValueError(f"No cache root known for '{package_manager_id}'")
        return self.home_path(*parts)

    def __repr__(self) -> str:
        return (
            f"PlatformAdapter(system={self._system!r}, "
            f"runner_os={self.runner_os!r}, home={str(self._home)!r})"
        )
