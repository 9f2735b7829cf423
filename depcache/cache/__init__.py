"""Dependency Cache Package.

Two phases connected only by persisted state:
- restore: compute the key, persist it, restore the cache
- save: read the key back, decide, upload the cache

Modules:
- package_managers: supported package managers and their cache paths
- platform: OS-specific home and cache roots
- keys: cache key derivation
- restore / save: the phase coordinators
"""

from depcache.cache.keys import (
    CacheKey,
    build_fallback_key,
    compute_cache_key,
    fallback_key,
    effective_patterns,
    parse_dependency_path,
)
from depcache.cache.package_managers import (
    PackageManager,
    PackageManagerId,
    find_package_manager,
    supported_package_managers,
)
from depcache.cache.platform import PlatformAdapter
from depcache.cache.restore import RestoreCoordinator, RestoreResult
from depcache.cache.save import SaveCoordinator, SaveResult, SaveStatus


__all__ = [
    # Keys
    "CacheKey",
    # Registry
    "PackageManager",
    "PackageManagerId",
    "PlatformAdapter",
    # Coordinators
    "RestoreCoordinator",
    "RestoreResult",
    "SaveCoordinator",
    "SaveResult",
    "SaveStatus",
    "build_fallback_key",
    "compute_cache_key",
    "effective_patterns",
    "fallback_key",
    "find_package_manager",
    "parse_dependency_path",
    "supported_package_managers",
]
