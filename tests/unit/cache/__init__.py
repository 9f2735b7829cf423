"""Test package for dependency cache logic.

Contains unit tests for:
- Cache key composition and dependency path overrides
- Package manager registry and platform paths
- RestoreCoordinator and SaveCoordinator
"""
