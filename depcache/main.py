"""
Command line entry point for depcache.

Usage:
    depcache restore maven
    depcache restore gradle --cache-dependency-path "sub-project/**/*.gradle*"
    depcache restore sbt --no-restore
    depcache save maven [--force]

The restore and save commands are meant to run as separate steps of one
job (main step and post step); they share nothing but persisted state.
"""

from __future__ import annotations

import argparse
import asyncio
import sys
from collections.abc import Sequence

from depcache import __version__
from depcache.cache.package_managers import PackageManagerId
from depcache.cache.restore import RestoreCoordinator
from depcache.cache.save import SaveCoordinator
from depcache.core.config import get_settings
from depcache.core.exceptions import DepCacheError
from depcache.core.logging import configure_logging, get_logger


logger = get_logger(__name__)

EXIT_OK = 0
EXIT_FAILURE = 1


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser for the restore and save commands."""
    parser = argparse.ArgumentParser(
        prog="depcache",
        description="Restore and save JVM dependency caches keyed by dependency files",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    subparsers = parser.add_subparsers(dest="command", required=True)

    package_managers = ", ".join(pm.value for pm in PackageManagerId)

    restore_parser = subparsers.add_parser("restore", help="Compute the cache key and restore the cache")
    restore_parser.add_argument("package_manager", help=f"Package manager ({package_managers})")
    restore_parser.add_argument(
        "--cache-dependency-path",
        default="",
        help="Newline-separated glob patterns replacing the default dependency files",
    )
    restore_parser.add_argument(
        "--no-restore",
        dest="perform_restore",
        action="store_false",
        help="Only compute and persist the key; do not restore",
    )

    save_parser = subparsers.add_parser("save", help="Save the cache if it changed")
    save_parser.add_argument("package_manager", help=f"Package manager ({package_managers})")
    save_parser.add_argument(
        "--force",
        dest="force_update",
        action="store_true",
        help="Save even on an exact cache hit",
    )
    return parser


async def run(args: argparse.Namespace) -> int:
    """Run the selected command.

    Returns:
        Process exit code
    """
    settings = get_settings()
    try:
        if args.command == "restore":
            coordinator = RestoreCoordinator(settings=settings)
            await coordinator.restore(
                args.package_manager,
                args.cache_dependency_path,
                args.perform_restore,
            )
        else:
            save_coordinator = SaveCoordinator(settings=settings)
            await save_coordinator.save(args.package_manager, args.force_update)
    except DepCacheError as exc:
        logger.error(exc.message)
        return EXIT_FAILURE
    return EXIT_OK


def main(argv: Sequence[str] | None = None) -> int:
    """Console script entry point."""
    args = build_parser().parse_args(argv)
    configure_logging()
    return asyncio.run(run(args))


if __name__ == "__main__":
    sys.exit(main())
