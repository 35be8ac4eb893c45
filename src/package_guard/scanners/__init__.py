"""Lock file scanners for the supported package managers.

This module provides scanners for extracting package records from npm,
Yarn (v1 and v2+), pnpm and .NET lock files.
"""

from pathlib import Path

from package_guard.scanners.base import BaseScanner
from package_guard.scanners.detection import detect_package_manager
from package_guard.scanners.npm import NpmLockScanner
from package_guard.scanners.nuget import NuGetAssetsScanner
from package_guard.scanners.pnpm import PnpmLockScanner
from package_guard.scanners.yarn import YarnBerryScanner, YarnV1Scanner

__all__ = [
    "BaseScanner",
    "NpmLockScanner",
    "NuGetAssetsScanner",
    "PnpmLockScanner",
    "YarnBerryScanner",
    "YarnV1Scanner",
    "detect_package_manager",
    "get_scanner",
]

# Registry of available scanners in priority order
_SCANNERS: list[type[BaseScanner]] = [
    NpmLockScanner,
    YarnBerryScanner,
    YarnV1Scanner,
    PnpmLockScanner,
    NuGetAssetsScanner,
]


def get_scanner(path: Path) -> BaseScanner:
    """Get the appropriate scanner for a given lock file.

    Args:
        path: Path to the lock file.

    Returns:
        Scanner instance configured for the given file.

    Raises:
        ValueError: If no scanner can handle the given file.
    """
    for scanner_cls in _SCANNERS:
        if scanner_cls.can_handle(path):
            return scanner_cls(path)

    raise ValueError(
        f"No scanner available for '{path.name}'. "
        f"Supported files: package-lock.json, yarn.lock, pnpm-lock.yaml, project.assets.json"
    )
