"""Detection of the package manager used by a project.

Detectors are tried in priority order until one recognizes the project:
an explicit user setting, the name of a provided executable, and finally
the presence of well-known lock or configuration files.
"""

import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Optional

from package_guard.models import AnalyzerSettings, PackageManager

logger = logging.getLogger(__name__)


class PackageManagerDetector(ABC):
    """Recognizes the package manager of a project directory or file."""

    @abstractmethod
    def detect(self, project_path: Path, settings: AnalyzerSettings) -> Optional[PackageManager]:
        """Return the detected package manager, or None to defer to the next detector."""
        ...


class UserSettingDetector(PackageManagerDetector):
    """Uses the package manager explicitly configured by the user."""

    def detect(self, project_path: Path, settings: AnalyzerSettings) -> Optional[PackageManager]:
        return settings.package_manager


class ExecutableNameDetector(PackageManagerDetector):
    """Infers the package manager from the name of a provided executable."""

    EXECUTABLES = [
        ("npm.cmd", PackageManager.NPM),
        ("npm.exe", PackageManager.NPM),
        ("npm", PackageManager.NPM),
        ("yarn.ps1", PackageManager.YARN),
        ("yarn.cmd", PackageManager.YARN),
        ("yarn", PackageManager.YARN),
        ("pnpm.exe", PackageManager.PNPM),
        ("pnpm.cmd", PackageManager.PNPM),
        ("pnpm", PackageManager.PNPM),
    ]

    def detect(self, project_path: Path, settings: AnalyzerSettings) -> Optional[PackageManager]:
        if not settings.package_manager_exe:
            return None

        exe_name = Path(settings.package_manager_exe).name.lower()
        for executable, manager in self.EXECUTABLES:
            if exe_name == executable:
                return manager

        return None


class CommonFileDetector(PackageManagerDetector):
    """Looks for lock and configuration files typical of each package manager."""

    FILES = [
        ("package-lock.json", PackageManager.NPM),
        (".npmrc", PackageManager.NPM),
        ("pnpm-lock.yaml", PackageManager.PNPM),
        ("pnpm-workspace.yml", PackageManager.PNPM),
        ("pnpm-workspace.yaml", PackageManager.PNPM),
        ("yarn.lock", PackageManager.YARN),
        (".yarnrc.yml", PackageManager.YARN),
        (".yarnrc", PackageManager.YARN),
        ("project.assets.json", PackageManager.DOTNET),
        ("package.json", PackageManager.NPM),
    ]

    def detect(self, project_path: Path, settings: AnalyzerSettings) -> Optional[PackageManager]:
        for file_name, manager in self.FILES:
            if project_path.is_file() and project_path.name.lower() == file_name:
                return manager

            directory = project_path if project_path.is_dir() else project_path.parent
            if (directory / file_name).is_file():
                return manager

        if project_path.suffix == ".csproj" or any(project_path.glob("*.csproj")):
            return PackageManager.DOTNET

        return None


DETECTORS: list[PackageManagerDetector] = [
    UserSettingDetector(),
    ExecutableNameDetector(),
    CommonFileDetector(),
]


def detect_package_manager(project_path: Path, settings: AnalyzerSettings) -> PackageManager:
    """Determine the package manager of a project.

    Args:
        project_path: Project directory or one of its files.
        settings: Analyzer settings carrying user overrides.

    Returns:
        The detected package manager, or PackageManager.NONE.
    """
    for detector in DETECTORS:
        manager = detector.detect(project_path, settings)
        if manager is not None:
            logger.debug(
                "%s detected %s for %s", type(detector).__name__, manager.value, project_path
            )
            return manager

    return PackageManager.NONE
