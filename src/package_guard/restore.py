"""Locating a project's lock file, restoring packages when needed.

When a lock file is missing or older than its project file, the package
manager's install/restore command is run to bring it up to date, unless the
settings say otherwise.
"""

import logging
import subprocess
from pathlib import Path
from typing import Optional

from package_guard.exceptions import RestoreError
from package_guard.models import AnalyzerSettings, PackageManager

logger = logging.getLogger(__name__)

LOCK_FILES = {
    PackageManager.NPM: Path("package-lock.json"),
    PackageManager.YARN: Path("yarn.lock"),
    PackageManager.PNPM: Path("pnpm-lock.yaml"),
    PackageManager.DOTNET: Path("obj") / "project.assets.json",
}

RESTORE_COMMANDS = {
    PackageManager.NPM: ["npm", "install"],
    PackageManager.YARN: ["yarn", "install"],
    PackageManager.PNPM: ["pnpm", "install"],
    PackageManager.DOTNET: ["dotnet", "restore"],
}

# Exit code reported when the executable itself cannot be started
COMMAND_NOT_FOUND = 127


def _project_file(project_dir: Path, manager: PackageManager) -> Optional[Path]:
    if manager is PackageManager.DOTNET:
        return next(iter(sorted(project_dir.glob("*.csproj"))), None)

    package_json = project_dir / "package.json"
    return package_json if package_json.exists() else None


def needs_restore(project_dir: Path, lock_file: Path, manager: PackageManager) -> bool:
    """Check whether a lock file is missing or older than the project file."""
    if not lock_file.exists():
        return True

    project_file = _project_file(project_dir, manager)
    return project_file is not None and lock_file.stat().st_mtime < project_file.stat().st_mtime


def restore_packages(
    project_dir: Path, manager: PackageManager, executable: Optional[str] = None
) -> None:
    """Run the install/restore command of a package manager.

    Args:
        project_dir: Directory to run the command in.
        manager: Package manager to use.
        executable: Optional path to the package manager executable.

    Raises:
        RestoreError: If the command fails or cannot be started.
    """
    command = list(RESTORE_COMMANDS[manager])
    if executable:
        command[0] = executable

    logger.info("The lock file was not found or out-of-date. Running install on %s", project_dir)
    logger.info("Executing: %s", " ".join(command))

    try:
        result = subprocess.run(
            command, cwd=project_dir, capture_output=True, text=True, check=False
        )
    except OSError as e:
        logger.error("Failed to start %s: %s", command[0], e)
        raise RestoreError(str(project_dir), COMMAND_NOT_FOUND) from e

    for line in result.stdout.splitlines():
        logger.info(line)
    for line in result.stderr.splitlines():
        logger.error(line)

    if result.returncode != 0:
        raise RestoreError(str(project_dir), result.returncode)


def locate_lock_file(
    project_dir: Path, manager: PackageManager, settings: AnalyzerSettings
) -> Path:
    """Return the lock file of a project, restoring packages if required.

    Args:
        project_dir: Project directory.
        manager: Detected package manager.
        settings: Analyzer settings controlling restores.

    Returns:
        Path to the lock file. It may not exist when restoring was skipped.

    Raises:
        ValueError: If no package manager was detected.
        RestoreError: If a restore was needed and failed.
    """
    if manager not in LOCK_FILES:
        raise ValueError(f"No supported package manager detected for {project_dir}")

    lock_file = project_dir / LOCK_FILES[manager]

    if not settings.skip_restore and (
        settings.force_restore or needs_restore(project_dir, lock_file, manager)
    ):
        restore_packages(project_dir, manager, settings.package_manager_exe)

    return lock_file
