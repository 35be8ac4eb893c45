"""Tests for lock file location and package restores."""

import os
import subprocess
from pathlib import Path

import pytest

from package_guard.exceptions import RestoreError
from package_guard.models import AnalyzerSettings, PackageManager
from package_guard.restore import locate_lock_file, needs_restore, restore_packages


def completed(returncode: int = 0, stdout: str = "", stderr: str = "") -> subprocess.CompletedProcess:
    return subprocess.CompletedProcess(args=[], returncode=returncode, stdout=stdout, stderr=stderr)


@pytest.fixture
def mock_run(mocker):
    """Patch subprocess.run as used by the restore module."""
    return mocker.patch("package_guard.restore.subprocess.run", return_value=completed())


def make_older(path: Path, than: Path) -> None:
    stat = than.stat()
    os.utime(path, (stat.st_atime - 60, stat.st_mtime - 60))


class TestNeedsRestore:
    """Test suite for needs_restore."""

    def test_missing_lock_file(self, tmp_path: Path) -> None:
        """Test that a missing lock file always needs a restore."""
        assert needs_restore(tmp_path, tmp_path / "package-lock.json", PackageManager.NPM)

    def test_lock_file_older_than_package_json(self, tmp_path: Path) -> None:
        """Test that an outdated lock file needs a restore."""
        package_json = tmp_path / "package.json"
        package_json.write_text("{}")
        lock = tmp_path / "package-lock.json"
        lock.write_text("{}")
        make_older(lock, package_json)

        assert needs_restore(tmp_path, lock, PackageManager.NPM)

    def test_lock_file_up_to_date(self, tmp_path: Path) -> None:
        """Test that a newer lock file does not need a restore."""
        package_json = tmp_path / "package.json"
        package_json.write_text("{}")
        lock = tmp_path / "package-lock.json"
        lock.write_text("{}")
        make_older(package_json, lock)

        assert not needs_restore(tmp_path, lock, PackageManager.NPM)

    def test_assets_file_older_than_csproj(self, tmp_path: Path) -> None:
        """Test that .NET projects compare against the project file."""
        csproj = tmp_path / "App.csproj"
        csproj.write_text("<Project />")
        assets = tmp_path / "obj" / "project.assets.json"
        assets.parent.mkdir()
        assets.write_text("{}")
        make_older(assets, csproj)

        assert needs_restore(tmp_path, assets, PackageManager.DOTNET)


class TestRestorePackages:
    """Test suite for restore_packages."""

    def test_runs_install_in_project_dir(self, tmp_path: Path, mock_run) -> None:
        """Test the command line and working directory."""
        restore_packages(tmp_path, PackageManager.PNPM)

        mock_run.assert_called_once()
        assert mock_run.call_args.args[0] == ["pnpm", "install"]
        assert mock_run.call_args.kwargs["cwd"] == tmp_path

    def test_custom_executable(self, tmp_path: Path, mock_run) -> None:
        """Test that a configured executable replaces the default one."""
        restore_packages(tmp_path, PackageManager.YARN, "/opt/yarn/bin/yarn.cmd")
        assert mock_run.call_args.args[0] == ["/opt/yarn/bin/yarn.cmd", "install"]

    def test_output_is_logged(self, tmp_path: Path, mock_run, caplog) -> None:
        """Test that stderr of the command is logged as errors."""
        mock_run.return_value = completed(stdout="added 57 packages", stderr="npm WARN deprecated")

        restore_packages(tmp_path, PackageManager.NPM)

        assert "npm WARN deprecated" in caplog.text

    def test_non_zero_exit_raises(self, tmp_path: Path, mock_run) -> None:
        """Test that a failing restore raises RestoreError with its exit code."""
        mock_run.return_value = completed(returncode=1, stderr="error")

        with pytest.raises(RestoreError) as exc_info:
            restore_packages(tmp_path, PackageManager.DOTNET)

        assert exc_info.value.exit_code == 1
        assert str(tmp_path) in str(exc_info.value)

    def test_missing_executable_raises(self, tmp_path: Path, mock_run) -> None:
        """Test that an executable that cannot be started is a restore failure."""
        mock_run.side_effect = FileNotFoundError("npm")

        with pytest.raises(RestoreError) as exc_info:
            restore_packages(tmp_path, PackageManager.NPM)

        assert exc_info.value.exit_code == 127


class TestLocateLockFile:
    """Test suite for locate_lock_file."""

    def test_restores_missing_lock_file(self, tmp_path: Path, mock_run) -> None:
        """Test that a missing lock file triggers a restore."""
        lock = locate_lock_file(tmp_path, PackageManager.NPM, AnalyzerSettings())

        assert lock == tmp_path / "package-lock.json"
        mock_run.assert_called_once()

    def test_skip_restore(self, tmp_path: Path, mock_run) -> None:
        """Test that skip_restore never runs the package manager."""
        settings = AnalyzerSettings(skip_restore=True, force_restore=True)

        lock = locate_lock_file(tmp_path, PackageManager.YARN, settings)

        assert lock == tmp_path / "yarn.lock"
        mock_run.assert_not_called()

    def test_up_to_date_lock_file_is_not_restored(self, tmp_path: Path, mock_run) -> None:
        """Test that an existing lock file without project file is used as is."""
        (tmp_path / "pnpm-lock.yaml").write_text("lockfileVersion: '6.0'\n")

        locate_lock_file(tmp_path, PackageManager.PNPM, AnalyzerSettings())

        mock_run.assert_not_called()

    def test_force_restore(self, tmp_path: Path, mock_run) -> None:
        """Test that force_restore restores even an up-to-date lock file."""
        (tmp_path / "pnpm-lock.yaml").write_text("lockfileVersion: '6.0'\n")

        locate_lock_file(tmp_path, PackageManager.PNPM, AnalyzerSettings(force_restore=True))

        mock_run.assert_called_once()

    def test_dotnet_assets_location(self, tmp_path: Path, mock_run) -> None:
        """Test that .NET projects use obj/project.assets.json."""
        settings = AnalyzerSettings(skip_restore=True)
        lock = locate_lock_file(tmp_path, PackageManager.DOTNET, settings)
        assert lock == tmp_path / "obj" / "project.assets.json"

    def test_no_package_manager(self, tmp_path: Path, mock_run) -> None:
        """Test that undetected projects are rejected."""
        with pytest.raises(ValueError, match="No supported package manager"):
            locate_lock_file(tmp_path, PackageManager.NONE, AnalyzerSettings())
