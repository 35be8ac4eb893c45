"""Tests for the package-lock.json scanner."""

import json
from pathlib import Path

import pytest

from package_guard.models import Ecosystem
from package_guard.scanners.npm import NpmLockScanner, package_name_from_path


class TestNpmLockScanner:
    """Test suite for NpmLockScanner."""

    @pytest.fixture
    def lock_path(self, fixtures_dir: Path) -> Path:
        """Return path to the package-lock.json fixture."""
        return fixtures_dir / "npm" / "package-lock.json"

    @pytest.fixture
    def scanner(self, lock_path: Path) -> NpmLockScanner:
        """Create a NpmLockScanner instance for testing."""
        return NpmLockScanner(source_path=lock_path)

    def test_can_handle(self, lock_path: Path, tmp_path: Path) -> None:
        """Test that only package-lock.json is handled."""
        assert NpmLockScanner.can_handle(lock_path)
        assert not NpmLockScanner.can_handle(tmp_path / "package.json")

    def test_source_name(self, scanner: NpmLockScanner) -> None:
        """Test that source_name returns correct value."""
        assert scanner.source_name == "package-lock.json"

    def test_scan_extracts_packages(self, scanner: NpmLockScanner) -> None:
        """Test that nested, scoped and legacy-licensed packages are found."""
        packages = {p.name: p for p in scanner.scan()}

        assert set(packages) == {"express", "accepts", "@types/node", "legacy-lib"}
        assert all(p.ecosystem is Ecosystem.NPM for p in packages.values())
        assert all(p.source == "npm" for p in packages.values())

    def test_root_and_links_are_skipped(self, scanner: NpmLockScanner) -> None:
        """Test that the root entry and versionless links are not packages."""
        names = [p.name for p in scanner.scan()]
        assert "sample-app" not in names
        assert "" not in names
        assert "my-workspace" not in names

    def test_nested_dependency(self, scanner: NpmLockScanner) -> None:
        """Test that the express/accepts lock yields both with their licenses."""
        packages = {p.name: p for p in scanner.scan()}

        assert packages["express"].version == "4.18.2"
        assert packages["express"].license == "MIT"
        assert packages["accepts"].version == "1.3.8"
        assert packages["accepts"].license == "MIT"
        assert (
            packages["accepts"].source_url
            == "https://registry.npmjs.org/accepts/-/accepts-1.3.8.tgz"
        )

    def test_legacy_license_object(self, scanner: NpmLockScanner) -> None:
        """Test that {type: ...} licenses are read and missing resolved URLs default."""
        package = next(p for p in scanner.scan() if p.name == "legacy-lib")
        assert package.license == "BSD-3-Clause"
        assert package.source_url == "https://registry.npmjs.org"

    def test_accepts_without_license_is_unresolved(self, tmp_path: Path) -> None:
        """Test that a nested package without license stays unresolved."""
        lock = tmp_path / "package-lock.json"
        lock.write_text(
            json.dumps(
                {
                    "packages": {
                        "": {"name": "app", "version": "1.0.0"},
                        "node_modules/express": {"version": "4.18.2", "license": "MIT"},
                        "node_modules/express/node_modules/accepts": {"version": "1.3.8"},
                    }
                }
            )
        )

        packages = NpmLockScanner(lock).scan()

        assert [(p.name, p.version, p.license) for p in packages] == [
            ("express", "4.18.2", "MIT"),
            ("accepts", "1.3.8", None),
        ]

    def test_invalid_json_yields_nothing(self, tmp_path: Path) -> None:
        """Test that an unparseable document yields an empty list."""
        lock = tmp_path / "package-lock.json"
        lock.write_text("{ not json")
        assert NpmLockScanner(lock).scan() == []

    def test_missing_file_raises(self, tmp_path: Path) -> None:
        """Test that a missing lock file is reported."""
        with pytest.raises(FileNotFoundError, match="Lock file not found"):
            NpmLockScanner(tmp_path / "package-lock.json").scan()

    def test_missing_source_path_raises(self) -> None:
        """Test that scanning requires a path."""
        with pytest.raises(ValueError):
            NpmLockScanner().scan()


@pytest.mark.parametrize(
    "path, expected",
    [
        ("node_modules/express", "express"),
        ("node_modules/express/node_modules/accepts", "accepts"),
        ("node_modules/@types/node", "@types/node"),
        ("node_modules/a/node_modules/@scope/b", "@scope/b"),
    ],
)
def test_package_name_from_path(path: str, expected: str) -> None:
    """Test that the name is the tail after the last node_modules marker."""
    assert package_name_from_path(path) == expected
