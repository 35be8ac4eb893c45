"""Tests for the pnpm-lock.yaml scanner."""

from pathlib import Path

import pytest

from package_guard.scanners.pnpm import PnpmLockScanner, parse_package_key


class TestPnpmLockScanner:
    """Test suite for PnpmLockScanner."""

    @pytest.fixture
    def scanner(self, fixtures_dir: Path) -> PnpmLockScanner:
        """Create a PnpmLockScanner for the fixture."""
        return PnpmLockScanner(fixtures_dir / "pnpm" / "pnpm-lock.yaml")

    def test_can_handle(self, tmp_path: Path) -> None:
        """Test that only pnpm-lock.yaml is handled."""
        assert PnpmLockScanner.can_handle(tmp_path / "pnpm-lock.yaml")
        assert not PnpmLockScanner.can_handle(tmp_path / "yarn.lock")

    def test_scan_fixture(self, scanner: PnpmLockScanner) -> None:
        """Test that all packages are read with peer suffixes stripped."""
        packages = {p.name: p for p in scanner.scan()}

        assert set(packages) == {"express", "@babel/core", "local-lib"}
        assert packages["@babel/core"].version == "7.23.0"
        assert packages["express"].version == "4.18.2"

    def test_source_url_depends_on_integrity(self, scanner: PnpmLockScanner) -> None:
        """Test registry tarball URLs for integrity-pinned packages only."""
        packages = {p.name: p for p in scanner.scan()}

        assert packages["express"].source_url == (
            "https://registry.npmjs.org/express/-/express-4.18.2.tgz"
        )
        assert packages["@babel/core"].source_url == (
            "https://registry.npmjs.org/@babel/core/-/core-7.23.0.tgz"
        )
        assert packages["local-lib"].source_url == "https://registry.npmjs.org"

    def test_document_without_packages(self, tmp_path: Path) -> None:
        """Test that a lock file with no packages section yields nothing."""
        lock = tmp_path / "pnpm-lock.yaml"
        lock.write_text("lockfileVersion: '6.0'\n")
        assert PnpmLockScanner(lock).scan() == []

    def test_invalid_yaml_yields_nothing(self, tmp_path: Path) -> None:
        """Test that unparseable YAML yields an empty list."""
        lock = tmp_path / "pnpm-lock.yaml"
        lock.write_text("packages: [unclosed\n")
        assert PnpmLockScanner(lock).scan() == []

    def test_missing_file_raises(self, tmp_path: Path) -> None:
        """Test that a missing lock file is reported."""
        with pytest.raises(FileNotFoundError):
            PnpmLockScanner(tmp_path / "pnpm-lock.yaml").scan()


@pytest.mark.parametrize(
    "key, expected",
    [
        ("/express@4.18.2", ("express", "4.18.2")),
        ("/@babel/core@7.23.0(supports-color@8.1.1)", ("@babel/core", "7.23.0")),
        ("express@4.18.2", ("express", "4.18.2")),
        ("/@types/node@20.8.0", ("@types/node", "20.8.0")),
        ("/no-version", None),
        ("/trailing@", None),
    ],
)
def test_parse_package_key(key: str, expected) -> None:
    """Test splitting pnpm package keys."""
    assert parse_package_key(key) == expected
