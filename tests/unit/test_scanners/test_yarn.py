"""Tests for the Yarn lock file scanners."""

from pathlib import Path

import pytest

from package_guard.scanners.yarn import YarnBerryScanner, YarnV1Scanner, tarball_url


class TestYarnV1Scanner:
    """Test suite for YarnV1Scanner."""

    @pytest.fixture
    def lock_path(self, fixtures_dir: Path) -> Path:
        """Return path to the Yarn v1 fixture."""
        return fixtures_dir / "yarn_v1" / "yarn.lock"

    def test_can_handle(self, lock_path: Path, fixtures_dir: Path) -> None:
        """Test that v1 lock files are recognized and berry ones are not."""
        assert YarnV1Scanner.can_handle(lock_path)
        assert not YarnV1Scanner.can_handle(fixtures_dir / "yarn_berry" / "yarn.lock")

    def test_scan_fixture(self, lock_path: Path) -> None:
        """Test that all blocks of the fixture are read."""
        packages = {p.name: p for p in YarnV1Scanner(lock_path).scan()}

        assert set(packages) == {"@babel/core", "debug", "ms"}
        assert packages["debug"].version == "4.3.4"
        assert packages["ms"].version == "2.1.2"

    def test_scoped_package_with_multiple_descriptors(self) -> None:
        """Test the @babel/core block with two descriptors and a resolved URL."""
        content = (
            '"@babel/core@^7.0.0", "@babel/core@^7.1.0":\n'
            '  version "7.23.0"\n'
            '  resolved "https://registry.yarnpkg.com/@babel/core/-/core-7.23.0.tgz"\n'
        )

        packages = YarnV1Scanner().parse(content)

        assert len(packages) == 1
        assert packages[0].name == "@babel/core"
        assert packages[0].version == "7.23.0"
        assert packages[0].source_url == (
            "https://registry.yarnpkg.com/@babel/core/-/core-7.23.0.tgz"
        )

    def test_nested_dependencies_are_not_properties(self) -> None:
        """Test that a dependency named version does not override the block's version."""
        content = (
            "foo@^1.0.0:\n"
            '  version "1.2.0"\n'
            "  dependencies:\n"
            '    version "9.9.9"\n'
        )
        packages = YarnV1Scanner().parse(content)
        assert packages[0].version == "1.2.0"

    def test_missing_resolved_builds_tarball_url(self) -> None:
        """Test the synthetic resolved URL."""
        packages = YarnV1Scanner().parse('ms@2.1.2:\n  version "2.1.2"\n')
        assert packages[0].source_url == "https://registry.yarnpkg.com/ms/-/ms-2.1.2.tgz"

    def test_block_without_version_is_skipped(self) -> None:
        """Test that incomplete blocks are dropped."""
        content = 'broken@^1.0.0:\n  resolved "https://x"\n\nok@1.0.0:\n  version "1.0.0"\n'
        assert [p.name for p in YarnV1Scanner().parse(content)] == ["ok"]

    @pytest.mark.parametrize(
        "line, expected",
        [
            ('"@babel/core@^7.0.0", "@babel/core@^7.1.0":', "@babel/core"),
            ("debug@^4.1.0:", "debug"),
            ('"lodash@npm:^4.17.0":', "lodash"),
            ("no-version:", None),
        ],
    )
    def test_parse_declaration(self, line: str, expected) -> None:
        """Test package name extraction from declarations."""
        assert YarnV1Scanner.parse_declaration(line) == expected


class TestYarnBerryScanner:
    """Test suite for YarnBerryScanner."""

    @pytest.fixture
    def lock_path(self, fixtures_dir: Path) -> Path:
        """Return path to the Yarn v2 fixture."""
        return fixtures_dir / "yarn_berry" / "yarn.lock"

    def test_can_handle(self, lock_path: Path, fixtures_dir: Path) -> None:
        """Test that berry lock files are recognized and v1 ones are not."""
        assert YarnBerryScanner.can_handle(lock_path)
        assert not YarnBerryScanner.can_handle(fixtures_dir / "yarn_v1" / "yarn.lock")

    def test_scan_fixture(self, lock_path: Path) -> None:
        """Test versions from the version field and from the resolution."""
        packages = {p.name: p for p in YarnBerryScanner(lock_path).scan()}

        assert set(packages) == {"@babel/core", "express"}
        assert packages["@babel/core"].version == "7.23.0"
        assert packages["express"].version == "4.18.2"
        assert packages["express"].source_url == (
            "https://registry.yarnpkg.com/express/-/express-4.18.2.tgz"
        )

    def test_invalid_yaml_yields_nothing(self) -> None:
        """Test that an unparseable document yields an empty list."""
        assert YarnBerryScanner().parse("__metadata:\n  version: [unclosed\n") == []

    @pytest.mark.parametrize(
        "key, expected",
        [
            ("express@npm:^4.18.2", "express"),
            ("@babel/core@npm:^7.0.0, @babel/core@npm:^7.1.0", "@babel/core"),
            ("invalid", None),
        ],
    )
    def test_parse_descriptor(self, key: str, expected) -> None:
        """Test package name extraction from descriptors."""
        assert YarnBerryScanner.parse_descriptor(key) == expected


def test_tarball_url_uses_basename_for_scoped_packages() -> None:
    """Test the conventional tarball URL layout."""
    assert tarball_url("@babel/core", "7.23.0") == (
        "https://registry.yarnpkg.com/@babel/core/-/core-7.23.0.tgz"
    )
