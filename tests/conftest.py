"""Pytest configuration and fixtures."""

from pathlib import Path
from typing import Any, Callable, Optional

import pytest

from package_guard.models import Ecosystem, PackageRecord

FIXTURES_DIR = Path(__file__).parent / "fixtures"


@pytest.fixture
def fixtures_dir() -> Path:
    """Return the directory holding the sample lock files."""
    return FIXTURES_DIR


@pytest.fixture
def make_record() -> Callable[..., PackageRecord]:
    """Return a factory for PackageRecord objects with sensible defaults."""

    def _make(
        name: str = "express",
        version: str = "4.18.2",
        license: Optional[str] = "MIT",
        **kwargs: Any,
    ) -> PackageRecord:
        kwargs.setdefault("ecosystem", Ecosystem.NPM)
        kwargs.setdefault("source", "npm")
        kwargs.setdefault("source_url", "https://registry.npmjs.org")
        return PackageRecord(name=name, version=version, license=license, **kwargs)

    return _make


@pytest.fixture
def sample_github_license_response() -> dict[str, Any]:
    """Return a sample response of GitHub's repository license endpoint."""
    return {
        "name": "LICENSE",
        "path": "LICENSE",
        "html_url": "https://github.com/expressjs/express/blob/master/LICENSE",
        "download_url": "https://raw.githubusercontent.com/expressjs/express/master/LICENSE",
        "license": {
            "key": "mit",
            "name": "MIT License",
            "spdx_id": "MIT",
            "url": "https://api.github.com/licenses/mit",
        },
    }


@pytest.fixture
def sample_npm_version_document() -> dict[str, Any]:
    """Return a sample npm registry document for a package version."""
    return {
        "name": "accepts",
        "version": "1.3.8",
        "license": "MIT",
        "repository": {
            "type": "git",
            "url": "git+https://github.com/jshttp/accepts.git",
        },
    }
