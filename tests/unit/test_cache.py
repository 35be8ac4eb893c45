"""Tests for the SQLite package cache."""

import sqlite3
from pathlib import Path

import pytest

from package_guard.cache import CACHE_FORMAT_VERSION, PackageCache
from package_guard.catalog import PackageCatalog
from package_guard.models import Ecosystem, RiskDimensions
from package_guard.risk import RiskEvaluator


@pytest.fixture
def cache_path(tmp_path: Path) -> Path:
    """Return a path for a cache file inside a not yet existing directory."""
    return tmp_path / ".packageguard" / "cache.db"


def _used_catalog(make_record, *names: str) -> PackageCatalog:
    catalog = PackageCatalog()
    for name in names:
        catalog.add(make_record(name=name)).track_as_used_in_project("app")
    return catalog


def test_round_trip(cache_path, make_record):
    """Test that written records are loaded back with the same identity and license."""
    catalog = PackageCatalog()
    record = catalog.add(
        make_record(
            name="Newtonsoft.Json",
            version="13.0.3",
            license="MIT",
            ecosystem=Ecosystem.NUGET,
            license_url="https://licenses.nuget.org/MIT",
            repository_url="https://github.com/JamesNK/Newtonsoft.Json",
            source="nuget.org",
            source_url="https://api.nuget.org/v3/index.json",
        )
    )
    record.track_as_used_in_project("App")
    PackageCache(cache_path).write_back(catalog)

    loaded = PackageCatalog()
    PackageCache(cache_path).try_load(loaded)

    found = loaded.find("newtonsoft.json", "13.0.3")
    assert found is not None
    assert found.license == "MIT"
    assert found.ecosystem is Ecosystem.NUGET
    assert found.license_url == "https://licenses.nuget.org/MIT"
    assert found.repository_url == "https://github.com/JamesNK/Newtonsoft.Json"
    assert found.source_url == "https://api.nuget.org/v3/index.json"
    assert not found.used


def test_risk_is_persisted(cache_path, make_record):
    """Test that evaluated risk dimensions survive a round trip."""
    catalog = PackageCatalog()
    record = catalog.add(make_record(name="left-pad", version="1.3.0", license="WTFPL"))
    record.track_as_used_in_project("app")
    RiskEvaluator().evaluate(record)
    PackageCache(cache_path).write_back(catalog)

    loaded = PackageCatalog()
    PackageCache(cache_path).try_load(loaded)

    found = loaded.find("left-pad", "1.3.0")
    assert found is not None
    assert found.risk_dimensions == RiskDimensions(
        legal_risk=2.0, security_risk=7.0, operational_risk=3.0
    )
    assert found.risk_score == pytest.approx(40.0)


def test_unevaluated_risk_stays_empty(cache_path, make_record):
    """Test that records written without risk load without risk."""
    PackageCache(cache_path).write_back(_used_catalog(make_record, "express"))

    loaded = PackageCatalog()
    PackageCache(cache_path).try_load(loaded)

    found = loaded.find("express", "4.18.2")
    assert found is not None
    assert found.risk_dimensions is None
    assert found.risk_score is None


def test_write_back_persists_only_used_records(cache_path, make_record):
    """Test that records not used by the run are evicted."""
    catalog = _used_catalog(make_record, "express")
    catalog.add(make_record(name="unused"))
    PackageCache(cache_path).write_back(catalog)

    loaded = PackageCatalog()
    PackageCache(cache_path).try_load(loaded)

    assert [r.name for r in loaded.cached_records()] == ["express"]


def test_unused_cached_records_are_evicted(cache_path, make_record):
    """Test that a cached record no project used is dropped on the next write."""
    PackageCache(cache_path).write_back(_used_catalog(make_record, "express", "left-pad"))

    catalog = PackageCatalog()
    cache = PackageCache(cache_path)
    cache.try_load(catalog)
    catalog.find("express", "4.18.2").track_as_used_in_project("app")
    cache.write_back(catalog)

    reloaded = PackageCatalog()
    PackageCache(cache_path).try_load(reloaded)
    assert [r.name for r in reloaded.cached_records()] == ["express"]


def test_try_load_is_idempotent(cache_path, make_record):
    """Test that a second load does not reload the file."""
    PackageCache(cache_path).write_back(_used_catalog(make_record, "express"))

    cache = PackageCache(cache_path)
    first = PackageCatalog()
    cache.try_load(first)
    second = PackageCatalog()
    cache.try_load(second)

    assert len(first.cached_records()) == 1
    assert second.cached_records() == []


def test_missing_file_is_empty_cache(cache_path):
    """Test that a missing cache loads nothing."""
    catalog = PackageCatalog()
    PackageCache(cache_path).try_load(catalog)
    assert catalog.cached_records() == []


def test_corrupt_file_is_empty_cache(tmp_path, caplog):
    """Test that a file that is not a database is ignored with a warning."""
    path = tmp_path / "cache.db"
    path.write_bytes(b"this is not a sqlite database at all" * 10)

    catalog = PackageCatalog()
    PackageCache(path).try_load(catalog)

    assert catalog.cached_records() == []
    assert "Failed to load package cache" in caplog.text


def test_format_version_mismatch_is_empty_cache(cache_path, make_record, caplog):
    """Test that caches written by another format version are ignored."""
    PackageCache(cache_path).write_back(_used_catalog(make_record, "express"))
    conn = sqlite3.connect(cache_path)
    conn.execute(f"PRAGMA user_version = {CACHE_FORMAT_VERSION + 1}")
    conn.close()

    catalog = PackageCatalog()
    PackageCache(cache_path).try_load(catalog)

    assert catalog.cached_records() == []
    assert "format version" in caplog.text


def test_write_failure_is_swallowed(tmp_path, make_record, caplog):
    """Test that a cache that cannot be written only logs a warning."""
    blocker = tmp_path / "blocker"
    blocker.write_text("a file where a directory should be")

    PackageCache(blocker / "cache.db").write_back(_used_catalog(make_record, "express"))

    assert "Failed to write package cache" in caplog.text


def test_info_and_clear(cache_path, make_record):
    """Test cache statistics and clearing."""
    cache = PackageCache(cache_path)
    assert cache.info()["count"] == 0

    cache.write_back(_used_catalog(make_record, "express", "accepts"))
    info = cache.info()
    assert info["count"] == 2
    assert info["path"] == str(cache_path)
    assert info["size_bytes"] > 0

    cache.clear()
    assert cache.info()["count"] == 0
