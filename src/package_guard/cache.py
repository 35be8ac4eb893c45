"""SQLite-based cache of resolved package records.

This module persists the records of a run so that later runs can skip
license resolution for packages they have already seen. Only records that
were used by the last run are written back, so packages that drop out of
every analyzed project are evicted automatically.
"""

import contextlib
import logging
import sqlite3
from pathlib import Path
from typing import Optional

from package_guard.catalog import PackageCatalog
from package_guard.models import CacheEntry, PackageRecord

logger = logging.getLogger(__name__)

# Bump whenever the table layout changes; older caches are then ignored
CACHE_FORMAT_VERSION = 2


class PackageCache:
    """SQLite cache for package records between runs.

    Attributes:
        db_path: Path to the SQLite database file.
    """

    def __init__(self, db_path: Path) -> None:
        """Initialize the package cache.

        Args:
            db_path: Path to the SQLite database. Created on first write.
        """
        self.db_path = Path(db_path)
        self._loaded = False

    @contextlib.contextmanager
    def _connect(self):
        """Open a connection, committing on success and closing afterwards."""
        conn = sqlite3.connect(self.db_path)
        try:
            with conn:
                yield conn
        finally:
            conn.close()

    @staticmethod
    def _create_schema(conn: sqlite3.Connection) -> None:
        conn.execute(
            """
            CREATE TABLE IF NOT EXISTS packages (
                ecosystem TEXT NOT NULL,
                name TEXT NOT NULL,
                version TEXT NOT NULL,
                license TEXT,
                license_url TEXT,
                repository_url TEXT,
                source TEXT NOT NULL,
                source_url TEXT NOT NULL,
                legal_risk REAL,
                security_risk REAL,
                operational_risk REAL,
                risk_score REAL,
                PRIMARY KEY (ecosystem, name, version)
            )
            """
        )

    def _read(self) -> Optional[list[PackageRecord]]:
        """Read all records, or None if the file is not a usable cache."""
        with self._connect() as conn:
            format_version = conn.execute("PRAGMA user_version").fetchone()[0]
            if format_version != CACHE_FORMAT_VERSION:
                logger.warning(
                    "Ignoring cache %s with format version %d (expected %d)",
                    self.db_path,
                    format_version,
                    CACHE_FORMAT_VERSION,
                )
                return None

            rows = conn.execute(
                """
                SELECT name, version, ecosystem, license, license_url,
                       repository_url, source, source_url, legal_risk,
                       security_risk, operational_risk, risk_score
                FROM packages
                """
            ).fetchall()

        records = []
        for row in rows:
            try:
                records.append(CacheEntry(*row).to_record())
            except ValueError as e:
                logger.warning("Skipping invalid cache entry %s: %s", row[:2], e)
        return records

    def try_load(self, catalog: PackageCatalog) -> None:
        """Load the cached records into the catalog's cache arena.

        Only the first call has an effect. A missing, outdated or corrupt
        cache is treated as empty.

        Args:
            catalog: Catalog to fill.
        """
        if self._loaded:
            return
        self._loaded = True

        if not self.db_path.exists():
            logger.info("No package cache found at %s", self.db_path)
            return

        try:
            records = self._read()
        except sqlite3.Error as e:
            logger.warning("Failed to load package cache %s: %s", self.db_path, e)
            return

        if records is None:
            return

        catalog.load_cached(records)
        logger.info("Loaded %d cached packages from %s", len(records), self.db_path)

    def write_back(self, catalog: PackageCatalog) -> None:
        """Replace the cached records with those the current run used.

        Failures are logged and otherwise ignored.

        Args:
            catalog: Catalog whose used records are persisted.
        """
        entries = [record.to_cache_entry() for record in catalog.used_records()]

        try:
            self.db_path.parent.mkdir(parents=True, exist_ok=True)
            with self._connect() as conn:
                conn.execute("DROP TABLE IF EXISTS packages")
                self._create_schema(conn)
                conn.executemany(
                    """
                    INSERT OR REPLACE INTO packages
                    (name, version, ecosystem, license, license_url,
                     repository_url, source, source_url, legal_risk,
                     security_risk, operational_risk, risk_score)
                    VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                    """,
                    [
                        (
                            entry.name,
                            entry.version,
                            entry.ecosystem,
                            entry.license,
                            entry.license_url,
                            entry.repository_url,
                            entry.source,
                            entry.source_url,
                            entry.legal_risk,
                            entry.security_risk,
                            entry.operational_risk,
                            entry.risk_score,
                        )
                        for entry in entries
                    ],
                )
                conn.execute(f"PRAGMA user_version = {CACHE_FORMAT_VERSION}")
        except (sqlite3.Error, OSError) as e:
            logger.warning("Failed to write package cache %s: %s", self.db_path, e)
            return

        logger.info("Wrote %d packages to cache %s", len(entries), self.db_path)

    def clear(self) -> None:
        """Remove all cached records."""
        if not self.db_path.exists():
            return

        with self._connect() as conn:
            conn.execute("DROP TABLE IF EXISTS packages")
            self._create_schema(conn)
            conn.execute(f"PRAGMA user_version = {CACHE_FORMAT_VERSION}")

    def info(self) -> dict:
        """Get cache statistics.

        Returns:
            Dictionary with cache information:
                - path: Path to cache database file
                - count: Number of cached entries
                - size_bytes: Database file size in bytes
        """
        count = 0
        if self.db_path.exists():
            try:
                with self._connect() as conn:
                    count = conn.execute("SELECT COUNT(*) FROM packages").fetchone()[0]
            except sqlite3.Error as e:
                logger.warning("Failed to read package cache %s: %s", self.db_path, e)

        size_bytes = self.db_path.stat().st_size if self.db_path.exists() else 0

        return {
            "path": str(self.db_path),
            "count": count,
            "size_bytes": size_bytes,
        }
