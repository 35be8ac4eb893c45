"""Catalog of the packages known to a run.

The catalog holds two sets of records: the in-run set, containing one
record per identity that the current run has seen, and the cache arena,
containing the records loaded from the persistent cache. Lookups consult
the in-run set first and promote accepted cache hits into it.
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable, Iterable, Iterator
from typing import Optional

from package_guard.models import PackageIdentity, PackageRecord

logger = logging.getLogger(__name__)


def _identity(name: str, version: str, case_insensitive: bool) -> PackageIdentity:
    return PackageIdentity(name=name.lower() if case_insensitive else name, version=version)


class PackageCatalog:
    """Deduplicated set of package records with a cache arena behind it.

    Invariant: at most one record per identity in the in-run set; the
    first record added for an identity wins.
    """

    def __init__(self) -> None:
        self._records: dict[PackageIdentity, PackageRecord] = {}
        self._cached: dict[PackageIdentity, PackageRecord] = {}
        self._pending: dict[PackageIdentity, asyncio.Task] = {}

    def __iter__(self) -> Iterator[PackageRecord]:
        return iter(list(self._records.values()))

    def __len__(self) -> int:
        return len(self._records)

    def __contains__(self, record: object) -> bool:
        return isinstance(record, PackageRecord) and record.key in self._records

    def add(self, record: PackageRecord) -> PackageRecord:
        """Add a record to the in-run set.

        When the identity is already present, the existing record is kept
        and returned. A record without license borrows the license of a
        member that shares its license URL.

        Args:
            record: Record to add.

        Returns:
            The canonical record for the identity.
        """
        existing = self._records.get(record.key)
        if existing is not None:
            if existing.source_url != record.source_url:
                logger.debug(
                    "%s already known from %s, ignoring %s",
                    record.key,
                    existing.source_url,
                    record.source_url,
                )
            return existing

        if record.license is None and record.license_url:
            for member in self._records.values():
                if member.license is not None and member.license_url == record.license_url:
                    record.license = member.license
                    break

        self._records[record.key] = record
        return record

    def find(
        self,
        name: str,
        version: str,
        eligible_sources: Optional[Iterable[str]] = None,
    ) -> Optional[PackageRecord]:
        """Look up a record by identity.

        Args:
            name: Package name.
            version: Exact version.
            eligible_sources: Optional feed URLs a cached record must come
                from to be accepted.

        Returns:
            The record from the in-run set or the cache arena, or None.
        """
        for case_insensitive in (False, True):
            key = _identity(name, version, case_insensitive)

            record = self._records.get(key)
            if record is not None and record.matches_name(name):
                return record

            cached = self._cached.get(key)
            if cached is None or not cached.matches_name(name):
                continue

            if eligible_sources is not None and cached.source_url not in set(eligible_sources):
                logger.info(
                    "Ignoring cached %s from %s, which is not one of the project's sources",
                    key,
                    cached.source_url,
                )
                return None

            return self.add(cached)

        return None

    def clear(self) -> None:
        """Drop the in-run set, keeping the cache arena."""
        self._records.clear()

    def load_cached(self, records: Iterable[PackageRecord]) -> None:
        """Fill the cache arena with records loaded from the persistent cache."""
        for record in records:
            self._cached.setdefault(record.key, record)

    def cached_records(self) -> list[PackageRecord]:
        return list(self._cached.values())

    def used_records(self) -> list[PackageRecord]:
        """Return every record the current run touched, in-run and cached."""
        used = {key: record for key, record in self._cached.items() if record.used}
        used.update((key, record) for key, record in self._records.items() if record.used)
        return list(used.values())

    async def resolve_once(
        self,
        record: PackageRecord,
        resolve: Callable[[PackageRecord], Awaitable[PackageRecord]],
    ) -> PackageRecord:
        """Resolve a record, coalescing concurrent calls for the same identity.

        The first caller starts the resolution; later callers for the same
        identity await the same task instead of resolving again.

        Args:
            record: Record to resolve.
            resolve: Coroutine function resolving a record in place.

        Returns:
            The canonical, resolved record.
        """
        record = self.add(record)
        if record.is_resolved:
            return record

        task = self._pending.get(record.key)
        if task is None:
            task = asyncio.ensure_future(resolve(record))
            self._pending[record.key] = task
            task.add_done_callback(lambda _: self._pending.pop(record.key, None))

        return await task
