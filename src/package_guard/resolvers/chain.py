"""License resolver chaining the fetchers in priority order.

This module implements the resolution strategy: GitHub repository metadata,
registry metadata, the license text heuristic and finally the known-package
overrides, each step only consulted while the license is still unknown.
"""

import asyncio
import logging
from collections.abc import Iterable
from typing import Optional

import aiohttp

from package_guard import __version__
from package_guard.models import UNKNOWN_LICENSE, PackageRecord
from package_guard.resolvers.base import BaseFetcher
from package_guard.resolvers.github import GitHubFetcher
from package_guard.resolvers.npm import NpmRegistryFetcher
from package_guard.resolvers.nuget import NuGetRegistryFetcher
from package_guard.resolvers.overrides import KnownPackageOverrides
from package_guard.resolvers.url import UrlLicenseFetcher

logger = logging.getLogger(__name__)


def default_fetchers(github_token: Optional[str] = None) -> list[BaseFetcher]:
    """Create the standard fetcher chain.

    Args:
        github_token: Optional GitHub personal access token.

    Returns:
        Unsorted list of fetchers.
    """
    return [
        GitHubFetcher(github_token),
        NpmRegistryFetcher(),
        NuGetRegistryFetcher(),
        UrlLicenseFetcher(),
        KnownPackageOverrides(),
    ]


class LicenseResolver:
    """Fills in missing license information of package records.

    Resolution strategy:
    1. Fetchers run in priority order while the record has no license.
    2. A fetcher marked ``runs_when_resolved`` runs regardless.
    3. When a step supplies a new repository URL while the license is still
       missing, repository-based fetchers that already ran are tried again
       with the new URL, once per URL.
    4. A record left without license gets the terminal "Unknown".

    The resolver owns one aiohttp session shared by all fetchers, unless a
    session is injected. Use as an async context manager or call close()
    when done.

    Attributes:
        fetchers: Fetchers sorted by priority.
        max_concurrency: Default bound on concurrent resolutions in a batch.
    """

    def __init__(
        self,
        github_token: Optional[str] = None,
        fetchers: Optional[list[BaseFetcher]] = None,
        session: Optional[aiohttp.ClientSession] = None,
        max_concurrency: int = 8,
    ) -> None:
        """Initialize the resolver.

        Args:
            github_token: Optional GitHub token, used by the default GitHub fetcher.
            fetchers: Optional custom fetchers. Defaults to default_fetchers().
            session: Optional externally managed session; it is not closed
                by this resolver.
            max_concurrency: Default bound on concurrent resolutions.
        """
        fetchers = fetchers if fetchers is not None else default_fetchers(github_token)
        self.fetchers = sorted(fetchers, key=lambda f: f.priority)
        self.max_concurrency = max_concurrency
        self._session = session
        self._owns_session = session is None

    async def _get_session(self) -> aiohttp.ClientSession:
        """Get or create the shared aiohttp session.

        Returns:
            The shared aiohttp ClientSession.
        """
        if self._session is None or self._session.closed:
            # Enable DNS cache to reduce latency for repeated host lookups
            connector = aiohttp.TCPConnector(ttl_dns_cache=300)
            self._session = aiohttp.ClientSession(
                connector=connector,
                timeout=aiohttp.ClientTimeout(total=10),
                headers={"User-Agent": f"package-guard/{__version__}"},
            )
            self._owns_session = True
        return self._session

    async def close(self) -> None:
        """Close the aiohttp session if this resolver created it."""
        if self._owns_session and self._session is not None and not self._session.closed:
            await self._session.close()
        self._session = None

    async def __aenter__(self) -> "LicenseResolver":
        """Async context manager entry."""
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        """Async context manager exit."""
        await self.close()

    async def resolve(self, record: PackageRecord) -> PackageRecord:
        """Resolve the license of a record in place.

        A record that already has a license is returned untouched.

        Args:
            record: Record to resolve.

        Returns:
            The same record, with a license that is never None.
        """
        if record.license is not None:
            return record

        logger.debug("Starting license resolution for %s@%s", record.name, record.version)
        session = await self._get_session()
        # (fetcher, repository URL) pairs already tried
        attempted: set[tuple[int, Optional[str]]] = set()
        ran: list[BaseFetcher] = []

        for fetcher in self.fetchers:
            if record.license is not None and not fetcher.runs_when_resolved:
                continue

            attempted.add((id(fetcher), record.repository_url))
            repository_url = record.repository_url
            await fetcher.fetch(session, record)
            ran.append(fetcher)

            if record.license is not None or record.repository_url == repository_url:
                continue

            for earlier in ran[:-1]:
                attempt = (id(earlier), record.repository_url)
                if not earlier.uses_repository or attempt in attempted:
                    continue

                attempted.add(attempt)
                logger.debug("Retrying %s with repository %s", earlier.name, record.repository_url)
                await earlier.fetch(session, record)

                if record.license is not None:
                    break

        if record.license is None:
            logger.warning(
                "Unable to determine license for package %s %s", record.name, record.version
            )
            record.license = UNKNOWN_LICENSE
        else:
            logger.info("License found for %s: %s", record.name, record.license)

        return record

    async def resolve_batch(
        self, records: Iterable[PackageRecord], max_concurrency: Optional[int] = None
    ) -> list[PackageRecord]:
        """Resolve multiple records concurrently.

        Concurrency is bounded by a semaphore. An exception while resolving
        one record is logged and leaves that record "Unknown"; it does not
        stop the rest of the batch.

        Args:
            records: Records to resolve.
            max_concurrency: Bound on concurrent resolutions; defaults to
                the resolver's own setting.

        Returns:
            The same records, in order, all with a license.
        """
        records = list(records)
        semaphore = asyncio.Semaphore(max_concurrency or self.max_concurrency)

        logger.info("Starting batch resolution of %d packages", len(records))

        async def _resolve(record: PackageRecord) -> PackageRecord:
            async with semaphore:
                return await self.resolve(record)

        results = await asyncio.gather(
            *(_resolve(record) for record in records), return_exceptions=True
        )

        for record, result in zip(records, results):
            if isinstance(result, Exception):
                # Log the exception but don't let it stop other resolutions
                logger.error(
                    "Exception resolving %s %s: %s", record.name, record.version, result
                )
                if record.license is None:
                    record.license = UNKNOWN_LICENSE

        resolved = sum(1 for record in records if record.license != UNKNOWN_LICENSE)
        logger.info("Batch resolution complete: %d/%d resolved", resolved, len(records))

        return records
