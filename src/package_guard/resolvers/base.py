"""Base interface for license fetchers.

Fetchers are the individual steps of the license resolution chain. Each one
consults a single data source such as the GitHub API, a package registry or
the text behind a license URL, and fills in whatever fields of a
PackageRecord are still missing.
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from typing import Any, Optional

import aiohttp

from package_guard.models import PackageRecord

logger = logging.getLogger(__name__)


class BaseFetcher(ABC):
    """Abstract base class for license fetchers.

    Fetchers mutate the record they are given and never overwrite a field
    that is already set, so that earlier, more reliable sources win. The
    HTTP session is owned by the resolver chain and passed in on each call.
    """

    #: Whether the fetcher must run even when the license is already known.
    runs_when_resolved: bool = False

    #: Whether the fetcher derives the license from the repository URL, and
    #: thus deserves another attempt when a later step supplies one.
    uses_repository: bool = False

    @abstractmethod
    async def fetch(self, session: aiohttp.ClientSession, record: PackageRecord) -> None:
        """Amend a package record with information from this source.

        Args:
            session: Shared HTTP session.
            record: Record to amend in place.
        """
        ...

    @property
    @abstractmethod
    def name(self) -> str:
        """Return the fetcher name for logging/debugging.

        Returns:
            Name like "GitHub", "npm registry", etc.
        """
        ...

    @property
    def priority(self) -> int:
        """Return fetcher priority for chain ordering.

        Lower numbers are tried first. Default is 100.

        Returns:
            Priority value.
        """
        return 100

    async def _get_json(
        self,
        session: aiohttp.ClientSession,
        url: str,
        headers: Optional[dict[str, str]] = None,
    ) -> Optional[Any]:
        """GET a JSON document, returning None on any failure.

        Args:
            session: Shared HTTP session.
            url: URL to fetch.
            headers: Optional request headers.

        Returns:
            The decoded JSON document, or None if it could not be fetched.
        """
        logger.debug("%s: fetching %s", self.name, url)

        try:
            async with session.get(url, headers=headers) as response:
                if response.status == 404:
                    logger.debug("%s: %s not found", self.name, url)
                    return None

                if response.status != 200:
                    logger.warning(
                        "%s returned status %d for %s", self.name, response.status, url
                    )
                    return None

                return await response.json(content_type=None)

        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            logger.warning("%s: network error fetching %s: %s", self.name, url, e)
            return None
        except ValueError as e:
            logger.warning("%s: invalid JSON from %s: %s", self.name, url, e)
            return None
