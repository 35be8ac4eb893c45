"""Corrections for packages known to publish wrong or missing metadata."""

import logging

import aiohttp

from package_guard.models import PackageRecord
from package_guard.resolvers.base import BaseFetcher

logger = logging.getLogger(__name__)

# Packages whose license must be replaced, with their actual repository
LICENSE_OVERRIDES = {
    "netstandard.library": ("MIT", "https://github.com/dotnet/standard"),
}

# Packages whose repository URL does not point to their GitHub repository
REPOSITORY_OVERRIDES = {
    "nunit": "https://github.com/nunit/nunit",
}


class KnownPackageOverrides(BaseFetcher):
    """Applies the override tables.

    This is the only fetcher that may replace a license that is already
    set, so it runs even for resolved records.
    """

    runs_when_resolved = True

    @property
    def name(self) -> str:
        return "Known package overrides"

    @property
    def priority(self) -> int:
        return 80

    async def fetch(self, session: aiohttp.ClientSession, record: PackageRecord) -> None:
        key = record.name.lower()

        repository_url = REPOSITORY_OVERRIDES.get(key)
        if repository_url and not (record.repository_url or "").lower().startswith(
            "https://github.com"
        ):
            logger.debug("Correcting repository URL of %s to %s", record, repository_url)
            record.repository_url = repository_url

        if key in LICENSE_OVERRIDES:
            license, repository_url = LICENSE_OVERRIDES[key]
            logger.debug("Overriding license of %s with %s", record, license)
            record.license = license
            record.repository_url = repository_url
