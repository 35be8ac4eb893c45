"""NuGet registry fetcher.

Resolves license metadata of nuget.org packages through the NuGet v3
registration resource: the registration leaf of a package version points to
its catalog entry, which carries the ``licenseExpression``, ``licenseUrl``
and ``projectUrl`` of the package's nuspec.
"""

import logging
from typing import Optional
from urllib.parse import urlparse

import aiohttp

from package_guard.licenses import normalize_license
from package_guard.models import Ecosystem, PackageRecord
from package_guard.resolvers.base import BaseFetcher
from package_guard.resolvers.npm import clean_repository_url, github_license_url

logger = logging.getLogger(__name__)

NUGET_REGISTRATION_URL = "https://api.nuget.org/v3/registration5-semver1"

# licenseUrl placeholder nuget.org stores for packages using a license expression
_DEPRECATED_LICENSE_URL = "https://aka.ms/deprecateLicenseUrl"


def _is_nuget_org(source_url: str) -> bool:
    return not source_url or urlparse(source_url).netloc.lower() == "api.nuget.org"


class NuGetRegistryFetcher(BaseFetcher):
    """Fetcher for packages published on nuget.org.

    Packages restored from other feeds are left alone, so private package
    names never leave the network.
    """

    def __init__(self, registration_url: str = NUGET_REGISTRATION_URL) -> None:
        self.registration_url = registration_url.rstrip("/")

    @property
    def name(self) -> str:
        return "NuGet registry"

    @property
    def priority(self) -> int:
        return 40

    async def _catalog_entry(
        self, session: aiohttp.ClientSession, record: PackageRecord
    ) -> Optional[dict]:
        leaf = await self._get_json(
            session,
            f"{self.registration_url}/{record.name.lower()}/{record.version.lower()}.json",
        )
        if not isinstance(leaf, dict):
            return None

        entry = leaf.get("catalogEntry")
        if isinstance(entry, str):
            entry = await self._get_json(session, entry)

        return entry if isinstance(entry, dict) else None

    async def fetch(self, session: aiohttp.ClientSession, record: PackageRecord) -> None:
        if record.ecosystem is not Ecosystem.NUGET:
            return

        if not _is_nuget_org(record.source_url):
            logger.debug("Skipping %s, which comes from %s", record, record.source_url)
            return

        entry = await self._catalog_entry(session, record)
        if entry is None:
            return

        if record.license is None:
            record.license = normalize_license(entry.get("licenseExpression") or None)

        license_url = entry.get("licenseUrl")
        if record.license_url is None and license_url and license_url != _DEPRECATED_LICENSE_URL:
            record.license_url = license_url

        project_url = entry.get("projectUrl")
        if record.repository_url is None and isinstance(project_url, str) and project_url:
            record.repository_url = clean_repository_url(project_url)

        if record.license_url is None and record.repository_url:
            record.license_url = github_license_url(record.repository_url)
