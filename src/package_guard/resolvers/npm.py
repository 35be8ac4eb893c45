"""npm registry fetcher.

Fetches license, repository URL and a best-effort license URL from the
version document of the public npm registry.
"""

import logging
from typing import Any, Optional

import aiohttp

from package_guard.licenses import normalize_license
from package_guard.models import NPM_REGISTRY_URL, Ecosystem, PackageRecord
from package_guard.resolvers.base import BaseFetcher

logger = logging.getLogger(__name__)


def clean_repository_url(url: str) -> str:
    """Turn a package.json repository URL into a browsable https URL.

    Examples:
        >>> clean_repository_url("git+https://github.com/expressjs/express.git")
        'https://github.com/expressjs/express'
        >>> clean_repository_url("git://github.com/jshttp/accepts.git")
        'https://github.com/jshttp/accepts'
        >>> clean_repository_url("github:babel/babel")
        'https://github.com/babel/babel'
    """
    url = url.strip()

    if url.startswith("github:"):
        url = "https://github.com/" + url[len("github:"):]
    elif url.startswith("git@github.com:"):
        url = "https://github.com/" + url[len("git@github.com:"):]

    if url.startswith("git+"):
        url = url[len("git+"):]
    if url.startswith("git://"):
        url = "https://" + url[len("git://"):]
    if url.startswith("ssh://git@"):
        url = "https://" + url[len("ssh://git@"):]

    url = url.rstrip("/")
    if url.endswith(".git"):
        url = url[:-4]

    return url


def github_license_url(repository_url: str) -> Optional[str]:
    """Guess the LICENSE file location of a GitHub repository."""
    if "github.com" not in repository_url:
        return None
    return f"{repository_url.rstrip('/')}/blob/master/LICENSE"


def _license_field(document: dict[str, Any]) -> Optional[str]:
    value = document.get("license")
    if isinstance(value, dict):
        value = value.get("type")

    # Deprecated "licenses": [{"type": "MIT", "url": ...}]
    if value is None and isinstance(document.get("licenses"), list) and document["licenses"]:
        first = document["licenses"][0]
        value = first.get("type") if isinstance(first, dict) else first

    return value if isinstance(value, str) else None


def _repository_field(document: dict[str, Any]) -> Optional[str]:
    value = document.get("repository")
    if isinstance(value, dict):
        value = value.get("url")
    return clean_repository_url(value) if isinstance(value, str) and value else None


class NpmRegistryFetcher(BaseFetcher):
    """Fetcher for the npm registry's ``/{name}/{version}`` documents.

    Only fields that are still missing are filled in.
    """

    def __init__(self, registry_url: str = NPM_REGISTRY_URL) -> None:
        self.registry_url = registry_url.rstrip("/")

    @property
    def name(self) -> str:
        return "npm registry"

    @property
    def priority(self) -> int:
        return 40

    async def fetch(self, session: aiohttp.ClientSession, record: PackageRecord) -> None:
        if record.ecosystem is not Ecosystem.NPM:
            return

        document = await self._get_json(
            session, f"{self.registry_url}/{record.name}/{record.version}"
        )
        if not isinstance(document, dict):
            return

        if record.license is None:
            record.license = normalize_license(_license_field(document))
            logger.debug("Found license for %s: %s", record.name, record.license)

        if record.repository_url is None:
            record.repository_url = _repository_field(document)
            logger.debug("Found repository URL for %s: %s", record.name, record.repository_url)

        if record.license_url is None and record.repository_url:
            record.license_url = github_license_url(record.repository_url)
