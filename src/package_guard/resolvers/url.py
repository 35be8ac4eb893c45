"""Fetcher guessing the license from the text behind a license URL."""

import asyncio
import logging
import re
from typing import Optional

import aiohttp

from package_guard.models import PackageRecord
from package_guard.resolvers.base import BaseFetcher

logger = logging.getLogger(__name__)

# Phrase (case-insensitive) -> license, first match wins
WELL_KNOWN_PHRASES = [
    ("MIT license", "MIT"),
    ("Apache License", "Apache-2.0"),
    ("GNU General Public License", "GPL-3.0"),
    ("MICROSOFT SOFTWARE LICENSE TERMS", "Microsoft .NET Library License"),
]

_BLOB_PATTERN = re.compile(r"^https?://(?:www\.)?github\.com/([^/]+)/([^/]+)/blob/(.+)$")


def raw_content_url(url: str) -> str:
    """Rewrite a GitHub ``blob`` page URL to its raw content URL.

    Other URLs are returned unchanged.
    """
    match = _BLOB_PATTERN.match(url)
    if match is None:
        return url

    owner, repo, path = match.groups()
    return f"https://raw.githubusercontent.com/{owner}/{repo}/{path}"


def detect_license(text: str) -> Optional[str]:
    """Return the first well-known license whose phrase appears in the text."""
    lowered = text.lower()
    for phrase, license in WELL_KNOWN_PHRASES:
        if phrase.lower() in lowered:
            return license
    return None


class UrlLicenseFetcher(BaseFetcher):
    """Fetcher that downloads ``license_url`` and looks for well-known phrases."""

    @property
    def name(self) -> str:
        return "License URL"

    @property
    def priority(self) -> int:
        return 60

    async def fetch(self, session: aiohttp.ClientSession, record: PackageRecord) -> None:
        if not record.license_url:
            return

        url = raw_content_url(record.license_url)

        try:
            async with session.get(url) as response:
                if response.status != 200:
                    logger.warning(
                        "Failed to extract the license from URL %s: status %d",
                        url,
                        response.status,
                    )
                    return
                text = await response.text()

        except (aiohttp.ClientError, asyncio.TimeoutError, UnicodeDecodeError) as e:
            logger.warning("Failed to extract the license from URL %s: %s", url, e)
            return

        license = detect_license(text)
        if license is None:
            logger.warning("Did not detect any well-known licenses in %s", url)
            return

        record.license = license
