"""GitHub license fetcher.

Fetches license information from GitHub's API for packages whose repository
is hosted on GitHub.
"""

import asyncio
import logging
import re
from typing import Optional

import aiohttp

from package_guard.licenses import normalize_license
from package_guard.models import PackageRecord
from package_guard.resolvers.base import BaseFetcher

logger = logging.getLogger(__name__)

_VALID_CHARACTERS = "[a-zA-Z0-9._-]"

_RAW_PATTERN = re.compile(
    rf"raw\.githubusercontent\.com/(?P<owner>{_VALID_CHARACTERS}+?)/(?P<repo>{_VALID_CHARACTERS}+)"
)
_WEB_PATTERN = re.compile(
    rf"github\.com/(?P<owner>{_VALID_CHARACTERS}+?)/(?P<repo>{_VALID_CHARACTERS}+)"
)


def parse_github_url(url: str) -> Optional[tuple[str, str]]:
    """Extract owner and repository name from a GitHub URL.

    Both ``raw.githubusercontent.com/{owner}/{repo}`` and
    ``github.com/{owner}/{repo}`` forms are recognized, in that order.

    Args:
        url: Repository or file URL.

    Returns:
        Tuple of (owner, repo) if the URL points to GitHub, None otherwise.
    """
    match = _RAW_PATTERN.search(url) or _WEB_PATTERN.search(url)
    if match is None:
        return None

    repo = match.group("repo")
    if repo.endswith(".git"):
        repo = repo[:-4]

    return match.group("owner"), repo


class GitHubFetcher(BaseFetcher):
    """Fetcher that reads the detected license of a GitHub repository.

    Supports authentication via GitHub token for higher rate limits.

    Attributes:
        github_token: Optional GitHub personal access token for authentication.
        max_retries: Number of retries when rate limited.
    """

    uses_repository = True

    def __init__(self, github_token: Optional[str] = None, max_retries: int = 3) -> None:
        """Initialize GitHubFetcher.

        Args:
            github_token: Optional GitHub personal access token for API authentication.
                Increases rate limit from 60 to 5000 requests/hour.
            max_retries: Maximum number of retries for rate limiting.
        """
        self.github_token = github_token
        self.max_retries = max_retries

    @property
    def name(self) -> str:
        return "GitHub"

    @property
    def priority(self) -> int:
        return 20

    async def _fetch_license(
        self, session: aiohttp.ClientSession, owner: str, repo: str, retry_count: int = 0
    ) -> Optional[dict]:
        """Fetch license information from GitHub API.

        Args:
            session: Shared HTTP session.
            owner: Repository owner.
            repo: Repository name.
            retry_count: Current retry attempt.

        Returns:
            License data dictionary from GitHub API, or None if fetch failed.
        """
        url = f"https://api.github.com/repos/{owner}/{repo}/license"

        headers = {
            "Accept": "application/vnd.github+json",
        }

        if self.github_token:
            headers["Authorization"] = f"Bearer {self.github_token}"

        try:
            async with session.get(url, headers=headers) as response:
                if response.status == 200:
                    return await response.json(content_type=None)

                if response.status != 403:
                    logger.debug(
                        "GitHub returned status %d for %s/%s", response.status, owner, repo
                    )
                    return None

                retry_after = response.headers.get("Retry-After", "")

        except (aiohttp.ClientError, asyncio.TimeoutError, ValueError) as e:
            logger.warning("Failed to fetch GitHub license for %s/%s: %s", owner, repo, e)
            return None

        # Rate limited
        if retry_count >= self.max_retries:
            logger.warning("GitHub rate limit exceeded for %s/%s", owner, repo)
            return None

        # Exponential backoff: 1s, 2s, 4s
        wait_time = int(retry_after) if retry_after.isdigit() else 2**retry_count

        logger.debug("Rate limited by GitHub, retrying in %ds", wait_time)
        await asyncio.sleep(wait_time)
        return await self._fetch_license(session, owner, repo, retry_count + 1)

    async def fetch(self, session: aiohttp.ClientSession, record: PackageRecord) -> None:
        """Fill the license from the repository's detected LICENSE file.

        Requires ``repository_url`` to point to GitHub; a license reported
        as ``NOASSERTION`` leaves the record unresolved.
        """
        if not record.repository_url:
            return

        parsed = parse_github_url(record.repository_url)
        if parsed is None:
            return

        owner, repo = parsed
        license_data = await self._fetch_license(session, owner, repo)
        if not isinstance(license_data, dict):
            return

        license_info = license_data.get("license") or {}
        license = normalize_license(license_info.get("spdx_id"))
        if license is None:
            logger.debug("GitHub has no license assertion for %s/%s", owner, repo)
            return

        record.license = license
        if record.license_url is None:
            record.license_url = license_data.get("html_url")
