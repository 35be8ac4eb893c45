"""Scanner converting a .NET project.assets.json into package records.

``dotnet restore`` writes ``obj/project.assets.json``. Only its ``libraries``
map and the restore sources are needed::

    {
        "libraries": {
            "Newtonsoft.Json/13.0.3": {"type": "package", ...},
            "MyLib/1.0.0": {"type": "project", ...}
        },
        "project": {
            "restore": {"sources": {"https://api.nuget.org/v3/index.json": {}}}
        }
    }
"""

import json
import logging
from pathlib import Path
from typing import Any, Optional
from urllib.parse import urlparse

from package_guard.models import NUGET_ORG_SOURCE_URL, Ecosystem, PackageRecord
from package_guard.scanners.base import BaseScanner

logger = logging.getLogger(__name__)


def feed_name(source_url: str) -> str:
    """Return a short display name for a NuGet feed URL."""
    host = urlparse(source_url).netloc.lower()
    if host == "api.nuget.org":
        return "nuget.org"
    return host or source_url


class NuGetAssetsScanner(BaseScanner):
    """Scanner for .NET ``project.assets.json`` files."""

    def __init__(self, source_path: Optional[Path] = None) -> None:
        super().__init__(source_path)
        self._sources: list[str] = []

    @classmethod
    def can_handle(cls, path: Path) -> bool:
        return path.name == "project.assets.json"

    @property
    def source_name(self) -> str:
        return "project.assets.json"

    def eligible_sources(self) -> Optional[set[str]]:
        return set(self._sources) if self._sources else None

    def scan(self) -> list[PackageRecord]:
        """Convert the ``package`` libraries of project.assets.json.

        Returns:
            List of PackageRecord objects in the nuget ecosystem.

        Raises:
            FileNotFoundError: If the assets file does not exist.
        """
        content = self._read_text()

        try:
            data = json.loads(content)
        except json.JSONDecodeError as e:
            logger.error("Failed to parse %s: %s", self.source_path, e)
            return []

        if not isinstance(data, dict):
            logger.warning("Unexpected content in %s", self.source_path)
            return []

        self._sources = self._restore_sources(data)
        source_url = self._sources[0] if self._sources else NUGET_ORG_SOURCE_URL

        libraries = data.get("libraries")
        if not isinstance(libraries, dict):
            logger.warning("No libraries found in %s", self.source_path)
            return []

        records: list[PackageRecord] = []

        for key, library in libraries.items():
            if not isinstance(library, dict) or library.get("type") != "package":
                continue

            name, _, version = key.partition("/")
            if not name or not version:
                logger.warning("Skipping malformed library key %s", key)
                continue

            records.append(
                PackageRecord(
                    name=name,
                    version=version,
                    ecosystem=Ecosystem.NUGET,
                    source=feed_name(source_url),
                    source_url=source_url,
                )
            )

        logger.info("Parsed %d packages from %s", len(records), self.source_path)
        return records

    @staticmethod
    def _restore_sources(data: dict[str, Any]) -> list[str]:
        project = data.get("project")
        restore = project.get("restore") if isinstance(project, dict) else None
        sources = restore.get("sources", {}) if isinstance(restore, dict) else {}
        return list(sources) if isinstance(sources, dict) else []
