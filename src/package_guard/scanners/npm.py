"""Scanner for npm package-lock.json files.

Reads the flat ``packages`` map used by lockfileVersion 2 and 3, where each
key is the installation path of a package, e.g.::

    {
        "packages": {
            "": {"name": "my-app", "version": "1.0.0"},
            "node_modules/express": {"version": "4.18.2", "license": "MIT"},
            "node_modules/express/node_modules/accepts": {"version": "1.3.8"}
        }
    }
"""

import json
import logging
from pathlib import Path
from typing import Any, Optional

from package_guard.licenses import normalize_license
from package_guard.models import NPM_REGISTRY_URL, Ecosystem, PackageRecord
from package_guard.scanners.base import BaseScanner

logger = logging.getLogger(__name__)

NODE_MODULES_MARKER = "node_modules/"


def package_name_from_path(package_path: str) -> str:
    """Derive a package name from a package-lock installation path.

    The name is everything after the last ``node_modules/`` marker, which
    keeps the scope of scoped packages intact.

    Examples::

        node_modules/express                         -> express
        node_modules/express/node_modules/accepts    -> accepts
        node_modules/@types/node                     -> @types/node
        node_modules/a/node_modules/@scope/b         -> @scope/b
    """
    index = package_path.rfind(NODE_MODULES_MARKER)
    if index < 0:
        return package_path
    return package_path[index + len(NODE_MODULES_MARKER):]


def license_from_entry(value: Any) -> Optional[str]:
    """Extract a license string from a ``license`` field.

    Older packages publish ``{"type": "MIT", "url": ...}`` instead of a string.
    """
    if isinstance(value, str) and value.strip():
        return value.strip()
    if isinstance(value, dict) and isinstance(value.get("type"), str):
        return value["type"]
    return None


class NpmLockScanner(BaseScanner):
    """Scanner for npm package-lock.json files."""

    @classmethod
    def can_handle(cls, path: Path) -> bool:
        return path.name == "package-lock.json"

    @property
    def source_name(self) -> str:
        return "package-lock.json"

    def scan(self) -> list[PackageRecord]:
        """Scan package-lock.json and extract package records.

        The root entry (empty key) is excluded and entries without a version
        (links, workspaces) are skipped.

        Returns:
            List of PackageRecord objects with source "npm".

        Raises:
            FileNotFoundError: If the lock file does not exist.
        """
        content = self._read_text()

        try:
            data = json.loads(content)
        except json.JSONDecodeError as e:
            logger.error("Failed to parse %s: %s", self.source_path, e)
            return []

        if not isinstance(data, dict) or not isinstance(data.get("packages"), dict):
            logger.warning("No packages section found in %s", self.source_path)
            return []

        records: list[PackageRecord] = []

        for package_path, entry in data["packages"].items():
            if not package_path:
                continue

            if not isinstance(entry, dict):
                logger.warning("Skipping malformed entry %s in %s", package_path, self.source_path)
                continue

            name = package_name_from_path(package_path)
            version = entry.get("version")

            if not isinstance(version, str) or not version.strip():
                logger.debug("Skipping package %s with no version", name)
                continue

            records.append(
                PackageRecord(
                    name=name,
                    version=version.strip(),
                    ecosystem=Ecosystem.NPM,
                    license=normalize_license(license_from_entry(entry.get("license"))),
                    source="npm",
                    source_url=entry.get("resolved") or NPM_REGISTRY_URL,
                )
            )

        logger.info("Parsed %d packages from %s", len(records), self.source_path)
        return records
