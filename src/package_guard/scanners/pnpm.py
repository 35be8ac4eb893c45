"""Scanner for pnpm-lock.yaml files.

Example structure::

    lockfileVersion: '6.0'
    packages:
      /express@4.18.2:
        resolution: {integrity: sha512-...}
      /@babel/core@7.23.0(supports-color@8.1.1):
        resolution: {integrity: sha512-...}
"""

import logging
from pathlib import Path
from typing import Optional

import yaml

from package_guard.models import NPM_REGISTRY_URL, Ecosystem, PackageRecord
from package_guard.scanners.base import BaseScanner
from package_guard.scanners.yarn import tarball_url

logger = logging.getLogger(__name__)


def parse_package_key(key: str) -> Optional[tuple[str, str]]:
    """Split a pnpm package key into name and version.

    Handles ``/name@version``, ``/@scope/name@version`` and the slash-less
    keys of lockfile v9, stripping any parenthesized peer-dependency suffix.

    Args:
        key: Key of the ``packages`` mapping.

    Returns:
        Tuple of (name, version), or None if the key is invalid.
    """
    key = key.lstrip("/")

    # Peer suffixes may contain "@" themselves, so drop them first
    paren = key.find("(")
    if paren > 0:
        key = key[:paren]

    index = key.rfind("@") if key.startswith("@") else key.find("@")
    if index <= 0:
        return None

    name, version = key[:index], key[index + 1:]
    if not name or not version:
        return None

    return name, version


class PnpmLockScanner(BaseScanner):
    """Scanner for pnpm-lock.yaml files."""

    @classmethod
    def can_handle(cls, path: Path) -> bool:
        return path.name == "pnpm-lock.yaml"

    @property
    def source_name(self) -> str:
        return "pnpm-lock.yaml"

    def scan(self) -> list[PackageRecord]:
        """Scan pnpm-lock.yaml and extract package records.

        Returns:
            List of PackageRecord objects with source "npm".

        Raises:
            FileNotFoundError: If the lock file does not exist.
        """
        content = self._read_text()

        try:
            data = yaml.safe_load(content)
        except yaml.YAMLError as e:
            logger.error("Failed to parse %s: %s", self.source_path, e)
            return []

        packages = data.get("packages") if isinstance(data, dict) else None
        if not isinstance(packages, dict):
            logger.warning("No packages found in %s", self.source_path)
            return []

        records: list[PackageRecord] = []

        for key, entry in packages.items():
            parsed = parse_package_key(str(key))
            if parsed is None:
                logger.debug("Skipping invalid package key: %s", key)
                continue

            name, version = parsed
            resolution = entry.get("resolution") if isinstance(entry, dict) else None
            has_integrity = isinstance(resolution, dict) and bool(resolution.get("integrity"))

            records.append(
                PackageRecord(
                    name=name,
                    version=version,
                    ecosystem=Ecosystem.NPM,
                    source="npm",
                    source_url=(
                        tarball_url(name, version, NPM_REGISTRY_URL)
                        if has_integrity
                        else NPM_REGISTRY_URL
                    ),
                )
            )

        logger.info("Parsed %d packages from %s", len(records), self.source_path)
        return records
