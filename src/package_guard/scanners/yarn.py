"""Scanners for Yarn yarn.lock files.

Yarn v1 writes a custom indented text format::

    "@babel/core@^7.0.0", "@babel/core@^7.1.0":
      version "7.23.0"
      resolved "https://registry.yarnpkg.com/@babel/core/-/core-7.23.0.tgz"

Yarn v2+ (berry) writes YAML with a ``__metadata`` section and keys made of
descriptors like ``express@npm:^4.18.2``.
"""

import logging
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

import yaml

from package_guard.models import Ecosystem, PackageRecord
from package_guard.scanners.base import BaseScanner

logger = logging.getLogger(__name__)

YARN_REGISTRY_URL = "https://registry.yarnpkg.com"
BERRY_METADATA_MARKER = "__metadata:"

_RESOLUTION_VERSION_PATTERN = re.compile(r"@[a-zA-Z-]+:([^@]+)$")


def _unquote(value: str) -> str:
    return value.strip().strip("\"'")


def _first_descriptor(declaration: str) -> str:
    """Return the first of several comma-separated descriptors, unquoted."""
    return _unquote(declaration.split(",")[0])


def _is_berry_lock(path: Path) -> bool:
    try:
        with open(path, "r", encoding="utf-8") as f:
            head = f.read(4096)
    except OSError:
        return False
    return BERRY_METADATA_MARKER in head


def tarball_url(name: str, version: str, registry: str = YARN_REGISTRY_URL) -> str:
    """Build the conventional registry tarball URL of a package."""
    basename = name.split("/")[-1]
    return f"{registry}/{name}/-/{basename}-{version}.tgz"


@dataclass
class _YarnBlock:
    name: str
    version: str = ""
    resolved: Optional[str] = None
    property_indent: Optional[int] = None


class YarnV1Scanner(BaseScanner):
    """Scanner for the Yarn v1 line-oriented yarn.lock format."""

    @classmethod
    def can_handle(cls, path: Path) -> bool:
        return path.name == "yarn.lock" and not _is_berry_lock(path)

    @property
    def source_name(self) -> str:
        return "yarn.lock (v1)"

    @staticmethod
    def parse_declaration(line: str) -> Optional[str]:
        """Extract the package name from a block declaration line.

        The trailing colon and quotes are stripped, then the descriptor is
        split on the last ``@`` for scoped packages and on the first ``@``
        otherwise.

        Args:
            line: A zero-indent declaration such as ``"@babel/core@^7.0.0":``.

        Returns:
            The package name, or None if the declaration has no version part.
        """
        descriptor = _first_descriptor(line.rstrip().rstrip(":"))

        if descriptor.startswith("@"):
            index = descriptor.rfind("@")
        else:
            index = descriptor.find("@")

        if index <= 0:
            return None

        return descriptor[:index]

    def scan(self) -> list[PackageRecord]:
        """Scan a Yarn v1 lock file.

        Returns:
            List of PackageRecord objects with source "npm".

        Raises:
            FileNotFoundError: If the lock file does not exist.
        """
        return self.parse(self._read_text())

    def parse(self, content: str) -> list[PackageRecord]:
        records: list[PackageRecord] = []
        current: Optional[_YarnBlock] = None

        for line_num, line in enumerate(content.splitlines(), start=1):
            if not line.strip() or line.lstrip().startswith("#"):
                continue

            indent = len(line) - len(line.lstrip())

            if indent == 0:
                self._commit(current, records)
                name = self.parse_declaration(line)
                if name is None:
                    logger.warning("Skipping unparseable declaration on line %d: %s", line_num, line)
                current = _YarnBlock(name=name) if name else None
                continue

            if current is None:
                continue

            # Only direct properties of the block; nested maps are indented deeper
            if current.property_indent is None:
                current.property_indent = indent
            if indent != current.property_indent:
                continue

            key, _, value = line.strip().partition(" ")
            if key == "version":
                current.version = _unquote(value)
            elif key == "resolved":
                current.resolved = _unquote(value)

        self._commit(current, records)

        logger.info("Parsed %d packages from %s", len(records), self.source_path or "yarn.lock")
        return records

    def _commit(self, block: Optional[_YarnBlock], records: list[PackageRecord]) -> None:
        if block is None:
            return

        if not block.version:
            logger.debug("Skipping package %s with no version", block.name)
            return

        records.append(
            PackageRecord(
                name=block.name,
                version=block.version,
                ecosystem=Ecosystem.NPM,
                source="npm",
                source_url=block.resolved or tarball_url(block.name, block.version),
            )
        )


class YarnBerryScanner(BaseScanner):
    """Scanner for the YAML yarn.lock format written by Yarn v2 and later."""

    @classmethod
    def can_handle(cls, path: Path) -> bool:
        return path.name == "yarn.lock" and _is_berry_lock(path)

    @property
    def source_name(self) -> str:
        return "yarn.lock (v2+)"

    @staticmethod
    def parse_descriptor(key: str) -> Optional[str]:
        """Extract the package name from a ``name@protocol:range`` key.

        Splits at the first ``@`` for unscoped names and at the second ``@``
        for scoped names.
        """
        descriptor = _first_descriptor(key)
        index = descriptor.find("@", 1) if descriptor.startswith("@") else descriptor.find("@")

        if index <= 0:
            return None

        return descriptor[:index]

    def scan(self) -> list[PackageRecord]:
        """Scan a Yarn v2+ lock file.

        Returns:
            List of PackageRecord objects with source "npm".

        Raises:
            FileNotFoundError: If the lock file does not exist.
        """
        return self.parse(self._read_text())

    def parse(self, content: str) -> list[PackageRecord]:
        try:
            data = yaml.safe_load(content)
        except yaml.YAMLError as e:
            logger.error("Failed to parse Yarn v2 lock file %s: %s", self.source_path, e)
            return []

        if not isinstance(data, dict):
            logger.warning("Yarn v2 lock file %s contains no packages", self.source_path)
            return []

        records: list[PackageRecord] = []

        for key, entry in data.items():
            key = str(key)
            if key.startswith("__") or not isinstance(entry, dict):
                continue

            name = self.parse_descriptor(key)
            if not name:
                logger.debug("Skipping invalid descriptor: %s", key)
                continue

            resolution = str(entry.get("resolution") or "")
            if "@workspace:" in resolution:
                logger.debug("Skipping workspace package %s", name)
                continue

            version = str(entry["version"]) if entry.get("version") is not None else None
            if version is None:
                match = _RESOLUTION_VERSION_PATTERN.search(resolution)
                version = match.group(1) if match else None

            if not version:
                logger.debug("Skipping package %s with no version", name)
                continue

            records.append(
                PackageRecord(
                    name=name,
                    version=version,
                    ecosystem=Ecosystem.NPM,
                    source="npm",
                    source_url=tarball_url(name, version),
                )
            )

        logger.info("Parsed %d packages from %s", len(records), self.source_path or "yarn.lock")
        return records
