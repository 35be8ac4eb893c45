"""Base interface for lock file scanners.

Scanners turn an already materialized lock file into an ordered list of
PackageRecord objects without installing anything.
"""

import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Optional

from package_guard.models import PackageRecord

logger = logging.getLogger(__name__)


class BaseScanner(ABC):
    """Abstract base class for lock file scanners.

    Scanners never raise on malformed content: a document that cannot be
    parsed is logged and yields an empty list, and malformed entries inside
    an otherwise valid document are skipped.

    Attributes:
        source_path: Path to the lock file being scanned.
    """

    def __init__(self, source_path: Optional[Path] = None) -> None:
        """Initialize the scanner.

        Args:
            source_path: Path to the lock file.
        """
        self.source_path = source_path

    @abstractmethod
    def scan(self) -> list[PackageRecord]:
        """Scan the lock file and extract package records.

        Returns:
            List of PackageRecord objects in lock file order.

        Raises:
            FileNotFoundError: If the lock file does not exist.
            ValueError: If source_path was not provided.
        """
        ...

    @classmethod
    @abstractmethod
    def can_handle(cls, path: Path) -> bool:
        """Check if this scanner can handle the given file.

        Args:
            path: Path to check.

        Returns:
            True if this scanner can process the file, False otherwise.
        """
        ...

    @property
    @abstractmethod
    def source_name(self) -> str:
        """Return a human-readable name for this scanner's lock file type."""
        ...

    def eligible_sources(self) -> Optional[set[str]]:
        """Return the feed URLs the project restores from, if the lock file lists them.

        None means the lock file does not restrict sources, so any cached
        record is eligible.
        """
        return None

    def _read_text(self) -> str:
        """Read the lock file, validating that it exists."""
        if self.source_path is None:
            raise ValueError("source_path must be provided")

        if not self.source_path.exists():
            raise FileNotFoundError(f"Lock file not found: {self.source_path}")

        logger.info("Loading %s from %s", self.source_name, self.source_path)
        return self.source_path.read_text(encoding="utf-8")
