"""Base interface for violation reporters.

Reporters generate formatted output (Markdown, JSON, etc.) from the
policy violations found by an analysis.
"""

from abc import ABC, abstractmethod
from pathlib import Path

from package_guard.models import PolicyViolation


class BaseReporter(ABC):
    """Abstract base class for violation reporters."""

    @abstractmethod
    def render(self, violations: list[PolicyViolation]) -> str:
        """Render violations to formatted output.

        Args:
            violations: Violations to report, possibly empty.

        Returns:
            Rendered output as a string.
        """
        ...

    def write(self, violations: list[PolicyViolation], output_path: Path) -> None:
        """Render and write output to a file.

        Args:
            violations: Violations to report.
            output_path: Path to write the output file.
        """
        content = self.render(violations)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        output_path.write_text(content, encoding="utf-8")

    @property
    @abstractmethod
    def format_name(self) -> str:
        """Return the output format name, like "markdown"."""
        ...
