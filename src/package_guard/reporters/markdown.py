"""Markdown reporter listing policy violations.

Renders the violations with a Jinja2 template, either the bundled one or a
custom template supplied by the user.
"""

from datetime import datetime
from importlib.resources import files
from pathlib import Path
from typing import Optional

from jinja2 import Environment, FileSystemLoader, Template

from package_guard.models import PolicyViolation
from package_guard.reporters.base import BaseReporter


class MarkdownReporter(BaseReporter):
    """Reporter that generates a Markdown table of violations.

    Attributes:
        template: The Jinja2 template to use for rendering.
    """

    def __init__(self, template_path: Optional[Path] = None) -> None:
        """Initialize the Markdown reporter.

        Args:
            template_path: Optional path to a custom Jinja2 template.
                If not provided, uses the default bundled template.
        """
        if template_path:
            env = Environment(
                loader=FileSystemLoader(template_path.parent),
                autoescape=False,
            )
            self.template = env.get_template(template_path.name)
        else:
            self.template = self._load_default_template()

    def _load_default_template(self) -> Template:
        template_content = (
            files("package_guard.templates")
            .joinpath("violations.md.j2")
            .read_text(encoding="utf-8")
        )
        env = Environment(autoescape=False)
        return env.from_string(template_content)

    def render(self, violations: list[PolicyViolation]) -> str:
        """Render violations to Markdown, sorted by package and version."""
        return self.template.render(
            violations=sorted(violations, key=lambda v: (v.package_id.lower(), v.version)),
            generated_at=datetime.now(),
        )

    @property
    def format_name(self) -> str:
        return "markdown"
