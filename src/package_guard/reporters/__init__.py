"""Reporters rendering policy violations to documents."""

from package_guard.reporters.base import BaseReporter
from package_guard.reporters.markdown import MarkdownReporter

__all__ = ["BaseReporter", "MarkdownReporter"]
