"""Package Guard - License and package policy checks for dependency trees.

This package provides tools for scanning npm, Yarn, pnpm and .NET lock files,
resolving the license of every dependency and reporting the packages that
violate an allow/deny policy.
"""

__version__ = "0.1.0"

from package_guard.models import (
    AllowList,
    DenyList,
    PackageRecord,
    PackageSelector,
    PolicyViolation,
    ProjectPolicy,
)

__all__ = [
    "__version__",
    "AllowList",
    "DenyList",
    "PackageRecord",
    "PackageSelector",
    "PolicyViolation",
    "ProjectPolicy",
]
