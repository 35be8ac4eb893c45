"""License fetchers and the resolver chaining them.

This module provides fetchers for GitHub, the npm and NuGet registries,
license URLs and known-package corrections.
"""

from package_guard.resolvers.base import BaseFetcher
from package_guard.resolvers.chain import LicenseResolver, default_fetchers
from package_guard.resolvers.github import GitHubFetcher
from package_guard.resolvers.npm import NpmRegistryFetcher
from package_guard.resolvers.nuget import NuGetRegistryFetcher
from package_guard.resolvers.overrides import KnownPackageOverrides
from package_guard.resolvers.url import UrlLicenseFetcher

__all__ = [
    "BaseFetcher",
    "GitHubFetcher",
    "KnownPackageOverrides",
    "LicenseResolver",
    "NpmRegistryFetcher",
    "NuGetRegistryFetcher",
    "UrlLicenseFetcher",
    "default_fetchers",
]
