"""Core data models for package_guard.

This module defines the data structures shared by the scanners, resolvers,
catalog, cache and policy engine: package identities and records, policy
selectors and lists, and the violations reported to the user.
"""

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Optional

from package_guard.exceptions import PolicyConfigurationError
from package_guard.matching import VersionRange, is_prerelease, parse_version_range

UNKNOWN_LICENSE = "Unknown"

NPM_REGISTRY_URL = "https://registry.npmjs.org"
NUGET_ORG_SOURCE_URL = "https://api.nuget.org/v3/index.json"


class Ecosystem(str, Enum):
    """Package ecosystem a record originates from."""

    NPM = "npm"
    NUGET = "nuget"

    @property
    def case_insensitive_names(self) -> bool:
        """Whether package names in this ecosystem compare case-insensitively."""
        return self is Ecosystem.NUGET


@dataclass(frozen=True)
class PackageIdentity:
    """Immutable identity of a package: its name and exact version.

    Frozen for hashability to enable use as dictionary keys.

    Attributes:
        name: Package name, case-normalized where the ecosystem requires it.
        version: Exact version string.
    """

    name: str
    version: str

    def __str__(self) -> str:
        return f"{self.name}@{self.version}"


@dataclass
class RiskDimensions:
    """Risk of a package per dimension, each scored from 0 to 10.

    Attributes:
        legal_risk: Risk from the license and its documentation.
        security_risk: Risk from missing source transparency.
        operational_risk: Risk from maintenance and activity.
    """

    legal_risk: float = 0.0
    security_risk: float = 0.0
    operational_risk: float = 0.0

    @property
    def overall_risk(self) -> float:
        """Mean of the three dimensions."""
        return (self.legal_risk + self.security_risk + self.operational_risk) / 3.0


@dataclass
class PackageRecord:
    """A package found in a lock file, enriched during resolution.

    Attributes:
        name: Package name as declared (e.g., "express", "@babel/core").
        version: Exact resolved version.
        ecosystem: Ecosystem the package belongs to.
        license: License identifier, or None while unresolved.
        license_url: Optional URL of the license text.
        repository_url: Optional source repository URL.
        source: Name of the feed/registry the package comes from.
        source_url: URL of the feed, registry or resolved tarball.
        projects: Paths of every project that consumes this package.
        used: Whether the current run touched this package.
        risk_dimensions: Risk per dimension, once evaluated.
        risk_score: Overall risk from 0 to 100, once evaluated.
    """

    name: str
    version: str
    ecosystem: Ecosystem = Ecosystem.NPM
    license: Optional[str] = None
    license_url: Optional[str] = None
    repository_url: Optional[str] = None
    source: str = ""
    source_url: str = ""
    projects: set[str] = field(default_factory=set)
    used: bool = False
    risk_dimensions: Optional[RiskDimensions] = None
    risk_score: Optional[float] = None

    @property
    def key(self) -> PackageIdentity:
        """Return the identity used to deduplicate this record."""
        name = self.name.lower() if self.ecosystem.case_insensitive_names else self.name
        return PackageIdentity(name=name, version=self.version)

    @property
    def is_prerelease(self) -> bool:
        return is_prerelease(self.version)

    @property
    def is_resolved(self) -> bool:
        """Return True once a license (possibly "Unknown") has been assigned."""
        return self.license is not None

    def matches_name(self, name: str) -> bool:
        """Compare a name with this record's name using the ecosystem's case rules."""
        if self.ecosystem.case_insensitive_names:
            return self.name.lower() == name.lower()
        return self.name == name

    def satisfies_range(self, name: str, version_range: Optional[str] = None) -> bool:
        """Check whether this record matches a name and an optional version range.

        Args:
            name: Package name to compare against.
            version_range: Version range; None or "" matches any version.

        Returns:
            True if the name matches and the version lies within the range.
        """
        if not self.matches_name(name):
            return False

        if not version_range:
            return True

        return parse_version_range(version_range).satisfies(self.version)

    def track_as_used_in_project(self, project_path: str) -> None:
        """Mark this record as used in the current run by the given project."""
        self.projects.add(str(project_path))
        self.used = True

    def to_cache_entry(self) -> "CacheEntry":
        risk = self.risk_dimensions
        return CacheEntry(
            name=self.name,
            version=self.version,
            ecosystem=self.ecosystem.value,
            license=self.license,
            license_url=self.license_url,
            repository_url=self.repository_url,
            source=self.source,
            source_url=self.source_url,
            legal_risk=risk.legal_risk if risk else None,
            security_risk=risk.security_risk if risk else None,
            operational_risk=risk.operational_risk if risk else None,
            risk_score=self.risk_score,
        )

    def __str__(self) -> str:
        return f"{self.name}/{self.version} ({self.license})"


@dataclass
class CacheEntry:
    """Durable form of a PackageRecord, without the per-run fields.

    Attributes:
        name: Package name.
        version: Package version.
        ecosystem: Ecosystem value (e.g., "npm").
        license: Resolved license.
        license_url: URL of the license text.
        repository_url: Source repository URL.
        source: Feed/registry name.
        source_url: Feed/registry URL.
        legal_risk: Legal risk, if evaluated.
        security_risk: Security risk, if evaluated.
        operational_risk: Operational risk, if evaluated.
        risk_score: Overall risk score, if evaluated.
    """

    name: str
    version: str
    ecosystem: str
    license: Optional[str]
    license_url: Optional[str]
    repository_url: Optional[str]
    source: str
    source_url: str
    legal_risk: Optional[float] = None
    security_risk: Optional[float] = None
    operational_risk: Optional[float] = None
    risk_score: Optional[float] = None

    def to_record(self) -> PackageRecord:
        risk = None
        if self.legal_risk is not None:
            risk = RiskDimensions(
                legal_risk=self.legal_risk,
                security_risk=self.security_risk or 0.0,
                operational_risk=self.operational_risk or 0.0,
            )
        return PackageRecord(
            name=self.name,
            version=self.version,
            ecosystem=Ecosystem(self.ecosystem),
            license=self.license,
            license_url=self.license_url,
            repository_url=self.repository_url,
            source=self.source,
            source_url=self.source_url,
            risk_dimensions=risk,
            risk_score=self.risk_score,
        )


@dataclass(frozen=True)
class PackageSelector:
    """Selects a package by name and optional version range.

    Both ``None`` and ``""`` as range mean "any version". The range is
    parsed on construction so that a malformed policy fails immediately.

    Attributes:
        id: Package name, e.g. "Newtonsoft.Json" or "@babel/core".
        version_range: Optional version range, e.g. "[1.0.0,2.0.0)".

    Raises:
        PolicyConfigurationError: If the version range cannot be parsed.
    """

    id: str
    version_range: Optional[str] = None

    def __post_init__(self) -> None:
        if not self.id:
            raise PolicyConfigurationError("A package selector requires a package id")
        if self.version_range:
            parse_version_range(self.version_range)

    @property
    def range(self) -> Optional[VersionRange]:
        return parse_version_range(self.version_range) if self.version_range else None

    @classmethod
    def parse(cls, text: str) -> "PackageSelector":
        """Parse a ``name/range`` policy string.

        The range follows the last ``/`` that is not part of an npm scope,
        so ``@scope/name/[1.0,2.0)`` selects ``@scope/name``.

        Args:
            text: Selector string such as "Bogus/[1.0.0,2.0.0)" or "lodash".

        Returns:
            The parsed PackageSelector.
        """
        text = text.strip()
        head, separator, tail = text.partition("/")

        if text.startswith("@"):
            name, separator, tail = tail.partition("/")
            head = f"{head}/{name}"

        return cls(id=head, version_range=tail if separator else None)


@dataclass
class PackagePolicy:
    """Packages and licenses shared by allow and deny lists.

    Attributes:
        packages: Package selectors.
        licenses: SPDX-like license identifiers (case-insensitive).
    """

    packages: list[PackageSelector] = field(default_factory=list)
    licenses: list[str] = field(default_factory=list)

    @property
    def has_policies(self) -> bool:
        return bool(self.packages or self.licenses)

    def contains_license(self, license: Optional[str]) -> bool:
        if license is None:
            return False
        return license.lower() in {entry.lower() for entry in self.licenses}


@dataclass
class AllowList(PackagePolicy):
    """Packages, licenses and feeds that are allowed. Everything else is a violation.

    Attributes:
        feeds: Wildcard patterns matching feed names or URLs whose packages
            are allowed regardless of version or license.
        prerelease: Whether prerelease versions are allowed.
    """

    feeds: list[str] = field(default_factory=list)
    prerelease: bool = True


@dataclass
class DenyList(PackagePolicy):
    """Packages and licenses that are forbidden, even when allowed elsewhere.

    Attributes:
        prerelease: Whether every prerelease version is denied.
    """

    prerelease: bool = False


@dataclass
class ProjectPolicy:
    """Policies applicable to a project.

    Attributes:
        allow_list: If populated, only matching packages are compliant.
        deny_list: Packages matching it are violations, even if allowed.
        ignored_feeds: Wildcard patterns of feeds to skip entirely.
    """

    allow_list: AllowList = field(default_factory=AllowList)
    deny_list: DenyList = field(default_factory=DenyList)
    ignored_feeds: list[str] = field(default_factory=list)

    def validate(self) -> None:
        """Ensure at least one of the lists defines a policy.

        Raises:
            PolicyConfigurationError: If neither list has packages or licenses.
        """
        if not self.allow_list.has_policies and not self.deny_list.has_policies:
            raise PolicyConfigurationError("Either an allowlist or a denylist must be specified")


@dataclass(frozen=True)
class PolicyViolation:
    """A package that violates the policy of one or more projects.

    Attributes:
        package_id: Package name.
        version: Package version.
        license: Resolved license.
        projects: Projects that consume the package.
        feed_name: Name of the feed the package came from.
        feed_url: URL of that feed.
        risk_score: Overall risk score of the package, if evaluated.
    """

    package_id: str
    version: str
    license: str
    projects: tuple[str, ...]
    feed_name: str
    feed_url: str
    risk_score: Optional[float] = None


class PackageManager(str, Enum):
    """Package managers whose lock files can be analyzed."""

    NPM = "npm"
    YARN = "yarn"
    PNPM = "pnpm"
    DOTNET = "dotnet"
    NONE = "none"


@dataclass
class AnalyzerSettings:
    """Settings controlling a single analysis run.

    Attributes:
        force_restore: Restore/install even when the lock file is up to date.
        skip_restore: Never run a restore/install.
        use_caching: Load and write back the package cache.
        cache_file_path: Location of the package cache.
        package_manager: Explicit package manager, bypassing detection.
        package_manager_exe: Path to a package manager executable.
        max_concurrency: Upper bound on concurrent license resolutions.
        github_token: Optional GitHub token for higher API rate limits.
    """

    force_restore: bool = False
    skip_restore: bool = False
    use_caching: bool = False
    cache_file_path: Path = field(default_factory=lambda: Path(".packageguard") / "cache.db")
    package_manager: Optional[PackageManager] = None
    package_manager_exe: Optional[str] = None
    max_concurrency: int = 8
    github_token: Optional[str] = None
