"""Analysis of projects against their package policies.

For every project the analyzer locates (and if needed restores) the lock
file, scans it, looks each package up in the catalog, resolves the missing
licenses, scores the risk of each package and evaluates the project's
policy. The package cache is loaded before the first project and written
back after the last one.
"""

import asyncio
import logging
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from package_guard.cache import PackageCache
from package_guard.catalog import PackageCatalog
from package_guard.exceptions import RestoreError
from package_guard.matching import matches_any_wildcard
from package_guard.models import (
    UNKNOWN_LICENSE,
    AnalyzerSettings,
    PackageIdentity,
    PackageRecord,
    PolicyViolation,
    ProjectPolicy,
)
from package_guard.policy import PolicyEngine, violation_for
from package_guard.resolvers import LicenseResolver
from package_guard.restore import locate_lock_file
from package_guard.risk import RiskEvaluator
from package_guard.scanners import detect_package_manager, get_scanner

logger = logging.getLogger(__name__)

GetPolicyByProject = Callable[[Path], ProjectPolicy]


@dataclass
class AnalysisResult:
    """Outcome of analyzing one or more projects.

    Attributes:
        violations: Packages violating the policy of at least one project.
        packages: Every package used by the analyzed projects.
        failed_projects: Projects that could not be analyzed, with the reason.
    """

    violations: list[PolicyViolation] = field(default_factory=list)
    packages: list[PackageRecord] = field(default_factory=list)
    failed_projects: dict[str, str] = field(default_factory=dict)


def _is_ignored(record: PackageRecord, ignored_feeds: list[str]) -> bool:
    return matches_any_wildcard(record.source, ignored_feeds) or matches_any_wildcard(
        record.source_url, ignored_feeds
    )


class ProjectAnalyzer:
    """Runs the scan, resolve and evaluate pipeline over projects.

    Attributes:
        settings: Analyzer settings.
        catalog: Catalog shared by all analyzed projects.
        policy_engine: Engine evaluating the records.
        risk_evaluator: Scores the risk of every resolved record.
    """

    def __init__(
        self,
        settings: Optional[AnalyzerSettings] = None,
        resolver: Optional[LicenseResolver] = None,
        catalog: Optional[PackageCatalog] = None,
        policy_engine: Optional[PolicyEngine] = None,
        risk_evaluator: Optional[RiskEvaluator] = None,
    ) -> None:
        self.settings = settings or AnalyzerSettings()
        self.catalog = catalog if catalog is not None else PackageCatalog()
        self.policy_engine = policy_engine or PolicyEngine()
        self.risk_evaluator = risk_evaluator or RiskEvaluator()
        self._resolver = resolver
        self._cache = (
            PackageCache(self.settings.cache_file_path) if self.settings.use_caching else None
        )

    def find_lock_file(self, project_path: Path) -> Path:
        """Return the lock file to scan for a project directory or file.

        A path pointing to a supported lock file is used as is.

        Raises:
            ValueError: If no package manager can be detected.
            RestoreError: If restoring the packages failed.
        """
        if project_path.is_file():
            try:
                get_scanner(project_path)
                return project_path
            except ValueError:
                pass

        project_dir = project_path if project_path.is_dir() else project_path.parent
        manager = detect_package_manager(project_path, self.settings)
        return locate_lock_file(project_dir, manager, self.settings)

    async def _resolve_all(
        self, resolver: LicenseResolver, records: list[PackageRecord]
    ) -> list[PackageRecord]:
        semaphore = asyncio.Semaphore(self.settings.max_concurrency)

        async def _resolve(record: PackageRecord) -> PackageRecord:
            async with semaphore:
                return await self.catalog.resolve_once(record, resolver.resolve)

        results = await asyncio.gather(*(_resolve(r) for r in records), return_exceptions=True)

        resolved = []
        for record, result in zip(records, results):
            if isinstance(result, BaseException):
                logger.error("Exception resolving %s %s: %s", record.name, record.version, result)
                record = self.catalog.add(record)
                if record.license is None:
                    record.license = UNKNOWN_LICENSE
                resolved.append(record)
            else:
                resolved.append(result)
        return resolved

    async def analyze_project(
        self,
        project_path: Path,
        policy: ProjectPolicy,
        resolver: LicenseResolver,
    ) -> list[PackageRecord]:
        """Analyze one project and return its violating records.

        Args:
            project_path: Project directory or lock file.
            policy: Validated policy of the project.
            resolver: License resolver to use.

        Returns:
            Records that do not comply with the policy.

        Raises:
            FileNotFoundError: If the lock file does not exist.
            RestoreError: If restoring the packages failed.
        """
        lock_file = self.find_lock_file(project_path)
        scanner = get_scanner(lock_file)
        logger.info("Analyzing %s using %s", project_path, scanner.source_name)

        scanned = scanner.scan()
        eligible_sources = scanner.eligible_sources()
        candidates = []

        for record in scanned:
            if _is_ignored(record, policy.ignored_feeds):
                logger.debug("Ignoring %s from feed %s", record, record.source_url)
                continue

            known = self.catalog.find(record.name, record.version, eligible_sources)
            candidates.append(known or record)

        records = await self._resolve_all(resolver, candidates)

        violating = []
        for record in records:
            record.track_as_used_in_project(str(project_path))
            self.risk_evaluator.evaluate(record)
            if not self.policy_engine.evaluate(record, policy.allow_list, policy.deny_list):
                violating.append(record)

        logger.info(
            "%s uses %d packages, %d violating the policy",
            project_path,
            len(records),
            len(violating),
        )
        return violating

    async def analyze(
        self, project_paths: Iterable[Path], get_policy: GetPolicyByProject
    ) -> AnalysisResult:
        """Analyze projects, each against its own policy.

        A failing restore only skips the affected project. Policy errors and
        missing lock files abort the analysis.

        Args:
            project_paths: Project directories or lock files.
            get_policy: Returns the policy of a project.

        Returns:
            The combined AnalysisResult.

        Raises:
            PolicyConfigurationError: If a project's policy is invalid.
            FileNotFoundError: If a lock file does not exist.
        """
        result = AnalysisResult()
        violating: dict[PackageIdentity, PackageRecord] = {}

        if self._cache is not None:
            self._cache.try_load(self.catalog)

        resolver = self._resolver or LicenseResolver(
            github_token=self.settings.github_token,
            max_concurrency=self.settings.max_concurrency,
        )

        try:
            for project_path in project_paths:
                policy = get_policy(project_path)
                policy.validate()

                try:
                    records = await self.analyze_project(project_path, policy, resolver)
                except RestoreError as e:
                    logger.error("%s", e)
                    result.failed_projects[str(project_path)] = str(e)
                    continue

                for record in records:
                    violating.setdefault(record.key, record)
        finally:
            if self._resolver is None:
                await resolver.close()

        if self._cache is not None:
            self._cache.write_back(self.catalog)

        result.packages = sorted(
            (record for record in self.catalog if record.used),
            key=lambda r: (r.name.lower(), r.version),
        )
        result.violations = [violation_for(record) for record in violating.values()]
        return result
