"""Evaluation of package records against allow and deny lists.

A package complies when it is allowed and not denied::

    allowed   = feed_allowed or (prerelease_ok and license_ok and package_ok)
    denied    = prerelease_denied or license_denied or package_denied
    compliant = allowed and not denied

The deny list therefore always wins, even over a feed that is allowed.
"""

import logging
from collections.abc import Iterable

from package_guard.matching import matches_any_wildcard
from package_guard.models import (
    UNKNOWN_LICENSE,
    AllowList,
    DenyList,
    PackageRecord,
    PolicyViolation,
    ProjectPolicy,
)

logger = logging.getLogger(__name__)


def violation_for(record: PackageRecord) -> PolicyViolation:
    """Describe a non-compliant record as a PolicyViolation."""
    return PolicyViolation(
        package_id=record.name,
        version=record.version,
        license=record.license or UNKNOWN_LICENSE,
        projects=tuple(sorted(record.projects)),
        feed_name=record.source,
        feed_url=record.source_url,
        risk_score=record.risk_score,
    )


class PolicyEngine:
    """Decides whether package records comply with a project policy."""

    def is_allowed(self, record: PackageRecord, allow_list: AllowList) -> bool:
        """Check a record against the allow list.

        The first package selector whose id matches the record decides:
        within range, the package is allowed regardless of its license;
        out of range, it is not allowed.
        """
        if matches_any_wildcard(record.source, allow_list.feeds) or matches_any_wildcard(
            record.source_url, allow_list.feeds
        ):
            return True

        prerelease_ok = allow_list.prerelease or not record.is_prerelease
        license_ok = not allow_list.licenses or allow_list.contains_license(record.license)
        package_ok = True

        for selector in allow_list.packages:
            if not record.matches_name(selector.id):
                continue

            if record.satisfies_range(selector.id, selector.version_range):
                # An explicitly allowed package may carry any license
                license_ok = True
            else:
                package_ok = False
            break

        return prerelease_ok and license_ok and package_ok

    def is_denied(self, record: PackageRecord, deny_list: DenyList) -> bool:
        """Check a record against the deny list."""
        if deny_list.prerelease and record.is_prerelease:
            return True

        if deny_list.contains_license(record.license):
            return True

        return any(
            record.satisfies_range(selector.id, selector.version_range)
            for selector in deny_list.packages
        )

    def evaluate(self, record: PackageRecord, allow_list: AllowList, deny_list: DenyList) -> bool:
        """Decide whether a record complies with the given lists.

        Args:
            record: Resolved package record.
            allow_list: Allowed packages, licenses and feeds.
            deny_list: Denied packages and licenses.

        Returns:
            True if the record is compliant.
        """
        return self.is_allowed(record, allow_list) and not self.is_denied(record, deny_list)

    def check(
        self, records: Iterable[PackageRecord], policy: ProjectPolicy
    ) -> list[PolicyViolation]:
        """Evaluate records and collect the violations.

        Args:
            records: Resolved package records of a project.
            policy: Policy to evaluate against.

        Returns:
            Violations in record order.
        """
        violations = []

        for record in records:
            if self.evaluate(record, policy.allow_list, policy.deny_list):
                continue

            logger.debug("%s violates the policy", record)
            violations.append(violation_for(record))

        return violations
