"""Risk scoring of package records.

Every record gets a legal, a security and an operational risk, each from 0
to 10. The overall risk score is their mean scaled to 0-100. Scores only
use what resolution already knows about a package: its license class and
whether a license URL and a source repository are known.
"""

import logging

from package_guard.models import UNKNOWN_LICENSE, PackageRecord, RiskDimensions

logger = logging.getLogger(__name__)

MAX_RISK = 10.0

# Matched as case-insensitive substrings of the license
RESTRICTIVE_LICENSES = ("GPL", "AGPL", "LGPL", "SSPL", "Commons Clause", "BUSL", "BCL")
PERMISSIVE_LICENSES = ("MIT", "Apache", "BSD", "ISC", "Unlicense", "WTFPL", "CC0")

UNKNOWN_LICENSE_RISK = 8.0
RESTRICTIVE_LICENSE_RISK = 6.0
OTHER_LICENSE_RISK = 4.0
PERMISSIVE_LICENSE_RISK = 1.0
MISSING_LICENSE_URL_RISK = 1.0

MISSING_REPOSITORY_RISK = 5.0
BASE_SECURITY_RISK = 2.0
BASE_OPERATIONAL_RISK = 3.0


def _mentions_any(license: str, names: tuple[str, ...]) -> bool:
    lowered = license.lower()
    return any(name.lower() in lowered for name in names)


def is_restrictive_license(license: str) -> bool:
    """Return True for copyleft and commercially restricted licenses."""
    return _mentions_any(license, RESTRICTIVE_LICENSES)


def is_permissive_license(license: str) -> bool:
    """Return True for permissive licenses such as MIT, Apache or BSD."""
    return _mentions_any(license, PERMISSIVE_LICENSES)


class RiskEvaluator:
    """Scores the risk of package records."""

    def evaluate(self, record: PackageRecord) -> RiskDimensions:
        """Score a record and store the result on it.

        Args:
            record: Record whose license has been resolved.

        Returns:
            The risk dimensions, also assigned to ``record.risk_dimensions``.
            ``record.risk_score`` receives the overall risk scaled to 0-100.
        """
        dimensions = RiskDimensions(
            legal_risk=self._legal_risk(record),
            security_risk=self._security_risk(record),
            operational_risk=self._operational_risk(record),
        )
        record.risk_dimensions = dimensions
        record.risk_score = dimensions.overall_risk * 10

        logger.debug(
            "Risk of %s %s: overall=%.1f legal=%.1f security=%.1f operational=%.1f",
            record.name,
            record.version,
            record.risk_score,
            dimensions.legal_risk,
            dimensions.security_risk,
            dimensions.operational_risk,
        )
        return dimensions

    def _legal_risk(self, record: PackageRecord) -> float:
        license = record.license
        if not license or license == UNKNOWN_LICENSE:
            risk = UNKNOWN_LICENSE_RISK
        elif is_restrictive_license(license):
            risk = RESTRICTIVE_LICENSE_RISK
        elif is_permissive_license(license):
            risk = PERMISSIVE_LICENSE_RISK
        else:
            risk = OTHER_LICENSE_RISK

        if not record.license_url:
            risk += MISSING_LICENSE_URL_RISK

        return min(risk, MAX_RISK)

    def _security_risk(self, record: PackageRecord) -> float:
        risk = BASE_SECURITY_RISK
        if not record.repository_url:
            risk += MISSING_REPOSITORY_RISK
        return min(risk, MAX_RISK)

    def _operational_risk(self, record: PackageRecord) -> float:
        return min(BASE_OPERATIONAL_RISK, MAX_RISK)
