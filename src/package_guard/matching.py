"""Wildcard and version-range matching.

This module implements the two leaf matchers used by the policy engine:

* case-insensitive glob matching for feed names and URLs, and
* version-range containment using interval notation (``[1.0,2.0)``,
  ``(,1.0.0)``, ``[1.2.3]``), exact versions, or npm-style ranges.

Versions may have a fourth NuGet revision component, which counts in
comparisons.
"""

import logging
import re
from dataclasses import dataclass
from functools import lru_cache, total_ordering
from typing import Iterable, Optional

import semantic_version

from package_guard.exceptions import PolicyConfigurationError

logger = logging.getLogger(__name__)

_INTERVAL_PATTERN = re.compile(r"^\s*([\[(])\s*([^,\])]*?)\s*(?:,\s*([^\])]*?)\s*)?([\])])\s*$")
_VERSION_PATTERN = re.compile(
    r"^\s*[vV]?(\d+)(?:\.(\d+))?(?:\.(\d+))?(?:\.(\d+))?"
    r"(?:-([0-9A-Za-z-]+(?:\.[0-9A-Za-z-]+)*))?(?:\+[0-9A-Za-z.-]*)?\s*$"
)


def matches_wildcard(text: str, pattern: str) -> bool:
    """Check whether text matches a wildcard pattern.

    ``*`` matches any run of characters and ``?`` any single character.
    Exact equality is checked first; otherwise the pattern is matched
    case-insensitively anywhere in the text.

    Args:
        text: Text to test, e.g. a feed name or URL.
        pattern: Wildcard pattern.

    Returns:
        True if the text matches the pattern.
    """
    if text == pattern:
        return True

    regex = re.escape(pattern).replace(r"\*", ".*").replace(r"\?", ".")
    return re.search(regex, text, re.IGNORECASE) is not None


def matches_any_wildcard(text: Optional[str], patterns: Iterable[str]) -> bool:
    """Check whether text matches at least one of the wildcard patterns."""
    if not text:
        return False
    return any(matches_wildcard(text, pattern) for pattern in patterns)


@total_ordering
@dataclass(frozen=True, eq=False)
class PackageVersion:
    """A package version with up to four numeric components.

    NuGet versions may carry a fourth "revision" component that semantic
    versions lack. It takes part in ordering here, and missing components
    count as zero, so ``1.0`` equals ``1.0.0.0``. Prerelease labels order
    by semantic-version rules; build metadata is ignored.

    Attributes:
        release: Major, minor, patch and revision.
        prerelease: Dot-separated prerelease identifiers, empty for releases.
    """

    release: tuple[int, int, int, int]
    prerelease: tuple[str, ...] = ()

    @property
    def semver(self) -> semantic_version.Version:
        """The version as a semantic version, without the revision."""
        major, minor, patch, _ = self.release
        return semantic_version.Version(
            major=major, minor=minor, patch=patch, prerelease=self.prerelease or None
        )

    def _key(self) -> tuple:
        # Only the prerelease part of this semver carries information
        return self.release, semantic_version.Version(
            major=0, minor=0, patch=0, prerelease=self.prerelease or None
        )

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, PackageVersion):
            return NotImplemented
        return self._key() == other._key()

    def __lt__(self, other: "PackageVersion") -> bool:
        if not isinstance(other, PackageVersion):
            return NotImplemented
        return self._key() < other._key()

    def __hash__(self) -> int:
        return hash(self._key())

    def __str__(self) -> str:
        text = ".".join(str(part) for part in self.release)
        return f"{text}-{'.'.join(self.prerelease)}" if self.prerelease else text


def parse_version(version: str) -> PackageVersion:
    """Parse an npm or NuGet package version.

    Accepts one to four numeric components, an optional prerelease label
    and optional build metadata, e.g. ``1.2``, ``4.0.0.1`` or
    ``1.2.3.4-beta.1``.

    Raises:
        ValueError: If the string is not a version at all.
    """
    match = _VERSION_PATTERN.match(version)
    if not match:
        raise ValueError(f"Invalid version: '{version}'")

    *numbers, label = match.groups()
    prerelease = tuple(label.split(".")) if label else ()
    if prerelease:
        # Rejects identifiers semantic versioning does not allow, such as "01"
        semantic_version.Version(major=0, minor=0, patch=0, prerelease=prerelease)

    return PackageVersion(
        release=tuple(int(number or 0) for number in numbers),
        prerelease=prerelease,
    )


def is_prerelease(version: str) -> bool:
    """Return True if the version carries a prerelease label."""
    try:
        return bool(parse_version(version).prerelease)
    except ValueError:
        logger.debug("Cannot determine prerelease state of version %s", version)
        return False


@dataclass(frozen=True)
class VersionRange:
    """A parsed version range.

    Either an interval (``minimum``/``maximum`` with inclusiveness flags,
    ``None`` meaning unbounded), an exact version, or an npm-style spec.

    Attributes:
        text: The original range string.
        minimum: Lower bound, or None when unbounded.
        maximum: Upper bound, or None when unbounded.
        include_minimum: Whether the lower bound is inclusive.
        include_maximum: Whether the upper bound is inclusive.
        npm_spec: npm-style spec when the range is not in interval notation.
    """

    text: str
    minimum: Optional[PackageVersion] = None
    maximum: Optional[PackageVersion] = None
    include_minimum: bool = True
    include_maximum: bool = True
    npm_spec: Optional[semantic_version.NpmSpec] = None

    def satisfies(self, version: str) -> bool:
        """Check whether an exact package version lies within this range.

        Args:
            version: Exact package version.

        Returns:
            True if the version is contained in the range. Unparseable
            package versions never satisfy a range.
        """
        try:
            parsed = parse_version(version)
        except ValueError:
            logger.debug("Version %s cannot be compared to range %s", version, self.text)
            return False

        if self.npm_spec is not None:
            return self.npm_spec.match(parsed.semver)

        if self.minimum is not None:
            if self.include_minimum and parsed < self.minimum:
                return False
            if not self.include_minimum and parsed <= self.minimum:
                return False

        if self.maximum is not None:
            if self.include_maximum and parsed > self.maximum:
                return False
            if not self.include_maximum and parsed >= self.maximum:
                return False

        return True


def _parse_bound(value: Optional[str], range_text: str) -> Optional[PackageVersion]:
    if value is None or not value.strip():
        return None
    try:
        return parse_version(value)
    except ValueError as e:
        raise PolicyConfigurationError(
            f"Invalid version '{value}' in range '{range_text}'"
        ) from e


@lru_cache(maxsize=1024)
def parse_version_range(text: str) -> VersionRange:
    """Parse a version range string once.

    Supported notations::

        [1.0.0,2.0.0]   1.0.0 <= v <= 2.0.0
        [1.0.0,2.0.0)   1.0.0 <= v <  2.0.0
        (,1.0.0)        v < 1.0.0
        [1.0.0,)        v >= 1.0.0
        [1.2.3]         v == 1.2.3
        1.2.3           v == 1.2.3
        ^1.2.0          npm-style spec

    Args:
        text: The range string.

    Returns:
        The parsed VersionRange.

    Raises:
        PolicyConfigurationError: If the range cannot be parsed.
    """
    match = _INTERVAL_PATTERN.match(text)
    if match:
        opening, low, high, closing = match.groups()

        if high is None:
            # Single-version interval like "[1.2.3]"
            if opening != "[" or closing != "]":
                raise PolicyConfigurationError(f"Invalid version range '{text}'")
            exact = _parse_bound(low, text)
            if exact is None:
                raise PolicyConfigurationError(f"Invalid version range '{text}'")
            return VersionRange(text=text, minimum=exact, maximum=exact)

        minimum = _parse_bound(low, text)
        maximum = _parse_bound(high, text)
        if minimum is None and maximum is None:
            raise PolicyConfigurationError(f"Version range '{text}' has no bounds")
        if minimum is not None and maximum is not None and minimum > maximum:
            raise PolicyConfigurationError(
                f"Version range '{text}' has a lower bound above its upper bound"
            )

        return VersionRange(
            text=text,
            minimum=minimum,
            maximum=maximum,
            include_minimum=opening == "[",
            include_maximum=closing == "]",
        )

    try:
        exact = parse_version(text)
        return VersionRange(text=text, minimum=exact, maximum=exact)
    except ValueError:
        pass

    try:
        return VersionRange(text=text, npm_spec=semantic_version.NpmSpec(text))
    except ValueError as e:
        raise PolicyConfigurationError(f"Invalid version range '{text}'") from e
