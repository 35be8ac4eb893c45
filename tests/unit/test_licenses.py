"""Tests for license normalization."""

import pytest

from package_guard.licenses import normalize_license


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("MIT", "MIT"),
        ("MIT License", "MIT"),
        ("Apache 2.0", "Apache-2.0"),
        ("Apache License, Version 2.0", "Apache-2.0"),
        ("BSD-3-Clause", "BSD-3-Clause"),
        ("  ISC  ", "ISC"),
    ],
)
def test_known_licenses(raw: str, expected: str) -> None:
    """Test that aliases and SPDX identifiers normalize to SPDX identifiers."""
    assert normalize_license(raw) == expected


@pytest.mark.parametrize("raw", ["GPL-3.0", "LGPL-2.1", "GPL-2.0+"])
def test_deprecated_identifiers_are_kept_as_declared(raw: str) -> None:
    """Test that deprecated SPDX ids are not rewritten to their -only forms."""
    assert normalize_license(raw) == raw


def test_expression_is_kept_as_declared() -> None:
    """Test that compound expressions survive normalization unchanged."""
    assert normalize_license("(MIT OR Apache-2.0)") == "(MIT OR Apache-2.0)"


@pytest.mark.parametrize(
    "raw",
    [
        None,
        "",
        "NOASSERTION",
        "UNKNOWN",
        "SEE LICENSE IN LICENSE",
        "SEE LICENSE IN LICENSE.md",
        "SEE LICENSE IN https://example.com/eula.txt",
    ],
)
def test_unasserted_values_are_none(raw) -> None:
    """Test that placeholder values carry no license."""
    assert normalize_license(raw) is None


def test_unrecognized_license_is_kept_verbatim() -> None:
    """Test that custom license names are not discarded."""
    assert normalize_license("Microsoft .NET Library License") == "Microsoft .NET Library License"
