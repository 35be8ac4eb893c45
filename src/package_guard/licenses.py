"""License string normalization.

Registries report licenses in free form ("MIT License", "Apache 2.0") or as
SPDX identifiers. This module maps the free-form aliases to SPDX identifiers
and keeps declared identifiers as they are, so that policy license lists
compare with what packages actually declare.
"""

import logging
from functools import lru_cache
from typing import Optional

from license_expression import ExpressionError, get_spdx_licensing

logger = logging.getLogger(__name__)

SPDX = get_spdx_licensing()

# Common license aliases and variations map
LICENSE_MAP = {
    "Apache 2.0": "Apache-2.0",
    "Apache License 2.0": "Apache-2.0",
    "Apache License, Version 2.0": "Apache-2.0",
    "Apache-2": "Apache-2.0",
    "MIT License": "MIT",
    "The MIT License": "MIT",
    "BSD License": "BSD-3-Clause",
    "BSD 3-Clause License": "BSD-3-Clause",
    "BSD 2-Clause License": "BSD-2-Clause",
    "GNU General Public License v3": "GPL-3.0",
    "GNU General Public License v2": "GPL-2.0",
    "GNU Lesser General Public License v3": "LGPL-3.0",
    "Mozilla Public License 2.0": "MPL-2.0",
    "ISC License": "ISC",
}

# Values registries use to say "no license information"
_UNASSERTED = {"", "NOASSERTION", "UNKNOWN", "NONE"}

# npm's pointer to a license file shipped in the package
_LICENSE_FILE_POINTER = "SEE LICENSE IN "


@lru_cache(maxsize=1024)
def normalize_license(license_text: Optional[str]) -> Optional[str]:
    """Normalize a license string for comparison with policy license lists.

    Known free-form aliases are mapped to SPDX identifiers. Anything else
    is kept as declared, so ``GPL-3.0`` stays ``GPL-3.0`` and matches a
    policy that lists it. The license-expression library only checks
    whether the text is a known SPDX expression; strings it cannot parse
    are kept as well, since policies may list custom license names such
    as "Microsoft .NET Library License".

    Args:
        license_text: Raw license string from a registry or lock file.

    Returns:
        The normalized license, or None if the text carries no license.
    """
    if license_text is None:
        return None

    license_text = license_text.strip()
    if license_text.upper() in _UNASSERTED:
        return None

    if license_text.upper().startswith(_LICENSE_FILE_POINTER):
        return None

    if license_text in LICENSE_MAP:
        return LICENSE_MAP[license_text]

    try:
        SPDX.parse(license_text, validate=True, strict=True)
    except ExpressionError as e:
        logger.debug("Keeping unrecognized license '%s' as is: %s", license_text, e)

    return license_text
