"""Loading of policy configuration files.

Policies are JSON or YAML documents, optionally wrapped in a top-level
``Settings`` key::

    {
        "Settings": {
            "Allow": {
                "Packages": ["Bogus/[1.0.0,2.0.0)", "@babel/core"],
                "Licenses": ["MIT", "Apache-2.0"],
                "Feeds": ["*v3/index.json*"],
                "Prerelease": true
            },
            "Deny": {"Packages": ["lodash/<4.17.21"], "Licenses": ["GPL-3.0"]},
            "IgnoredFeeds": ["*mycompany*"]
        }
    }

Keys are matched case-insensitively. Several files merge in order: lists
are concatenated and booleans set by a later file override earlier ones.
"""

import json
import logging
from pathlib import Path
from typing import Any, Optional

import yaml

from package_guard.exceptions import PolicyConfigurationError
from package_guard.models import AllowList, DenyList, PackageSelector, ProjectPolicy

logger = logging.getLogger(__name__)

# Looked up in the analyzed directory when no configuration file is given
DEFAULT_CONFIG_FILES = [
    Path("packageguard.config.json"),
    Path("packageguard.config.yaml"),
    Path("packageguard.config.yml"),
    Path(".packageguard") / "config.json",
]


def _lower_keys(value: Any) -> Any:
    if isinstance(value, dict):
        return {str(key).lower(): _lower_keys(item) for key, item in value.items()}
    return value


def _string_list(section: dict[str, Any], key: str, path: Path) -> list[str]:
    value = section.get(key)
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    if not isinstance(value, list) or not all(isinstance(item, str) for item in value):
        raise PolicyConfigurationError(f"'{key}' in {path} must be a list of strings")
    return list(value)


def _boolean(section: dict[str, Any], key: str, path: Path) -> Optional[bool]:
    value = section.get(key)
    if value is None or isinstance(value, bool):
        return value
    raise PolicyConfigurationError(f"'{key}' in {path} must be true or false")


def read_config_file(path: Path) -> dict[str, Any]:
    """Read a policy file into a dictionary with lower-cased keys.

    Args:
        path: JSON or YAML policy file.

    Returns:
        The contents of the ``settings`` section, or of the whole document.

    Raises:
        FileNotFoundError: If the file does not exist.
        PolicyConfigurationError: If the file cannot be parsed.
    """
    if not path.exists():
        raise FileNotFoundError(f"Configuration file not found: {path}")

    logger.info("Loading the policies from %s", path)
    content = path.read_text(encoding="utf-8")

    try:
        if path.suffix.lower() == ".json":
            data = json.loads(content)
        else:
            data = yaml.safe_load(content)
    except (json.JSONDecodeError, yaml.YAMLError) as e:
        raise PolicyConfigurationError(f"Failed to parse {path}: {e}") from e

    data = _lower_keys(data or {})
    if not isinstance(data, dict):
        raise PolicyConfigurationError(f"{path} must contain a mapping")

    settings = data.get("settings", data)
    if not isinstance(settings, dict):
        raise PolicyConfigurationError(f"'Settings' in {path} must be a mapping")

    return settings


def merge_policy(policy: ProjectPolicy, settings: dict[str, Any], path: Path) -> None:
    """Append the policies of one configuration file to a policy.

    Args:
        policy: Policy to extend in place.
        settings: Settings read by read_config_file().
        path: File the settings came from, for error messages.

    Raises:
        PolicyConfigurationError: If a value has the wrong type or a package
            selector has an invalid version range.
    """
    allow = settings.get("allow") or {}
    deny = settings.get("deny") or {}

    policy.allow_list.packages.extend(
        PackageSelector.parse(text) for text in _string_list(allow, "packages", path)
    )
    policy.allow_list.licenses.extend(_string_list(allow, "licenses", path))
    policy.allow_list.feeds.extend(_string_list(allow, "feeds", path))

    prerelease = _boolean(allow, "prerelease", path)
    if prerelease is not None:
        policy.allow_list.prerelease = prerelease

    policy.deny_list.packages.extend(
        PackageSelector.parse(text) for text in _string_list(deny, "packages", path)
    )
    policy.deny_list.licenses.extend(_string_list(deny, "licenses", path))

    prerelease = _boolean(deny, "prerelease", path)
    if prerelease is not None:
        policy.deny_list.prerelease = prerelease

    policy.ignored_feeds.extend(_string_list(settings, "ignoredfeeds", path))


def load_policy(paths: list[Path]) -> ProjectPolicy:
    """Load and merge policy files.

    Args:
        paths: Configuration files, merged in order.

    Returns:
        The merged, unvalidated ProjectPolicy.
    """
    policy = ProjectPolicy(allow_list=AllowList(), deny_list=DenyList())

    for path in paths:
        merge_policy(policy, read_config_file(path), path)

    return policy


def find_config_files(directory: Path) -> list[Path]:
    """Return the default configuration files present in a directory."""
    if directory.is_file():
        directory = directory.parent
    return [directory / name for name in DEFAULT_CONFIG_FILES if (directory / name).is_file()]
