"""Exception types raised by package_guard."""


class PackageGuardError(Exception):
    """Base class for all package_guard errors."""


class PolicyConfigurationError(PackageGuardError, ValueError):
    """Raised when a policy is missing or malformed.

    Covers a policy with neither an allow list nor a deny list, and package
    selectors whose version range cannot be parsed.
    """


class RestoreError(PackageGuardError):
    """Raised when a restore/install subprocess exits with a non-zero code."""

    def __init__(self, project_path: str, exit_code: int) -> None:
        super().__init__(
            f"Failed to restore the dependencies for {project_path} with {exit_code}"
        )
        self.project_path = project_path
        self.exit_code = exit_code
