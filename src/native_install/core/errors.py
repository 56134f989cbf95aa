"""Error taxonomy for install planning and execution.

Configuration and catalog errors are raised before any filesystem mutation.
Execution errors are raised per target and halt the remaining traversal.
"""


class InstallError(Exception):
    """Base class for all installer errors."""


class ConfigurationError(InstallError):
    """Malformed directory overrides, substitution tokens or config files."""


class CyclicDirectoryError(ConfigurationError):
    """Directory overrides reference each other in a cycle."""

    def __init__(self, cycle: list[str]) -> None:
        self.cycle = cycle
        super().__init__("Cyclic directory override: " + " -> ".join(cycle))


class TokenError(ConfigurationError):
    """A substitution token in a path template could not be expanded."""

    def __init__(self, token: str, template: str, reason: str) -> None:
        self.token = token
        self.template = template
        super().__init__(f"{reason} '{token}' in path '{template}'")


class UnknownTokenError(TokenError):
    """A marker names something that is not a directory."""

    def __init__(self, token: str, template: str) -> None:
        super().__init__(token, template, "Unknown substitution token")


class ReservedTokenError(TokenError):
    """A `*dir` identifier is used that is not a known directory name."""

    def __init__(self, token: str, template: str) -> None:
        super().__init__(token, template, "Reserved directory token")


class CatalogError(InstallError):
    """The set of install targets could not be constructed."""

    def __init__(self, target: str, message: str) -> None:
        self.target = target
        super().__init__(f"Target '{target}': {message}")


class ExecutionError(InstallError):
    """A filesystem or external program operation failed for a target."""
