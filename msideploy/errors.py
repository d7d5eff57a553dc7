"""Exception types and error formatting utilities.

Every fatal condition raised by msideploy derives from DeployError so the CLI
can report it with a single handler. Recoverable conditions (an inaccessible
registry root, an installer that fails to launch) are never raised past the
operation that hit them; they are logged and recorded as step results.

Error Style Guide:
- User-facing errors use 'Error: ' prefix
- Field errors use structured format: '<entity> field '<field>' <issue>'
- Use present tense: 'must be', 'is required'
- Include actionable hints where helpful
"""


class DeployError(Exception):
    """Base class for all fatal msideploy errors."""


class NotFoundError(DeployError):
    """Raised when the manifest file does not exist."""


class ParseError(DeployError):
    """Raised when the manifest is not valid JSON or not a valid manifest."""


class UnsupportedPackageTypeError(DeployError):
    """Raised when an operation does not support the manifest's package type."""

    def __init__(self, package_type: str, operation: str):
        self.package_type = package_type
        self.operation = operation
        super().__init__(
            f"Package type '{package_type}' is not supported for {operation}"
        )


class ConfigError(DeployError):
    """Raised when the settings file cannot be read or is invalid."""


class RegistryAccessError(DeployError):
    """Raised by registry readers when a key cannot be opened."""


class RegistryKeyNotFoundError(RegistryAccessError):
    """Raised by registry readers when a key does not exist."""


def format_error(message: str) -> str:
    """Format an error message with consistent prefix.

    Examples:
        >>> format_error("manifest not found")
        'Error: manifest not found'
    """
    return f"Error: {message}"


def format_field_error(entity: str, field: str, issue: str) -> str:
    """Format a field validation error with structured format.

    Examples:
        >>> format_field_error("Prereqs[0]", "CheckKey", "is required")
        "Prereqs[0] field 'CheckKey' is required"
    """
    return f"{entity} field '{field}' {issue}"


def format_suggestion(message: str, suggestion: str) -> str:
    """Format an error message with a helpful suggestion.

    Examples:
        >>> format_suggestion("settings file not found", "run 'msideploy config init' to create one")
        "Error: settings file not found. Hint: run 'msideploy config init' to create one"
    """
    return f"{format_error(message)}. Hint: {suggestion}"


__all__ = [
    "DeployError",
    "NotFoundError",
    "ParseError",
    "UnsupportedPackageTypeError",
    "ConfigError",
    "RegistryAccessError",
    "RegistryKeyNotFoundError",
    "format_error",
    "format_field_error",
    "format_suggestion",
]
