"""Custom exceptions for the firewall bouncer.

All exceptions provide:
- Clear error messages
- Optional hints for resolution
- Optional details for debugging
- Exit codes for proper shell integration
"""

from typing import Optional


class BouncerError(Exception):
    """Base exception for all firewall bouncer errors.

    Attributes:
        message: Human-readable error description
        hint: Suggested action to resolve the error
        details: Additional context for debugging
        exit_code: Shell exit code (1-127)
    """

    exit_code: int = 1

    def __init__(
        self,
        message: str,
        *,
        hint: Optional[str] = None,
        details: Optional[list[str]] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.hint = hint
        self.details = details or []

    def __str__(self) -> str:
        return self.message


class ConfigurationError(BouncerError):
    """Configuration file or settings errors.

    Raised when:
    - Config file unreadable
    - Invalid YAML syntax
    - Invalid configuration values
    """
    exit_code = 2


class ValidationError(BouncerError):
    """Input validation errors.

    Raised when:
    - Decision duration cannot be parsed
    - Decision batch file is malformed
    - Table name is invalid
    """
    exit_code = 3


class ExecutionError(BouncerError):
    """The firewall tool could not be run.

    Raised when:
    - Firewall tool cannot be launched
    - Firewall tool times out

    A non-zero exit is not an ExecutionError; callers inspect the result.
    """
    exit_code = 5

    def __init__(
        self,
        message: str,
        *,
        command: Optional[str] = None,
        hint: Optional[str] = None,
        details: Optional[list[str]] = None,
    ) -> None:
        super().__init__(message, hint=hint, details=details)
        self.command = command


class PrerequisiteError(BouncerError):
    """Missing prerequisites.

    Raised when:
    - Firewall control tool not found
    - Kernel device not present
    """
    exit_code = 6


# Domain-specific exceptions

class BackendError(BouncerError):
    """Firewall backend errors.

    Raised when:
    - Required table does not exist
    - Table listing fails
    """
    exit_code = 15

    def __init__(
        self,
        message: str,
        *,
        table: Optional[str] = None,
        hint: Optional[str] = None,
        details: Optional[list[str]] = None,
    ) -> None:
        super().__init__(message, hint=hint, details=details)
        self.table = table


class DecisionError(BouncerError):
    """A single decision could not be processed.

    The original error is chained as ``__cause__``.
    """
    exit_code = 16

    def __init__(
        self,
        message: str,
        *,
        value: Optional[str] = None,
        hint: Optional[str] = None,
        details: Optional[list[str]] = None,
    ) -> None:
        super().__init__(message, hint=hint, details=details)
        self.value = value


class UnsupportedBackendError(BouncerError):
    """Requested firewall engine cannot run here."""
    exit_code = 17
