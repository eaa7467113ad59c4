"""Exception types raised by the roster engine."""

from typing import Optional, Sequence


class ShiftRosterError(Exception):
    """Base class for all roster engine errors."""


class ConfigurationError(ShiftRosterError):
    """Raised when the configuration cannot support a scheduling run.

    Configuration errors are fatal: the run aborts before any cell of the
    grid is written. The message always names the missing or invalid
    resource.

    Attributes:
        resource: Name of the rule, shift or record that is missing or invalid.
    """

    def __init__(self, message: str, resource: Optional[str] = None):
        super().__init__(message)
        self.resource = resource


class ScheduleValidationError(ShiftRosterError):
    """Raised on request when a finished schedule has rule violations.

    The validator itself never raises; callers that prefer exceptions call
    ``ValidationResult.raise_for_errors()``.
    """

    def __init__(self, errors: Sequence):
        self.errors = list(errors)
        lines = [f"Schedule validation failed with {len(self.errors)} violation(s):"]
        lines.extend(f"  - {error}" for error in self.errors)
        super().__init__("\n".join(lines))
