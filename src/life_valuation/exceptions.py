"""
life_valuation/exceptions.py - Error Taxonomy

Every failure raised by the package derives from ActuarialError so callers
can catch the whole family at once, or one branch of it:

- DataIntegrityError: malformed raw mortality table
- ValidationError:    a calculation parameter breaks a cross-field rule
- OutOfRangeError:    an age/duration lookup outside the table domain
- ConfigError:        a required parameter or option was not supplied
- ComputationError:   a numeric path that would yield NaN/Inf

Author: Actuarial Pipeline Project
License: MIT
"""

from typing import Optional


class ActuarialError(Exception):
    """Base class for all life_valuation errors."""


class DataIntegrityError(ActuarialError, ValueError):
    """Raw table rows violate the canonical table contract."""


class ValidationError(ActuarialError, ValueError):
    """
    A calculation parameter violates a validation rule.

    Attributes:
        field: Name of the offending parameter (e.g. 'x', 'entry_age')
    """

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message)
        self.field = field


class OutOfRangeError(ValidationError):
    """An age or duration falls outside the table's representable domain."""


class ConfigError(ActuarialError, ValueError):
    """A required parameter for the requested formula was not supplied."""

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message)
        self.field = field


class ComputationError(ActuarialError, ArithmeticError):
    """The requested value is undefined for the given inputs."""


__all__ = [
    "ActuarialError",
    "DataIntegrityError",
    "ValidationError",
    "OutOfRangeError",
    "ConfigError",
    "ComputationError",
]
