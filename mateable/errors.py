"""Error types raised by mateable.

All errors derive from ValueError so callers that already guard
configuration and data problems with ``except ValueError`` keep working.
Errors are raised at the offending call; nothing is retried internally.
"""

from __future__ import annotations

from typing import Hashable, Optional


class MateableError(ValueError):
    """Base class for every error raised by the package.

    Attributes:
        year: Year label of the scene that failed, when the error was
            raised while processing a MultiYearScene. None otherwise.
    """

    def __init__(self, message: str, year: Optional[Hashable] = None):
        super().__init__(message)
        self.year = year

    def __str__(self) -> str:
        message = super().__str__()
        if self.year is not None:
            return f"[year {self.year}] {message}"
        return message


class ValidationError(MateableError):
    """Malformed or incomplete input records."""


class DimensionError(MateableError):
    """Operation needs a dimension the scene lacks.

    Also raised when a compatibility method does not match the scene's
    declared compatibility model (sex codes vs. allele pairs).
    """


class UnknownMethodError(MateableError):
    """Unrecognised metric or model name."""


class InvalidParameterError(MateableError):
    """Parameter outside its domain (negative spread, inverted range, ...)."""
