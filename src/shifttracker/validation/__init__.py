"""Validation module for verifying roster records."""

from shifttracker.validation.validator import (
    RosterValidator,
    ValidationError,
    ValidationErrorType,
    ValidationResult,
)

__all__ = [
    "RosterValidator",
    "ValidationError",
    "ValidationErrorType",
    "ValidationResult",
]
