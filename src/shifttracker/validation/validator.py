"""Validation module for verifying roster data.

This module provides a single source of truth for every user-correctable
rule: pattern strings, straights weeks, swap requests and schedule row
uniqueness. Every record should pass validation before it is saved.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable, Optional

from shifttracker.domain.errors import ValidationFailed
from shifttracker.domain.models import (
    PATTERN_CODES,
    RotationPattern,
    ScheduleEntry,
    ShiftSwap,
    StraightsAssignment,
)
from shifttracker.domain.policies import DefaultStraightsPolicy, StraightsPolicy


class ValidationErrorType(Enum):
    """Types of validation errors."""

    INVALID_PATTERN_CODE = "invalid_pattern_code"
    EMPTY_PATTERN = "empty_pattern"
    INVALID_CYCLE_LENGTH = "invalid_cycle_length"
    CYCLE_LENGTH_MISMATCH = "cycle_length_mismatch"
    DUPLICATE_ID = "duplicate_id"
    STRAIGHTS_START_NOT_MONDAY = "straights_start_not_monday"
    STRAIGHTS_END_NOT_FRIDAY = "straights_end_not_friday"
    STRAIGHTS_END_BEFORE_START = "straights_end_before_start"
    STRAIGHTS_OVERLAP = "straights_overlap"
    SWAP_SAME_PERSON = "swap_same_person"
    UNKNOWN_PERSON = "unknown_person"
    DUPLICATE_SCHEDULE_ENTRY = "duplicate_schedule_entry"
    INVALID_RECORD = "invalid_record"
    PATTERN_ASSIGNMENT_MISMATCH = "pattern_assignment_mismatch"


@dataclass
class ValidationError:
    """A single validation error."""

    error_type: ValidationErrorType
    message: str
    subject_id: Optional[str] = None
    details: dict = field(default_factory=dict)

    def __str__(self) -> str:
        parts = [f"[{self.error_type.value}]"]
        if self.subject_id:
            parts.append(f"{self.subject_id}:")
        parts.append(self.message)
        return " ".join(parts)


@dataclass
class ValidationResult:
    """Result of validating one or more records."""

    is_valid: bool = True
    errors: list[ValidationError] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    def add_error(self, error: ValidationError) -> None:
        """Add an error and mark as invalid."""
        self.errors.append(error)
        self.is_valid = False

    def add_warning(self, warning: str) -> None:
        """Add a warning (doesn't affect validity)."""
        self.warnings.append(warning)

    def merge(self, other: "ValidationResult") -> None:
        """Fold another result into this one."""
        for error in other.errors:
            self.add_error(error)
        self.warnings.extend(other.warnings)

    def raise_for_errors(self) -> None:
        """Raise ValidationFailed if any error was recorded."""
        if not self.is_valid:
            raise ValidationFailed(self.errors)


class RosterValidator:
    """Validates roster records against all business rules.

    Example:
        >>> validator = RosterValidator()
        >>> result = validator.validate_pattern(pattern)
        >>> if not result.is_valid:
        ...     for error in result.errors:
        ...         print(error)
    """

    def __init__(self, straights_policy: Optional[StraightsPolicy] = None):
        self.straights_policy = straights_policy or DefaultStraightsPolicy()

    def validate_pattern(
        self,
        pattern: RotationPattern,
        existing: Iterable[RotationPattern] = (),
        is_new: bool = False,
    ) -> ValidationResult:
        """Validate a rotation pattern before it is saved.

        Args:
            pattern: The pattern to validate.
            existing: Patterns already stored, for duplicate id checks.
            is_new: If True, the pattern id must not already exist.

        Returns:
            ValidationResult with is_valid flag and any errors.
        """
        result = ValidationResult()

        if not pattern.sequence:
            result.add_error(
                ValidationError(
                    error_type=ValidationErrorType.EMPTY_PATTERN,
                    message="Pattern has no shift codes",
                    subject_id=pattern.id,
                )
            )

        invalid = sorted({code for code in pattern.sequence if code not in PATTERN_CODES})
        if invalid:
            result.add_error(
                ValidationError(
                    error_type=ValidationErrorType.INVALID_PATTERN_CODE,
                    message=(
                        f"Invalid codes {', '.join(invalid)}; "
                        f"use {', '.join(PATTERN_CODES)} separated by commas"
                    ),
                    subject_id=pattern.id,
                    details={"codes": invalid},
                )
            )

        if pattern.cycle_length_days <= 0:
            result.add_error(
                ValidationError(
                    error_type=ValidationErrorType.INVALID_CYCLE_LENGTH,
                    message=f"Cycle length must be positive, got {pattern.cycle_length_days}",
                    subject_id=pattern.id,
                )
            )
        elif pattern.cycle_length_days != len(pattern.sequence):
            result.add_error(
                ValidationError(
                    error_type=ValidationErrorType.CYCLE_LENGTH_MISMATCH,
                    message=(
                        f"Cycle days ({pattern.cycle_length_days}) must match "
                        f"pattern length ({len(pattern.sequence)})"
                    ),
                    subject_id=pattern.id,
                    details={
                        "cycle_length_days": pattern.cycle_length_days,
                        "sequence_length": len(pattern.sequence),
                    },
                )
            )

        if is_new and any(p.id == pattern.id for p in existing):
            result.add_error(
                ValidationError(
                    error_type=ValidationErrorType.DUPLICATE_ID,
                    message="Pattern ID already exists",
                    subject_id=pattern.id,
                )
            )

        return result

    def validate_straights(
        self,
        assignment: StraightsAssignment,
        existing: Iterable[StraightsAssignment] = (),
    ) -> ValidationResult:
        """Validate a straights assignment before it is saved.

        An existing assignment with the same id is the one being edited
        and is not counted as an overlap.
        """
        result = ValidationResult()
        policy = self.straights_policy

        if not policy.is_valid_start(assignment.start_date):
            result.add_error(
                ValidationError(
                    error_type=ValidationErrorType.STRAIGHTS_START_NOT_MONDAY,
                    message=f"Start date {assignment.start_date} must be a Monday",
                    subject_id=assignment.id,
                )
            )

        if assignment.end_date < assignment.start_date:
            result.add_error(
                ValidationError(
                    error_type=ValidationErrorType.STRAIGHTS_END_BEFORE_START,
                    message=(
                        f"End date {assignment.end_date} is before "
                        f"start date {assignment.start_date}"
                    ),
                    subject_id=assignment.id,
                )
            )
        elif not policy.is_valid_end(assignment.start_date, assignment.end_date):
            result.add_error(
                ValidationError(
                    error_type=ValidationErrorType.STRAIGHTS_END_NOT_FRIDAY,
                    message=(
                        f"End date {assignment.end_date} must be the Friday "
                        f"of the starting week"
                    ),
                    subject_id=assignment.id,
                )
            )

        for other in existing:
            if other.id == assignment.id or other.person_id != assignment.person_id:
                continue
            if other.overlaps(assignment):
                result.add_error(
                    ValidationError(
                        error_type=ValidationErrorType.STRAIGHTS_OVERLAP,
                        message=(
                            f"Overlaps straights {other.id} "
                            f"({other.start_date} to {other.end_date})"
                        ),
                        subject_id=assignment.id,
                        details={"person_id": assignment.person_id, "other_id": other.id},
                    )
                )

        return result

    def validate_swap_request(
        self,
        swap: ShiftSwap,
        known_person_ids: Optional[set[str]] = None,
    ) -> ValidationResult:
        """Validate a new shift swap request."""
        result = ValidationResult()

        if swap.requestor_id == swap.requestee_id:
            result.add_error(
                ValidationError(
                    error_type=ValidationErrorType.SWAP_SAME_PERSON,
                    message="Requestor and swap person cannot be the same",
                    subject_id=swap.id,
                )
            )

        if known_person_ids is not None:
            for person_id in (swap.requestor_id, swap.requestee_id):
                if person_id not in known_person_ids:
                    result.add_error(
                        ValidationError(
                            error_type=ValidationErrorType.UNKNOWN_PERSON,
                            message=f"Unknown person {person_id}",
                            subject_id=swap.id,
                        )
                    )

        return result

    def validate_schedule(self, entries: Iterable[ScheduleEntry]) -> ValidationResult:
        """Check that generated rows are unique per (person, date).

        Override rows written by swap completion are exempt; they sit
        alongside the generated row they supersede.
        """
        result = ValidationResult()
        seen: dict[tuple, str] = {}

        for entry in entries:
            if entry.is_override:
                continue
            if entry.key in seen:
                result.add_error(
                    ValidationError(
                        error_type=ValidationErrorType.DUPLICATE_SCHEDULE_ENTRY,
                        message=(
                            f"{entry.person_id} already has row {seen[entry.key]} "
                            f"on {entry.date}"
                        ),
                        subject_id=entry.id,
                    )
                )
            else:
                seen[entry.key] = entry.id

        return result
