"""Tracker configuration.

Defaults match a plant running the DuPont rotation with twelve-hour shifts.
Any field can be overridden from a JSON document:

    {
        "spreadsheet_id": "1YAQ...",
        "shift_times": {"Day": ["07:00", "19:00"], "Night": ["19:00", "07:00"]},
        "default_location": "North Plant"
    }
"""

import json
from dataclasses import dataclass, field, fields
from datetime import date
from pathlib import Path
from typing import Optional, Union

from shifttracker.domain.errors import ValidationFailed
from shifttracker.domain.models import RotationPattern, ShiftType
from shifttracker.domain.policies import DefaultShiftTimePolicy, parse_clock
from shifttracker.validation.validator import ValidationError, ValidationErrorType

DUPONT_PATTERN = "D,D,D,D,O,O,O,N,N,N,N,O,O,O,D,D,D,O,O,O,O,N,N,N,O,O,O,O"

# Shift types that carry clock times
TIMED_SHIFTS = (ShiftType.DAY.value, ShiftType.NIGHT.value, ShiftType.STRAIGHTS.value)


@dataclass
class SheetNames:
    """Names of the tables (spreadsheet tabs) the tracker reads and writes."""

    teams: str = "Teams"
    positions: str = "Positions"
    personnel: str = "Personnel"
    rotation_patterns: str = "RotationPatterns"
    shift_schedule: str = "ShiftSchedule"
    shift_swaps: str = "ShiftSwaps"
    straights: str = "StraightsAssignments"


@dataclass
class TrackerConfig:
    """Configuration for the roster tracker.

    Attributes:
        spreadsheet_id: Google Sheets document key, empty when unused.
        credentials_file: Service account JSON for the Sheets store.
        sheets: Table names.
        shift_times: Shift type name -> (start, end) as HH:MM strings.
        default_location: Location stamped on generated rows.
        default_pattern: Pattern used when none is stored.
        default_pattern_name: Display name of the default pattern.
        reference_start_date: Default pattern reference date.
        generation_days: Default number of days to generate.
    """

    spreadsheet_id: str = ""
    credentials_file: str = ""
    sheets: SheetNames = field(default_factory=SheetNames)
    shift_times: dict[str, tuple[str, str]] = field(
        default_factory=lambda: {
            "Day": ("06:00", "18:00"),
            "Night": ("18:00", "06:00"),
            "Straights": ("07:00", "15:00"),
        }
    )
    default_location: str = "Main Plant"
    default_pattern: str = DUPONT_PATTERN
    default_pattern_name: str = "DuPont"
    reference_start_date: date = date(2024, 1, 1)
    generation_days: int = 90

    def shift_time_policy(self) -> DefaultShiftTimePolicy:
        """Build the shift time policy these settings describe."""
        policy = DefaultShiftTimePolicy(default_location=self.default_location)
        for name, (start, end) in self.shift_times.items():
            shift_type = ShiftType(name)
            if shift_type is ShiftType.DAY:
                policy.day_start, policy.day_end = parse_clock(start), parse_clock(end)
            elif shift_type is ShiftType.NIGHT:
                policy.night_start, policy.night_end = parse_clock(start), parse_clock(end)
            elif shift_type is ShiftType.STRAIGHTS:
                policy.straights_start, policy.straights_end = (
                    parse_clock(start),
                    parse_clock(end),
                )
        return policy

    def default_rotation_pattern(self) -> RotationPattern:
        """The configured default pattern as a model."""
        return RotationPattern.from_string(
            "RP001",
            self.default_pattern_name,
            self.default_pattern,
            description="Default rotation pattern",
            is_active=True,
        )

    @classmethod
    def from_dict(cls, data: dict) -> "TrackerConfig":
        """Create a config from a plain dict, rejecting unknown keys."""
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ValidationFailed([
                ValidationError(
                    error_type=ValidationErrorType.INVALID_RECORD,
                    message=f"Unknown config key {key!r}",
                    subject_id="config",
                )
                for key in unknown
            ])

        values = dict(data)
        if "sheets" in values:
            values["sheets"] = SheetNames(**values["sheets"])
        if "shift_times" in values:
            cls._check_shift_times(values["shift_times"])
            merged = cls().shift_times
            merged.update({k: tuple(v) for k, v in values["shift_times"].items()})
            values["shift_times"] = merged
        if "reference_start_date" in values:
            values["reference_start_date"] = date.fromisoformat(values["reference_start_date"])
        return cls(**values)

    @staticmethod
    def _check_shift_times(shift_times: dict) -> None:
        errors = []
        for name, times in shift_times.items():
            if name not in TIMED_SHIFTS:
                errors.append(ValidationError(
                    error_type=ValidationErrorType.INVALID_RECORD,
                    message=(
                        f"Unknown shift type {name!r} in shift_times, "
                        f"expected one of {', '.join(TIMED_SHIFTS)}"
                    ),
                    subject_id="config",
                ))
                continue
            if not isinstance(times, (list, tuple)) or len(times) != 2:
                errors.append(ValidationError(
                    error_type=ValidationErrorType.INVALID_RECORD,
                    message=f"shift_times[{name!r}] needs a start and an end",
                    subject_id="config",
                ))
                continue
            for text in times:
                try:
                    parse_clock(str(text))
                except ValueError:
                    errors.append(ValidationError(
                        error_type=ValidationErrorType.INVALID_RECORD,
                        message=f"shift_times[{name!r}] has invalid time {text!r}",
                        subject_id="config",
                    ))
        if errors:
            raise ValidationFailed(errors)

    @classmethod
    def from_file(cls, path: Union[str, Path]) -> "TrackerConfig":
        """Load a config from a JSON file."""
        with open(path) as f:
            return cls.from_dict(json.load(f))


def load_config(path: Optional[Union[str, Path]] = None) -> TrackerConfig:
    """Load configuration from a file, or return the defaults."""
    if path is None:
        return TrackerConfig()
    return TrackerConfig.from_file(path)
