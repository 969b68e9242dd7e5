"""Domain models for the roster tracker.

This module contains the core data structures shared by the rotation engine,
the validator and the storage layer: people and their teams and positions,
rotation patterns, materialized schedule rows, straights assignments and
shift swaps.
"""

from dataclasses import dataclass, field
from datetime import date, time, timedelta
from enum import Enum
from typing import Optional, Union


class ShiftType(Enum):
    """Closed set of shift types a person can be assigned on a date."""

    DAY = "Day"
    NIGHT = "Night"
    OFF = "Off"
    STRAIGHTS = "Straights"  # Fixed weekday assignment, never from a pattern

    @property
    def is_working(self) -> bool:
        """Whether this shift type puts the person on duty."""
        return self is not ShiftType.OFF


# Single-character codes used in pattern strings
PATTERN_CODES: dict[str, ShiftType] = {
    "D": ShiftType.DAY,
    "N": ShiftType.NIGHT,
    "O": ShiftType.OFF,
}


class SwapStatus(Enum):
    """Approval states of a shift swap."""

    PENDING = "Pending"
    APPROVED = "Approved"
    REJECTED = "Rejected"
    COMPLETED = "Completed"

    @property
    def is_terminal(self) -> bool:
        return self in (SwapStatus.REJECTED, SwapStatus.COMPLETED)


class PersonStatus(Enum):
    """Employment status of a person. Only ACTIVE people are scheduled."""

    ACTIVE = "Active"
    LOA = "LOA"
    TERMINATED = "Terminated"
    TRAINING = "Training"
    PROBATION = "Probation"


class AssignmentSource(Enum):
    """Where an effective assignment came from, highest precedence first."""

    STRAIGHTS = "straights"
    SWAP = "swap"
    PATTERN = "pattern"
    NONE = "none"  # No schedule row for the person on that date


def parse_pattern_string(text: str) -> list[str]:
    """Split a comma-separated pattern string into normalized codes.

    Codes are stripped and upper-cased; empty items are dropped so that a
    trailing comma does not add a phantom day. Codes are not checked against
    the allowed set here, see RosterValidator.validate_pattern.
    """
    return [code.strip().upper() for code in text.split(",") if code.strip()]


@dataclass
class RotationPattern:
    """A fixed-length cycle of shift codes repeated from a reference date.

    Attributes:
        id: Unique pattern identifier (e.g. "RP001").
        name: Display name (e.g. "DuPont").
        cycle_length_days: Declared number of days in one cycle.
        sequence: Ordered shift codes, one per day of the cycle.
        description: Free text.
        is_active: Whether this is the pattern used for generation.
    """

    id: str
    name: str
    cycle_length_days: int
    sequence: list[str] = field(default_factory=list)
    description: str = ""
    is_active: bool = False

    @classmethod
    def from_string(
        cls,
        pattern_id: str,
        name: str,
        pattern: str,
        cycle_length_days: Optional[int] = None,
        description: str = "",
        is_active: bool = False,
    ) -> "RotationPattern":
        """Create a pattern from its comma-separated wire format.

        Args:
            pattern_id: Unique pattern identifier.
            name: Display name.
            pattern: Comma-separated codes, e.g. "D,D,N,N,O,O".
            cycle_length_days: Declared cycle length. Defaults to the
                number of codes in the string.
            description: Free text.
            is_active: Whether the pattern is the active one.
        """
        sequence = parse_pattern_string(pattern)
        if cycle_length_days is None:
            cycle_length_days = len(sequence)
        return cls(
            id=pattern_id,
            name=name,
            cycle_length_days=cycle_length_days,
            sequence=sequence,
            description=description,
            is_active=is_active,
        )

    @property
    def pattern_string(self) -> str:
        """The normalized wire format of the sequence."""
        return ",".join(self.sequence)

    def code_counts(self) -> dict[str, int]:
        """Count how many days of the cycle carry each code."""
        counts: dict[str, int] = {}
        for code in self.sequence:
            counts[code] = counts.get(code, 0) + 1
        return counts


@dataclass
class PatternAssignment:
    """Which cycle position a team or position occupies on any date.

    Attributes:
        pattern_id: Rotation pattern to follow.
        reference_start_date: Date on which offset 0 is at cycle day 0;
            None means the configured reference date.
        offset_days: Days added before indexing into the pattern.
    """

    pattern_id: str
    reference_start_date: Optional[date]
    offset_days: int = 0


@dataclass
class Team:
    """A crew that rotates through a pattern together."""

    id: str
    name: str
    color: str = ""
    pattern_assignment: Optional[PatternAssignment] = None


@dataclass
class Position:
    """A role within a team, optionally with its own pattern offset."""

    id: str
    name: str
    team_id: str = ""
    min_staffing: int = 0
    pattern_assignment: Optional[PatternAssignment] = None


@dataclass
class Person:
    """A person on the roster."""

    id: str
    first_name: str
    last_name: str
    team_id: str = ""
    position_id: str = ""
    status: PersonStatus = PersonStatus.ACTIVE

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    @property
    def is_active(self) -> bool:
        return self.status is PersonStatus.ACTIVE


@dataclass
class ScheduleEntry:
    """A materialized shift for one person on one date.

    Attributes:
        id: Unique row identifier.
        person_id: Person who works this row.
        date: Calendar day of the shift.
        shift_type: Shift type from the pattern (never STRAIGHTS).
        start_time: Clock time the shift starts, None when off.
        end_time: Clock time the shift ends, None when off. Night shifts
            end on the following morning.
        is_override: True once a completed swap rewrote this row.
        notes: Free text.
        team_id: Team the row was generated for.
        location: Work location.
    """

    id: str
    person_id: str
    date: date
    shift_type: ShiftType
    start_time: Optional[time] = None
    end_time: Optional[time] = None
    is_override: bool = False
    notes: str = ""
    team_id: str = ""
    location: str = ""

    @property
    def key(self) -> tuple[str, date]:
        """The (person_id, date) pair generated rows are unique on."""
        return (self.person_id, self.date)

    def same_shift(self, other: "ScheduleEntry") -> bool:
        """Compare everything except the row id."""
        return (
            self.person_id == other.person_id
            and self.date == other.date
            and self.shift_type == other.shift_type
            and self.start_time == other.start_time
            and self.end_time == other.end_time
            and self.is_override == other.is_override
            and self.team_id == other.team_id
            and self.location == other.location
        )


@dataclass
class StraightsAssignment:
    """A fixed weekday assignment that overrides the rotation.

    Attributes:
        id: Unique assignment identifier.
        person_id: Person on straights.
        start_date: First day, a Monday by policy.
        end_date: Last day (inclusive), the Friday of the same week.
        location: Where the person reports.
        daily_start_time: Start time on each covered day.
        daily_end_time: End time on each covered day.
        notes: Free text.
    """

    id: str
    person_id: str
    start_date: date
    end_date: date
    location: str = ""
    daily_start_time: Optional[time] = None
    daily_end_time: Optional[time] = None
    notes: str = ""

    def covers(self, on_date: date) -> bool:
        """Check if a date falls within this assignment."""
        return self.start_date <= on_date <= self.end_date

    def overlaps(self, other: "StraightsAssignment") -> bool:
        """Check if two date ranges share at least one day."""
        return self.start_date <= other.end_date and other.start_date <= self.end_date

    @property
    def dates(self) -> list[date]:
        """Every covered date, in order."""
        return [
            self.start_date + timedelta(days=i)
            for i in range((self.end_date - self.start_date).days + 1)
        ]


@dataclass
class ShiftSwap:
    """A request to exchange two people's shifts on two dates.

    The requestor gives up their shift on original_date and takes the
    requestee's shift on swap_date.
    """

    id: str
    requestor_id: str
    requestee_id: str
    original_date: date
    swap_date: date
    status: SwapStatus = SwapStatus.PENDING
    approved_by: str = ""
    approved_date: Optional[date] = None
    notes: str = ""

    def counterpart(self, person_id: str, on_date: date) -> Optional[str]:
        """Return who takes over person_id's slot on on_date, if this swap does."""
        if person_id == self.requestor_id and on_date == self.original_date:
            return self.requestee_id
        if person_id == self.requestee_id and on_date == self.swap_date:
            return self.requestor_id
        return None


@dataclass
class EffectiveAssignment:
    """The resolved assignment of a schedule slot, computed on read.

    Attributes:
        person_id: Person who actually works the slot.
        date: Calendar day.
        shift_type: Resolved shift type (STRAIGHTS when a straights
            assignment applies).
        start_time: Resolved start time.
        end_time: Resolved end time.
        location: Resolved location.
        source: Which rule produced this assignment.
        entry_id: Base schedule row, if any.
        straights_id: Straights assignment that applied, if any.
        swap_id: Completed swap that applied, if any.
    """

    person_id: str
    date: date
    shift_type: ShiftType
    start_time: Optional[time] = None
    end_time: Optional[time] = None
    location: str = ""
    source: AssignmentSource = AssignmentSource.PATTERN
    entry_id: Optional[str] = None
    straights_id: Optional[str] = None
    swap_id: Optional[str] = None

    @property
    def is_working(self) -> bool:
        return self.shift_type.is_working


@dataclass
class GenerationResult:
    """Rows produced by one schedule generation run.

    Attributes:
        entries: New and replaced rows, in generation order.
        created: Number of rows with no previous counterpart.
        replaced: Number of existing rows overwritten in place.
        skipped: Number of (person, date) pairs left untouched.
    """

    entries: list[ScheduleEntry] = field(default_factory=list)
    created: int = 0
    replaced: int = 0
    skipped: int = 0

    @property
    def total_written(self) -> int:
        return self.created + self.replaced


PatternLike = Union[RotationPattern, str, list[str]]


def date_range(start: date, days: int) -> list[date]:
    """List `days` consecutive dates beginning at `start`."""
    return [start + timedelta(days=i) for i in range(days)]
