"""Conversion between table rows and domain models.

Every table uses one canonical schema. Rows are plain dicts of strings: dates
are ISO (YYYY-MM-DD), clock times HH:MM and booleans TRUE/FALSE.
"""

from datetime import date
from typing import Callable, Optional, TypeVar

from shifttracker.domain.errors import ValidationFailed
from shifttracker.domain.models import (
    PatternAssignment,
    Person,
    PersonStatus,
    Position,
    RotationPattern,
    ScheduleEntry,
    ShiftSwap,
    ShiftType,
    StraightsAssignment,
    SwapStatus,
    Team,
    parse_pattern_string,
)
from shifttracker.domain.policies import format_clock, parse_clock
from shifttracker.storage.tables import Record
from shifttracker.validation.validator import ValidationError, ValidationErrorType

M = TypeVar("M")

HEADERS: dict[str, list[str]] = {
    "Teams": ["TeamID", "TeamName", "Color", "PatternID", "PatternStartDate", "PatternOffset"],
    "Positions": [
        "PositionID", "PositionName", "TeamID", "MinStaffing",
        "PatternID", "PatternStartDate", "PatternOffset",
    ],
    "Personnel": ["PersonnelID", "FirstName", "LastName", "TeamID", "PositionID", "Status"],
    "RotationPatterns": ["PatternID", "PatternName", "CycleDays", "Pattern", "Description", "IsActive"],
    "ShiftSchedule": [
        "ScheduleID", "PersonnelID", "TeamID", "Date", "ShiftType",
        "StartTime", "EndTime", "Location", "IsOverride", "Notes",
    ],
    "ShiftSwaps": [
        "SwapID", "RequestorID", "RequesteeID", "OriginalDate", "SwapDate",
        "Status", "ApprovedBy", "ApprovedDate", "Notes",
    ],
    "StraightsAssignments": [
        "AssignmentID", "PersonnelID", "StartDate", "EndDate", "Location",
        "DailyStartTime", "DailyEndTime", "Notes",
    ],
}


def _bool(value: str) -> bool:
    return str(value).strip().upper() == "TRUE"


def _flag(value: bool) -> str:
    return "TRUE" if value else "FALSE"


def _date(value: str) -> date:
    return date.fromisoformat(str(value).strip())


def _optional_date(value: str) -> Optional[date]:
    return _date(value) if str(value or "").strip() else None


def _int(value: str, default: int = 0) -> int:
    text = str(value or "").strip()
    return int(text) if text else default


def _pattern_assignment(row: Record) -> Optional[PatternAssignment]:
    if not str(row.get("PatternID", "")).strip():
        return None
    return PatternAssignment(
        pattern_id=row["PatternID"].strip(),
        reference_start_date=_optional_date(row.get("PatternStartDate")),
        offset_days=_int(row.get("PatternOffset")),
    )


def _pattern_columns(assignment: Optional[PatternAssignment]) -> Record:
    if assignment is None:
        return {"PatternID": "", "PatternStartDate": "", "PatternOffset": ""}
    return {
        "PatternID": assignment.pattern_id,
        "PatternStartDate": (
            assignment.reference_start_date.isoformat()
            if assignment.reference_start_date
            else ""
        ),
        "PatternOffset": str(assignment.offset_days),
    }


# Teams

def team_from_row(row: Record) -> Team:
    return Team(
        id=row["TeamID"],
        name=row.get("TeamName", ""),
        color=row.get("Color", ""),
        pattern_assignment=_pattern_assignment(row),
    )


def team_to_row(team: Team) -> Record:
    return {
        "TeamID": team.id,
        "TeamName": team.name,
        "Color": team.color,
        **_pattern_columns(team.pattern_assignment),
    }


# Positions

def position_from_row(row: Record) -> Position:
    return Position(
        id=row["PositionID"],
        name=row.get("PositionName", ""),
        team_id=row.get("TeamID", ""),
        min_staffing=_int(row.get("MinStaffing")),
        pattern_assignment=_pattern_assignment(row),
    )


def position_to_row(position: Position) -> Record:
    return {
        "PositionID": position.id,
        "PositionName": position.name,
        "TeamID": position.team_id,
        "MinStaffing": str(position.min_staffing),
        **_pattern_columns(position.pattern_assignment),
    }


# Personnel

def person_from_row(row: Record) -> Person:
    return Person(
        id=row["PersonnelID"],
        first_name=row.get("FirstName", ""),
        last_name=row.get("LastName", ""),
        team_id=row.get("TeamID", ""),
        position_id=row.get("PositionID", ""),
        status=PersonStatus(row.get("Status") or PersonStatus.ACTIVE.value),
    )


def person_to_row(person: Person) -> Record:
    return {
        "PersonnelID": person.id,
        "FirstName": person.first_name,
        "LastName": person.last_name,
        "TeamID": person.team_id,
        "PositionID": person.position_id,
        "Status": person.status.value,
    }


# Rotation patterns

def pattern_from_row(row: Record) -> RotationPattern:
    sequence = parse_pattern_string(row.get("Pattern", ""))
    cycle_days = _int(row.get("CycleDays"), default=len(sequence))
    return RotationPattern(
        id=row["PatternID"],
        name=row.get("PatternName", ""),
        cycle_length_days=cycle_days,
        sequence=sequence,
        description=row.get("Description", ""),
        is_active=_bool(row.get("IsActive", "")),
    )


def pattern_to_row(pattern: RotationPattern) -> Record:
    return {
        "PatternID": pattern.id,
        "PatternName": pattern.name,
        "CycleDays": str(pattern.cycle_length_days),
        "Pattern": pattern.pattern_string,
        "Description": pattern.description,
        "IsActive": _flag(pattern.is_active),
    }


# Shift schedule

def entry_from_row(row: Record) -> ScheduleEntry:
    return ScheduleEntry(
        id=row["ScheduleID"],
        person_id=row["PersonnelID"],
        date=_date(row["Date"]),
        shift_type=ShiftType(row.get("ShiftType") or ShiftType.OFF.value),
        start_time=parse_clock(row.get("StartTime", "")),
        end_time=parse_clock(row.get("EndTime", "")),
        is_override=_bool(row.get("IsOverride", "")),
        notes=row.get("Notes", ""),
        team_id=row.get("TeamID", ""),
        location=row.get("Location", ""),
    )


def entry_to_row(entry: ScheduleEntry) -> Record:
    return {
        "ScheduleID": entry.id,
        "PersonnelID": entry.person_id,
        "TeamID": entry.team_id,
        "Date": entry.date.isoformat(),
        "ShiftType": entry.shift_type.value,
        "StartTime": format_clock(entry.start_time),
        "EndTime": format_clock(entry.end_time),
        "Location": entry.location,
        "IsOverride": _flag(entry.is_override),
        "Notes": entry.notes,
    }


# Shift swaps

def swap_from_row(row: Record) -> ShiftSwap:
    return ShiftSwap(
        id=row["SwapID"],
        requestor_id=row["RequestorID"],
        requestee_id=row["RequesteeID"],
        original_date=_date(row["OriginalDate"]),
        swap_date=_date(row["SwapDate"]),
        status=SwapStatus(row.get("Status") or SwapStatus.PENDING.value),
        approved_by=row.get("ApprovedBy", ""),
        approved_date=_optional_date(row.get("ApprovedDate", "")),
        notes=row.get("Notes", ""),
    )


def swap_to_row(swap: ShiftSwap) -> Record:
    return {
        "SwapID": swap.id,
        "RequestorID": swap.requestor_id,
        "RequesteeID": swap.requestee_id,
        "OriginalDate": swap.original_date.isoformat(),
        "SwapDate": swap.swap_date.isoformat(),
        "Status": swap.status.value,
        "ApprovedBy": swap.approved_by,
        "ApprovedDate": swap.approved_date.isoformat() if swap.approved_date else "",
        "Notes": swap.notes,
    }


# Straights

def straights_from_row(row: Record) -> StraightsAssignment:
    return StraightsAssignment(
        id=row["AssignmentID"],
        person_id=row["PersonnelID"],
        start_date=_date(row["StartDate"]),
        end_date=_date(row["EndDate"]),
        location=row.get("Location", ""),
        daily_start_time=parse_clock(row.get("DailyStartTime", "")),
        daily_end_time=parse_clock(row.get("DailyEndTime", "")),
        notes=row.get("Notes", ""),
    )


def straights_to_row(assignment: StraightsAssignment) -> Record:
    return {
        "AssignmentID": assignment.id,
        "PersonnelID": assignment.person_id,
        "StartDate": assignment.start_date.isoformat(),
        "EndDate": assignment.end_date.isoformat(),
        "Location": assignment.location,
        "DailyStartTime": format_clock(assignment.daily_start_time),
        "DailyEndTime": format_clock(assignment.daily_end_time),
        "Notes": assignment.notes,
    }


def parse_rows(table: str, rows: list[Record], parse: Callable[[Record], M]) -> list[M]:
    """Parse every row of a table, collecting all bad rows into one error.

    Raises:
        ValidationFailed: If any row is missing a column or holds a value
            that does not parse.
    """
    parsed = []
    errors = []
    for index, row in enumerate(rows):
        try:
            parsed.append(parse(row))
        except (KeyError, ValueError) as e:
            errors.append(
                ValidationError(
                    error_type=ValidationErrorType.INVALID_RECORD,
                    message=f"{table} row {index}: {e!r}",
                    subject_id=table,
                    details={"index": index},
                )
            )
    if errors:
        raise ValidationFailed(errors)
    return parsed
