"""Query-time resolution of who works what.

The schedule table holds what the rotation generated. Straights
assignments and completed swaps live in their own tables and are applied
on read, so the effective schedule can never drift from them.

Precedence, highest first:

1. a straights assignment covering the person and date;
2. a completed swap that hands the slot to the other person;
3. the generated schedule row.
"""

from datetime import date
from typing import Iterable, Optional, Sequence

from shifttracker.domain.models import (
    AssignmentSource,
    EffectiveAssignment,
    ScheduleEntry,
    ShiftSwap,
    ShiftType,
    StraightsAssignment,
    SwapStatus,
)
from shifttracker.domain.policies import DefaultShiftTimePolicy, ShiftTimePolicy


def find_straights(
    person_id: str,
    on_date: date,
    straights_assignments: Iterable[StraightsAssignment],
) -> Optional[StraightsAssignment]:
    """Get the straights assignment covering a person on a date, if any."""
    for assignment in straights_assignments:
        if assignment.person_id == person_id and assignment.covers(on_date):
            return assignment
    return None


def find_swap(
    person_id: str,
    on_date: date,
    completed_swaps: Iterable[ShiftSwap],
) -> Optional[ShiftSwap]:
    """Get the completed swap that reassigns a person's slot on a date, if any."""
    for swap in completed_swaps:
        if swap.status is not SwapStatus.COMPLETED:
            continue
        if swap.counterpart(person_id, on_date) is not None:
            return swap
    return None


def resolve_working_assignment(
    person_id: str,
    on_date: date,
    base_entry: Optional[ScheduleEntry],
    straights_assignments: Sequence[StraightsAssignment],
    completed_swaps: Sequence[ShiftSwap],
    shift_time_policy: Optional[ShiftTimePolicy] = None,
) -> EffectiveAssignment:
    """Resolve the effective assignment of one person on one date.

    Args:
        person_id: Person being asked about.
        on_date: Date being asked about.
        base_entry: The person's schedule row for the date, if any.
        straights_assignments: Straights assignments to consider.
        completed_swaps: Swaps to consider; only COMPLETED ones apply.
        shift_time_policy: Supplies straights times missing from an
            assignment.

    Returns:
        EffectiveAssignment describing who works, what and where.
    """
    policy = shift_time_policy or DefaultShiftTimePolicy()

    straights = find_straights(person_id, on_date, straights_assignments)
    if straights is not None:
        default_start, default_end = policy.get_times(ShiftType.STRAIGHTS)
        return EffectiveAssignment(
            person_id=person_id,
            date=on_date,
            shift_type=ShiftType.STRAIGHTS,
            start_time=straights.daily_start_time or default_start,
            end_time=straights.daily_end_time or default_end,
            location=straights.location or policy.get_location(ShiftType.STRAIGHTS),
            source=AssignmentSource.STRAIGHTS,
            entry_id=base_entry.id if base_entry else None,
            straights_id=straights.id,
        )

    if base_entry is None:
        return EffectiveAssignment(
            person_id=person_id,
            date=on_date,
            shift_type=ShiftType.OFF,
            source=AssignmentSource.NONE,
        )

    # Rows rewritten by swap completion already carry the new person
    if not base_entry.is_override:
        swap = find_swap(base_entry.person_id, on_date, completed_swaps)
        if swap is not None:
            return EffectiveAssignment(
                person_id=swap.counterpart(base_entry.person_id, on_date),
                date=on_date,
                shift_type=base_entry.shift_type,
                start_time=base_entry.start_time,
                end_time=base_entry.end_time,
                location=base_entry.location,
                source=AssignmentSource.SWAP,
                entry_id=base_entry.id,
                swap_id=swap.id,
            )

    return EffectiveAssignment(
        person_id=base_entry.person_id,
        date=on_date,
        shift_type=base_entry.shift_type,
        start_time=base_entry.start_time,
        end_time=base_entry.end_time,
        location=base_entry.location,
        source=AssignmentSource.SWAP if base_entry.is_override else AssignmentSource.PATTERN,
        entry_id=base_entry.id,
    )


def whos_working(
    on_date: date,
    entries: Iterable[ScheduleEntry],
    straights_assignments: Sequence[StraightsAssignment],
    completed_swaps: Sequence[ShiftSwap],
    shift_type: Optional[ShiftType] = None,
    shift_time_policy: Optional[ShiftTimePolicy] = None,
) -> list[EffectiveAssignment]:
    """Everyone on duty on a date after overrides are applied.

    Each schedule row for the date is resolved; people on straights who
    have no row that day are included too. Override rows win over a
    generated row for the same person.

    Args:
        on_date: Date to report on.
        entries: Schedule rows (any dates; others are ignored).
        straights_assignments: Straights assignments to apply.
        completed_swaps: Swaps to apply.
        shift_type: If given, only return assignments of this type.
        shift_time_policy: Policy for straights default times.

    Returns:
        Working assignments sorted by shift type then person id.
    """
    rows: dict[str, ScheduleEntry] = {}
    for entry in entries:
        if entry.date != on_date:
            continue
        current = rows.get(entry.person_id)
        if current is None or (entry.is_override and not current.is_override):
            rows[entry.person_id] = entry

    people = set(rows)
    people.update(
        s.person_id for s in straights_assignments if s.covers(on_date)
    )

    working = []
    for person_id in people:
        assignment = resolve_working_assignment(
            person_id,
            on_date,
            rows.get(person_id),
            straights_assignments,
            completed_swaps,
            shift_time_policy,
        )
        if not assignment.is_working:
            continue
        if shift_type is not None and assignment.shift_type is not shift_type:
            continue
        working.append(assignment)

    order = {s: i for i, s in enumerate(ShiftType)}
    working.sort(key=lambda a: (order[a.shift_type], a.person_id))
    return working
