"""Schedule materialization.

This module provides the ScheduleGenerator class that turns a roster and a
rotation pattern into concrete ScheduleEntry rows for a date range.
"""

import logging
import uuid
from datetime import date
from typing import Callable, Iterable, Optional, Sequence

from shifttracker.domain.errors import InvalidArgument, ValidationFailed
from shifttracker.domain.models import (
    GenerationResult,
    PatternAssignment,
    Person,
    Position,
    RotationPattern,
    ScheduleEntry,
    ShiftType,
    Team,
    date_range,
)
from shifttracker.domain.policies import DefaultShiftTimePolicy, ShiftTimePolicy
from shifttracker.scheduling.rotation import offset_for_entity, shift_for_date
from shifttracker.validation.validator import ValidationError, ValidationErrorType

logger = logging.getLogger(__name__)


def new_entry_id() -> str:
    """Generate a schedule row id."""
    return f"SS-{uuid.uuid4().hex[:10]}"


class ScheduleGenerator:
    """Materializes pattern shifts for a roster over a date range.

    The generator works on a snapshot: it never mutates the existing
    entries it is given and returns only the rows that are new or
    replaced, leaving it to the caller to apply them.

    Example:
        >>> generator = ScheduleGenerator()
        >>> result = generator.generate_schedule(
        ...     roster=people,
        ...     pattern=dupont,
        ...     reference_start_date=date(2024, 1, 1),
        ...     start_date=date(2024, 3, 1),
        ...     num_days=28,
        ... )
        >>> len(result.entries)
        560
    """

    def __init__(
        self,
        shift_time_policy: Optional[ShiftTimePolicy] = None,
        id_factory: Optional[Callable[[], str]] = None,
    ):
        """Initialize generator with a shift time policy.

        Args:
            shift_time_policy: Policy giving clock times per shift type.
            id_factory: Callable producing ids for new rows.
        """
        self.shift_time_policy = shift_time_policy or DefaultShiftTimePolicy()
        self.id_factory = id_factory or new_entry_id

    def resolve_offsets(
        self,
        roster: Sequence[Person],
        cycle_length: int,
        offsets: Optional[dict[str, int]] = None,
        teams: Optional[Sequence[Team]] = None,
        positions: Optional[Sequence[Position]] = None,
    ) -> dict[str, int]:
        """Work out the offset in days for every person on the roster.

        Returns:
            Dict mapping person id to offset days.
        """
        phases = self.resolve_phases(
            roster, cycle_length, None, None, offsets, teams, positions
        )
        return {person_id: offset for person_id, (_, offset) in phases.items()}

    def resolve_phases(
        self,
        roster: Sequence[Person],
        cycle_length: int,
        reference_start_date: Optional[date],
        pattern_id: Optional[str] = None,
        offsets: Optional[dict[str, int]] = None,
        teams: Optional[Sequence[Team]] = None,
        positions: Optional[Sequence[Position]] = None,
    ) -> dict[str, tuple[Optional[date], int]]:
        """Work out where in the cycle every person on the roster sits.

        Lookup order per person: an explicit offset keyed by position id,
        then by team id; the position's pattern assignment; the team's
        pattern assignment; finally the team's evenly spread offset
        among all teams (teams ordered as given, else by id). A pattern
        assignment brings its own reference date; everything else is
        phased from reference_start_date.

        Args:
            roster: People to place.
            cycle_length: Pattern cycle length in days.
            reference_start_date: Date on which offset 0 is cycle day 0
                for people without a pattern assignment.
            pattern_id: Pattern being generated. Assignments naming a
                different pattern are rejected.
            offsets: Optional explicit offsets keyed by team or position id.
            teams: Optional teams, for pattern assignments and ordering.
            positions: Optional positions, for pattern assignments.

        Returns:
            Dict mapping person id to (reference date, offset days).

        Raises:
            ValidationFailed: If a pattern assignment that would be used
                names a pattern other than pattern_id.
        """
        offsets = offsets or {}
        positions_map = {p.id: p for p in positions or []}
        teams_map = {t.id: t for t in teams or []}

        if teams:
            team_order = [t.id for t in teams]
        else:
            team_order = sorted({p.team_id for p in roster if p.team_id})
        for person in roster:
            if person.team_id and person.team_id not in team_order:
                team_order.append(person.team_id)

        result = {}
        mismatched: dict[str, PatternAssignment] = {}
        for person in roster:
            position = positions_map.get(person.position_id)
            team = teams_map.get(person.team_id)

            assignment = None
            owner = None
            if person.position_id in offsets:
                result[person.id] = (reference_start_date, offsets[person.position_id])
            elif person.team_id in offsets:
                result[person.id] = (reference_start_date, offsets[person.team_id])
            elif position and position.pattern_assignment:
                assignment, owner = position.pattern_assignment, position.id
            elif team and team.pattern_assignment:
                assignment, owner = team.pattern_assignment, team.id
            elif person.team_id:
                index = team_order.index(person.team_id)
                result[person.id] = (
                    reference_start_date,
                    offset_for_entity(index, len(team_order), cycle_length),
                )
            else:
                result[person.id] = (reference_start_date, 0)

            if assignment is not None:
                if pattern_id is not None and assignment.pattern_id != pattern_id:
                    mismatched[owner] = assignment
                result[person.id] = (
                    assignment.reference_start_date or reference_start_date,
                    assignment.offset_days,
                )

        if mismatched:
            raise ValidationFailed([
                ValidationError(
                    error_type=ValidationErrorType.PATTERN_ASSIGNMENT_MISMATCH,
                    message=(
                        f"Assigned to pattern {assigned.pattern_id}, "
                        f"cannot generate with pattern {pattern_id}"
                    ),
                    subject_id=subject,
                )
                for subject, assigned in sorted(mismatched.items())
            ])
        return result

    def build_entry(
        self,
        person: Person,
        on_date: date,
        shift_type: ShiftType,
        entry_id: Optional[str] = None,
    ) -> ScheduleEntry:
        """Create a schedule row with clock times from the shift policy."""
        start_time, end_time = self.shift_time_policy.get_times(shift_type)
        return ScheduleEntry(
            id=entry_id or self.id_factory(),
            person_id=person.id,
            date=on_date,
            shift_type=shift_type,
            start_time=start_time,
            end_time=end_time,
            is_override=False,
            notes="",
            team_id=person.team_id,
            location=self.shift_time_policy.get_location(shift_type),
        )

    def generate_schedule(
        self,
        roster: Sequence[Person],
        pattern: RotationPattern,
        reference_start_date: date,
        start_date: date,
        num_days: int,
        existing_entries: Optional[Sequence[ScheduleEntry]] = None,
        overwrite_existing: bool = False,
        offsets: Optional[dict[str, int]] = None,
        teams: Optional[Sequence[Team]] = None,
        positions: Optional[Sequence[Position]] = None,
        reserved: Optional[Iterable[tuple[str, date]]] = None,
    ) -> GenerationResult:
        """Generate schedule rows for every active person.

        Args:
            roster: People to schedule; inactive people are ignored.
            pattern: Rotation pattern all people follow.
            reference_start_date: Date on which offset 0 is cycle day 0, for
                people whose team or position has no pattern assignment.
            start_date: First date to generate.
            num_days: Number of consecutive dates to generate.
            existing_entries: Current schedule snapshot.
            overwrite_existing: If True, replace existing generated rows in
                place (keeping their ids); if False, leave them untouched.
            offsets: Optional explicit offsets keyed by team or position id.
            teams: Optional teams, for pattern assignments and ordering.
            positions: Optional positions, for pattern assignments.
            reserved: (person_id, date) slots given away by completed
                swaps; these are never generated again.

        Returns:
            GenerationResult with the new and replaced rows.

        Raises:
            InvalidArgument: If num_days is negative.
            ValidationFailed: If a team or position is assigned to a
                different pattern.
        """
        if num_days < 0:
            raise InvalidArgument(f"num_days must not be negative, got {num_days}")

        active = [p for p in roster if p.is_active]
        phases = self.resolve_phases(
            active,
            pattern.cycle_length_days,
            reference_start_date,
            pattern.id,
            offsets,
            teams,
            positions,
        )

        # Index generated rows only; swap overrides are left alone
        existing: dict[tuple[str, date], ScheduleEntry] = {}
        for entry in existing_entries or []:
            if entry.is_override:
                continue
            if entry.key in existing:
                logger.warning(
                    "Duplicate schedule rows for %s on %s (%s, %s)",
                    entry.person_id,
                    entry.date,
                    existing[entry.key].id,
                    entry.id,
                )
                continue
            existing[entry.key] = entry

        reserved_keys = set(reserved or ())
        result = GenerationResult()
        dates = date_range(start_date, num_days)

        for person in active:
            person_reference, offset = phases[person.id]
            for d in dates:
                current = existing.get((person.id, d))
                if (person.id, d) in reserved_keys or (
                    current is not None and not overwrite_existing
                ):
                    result.skipped += 1
                    continue

                shift_type = shift_for_date(d, person_reference, pattern, offset)
                if current is not None:
                    entry = self.build_entry(person, d, shift_type, entry_id=current.id)
                    result.replaced += 1
                else:
                    entry = self.build_entry(person, d, shift_type)
                    result.created += 1
                result.entries.append(entry)

        logger.info(
            "Generated %d rows with pattern %s from %s for %d days "
            "(created=%d, replaced=%d, skipped=%d)",
            result.total_written,
            pattern.id,
            start_date,
            num_days,
            result.created,
            result.replaced,
            result.skipped,
        )
        return result

    def generate_schedule_with_stats(self, *args, **kwargs) -> tuple[GenerationResult, dict]:
        """Generate schedule rows and return statistics.

        Accepts the same arguments as generate_schedule.

        Returns:
            Tuple of (result, stats_dict).
        """
        result = self.generate_schedule(*args, **kwargs)
        return result, self._calculate_stats(result)

    def _calculate_stats(self, result: GenerationResult) -> dict:
        """Calculate generation statistics."""
        by_shift = {shift_type: 0 for shift_type in ShiftType}
        people = set()
        for entry in result.entries:
            by_shift[entry.shift_type] += 1
            people.add(entry.person_id)

        return {
            "created": result.created,
            "replaced": result.replaced,
            "skipped": result.skipped,
            "people": len(people),
            "day_shifts": by_shift[ShiftType.DAY],
            "night_shifts": by_shift[ShiftType.NIGHT],
            "days_off": by_shift[ShiftType.OFF],
        }
