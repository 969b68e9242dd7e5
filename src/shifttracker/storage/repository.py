"""Roster repository.

The repository is the one place that owns mutable roster state. It loads
snapshots from a TableStore, hands them to the pure rotation engine, and
writes the returned rows back. Mutations are serialised with a lock, and
multi-row changes are written with a single table save so that a reader
never sees half of them.
"""

import logging
import threading
from dataclasses import replace
from datetime import date
from typing import Optional

from shifttracker.config import TrackerConfig
from shifttracker.domain.errors import NotFoundError
from shifttracker.domain.models import (
    EffectiveAssignment,
    GenerationResult,
    Person,
    Position,
    RotationPattern,
    ScheduleEntry,
    ShiftSwap,
    ShiftType,
    StraightsAssignment,
    SwapStatus,
    Team,
    date_range,
)
from shifttracker.scheduling.generator import ScheduleGenerator
from shifttracker.scheduling.overrides import resolve_working_assignment, whos_working
from shifttracker.scheduling.swaps import SwapWorkflow, find_entry, given_away_slots
from shifttracker.storage import records
from shifttracker.storage.tables import TableStore
from shifttracker.validation.validator import RosterValidator

logger = logging.getLogger(__name__)


class RosterRepository:
    """Reads and writes roster tables through a TableStore.

    Example:
        >>> repo = RosterRepository(MemoryTableStore())
        >>> repo.save_pattern(RotationPattern.from_string("RP001", "DuPont", DUPONT_PATTERN))
        >>> result = repo.generate_schedule(date(2024, 3, 1), 28, pattern_id="RP001")
        >>> repo.whos_working(date(2024, 3, 1))
    """

    def __init__(
        self,
        store: TableStore,
        config: Optional[TrackerConfig] = None,
        generator: Optional[ScheduleGenerator] = None,
        validator: Optional[RosterValidator] = None,
    ):
        self.store = store
        self.config = config or TrackerConfig()
        self.generator = generator or ScheduleGenerator(
            shift_time_policy=self.config.shift_time_policy()
        )
        self.validator = validator or RosterValidator()
        self.workflow = SwapWorkflow(self.validator)
        self._lock = threading.Lock()

    @property
    def sheets(self):
        return self.config.sheets

    # ------------------------------------------------------------------
    # Snapshots
    # ------------------------------------------------------------------

    def teams(self) -> list[Team]:
        name = self.sheets.teams
        return records.parse_rows(name, self.store.load_table(name), records.team_from_row)

    def positions(self) -> list[Position]:
        name = self.sheets.positions
        return records.parse_rows(name, self.store.load_table(name), records.position_from_row)

    def people(self) -> list[Person]:
        name = self.sheets.personnel
        return records.parse_rows(name, self.store.load_table(name), records.person_from_row)

    def patterns(self) -> list[RotationPattern]:
        name = self.sheets.rotation_patterns
        return records.parse_rows(name, self.store.load_table(name), records.pattern_from_row)

    def schedule(self) -> list[ScheduleEntry]:
        name = self.sheets.shift_schedule
        return records.parse_rows(name, self.store.load_table(name), records.entry_from_row)

    def swaps(self) -> list[ShiftSwap]:
        name = self.sheets.shift_swaps
        return records.parse_rows(name, self.store.load_table(name), records.swap_from_row)

    def straights(self) -> list[StraightsAssignment]:
        name = self.sheets.straights
        return records.parse_rows(name, self.store.load_table(name), records.straights_from_row)

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------

    def get_person(self, person_id: str) -> Person:
        for person in self.people():
            if person.id == person_id:
                return person
        raise NotFoundError("person", person_id)

    def get_pattern(self, pattern_id: str) -> RotationPattern:
        for pattern in self.patterns():
            if pattern.id == pattern_id:
                return pattern
        raise NotFoundError("pattern", pattern_id)

    def active_pattern(self) -> RotationPattern:
        """The pattern flagged active, falling back to the only pattern."""
        patterns = self.patterns()
        for pattern in patterns:
            if pattern.is_active:
                return pattern
        if len(patterns) == 1:
            return patterns[0]
        raise NotFoundError("pattern", "<active>")

    def get_swap(self, swap_id: str) -> ShiftSwap:
        for swap in self.swaps():
            if swap.id == swap_id:
                return swap
        raise NotFoundError("swap", swap_id)

    def person_names(self) -> dict[str, str]:
        return {p.id: p.full_name for p in self.people()}

    # ------------------------------------------------------------------
    # Roster records
    # ------------------------------------------------------------------

    def _upsert(self, table: str, key: str, row: dict) -> None:
        rows = self.store.load_table(table)
        for index, existing in enumerate(rows):
            if existing.get(key) == row[key]:
                self.store.update_row(table, index, row)
                return
        self.store.append_row(table, row)

    def _delete(self, table: str, key: str, value: str, kind: str) -> None:
        rows = self.store.load_table(table)
        for index, existing in enumerate(rows):
            if existing.get(key) == value:
                self.store.delete_row(table, index)
                return
        raise NotFoundError(kind, value)

    def save_team(self, team: Team) -> None:
        with self._lock:
            self._upsert(self.sheets.teams, "TeamID", records.team_to_row(team))

    def save_position(self, position: Position) -> None:
        with self._lock:
            self._upsert(self.sheets.positions, "PositionID", records.position_to_row(position))

    def save_person(self, person: Person) -> None:
        with self._lock:
            self._upsert(self.sheets.personnel, "PersonnelID", records.person_to_row(person))

    def save_pattern(self, pattern: RotationPattern, is_new: bool = False) -> RotationPattern:
        """Validate and store a pattern.

        Activating a pattern deactivates every other one.

        Raises:
            ValidationFailed: If the pattern breaks any rule.
        """
        with self._lock:
            existing = self.patterns()
            self.validator.validate_pattern(pattern, existing, is_new=is_new).raise_for_errors()

            rows = []
            replaced = False
            for other in existing:
                if other.id == pattern.id:
                    other = pattern
                    replaced = True
                elif pattern.is_active:
                    other = replace(other, is_active=False)
                rows.append(records.pattern_to_row(other))
            if not replaced:
                rows.append(records.pattern_to_row(pattern))

            self.store.save_table(self.sheets.rotation_patterns, rows)
            logger.info("Saved pattern %s (%d days)", pattern.id, pattern.cycle_length_days)
            return pattern

    def delete_pattern(self, pattern_id: str) -> None:
        with self._lock:
            self._delete(self.sheets.rotation_patterns, "PatternID", pattern_id, "pattern")

    # ------------------------------------------------------------------
    # Schedule
    # ------------------------------------------------------------------

    def generate_schedule(self, *args, **kwargs) -> GenerationResult:
        """Generate rows for every active person and store them.

        Accepts the same arguments as generate_schedule_with_stats.
        """
        result, _ = self.generate_schedule_with_stats(*args, **kwargs)
        return result

    def generate_schedule_with_stats(
        self,
        start_date: date,
        num_days: Optional[int] = None,
        pattern_id: Optional[str] = None,
        reference_start_date: Optional[date] = None,
        overwrite_existing: bool = False,
        offsets: Optional[dict[str, int]] = None,
    ) -> tuple[GenerationResult, dict]:
        """Generate rows for every active person and store them.

        Args:
            start_date: First date to generate.
            num_days: Days to generate; defaults to the configured horizon.
            pattern_id: Pattern to use; defaults to the active pattern.
            reference_start_date: Pattern reference date; defaults to the
                configured one.
            overwrite_existing: Replace existing generated rows in place.
            offsets: Optional explicit offsets keyed by team or position id.

        Raises:
            NotFoundError: If the pattern does not exist.
            ValidationFailed: If the stored pattern is invalid or a team or
                position is assigned to a different pattern.
        """
        with self._lock:
            pattern = self.get_pattern(pattern_id) if pattern_id else self.active_pattern()
            self.validator.validate_pattern(pattern).raise_for_errors()

            existing = self.schedule()
            result, stats = self.generator.generate_schedule_with_stats(
                roster=self.people(),
                pattern=pattern,
                reference_start_date=reference_start_date or self.config.reference_start_date,
                start_date=start_date,
                num_days=self.config.generation_days if num_days is None else num_days,
                existing_entries=existing,
                overwrite_existing=overwrite_existing,
                offsets=offsets,
                teams=self.teams(),
                positions=self.positions(),
                reserved=given_away_slots(self.swaps()),
            )
            if result.entries:
                self._write_entries(existing, result.entries)
            return result, stats

    def _write_entries(
        self,
        existing: list[ScheduleEntry],
        changed: list[ScheduleEntry],
    ) -> None:
        """Replace rows by id and append the rest, in one table save."""
        by_id = {entry.id: entry for entry in changed}
        merged = []
        for entry in existing:
            merged.append(by_id.pop(entry.id, entry))
        merged.extend(e for e in changed if e.id in by_id)
        self.store.save_table(
            self.sheets.shift_schedule, [records.entry_to_row(e) for e in merged]
        )

    def add_entry(self, entry: ScheduleEntry) -> None:
        """Store a single schedule row.

        Raises:
            NotFoundError: If the person does not exist.
            ValidationFailed: If the person already has a generated row
                on that date.
        """
        with self._lock:
            self.get_person(entry.person_id)
            existing = self.schedule()
            self.validator.validate_schedule(existing + [entry]).raise_for_errors()
            self.store.append_row(self.sheets.shift_schedule, records.entry_to_row(entry))

    # ------------------------------------------------------------------
    # Straights
    # ------------------------------------------------------------------

    def save_straights(self, assignment: StraightsAssignment) -> StraightsAssignment:
        """Validate and store a straights assignment.

        Raises:
            NotFoundError: If the person does not exist.
            ValidationFailed: If the dates break policy or overlap.
        """
        with self._lock:
            self.get_person(assignment.person_id)
            self.validator.validate_straights(assignment, self.straights()).raise_for_errors()
            self._upsert(
                self.sheets.straights, "AssignmentID", records.straights_to_row(assignment)
            )
            return assignment

    def delete_straights(self, assignment_id: str) -> None:
        with self._lock:
            self._delete(self.sheets.straights, "AssignmentID", assignment_id, "straights")

    # ------------------------------------------------------------------
    # Swaps
    # ------------------------------------------------------------------

    def request_swap(
        self,
        requestor_id: str,
        requestee_id: str,
        original_date: date,
        swap_date: date,
        notes: str = "",
    ) -> ShiftSwap:
        """Create and store a pending swap.

        Raises:
            NotFoundError: If either person does not exist.
            ValidationFailed: If requestor and requestee are the same.
        """
        with self._lock:
            self.get_person(requestor_id)
            self.get_person(requestee_id)
            swap = self.workflow.request_swap(
                requestor_id, requestee_id, original_date, swap_date, notes=notes
            )
            self.store.append_row(self.sheets.shift_swaps, records.swap_to_row(swap))
            return swap

    def _store_swap(self, swap: ShiftSwap) -> None:
        self._upsert(self.sheets.shift_swaps, "SwapID", records.swap_to_row(swap))

    def approve_swap(
        self,
        swap_id: str,
        approved_by: str,
        on_date: Optional[date] = None,
    ) -> ShiftSwap:
        with self._lock:
            swap = self.workflow.approve(
                self.get_swap(swap_id), approved_by, on_date or date.today()
            )
            self._store_swap(swap)
            return swap

    def reject_swap(self, swap_id: str) -> ShiftSwap:
        with self._lock:
            swap = self.workflow.reject(self.get_swap(swap_id))
            self._store_swap(swap)
            return swap

    def complete_swap(self, swap_id: str) -> ShiftSwap:
        """Complete an approved swap and rewrite both schedule rows.

        Both rows are computed before anything is written and then saved
        with a single table write; any error leaves every table untouched.

        Raises:
            NotFoundError: If the swap or either schedule row is missing.
            InvalidStateTransition: If the swap is not approved.
        """
        with self._lock:
            swap = self.get_swap(swap_id)
            existing = self.schedule()
            completed, first, second = self.workflow.complete(
                swap, existing, names=self.person_names()
            )
            self._write_entries(existing, [first, second])
            self._store_swap(completed)
            logger.info(
                "Completed swap %s: %s <-> %s (%s, %s)",
                swap.id,
                swap.requestor_id,
                swap.requestee_id,
                swap.original_date,
                swap.swap_date,
            )
            return completed

    def delete_swap(self, swap_id: str) -> None:
        with self._lock:
            self._delete(self.sheets.shift_swaps, "SwapID", swap_id, "swap")

    # ------------------------------------------------------------------
    # Effective schedule (computed on read)
    # ------------------------------------------------------------------

    def effective_assignment(self, person_id: str, on_date: date) -> EffectiveAssignment:
        """Resolve what a person works on a date.

        Raises:
            NotFoundError: If the person does not exist.
        """
        self.get_person(person_id)
        entry = find_entry(self.schedule(), person_id, on_date)
        completed = [s for s in self.swaps() if s.status is SwapStatus.COMPLETED]
        return resolve_working_assignment(
            person_id,
            on_date,
            entry,
            self.straights(),
            completed,
            self.generator.shift_time_policy,
        )

    def person_schedule(
        self,
        person_id: str,
        start_date: date,
        num_days: int,
    ) -> list[EffectiveAssignment]:
        """Resolve a person's assignments over a date range."""
        self.get_person(person_id)
        entries = self.schedule()
        straights = self.straights()
        completed = [s for s in self.swaps() if s.status is SwapStatus.COMPLETED]
        return [
            resolve_working_assignment(
                person_id,
                d,
                find_entry(entries, person_id, d),
                straights,
                completed,
                self.generator.shift_time_policy,
            )
            for d in date_range(start_date, num_days)
        ]

    def whos_working(
        self,
        on_date: date,
        shift_type: Optional[ShiftType] = None,
    ) -> list[EffectiveAssignment]:
        completed = [s for s in self.swaps() if s.status is SwapStatus.COMPLETED]
        return whos_working(
            on_date,
            self.schedule(),
            self.straights(),
            completed,
            shift_type=shift_type,
            shift_time_policy=self.generator.shift_time_policy,
        )
