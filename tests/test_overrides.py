"""Tests for precedence resolution and the who's-working view."""

from datetime import date, time

import pytest

from shifttracker.domain.models import (
    AssignmentSource,
    ScheduleEntry,
    ShiftSwap,
    ShiftType,
    StraightsAssignment,
    SwapStatus,
)
from shifttracker.scheduling.overrides import resolve_working_assignment, whos_working

MONDAY = date(2024, 3, 4)
WEDNESDAY = date(2024, 3, 6)


def _entry(entry_id, person_id, on_date, shift_type, is_override=False):
    times = {
        ShiftType.DAY: (time(6, 0), time(18, 0)),
        ShiftType.NIGHT: (time(18, 0), time(6, 0)),
        ShiftType.OFF: (None, None),
    }[shift_type]
    return ScheduleEntry(
        id=entry_id,
        person_id=person_id,
        date=on_date,
        shift_type=shift_type,
        start_time=times[0],
        end_time=times[1],
        is_override=is_override,
        location="Main Plant",
    )


class TestResolveWorkingAssignment:
    """Tests for resolve_working_assignment."""

    @pytest.fixture
    def straights(self):
        """P001 on straights Monday to Friday."""
        return StraightsAssignment(
            id="ST1",
            person_id="P001",
            start_date=MONDAY,
            end_date=date(2024, 3, 8),
            location="Training Center",
        )

    def test_straights_beats_generated_day(self, straights):
        """A straights week wins over a Day row from the pattern."""
        entry = _entry("SS1", "P001", WEDNESDAY, ShiftType.DAY)

        result = resolve_working_assignment("P001", WEDNESDAY, entry, [straights], [])

        assert result.shift_type is ShiftType.STRAIGHTS
        assert result.source is AssignmentSource.STRAIGHTS
        assert result.start_time == time(7, 0)
        assert result.end_time == time(15, 0)
        assert result.location == "Training Center"
        assert result.straights_id == "ST1"
        assert result.entry_id == "SS1"

    def test_straights_applies_without_a_row(self, straights):
        """Straights put a person to work even with no schedule row."""
        result = resolve_working_assignment("P001", MONDAY, None, [straights], [])
        assert result.shift_type is ShiftType.STRAIGHTS
        assert result.is_working

    def test_straights_own_times_used(self):
        """Times on the assignment win over the policy defaults."""
        straights = StraightsAssignment(
            id="ST2",
            person_id="P001",
            start_date=MONDAY,
            end_date=date(2024, 3, 8),
            daily_start_time=time(8, 0),
            daily_end_time=time(16, 30),
        )
        result = resolve_working_assignment("P001", MONDAY, None, [straights], [])
        assert (result.start_time, result.end_time) == (time(8, 0), time(16, 30))
        assert result.location == "Main Plant"

    def test_straights_outside_range_ignored(self, straights):
        """The Saturday after a straights week falls back to the pattern."""
        saturday = date(2024, 3, 9)
        entry = _entry("SS1", "P001", saturday, ShiftType.NIGHT)
        result = resolve_working_assignment("P001", saturday, entry, [straights], [])
        assert result.shift_type is ShiftType.NIGHT
        assert result.source is AssignmentSource.PATTERN

    def test_no_row_is_off(self):
        """No row and no straights means off."""
        result = resolve_working_assignment("P001", MONDAY, None, [], [])
        assert result.shift_type is ShiftType.OFF
        assert result.source is AssignmentSource.NONE
        assert not result.is_working

    def test_completed_swap_projected_onto_generated_row(self):
        """A completed swap hands an untouched generated row to the other person."""
        entry = _entry("SS1", "P001", MONDAY, ShiftType.DAY)
        swap = ShiftSwap("SW1", "P001", "P002", MONDAY, WEDNESDAY, status=SwapStatus.COMPLETED)

        result = resolve_working_assignment("P001", MONDAY, entry, [], [swap])

        assert result.person_id == "P002"
        assert result.source is AssignmentSource.SWAP
        assert result.swap_id == "SW1"
        assert result.shift_type is ShiftType.DAY

    def test_pending_swap_ignored(self):
        """Only completed swaps change who works."""
        entry = _entry("SS1", "P001", MONDAY, ShiftType.DAY)
        swap = ShiftSwap("SW1", "P001", "P002", MONDAY, WEDNESDAY, status=SwapStatus.APPROVED)

        result = resolve_working_assignment("P001", MONDAY, entry, [], [swap])
        assert result.person_id == "P001"
        assert result.source is AssignmentSource.PATTERN

    def test_override_row_not_swapped_twice(self):
        """A row already rewritten by a swap is taken as is."""
        entry = _entry("SS1", "P002", MONDAY, ShiftType.DAY, is_override=True)
        swap = ShiftSwap("SW1", "P002", "P003", MONDAY, WEDNESDAY, status=SwapStatus.COMPLETED)

        result = resolve_working_assignment("P002", MONDAY, entry, [], [swap])

        assert result.person_id == "P002"
        assert result.source is AssignmentSource.SWAP
        assert result.swap_id is None


class TestWhosWorking:
    """Tests for whos_working."""

    @pytest.fixture
    def entries(self):
        return [
            _entry("SS1", "P001", MONDAY, ShiftType.DAY),
            _entry("SS2", "P002", MONDAY, ShiftType.NIGHT),
            _entry("SS3", "P003", MONDAY, ShiftType.OFF),
            _entry("SS4", "P004", MONDAY, ShiftType.DAY),
            _entry("SS5", "P001", WEDNESDAY, ShiftType.NIGHT),
        ]

    def test_lists_working_people_in_shift_order(self, entries):
        """Off rows are dropped and results are ordered Day, Night."""
        working = whos_working(MONDAY, entries, [], [])
        assert [(a.person_id, a.shift_type) for a in working] == [
            ("P001", ShiftType.DAY),
            ("P004", ShiftType.DAY),
            ("P002", ShiftType.NIGHT),
        ]

    def test_filter_by_shift_type(self, entries):
        working = whos_working(MONDAY, entries, [], [], shift_type=ShiftType.NIGHT)
        assert [a.person_id for a in working] == ["P002"]

    def test_straights_person_added(self, entries):
        """People on straights appear even when their row says Off."""
        straights = StraightsAssignment("ST1", "P003", MONDAY, date(2024, 3, 8))
        working = whos_working(MONDAY, entries, [straights], [])

        by_person = {a.person_id: a for a in working}
        assert by_person["P003"].shift_type is ShiftType.STRAIGHTS
        assert working[-1].person_id == "P003"

    def test_override_row_wins_over_generated_row(self, entries):
        """After a swap the person works the override row, not their own."""
        entries.append(_entry("SS6", "P003", MONDAY, ShiftType.NIGHT, is_override=True))
        working = whos_working(MONDAY, entries, [], [])

        by_person = {a.person_id: a for a in working}
        assert by_person["P003"].shift_type is ShiftType.NIGHT
        assert by_person["P003"].entry_id == "SS6"

    def test_empty_day(self):
        assert whos_working(date(2030, 1, 1), [], [], []) == []
