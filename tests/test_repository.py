"""Tests for the roster repository."""

from datetime import date, timedelta

import pytest

from shifttracker.cli import seed_repository
from shifttracker.config import DUPONT_PATTERN, TrackerConfig
from shifttracker.domain.errors import (
    InvalidStateTransition,
    NotFoundError,
    ValidationFailed,
)
from shifttracker.domain.models import (
    AssignmentSource,
    Person,
    PersonStatus,
    RotationPattern,
    ScheduleEntry,
    ShiftType,
    StraightsAssignment,
    SwapStatus,
)
from shifttracker.storage.repository import RosterRepository
from shifttracker.storage.tables import JsonTableStore, MemoryTableStore

START = date(2024, 3, 4)  # a Monday


@pytest.fixture
def repo():
    """A repository seeded with five teams of four and the DuPont pattern."""
    repository = RosterRepository(MemoryTableStore())
    seed_repository(repository)
    return repository


@pytest.fixture
def generated(repo):
    """The seeded repository with two weeks generated."""
    repo.generate_schedule(START, 14)
    return repo


class TestPatterns:
    """Tests for pattern storage."""

    def test_seeded_pattern_is_active(self, repo):
        pattern = repo.active_pattern()
        assert pattern.id == "RP001"
        assert pattern.pattern_string == DUPONT_PATTERN

    def test_activating_deactivates_others(self, repo):
        repo.save_pattern(RotationPattern.from_string("RP002", "Short", "d,n,o,o", is_active=True), is_new=True)
        patterns = {p.id: p for p in repo.patterns()}
        assert patterns["RP002"].is_active
        assert not patterns["RP001"].is_active
        assert patterns["RP002"].pattern_string == "D,N,O,O"
        assert repo.active_pattern().id == "RP002"

    def test_invalid_pattern_not_saved(self, repo):
        with pytest.raises(ValidationFailed):
            repo.save_pattern(RotationPattern.from_string("RP003", "Bad", "D,N", cycle_length_days=3))
        assert [p.id for p in repo.patterns()] == ["RP001"]

    def test_duplicate_new_pattern(self, repo):
        with pytest.raises(ValidationFailed):
            repo.save_pattern(RotationPattern.from_string("RP001", "Again", "D,N"), is_new=True)

    def test_delete_pattern(self, repo):
        repo.delete_pattern("RP001")
        assert repo.patterns() == []
        with pytest.raises(NotFoundError):
            repo.delete_pattern("RP001")


class TestGeneration:
    """Tests for RosterRepository.generate_schedule."""

    def test_generates_every_active_person(self, generated):
        entries = generated.schedule()
        assert len(entries) == 20 * 14
        assert {e.team_id for e in entries} == {"T1", "T2", "T3", "T4", "T5"}

    def test_rerun_is_idempotent(self, generated):
        before = generated.schedule()
        result = generated.generate_schedule(START, 14)
        assert result.created == 0
        assert result.skipped == 20 * 14
        assert generated.schedule() == before

    def test_overwrite_keeps_ids(self, generated):
        before = generated.schedule()
        result = generated.generate_schedule(START, 14, overwrite_existing=True)
        assert result.replaced == 20 * 14
        assert [e.id for e in generated.schedule()] == [e.id for e in before]

    def test_staggered_teams_cover_every_day(self, generated):
        for i in range(14):
            d = START + timedelta(days=i)
            assert generated.whos_working(d, ShiftType.DAY)
            assert generated.whos_working(d, ShiftType.NIGHT)

    def test_inactive_person_skipped(self, repo):
        repo.save_person(Person("P099", "Zed", "Zane", team_id="T1", status=PersonStatus.TERMINATED))
        repo.generate_schedule(START, 3)
        assert "P099" not in {e.person_id for e in repo.schedule()}

    def test_unknown_pattern(self, repo):
        with pytest.raises(NotFoundError):
            repo.generate_schedule(START, 3, pattern_id="RP404")

    def test_default_horizon_from_config(self):
        repo = RosterRepository(MemoryTableStore(), TrackerConfig(generation_days=5))
        seed_repository(repo, team_count=1, people_per_team=2)
        result = repo.generate_schedule(START)
        assert result.created == 2 * 5

    def test_add_entry_rejects_duplicate(self, generated):
        with pytest.raises(ValidationFailed):
            generated.add_entry(ScheduleEntry("SS-extra", "P001", START, ShiftType.DAY))

    def test_add_entry_unknown_person(self, generated):
        with pytest.raises(NotFoundError):
            generated.add_entry(ScheduleEntry("SS-extra", "P404", START, ShiftType.DAY))


class TestStraights:
    """Tests for straights through the repository."""

    def test_straights_override_effective_schedule(self, generated):
        generated.save_straights(StraightsAssignment("ST1", "P001", START, START + timedelta(days=4)))

        week = generated.person_schedule("P001", START, 7)
        assert [a.shift_type for a in week[:5]] == [ShiftType.STRAIGHTS] * 5
        assert all(a.shift_type is not ShiftType.STRAIGHTS for a in week[5:])

        working = generated.whos_working(START + timedelta(days=2), ShiftType.STRAIGHTS)
        assert [a.person_id for a in working] == ["P001"]

    def test_overlapping_straights_rejected(self, generated):
        generated.save_straights(StraightsAssignment("ST1", "P001", START, START + timedelta(days=4)))
        with pytest.raises(ValidationFailed):
            generated.save_straights(StraightsAssignment("ST2", "P001", START, START + timedelta(days=4)))
        assert [s.id for s in generated.straights()] == ["ST1"]

    def test_delete_straights(self, generated):
        generated.save_straights(StraightsAssignment("ST1", "P001", START, START + timedelta(days=4)))
        generated.delete_straights("ST1")
        assert generated.effective_assignment("P001", START).source is not AssignmentSource.STRAIGHTS


class TestSwaps:
    """Tests for the swap workflow through the repository."""

    def _approved_swap(self, repo, requestor="P001", requestee="P005"):
        swap = repo.request_swap(requestor, requestee, START, START + timedelta(days=2))
        return repo.approve_swap(swap.id, approved_by="Admin", on_date=START)

    def test_complete_swap_exchanges_rows(self, generated):
        original_day = START
        swap_day = START + timedelta(days=2)
        before = {e.key: e for e in generated.schedule()}
        requestor_row = before[("P001", original_day)]
        requestee_row = before[("P005", swap_day)]

        swap = self._approved_swap(generated)
        completed = generated.complete_swap(swap.id)
        assert completed.status is SwapStatus.COMPLETED
        assert generated.get_swap(swap.id).status is SwapStatus.COMPLETED

        after = {e.id: e for e in generated.schedule()}
        assert after[requestor_row.id].person_id == "P005"
        assert after[requestor_row.id].is_override
        assert after[requestor_row.id].notes == "Swapped from Alice Adams"
        assert after[requestee_row.id].person_id == "P001"
        assert after[requestee_row.id].is_override

        # Every other row is unchanged
        untouched = [e for e in before.values() if e.id not in (requestor_row.id, requestee_row.id)]
        assert all(after[e.id] == e for e in untouched)

        # P005 now works P001's original shift
        assignment = generated.effective_assignment("P005", original_day)
        assert assignment.entry_id == requestor_row.id
        assert assignment.shift_type is requestor_row.shift_type

    def test_regeneration_does_not_undo_swap(self, generated):
        swap = self._approved_swap(generated)
        generated.complete_swap(swap.id)
        count = len(generated.schedule())

        result = generated.generate_schedule(START, 14)
        assert result.created == 0
        assert len(generated.schedule()) == count
        assert generated.effective_assignment("P001", START).source is AssignmentSource.NONE

    def test_complete_requires_approval(self, generated):
        swap = generated.request_swap("P001", "P005", START, START + timedelta(days=2))
        with pytest.raises(InvalidStateTransition):
            generated.complete_swap(swap.id)

    def test_complete_missing_row_writes_nothing(self, repo):
        """Without generated rows the swap fails and nothing changes."""
        swap = self._approved_swap(repo)
        with pytest.raises(NotFoundError):
            repo.complete_swap(swap.id)
        assert repo.schedule() == []
        assert repo.get_swap(swap.id).status is SwapStatus.APPROVED

    def test_reject(self, generated):
        swap = generated.request_swap("P001", "P005", START, START + timedelta(days=2))
        assert generated.reject_swap(swap.id).status is SwapStatus.REJECTED
        with pytest.raises(InvalidStateTransition):
            generated.approve_swap(swap.id, approved_by="Admin")

    def test_request_unknown_person(self, generated):
        with pytest.raises(NotFoundError):
            generated.request_swap("P001", "P404", START, START)

    def test_unknown_swap(self, generated):
        with pytest.raises(NotFoundError):
            generated.approve_swap("SW-missing", approved_by="Admin")


class TestPersistence:
    """Tests for a repository over a JSON file."""

    def test_state_survives_reopen(self, tmp_path):
        path = tmp_path / "roster.json"
        first = RosterRepository(JsonTableStore(path))
        seed_repository(first, team_count=2, people_per_team=2)
        first.generate_schedule(START, 7)

        second = RosterRepository(JsonTableStore(path))
        assert len(second.schedule()) == 4 * 7
        assert second.active_pattern().id == "RP001"
        assert second.get_person("P003").team_id == "T2"
