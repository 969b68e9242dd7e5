"""Tests for table stores and row conversion."""

import json
from datetime import date, time

import pytest
from gspread.exceptions import APIError, WorksheetNotFound
from gspread.utils import a1_to_rowcol

from shifttracker.domain.errors import NotFoundError, ValidationFailed
from shifttracker.domain.models import (
    PatternAssignment,
    Person,
    PersonStatus,
    ScheduleEntry,
    ShiftSwap,
    ShiftType,
    StraightsAssignment,
    SwapStatus,
    Team,
)
from shifttracker.storage import records
from shifttracker.storage.records import HEADERS
from shifttracker.storage.sheets import SheetsTableStore, retry_429
from shifttracker.storage.tables import JsonTableStore, MemoryTableStore
from shifttracker.validation.validator import ValidationErrorType


class FakeResponse:
    """Minimal stand-in for the HTTP response gspread wraps in APIError."""

    def __init__(self, code: int, message: str):
        self.status_code = code
        self.text = message
        self._payload = {"error": {"code": code, "message": message, "status": "ERROR"}}

    def json(self):
        return self._payload


class FakeWorksheet:
    """In-memory worksheet supporting the calls SheetsTableStore makes."""

    def __init__(self, title: str):
        self.title = title
        self.cells: list[list[str]] = []

    def _ensure(self, rows: int, cols: int) -> None:
        while len(self.cells) < rows:
            self.cells.append([])
        for row in self.cells:
            while len(row) < cols:
                row.append("")

    def update(self, range_name: str, values: list[list[str]]) -> None:
        top, left = a1_to_rowcol(range_name.split(":")[0])
        width = max(len(v) for v in values)
        self._ensure(top - 1 + len(values), left - 1 + width)
        for r, row_values in enumerate(values):
            for c, value in enumerate(row_values):
                self.cells[top - 1 + r][left - 1 + c] = value

    def row_values(self, row: int) -> list[str]:
        if row > len(self.cells):
            return []
        values = list(self.cells[row - 1])
        while values and values[-1] == "":
            values.pop()
        return values

    def get_all_values(self) -> list[list[str]]:
        return [list(r) for r in self.cells]

    def append_row(self, values: list[str], value_input_option: str = "RAW") -> None:
        self.cells.append(list(values))

    def delete_rows(self, index: int) -> None:
        del self.cells[index - 1]


class FakeSpreadsheet:
    """In-memory spreadsheet holding FakeWorksheets."""

    def __init__(self):
        self.sheets: dict[str, FakeWorksheet] = {}

    def worksheet(self, name: str) -> FakeWorksheet:
        if name not in self.sheets:
            raise WorksheetNotFound(name)
        return self.sheets[name]

    def add_worksheet(self, title: str, rows: int, cols: int) -> FakeWorksheet:
        self.sheets[title] = FakeWorksheet(title)
        return self.sheets[title]


def _sample_rows():
    return [
        {"PersonnelID": "P001", "FirstName": "Alice", "LastName": "Adams"},
        {"PersonnelID": "P002", "FirstName": "Bob", "LastName": "Brown"},
        {"PersonnelID": "P003", "FirstName": "Carol", "LastName": "Clark"},
    ]


@pytest.fixture(params=["memory", "json", "sheets"])
def store(request, tmp_path):
    """Every TableStore implementation, fresh and empty."""
    if request.param == "memory":
        return MemoryTableStore()
    if request.param == "json":
        return JsonTableStore(tmp_path / "roster.json")
    return SheetsTableStore(FakeSpreadsheet(), headers=HEADERS, backoff=0)


class TestTableStoreContract:
    """Behaviour shared by all table stores."""

    def test_missing_table_is_empty(self, store):
        assert store.load_table("Personnel") == []

    def test_save_then_load(self, store):
        store.save_table("Personnel", _sample_rows())
        loaded = store.load_table("Personnel")
        assert [r["PersonnelID"] for r in loaded] == ["P001", "P002", "P003"]
        assert loaded[1]["FirstName"] == "Bob"

    def test_append_update_delete(self, store):
        store.save_table("Personnel", _sample_rows())

        store.append_row("Personnel", {"PersonnelID": "P004", "FirstName": "Dan", "LastName": "Diaz"})
        store.update_row("Personnel", 0, {"PersonnelID": "P001", "FirstName": "Alicia", "LastName": "Adams"})
        store.delete_row("Personnel", 1)

        loaded = store.load_table("Personnel")
        assert [r["PersonnelID"] for r in loaded] == ["P001", "P003", "P004"]
        assert loaded[0]["FirstName"] == "Alicia"

    @pytest.mark.parametrize("index", [-1, 3, 99])
    def test_bad_index(self, store, index):
        store.save_table("Personnel", _sample_rows())
        with pytest.raises(NotFoundError):
            store.update_row("Personnel", index, _sample_rows()[0])
        with pytest.raises(NotFoundError):
            store.delete_row("Personnel", index)

    def test_loaded_rows_are_copies(self, store):
        store.save_table("Personnel", _sample_rows())
        store.load_table("Personnel")[0]["FirstName"] = "Mallory"
        assert store.load_table("Personnel")[0]["FirstName"] == "Alice"


class TestJsonTableStore:
    """Tests specific to JsonTableStore."""

    def test_document_layout(self, tmp_path):
        path = tmp_path / "data" / "roster.json"
        store = JsonTableStore(path)
        store.save_table("Teams", [{"TeamID": "T1"}])
        store.save_table("Personnel", _sample_rows())

        document = json.loads(path.read_text())
        assert set(document) == {"Teams", "Personnel"}
        assert not path.with_suffix(".json.tmp").exists()


class TestSheetsTableStore:
    """Tests specific to SheetsTableStore."""

    def test_new_worksheet_gets_header_row(self):
        spreadsheet = FakeSpreadsheet()
        store = SheetsTableStore(spreadsheet, headers=HEADERS, backoff=0)
        store.append_row("Teams", {"TeamID": "T1", "TeamName": "Team A"})

        cells = spreadsheet.sheets["Teams"].cells
        assert cells[0] == HEADERS["Teams"]
        assert cells[1][:2] == ["T1", "Team A"]

    def test_blank_rows_skipped(self):
        spreadsheet = FakeSpreadsheet()
        ws = spreadsheet.add_worksheet("Teams", rows=10, cols=3)
        ws.cells = [["TeamID", "TeamName"], ["T1", "A"], ["", ""], ["T2"]]
        store = SheetsTableStore(spreadsheet)
        assert store.load_table("Teams") == [
            {"TeamID": "T1", "TeamName": "A"},
            {"TeamID": "T2", "TeamName": ""},
        ]

    def test_update_and_delete_skip_blank_rows(self):
        """Row indexes count records, not raw sheet rows."""
        spreadsheet = FakeSpreadsheet()
        ws = spreadsheet.add_worksheet("Teams", rows=10, cols=3)
        ws.cells = [["TeamID", "TeamName"], ["T1", "A"], ["", ""], ["T2", "B"], ["T3", "C"]]
        store = SheetsTableStore(spreadsheet)

        store.update_row("Teams", 1, {"TeamID": "T2", "TeamName": "Bravo"})
        assert store.load_table("Teams") == [
            {"TeamID": "T1", "TeamName": "A"},
            {"TeamID": "T2", "TeamName": "Bravo"},
            {"TeamID": "T3", "TeamName": "C"},
        ]
        assert ws.cells[2] == ["", ""]

        store.delete_row("Teams", 2)
        assert [r["TeamID"] for r in store.load_table("Teams")] == ["T1", "T2"]

    def test_shorter_save_blanks_old_rows(self):
        spreadsheet = FakeSpreadsheet()
        store = SheetsTableStore(spreadsheet, headers=HEADERS, backoff=0)
        store.save_table("Personnel", _sample_rows())
        store.save_table("Personnel", _sample_rows()[:1])

        assert [r["PersonnelID"] for r in store.load_table("Personnel")] == ["P001"]
        assert len(spreadsheet.sheets["Personnel"].cells) == 4

    def test_failed_save_keeps_previous_rows(self):
        """A rejected write leaves the old table readable."""
        spreadsheet = FakeSpreadsheet()
        store = SheetsTableStore(spreadsheet, headers=HEADERS, backoff=0)
        store.save_table("Teams", [{"TeamID": "T1"}, {"TeamID": "T2"}])

        def rejected(range_name, values):
            raise APIError(FakeResponse(400, "Unable to parse range"))

        spreadsheet.sheets["Teams"].update = rejected
        with pytest.raises(APIError):
            store.save_table("Teams", [{"TeamID": "T3"}])

        assert [r["TeamID"] for r in store.load_table("Teams")] == ["T1", "T2"]


class TestRetry:
    """Tests for retry_429."""

    def test_retries_quota_errors(self):
        calls = []
        sleeps = []

        def flaky():
            calls.append(1)
            if len(calls) < 3:
                raise APIError(FakeResponse(429, "Quota exceeded"))
            return "ok"

        assert retry_429(flaky, retries=5, backoff=0.5, sleep=sleeps.append) == "ok"
        assert sleeps == [0.5, 1.0]

    def test_other_errors_propagate(self):
        def broken():
            raise APIError(FakeResponse(403, "The caller does not have permission"))

        with pytest.raises(APIError):
            retry_429(broken, sleep=lambda _: None)

    @pytest.mark.parametrize("code, message, retried", [
        (400, "Range A500:B503 exceeds grid limits", False),
        (404, "Requested entity was not found", False),
        (429, "Quota exceeded for quota metric", True),
        (502, "Bad gateway", True),
        (503, "The service is currently unavailable", True),
    ])
    def test_retry_decided_by_status_code(self, code, message, retried):
        sleeps = []

        def failing():
            raise APIError(FakeResponse(code, message))

        with pytest.raises(APIError):
            retry_429(failing, retries=2, sleep=sleeps.append)
        assert bool(sleeps) is retried


class TestRecords:
    """Tests for row conversion."""

    def test_entry_row_format(self):
        entry = ScheduleEntry(
            "SS1", "P001", date(2024, 3, 4), ShiftType.NIGHT,
            start_time=time(18, 0), end_time=time(6, 0), team_id="T1", location="Main Plant",
        )
        row = records.entry_to_row(entry)
        assert set(row) == set(HEADERS["ShiftSchedule"])
        assert row["Date"] == "2024-03-04"
        assert row["StartTime"] == "18:00"
        assert row["IsOverride"] == "FALSE"
        assert records.entry_from_row(row) == entry

    def test_legacy_clock_format_accepted(self):
        row = records.entry_to_row(ScheduleEntry("SS1", "P001", date(2024, 3, 4), ShiftType.DAY))
        row["StartTime"], row["EndTime"] = "0600", "1800"
        entry = records.entry_from_row(row)
        assert (entry.start_time, entry.end_time) == (time(6, 0), time(18, 0))

    def test_team_pattern_assignment_columns(self):
        team = Team("T2", "Team B", "Blue", PatternAssignment("RP001", date(2024, 1, 1), 5))
        row = records.team_to_row(team)
        assert row["PatternOffset"] == "5"
        assert records.team_from_row(row) == team
        assert records.team_from_row({"TeamID": "T3"}).pattern_assignment is None

    def test_blank_pattern_start_date(self):
        """A blank start date leaves the assignment on the configured reference."""
        team = records.team_from_row({"TeamID": "T3", "PatternID": "RP001", "PatternOffset": "11"})
        assert team.pattern_assignment == PatternAssignment("RP001", None, 11)
        assert records.team_to_row(team)["PatternStartDate"] == ""

    def test_person_status_default(self):
        person = records.person_from_row({"PersonnelID": "P001", "FirstName": "A", "LastName": "B"})
        assert person.status is PersonStatus.ACTIVE
        assert records.person_to_row(Person("P1", "A", "B", status=PersonStatus.LOA))["Status"] == "LOA"

    def test_swap_and_straights_rows(self):
        swap = ShiftSwap(
            "SW1", "P001", "P002", date(2024, 3, 4), date(2024, 3, 6),
            status=SwapStatus.APPROVED, approved_by="Admin", approved_date=date(2024, 3, 1),
        )
        assert records.swap_from_row(records.swap_to_row(swap)) == swap
        straights = StraightsAssignment("ST1", "P001", date(2024, 3, 4), date(2024, 3, 8))
        assert records.straights_to_row(straights)["DailyStartTime"] == ""
        assert records.straights_from_row(records.straights_to_row(straights)) == straights

    def test_parse_rows_collects_bad_rows(self):
        rows = [
            {"ScheduleID": "SS1", "PersonnelID": "P001", "Date": "2024-03-04", "ShiftType": "Day"},
            {"ScheduleID": "SS2", "PersonnelID": "P001", "Date": "not a date"},
            {"ScheduleID": "SS3", "Date": "2024-03-04"},
            {"ScheduleID": "SS4", "PersonnelID": "P001", "Date": "2024-03-04", "ShiftType": "Swing"},
        ]
        with pytest.raises(ValidationFailed) as exc_info:
            records.parse_rows("ShiftSchedule", rows, records.entry_from_row)
        errors = exc_info.value.errors
        assert [e.details["index"] for e in errors] == [1, 2, 3]
        assert all(e.error_type is ValidationErrorType.INVALID_RECORD for e in errors)
