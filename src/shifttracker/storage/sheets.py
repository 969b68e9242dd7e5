"""Google Sheets backed table store.

Each table is a worksheet whose first row holds the column headers. Calls
that hit the Sheets API quota (HTTP 429) or a transient server error are
retried with exponential backoff.
"""

import logging
import time as _pytime
from typing import Callable, Optional, TypeVar

import gspread
import gspread.utils as a1
from gspread.exceptions import APIError, WorksheetNotFound

from shifttracker.storage.tables import Record, TableStore

logger = logging.getLogger(__name__)

T = TypeVar("T")

SCOPES = ["https://www.googleapis.com/auth/spreadsheets"]


# Quota and transient server errors
RETRY_STATUS = (429, 500, 502, 503, 504)


def _is_retryable(error: APIError) -> bool:
    status = getattr(getattr(error, "response", None), "status_code", None)
    if status is not None:
        return status in RETRY_STATUS
    return "quota exceeded" in str(error).lower()


def retry_429(
    fn: Callable[..., T],
    *args,
    retries: int = 5,
    backoff: float = 0.8,
    sleep: Callable[[float], None] = _pytime.sleep,
    **kwargs,
) -> T:
    """Call fn, retrying quota and transient API errors with backoff."""
    for i in range(retries):
        try:
            return fn(*args, **kwargs)
        except APIError as e:
            if not _is_retryable(e):
                raise
            delay = backoff * (2 ** i)
            logger.warning("Sheets API busy (%s), retrying in %.1fs", e, delay)
            sleep(delay)
    return fn(*args, **kwargs)


class SheetsTableStore(TableStore):
    """Table store over the worksheets of one spreadsheet.

    Example:
        >>> client = gspread.service_account(filename="service_account.json")
        >>> store = SheetsTableStore(client.open_by_key(spreadsheet_id))
        >>> store.load_table("ShiftSchedule")[:1]
        [{'ScheduleID': 'SS-1a2b3c4d5e', 'PersonnelID': 'P001', ...}]
    """

    def __init__(
        self,
        spreadsheet,
        headers: Optional[dict[str, list[str]]] = None,
        retries: int = 5,
        backoff: float = 0.8,
    ):
        """Initialize over an opened spreadsheet.

        Args:
            spreadsheet: A gspread Spreadsheet (or compatible object).
            headers: Column order per table for tables that do not exist yet.
            retries: Attempts per API call on quota errors.
            backoff: Base delay in seconds between attempts.
        """
        self.spreadsheet = spreadsheet
        self.headers = headers or {}
        self.retries = retries
        self.backoff = backoff

    @classmethod
    def from_service_account(
        cls,
        credentials_file: str,
        spreadsheet_id: str,
        headers: Optional[dict[str, list[str]]] = None,
    ) -> "SheetsTableStore":
        """Open a spreadsheet with a service account key file."""
        client = gspread.service_account(filename=credentials_file, scopes=SCOPES)
        return cls(client.open_by_key(spreadsheet_id), headers=headers)

    def _call(self, fn: Callable[..., T], *args, **kwargs) -> T:
        return retry_429(fn, *args, retries=self.retries, backoff=self.backoff, **kwargs)

    def _worksheet(self, name: str, create: bool = False):
        try:
            return self._call(self.spreadsheet.worksheet, name)
        except WorksheetNotFound:
            if not create:
                return None
        header = self.headers.get(name, [])
        ws = self._call(
            self.spreadsheet.add_worksheet,
            title=name,
            rows=1000,
            cols=max(len(header), 10),
        )
        if header:
            self._call(ws.update, range_name="A1", values=[header])
        return ws

    def _header(self, ws, name: str) -> list[str]:
        values = self._call(ws.row_values, 1)
        return values or list(self.headers.get(name, []))

    @staticmethod
    def _to_values(header: list[str], row: Record) -> list[str]:
        return [str(row.get(column, "")) for column in header]

    def _load(self, name: str) -> tuple[list[Record], list[int]]:
        """Read a table along with the sheet row number of every record."""
        ws = self._worksheet(name)
        if ws is None:
            return [], []
        values = self._call(ws.get_all_values)
        if not values:
            return [], []
        header, body = values[0], values[1:]
        rows = []
        row_numbers = []
        # Sheet rows are 1-based and row 1 is the header
        for number, raw in enumerate(body, start=2):
            if not any(cell.strip() for cell in raw):
                continue
            padded = raw + [""] * (len(header) - len(raw))
            rows.append({column: value for column, value in zip(header, padded) if column})
            row_numbers.append(number)
        return rows, row_numbers

    def load_table(self, name: str) -> list[Record]:
        rows, _ = self._load(name)
        return rows

    def save_table(self, name: str, rows: list[Record]) -> None:
        """Replace a table's rows in one write.

        Rows left over from a longer previous table are blanked in the same
        request, so a failed write leaves the old table intact.
        """
        ws = self._worksheet(name, create=True)
        header = self._header(ws, name)
        for row in rows:
            for column in row:
                if column not in header:
                    header.append(column)

        current = self._call(ws.get_all_values)
        width = max([len(header)] + [len(raw) for raw in current] + [1])
        values = [header + [""] * (width - len(header))]
        values += [self._to_values(header, r) + [""] * (width - len(header)) for r in rows]
        values += [[""] * width for _ in range(len(current) - len(values))]

        end = a1.rowcol_to_a1(len(values), width)
        self._call(ws.update, range_name=f"A1:{end}", values=values)
        logger.debug("Wrote %d rows to worksheet %s", len(rows), name)

    def append_row(self, name: str, row: Record) -> None:
        ws = self._worksheet(name, create=True)
        header = self._header(ws, name)
        if not header:
            header = list(row)
            self._call(ws.update, range_name="A1", values=[header])
        self._call(ws.append_row, self._to_values(header, row), value_input_option="RAW")

    def update_row(self, name: str, index: int, row: Record) -> None:
        _, row_numbers = self._load(name)
        self._check_index(name, index, len(row_numbers))
        ws = self._worksheet(name)
        header = self._header(ws, name)
        self._call(
            ws.update,
            range_name=a1.rowcol_to_a1(row_numbers[index], 1),
            values=[self._to_values(header, row)],
        )

    def delete_row(self, name: str, index: int) -> None:
        _, row_numbers = self._load(name)
        self._check_index(name, index, len(row_numbers))
        ws = self._worksheet(name)
        self._call(ws.delete_rows, row_numbers[index])
