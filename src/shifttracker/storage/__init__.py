"""Table stores and the roster repository."""

from shifttracker.storage.records import HEADERS
from shifttracker.storage.repository import RosterRepository
from shifttracker.storage.sheets import SheetsTableStore
from shifttracker.storage.tables import JsonTableStore, MemoryTableStore, TableStore

__all__ = [
    "HEADERS",
    "JsonTableStore",
    "MemoryTableStore",
    "RosterRepository",
    "SheetsTableStore",
    "TableStore",
]
