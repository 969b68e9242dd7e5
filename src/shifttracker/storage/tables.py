"""Tabular store contract and local implementations.

The tracker treats its backing spreadsheet as a set of named tables, each a
list of records keyed by column header. Row indexes are 0-based over the data
rows (the header is not a row).
"""

import json
import logging
from abc import ABC, abstractmethod
from copy import deepcopy
from pathlib import Path
from typing import Union

from shifttracker.domain.errors import NotFoundError

logger = logging.getLogger(__name__)

Record = dict[str, str]


class TableStore(ABC):
    """Abstract base class for a named-table store."""

    @abstractmethod
    def load_table(self, name: str) -> list[Record]:
        """Return all rows of a table; an absent table is empty."""
        pass

    @abstractmethod
    def save_table(self, name: str, rows: list[Record]) -> None:
        """Replace the whole contents of a table."""
        pass

    def append_row(self, name: str, row: Record) -> None:
        """Add a row at the end of a table."""
        rows = self.load_table(name)
        rows.append(dict(row))
        self.save_table(name, rows)

    def update_row(self, name: str, index: int, row: Record) -> None:
        """Replace the row at a position.

        Raises:
            NotFoundError: If the index is out of range.
        """
        rows = self.load_table(name)
        self._check_index(name, index, len(rows))
        rows[index] = dict(row)
        self.save_table(name, rows)

    def delete_row(self, name: str, index: int) -> None:
        """Remove the row at a position, shifting later rows up.

        Raises:
            NotFoundError: If the index is out of range.
        """
        rows = self.load_table(name)
        self._check_index(name, index, len(rows))
        del rows[index]
        self.save_table(name, rows)

    @staticmethod
    def _check_index(name: str, index: int, size: int) -> None:
        if not 0 <= index < size:
            raise NotFoundError(f"row in {name}", index)


class MemoryTableStore(TableStore):
    """In-process store, for tests and demos."""

    def __init__(self, tables: dict[str, list[Record]] = None):
        self._tables: dict[str, list[Record]] = deepcopy(tables or {})

    def load_table(self, name: str) -> list[Record]:
        return deepcopy(self._tables.get(name, []))

    def save_table(self, name: str, rows: list[Record]) -> None:
        self._tables[name] = deepcopy(list(rows))

    def table_names(self) -> list[str]:
        return sorted(self._tables)


class JsonTableStore(TableStore):
    """All tables in a single JSON document on disk.

    The file holds an object mapping table name to a list of row objects.
    Saves write a temporary sibling file and rename it over the original
    so a reader never sees a half-written document.
    """

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)

    def _read(self) -> dict[str, list[Record]]:
        if not self.path.exists():
            return {}
        content = self.path.read_text()
        if not content.strip():
            return {}
        return json.loads(content)

    def _write(self, tables: dict[str, list[Record]]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self.path.with_suffix(self.path.suffix + ".tmp")
        tmp.write_text(json.dumps(tables, indent=2, sort_keys=True))
        tmp.replace(self.path)

    def load_table(self, name: str) -> list[Record]:
        return self._read().get(name, [])

    def save_table(self, name: str, rows: list[Record]) -> None:
        tables = self._read()
        tables[name] = [dict(r) for r in rows]
        self._write(tables)
        logger.debug("Saved %d rows to %s in %s", len(rows), name, self.path)
