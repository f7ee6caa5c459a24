from __future__ import annotations

import threading
from typing import Any, Sequence

from ..errors import StoreError
from ..utils.text import is_blank
from .base import ThreadDocumentLock


class MemoryTableStore:
    """Dict-backed store; each table maps (row, col) to a value."""

    def __init__(self) -> None:
        self.lock = ThreadDocumentLock()
        self._tables: dict[str, dict[tuple[int, int], Any]] = {}
        # Guards the dicts themselves; routing exclusion is `lock`.
        self._mutex = threading.RLock()

    def _cells(self, table: str) -> dict[tuple[int, int], Any]:
        try:
            return self._tables[table]
        except KeyError:
            raise StoreError(f"unknown table: {table!r}") from None

    def read_row(
        self, table: str, row: int, col_start: int, col_count: int
    ) -> list[Any]:
        _check_coords(row, col_start)
        with self._mutex:
            cells = self._cells(table)
            return [cells.get((row, col_start + i)) for i in range(col_count)]

    def write_row(
        self, table: str, row: int, col_start: int, values: Sequence[Any]
    ) -> None:
        _check_coords(row, col_start)
        with self._mutex:
            cells = self._cells(table)
            for i, value in enumerate(values):
                if is_blank(value):
                    cells.pop((row, col_start + i), None)
                else:
                    cells[(row, col_start + i)] = value

    def append_row(self, table: str, values: Sequence[Any]) -> None:
        with self._mutex:
            self.write_row(table, self.last_row(table) + 1, 1, values)

    def last_row(self, table: str) -> int:
        with self._mutex:
            cells = self._cells(table)
            return max((row for row, _ in cells), default=0)

    def get_table(self, name: str) -> str | None:
        with self._mutex:
            return name if name in self._tables else None

    def create_table(self, name: str) -> str:
        with self._mutex:
            if name in self._tables:
                raise StoreError(f"table already exists: {name!r}")
            self._tables[name] = {}
            return name

    def list_table_names(self) -> list[str]:
        with self._mutex:
            return list(self._tables)


def _check_coords(row: int, col: int) -> None:
    if row < 1 or col < 1:
        raise StoreError(f"invalid cell coordinates: row={row} col={col}")
