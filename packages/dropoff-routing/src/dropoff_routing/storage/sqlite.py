from __future__ import annotations

import threading
from pathlib import Path
from typing import Any, Sequence

from sqlalchemy import delete, func, select
from sqlalchemy.dialects.sqlite import insert

from ..errors import StoreError
from ..utils.text import is_blank
from ..utils.time import to_cell
from .base import ThreadDocumentLock
from .db import get_engine, get_session, init_db
from .schema import Cell, Sheet

_LOCKS: dict[str, ThreadDocumentLock] = {}
_LOCKS_GUARD = threading.Lock()


def _document_lock(key: str) -> ThreadDocumentLock:
    with _LOCKS_GUARD:
        lock = _LOCKS.get(key)
        if lock is None:
            lock = _LOCKS[key] = ThreadDocumentLock()
        return lock


class SqliteTableStore:
    """Tables persisted as sparse cells in a SQLite file."""

    def __init__(self, db_path: str | Path) -> None:
        db_path_str = str(db_path)
        self.engine = get_engine(db_path_str)
        init_db(self.engine)
        lock_key = (
            f"memory:{id(self)}"
            if db_path_str == ":memory:"
            else str(Path(db_path_str).resolve())
        )
        self.lock = _document_lock(lock_key)

    def _sheet_id(self, session, table: str) -> int:
        sheet_id = session.scalar(select(Sheet.id).where(Sheet.name == table))
        if sheet_id is None:
            raise StoreError(f"unknown table: {table!r}")
        return sheet_id

    def read_row(
        self, table: str, row: int, col_start: int, col_count: int
    ) -> list[Any]:
        _check_coords(row, col_start)
        with get_session(self.engine) as session:
            sheet_id = self._sheet_id(session, table)
            stmt = select(Cell.col, Cell.value).where(
                Cell.sheet_id == sheet_id,
                Cell.row == row,
                Cell.col >= col_start,
                Cell.col < col_start + col_count,
            )
            found = {col: value for col, value in session.execute(stmt)}
        return [found.get(col_start + i) for i in range(col_count)]

    def write_row(
        self, table: str, row: int, col_start: int, values: Sequence[Any]
    ) -> None:
        _check_coords(row, col_start)
        with get_session(self.engine) as session, session.begin():
            sheet_id = self._sheet_id(session, table)
            self._write(session, sheet_id, row, col_start, values)

    def _write(self, session, sheet_id: int, row: int, col_start: int, values) -> None:
        for i, value in enumerate(values):
            col = col_start + i
            if is_blank(value):
                session.execute(
                    delete(Cell).where(
                        Cell.sheet_id == sheet_id, Cell.row == row, Cell.col == col
                    )
                )
                continue
            stored = to_cell(value)
            stmt = insert(Cell).values(sheet_id=sheet_id, row=row, col=col, value=stored)
            stmt = stmt.on_conflict_do_update(
                index_elements=["sheet_id", "row", "col"], set_={"value": stored}
            )
            session.execute(stmt)

    def append_row(self, table: str, values: Sequence[Any]) -> None:
        with get_session(self.engine) as session, session.begin():
            sheet_id = self._sheet_id(session, table)
            row = self._last_row(session, sheet_id) + 1
            self._write(session, sheet_id, row, 1, values)

    def last_row(self, table: str) -> int:
        with get_session(self.engine) as session:
            return self._last_row(session, self._sheet_id(session, table))

    def _last_row(self, session, sheet_id: int) -> int:
        value = session.scalar(
            select(func.max(Cell.row)).where(Cell.sheet_id == sheet_id)
        )
        return int(value or 0)

    def get_table(self, name: str) -> str | None:
        with get_session(self.engine) as session:
            return session.scalar(select(Sheet.name).where(Sheet.name == name))

    def create_table(self, name: str) -> str:
        with get_session(self.engine) as session, session.begin():
            if session.scalar(select(Sheet.id).where(Sheet.name == name)) is not None:
                raise StoreError(f"table already exists: {name!r}")
            session.add(Sheet(name=name))
        return name

    def list_table_names(self) -> list[str]:
        with get_session(self.engine) as session:
            return list(session.scalars(select(Sheet.name).order_by(Sheet.id)))


def _check_coords(row: int, col: int) -> None:
    if row < 1 or col < 1:
        raise StoreError(f"invalid cell coordinates: row={row} col={col}")
