from __future__ import annotations

from ..layout import FIRST_DATA_ROW
from ..storage.base import TableStore
from ..utils.text import is_blank


def next_row(store: TableStore, table: str, width: int) -> int:
    """First empty row after the last row holding data in columns 1..width.

    Only the first `width` columns are consulted, so stray values further
    right never make a row look occupied. The row is not reserved; callers
    must write it while still holding the document lock.
    """
    last = store.last_row(table)
    if last < FIRST_DATA_ROW:
        return FIRST_DATA_ROW

    for row in range(last, FIRST_DATA_ROW - 1, -1):
        values = store.read_row(table, row, 1, width)
        if any(not is_blank(v) for v in values):
            return row + 1
    return FIRST_DATA_ROW
