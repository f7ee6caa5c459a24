from __future__ import annotations

import logging
from datetime import datetime
from typing import Callable

from ..layout import FIRST_DATA_ROW, LEDGER_HEADER, LEDGER_ROW_COLUMN
from ..models import RoutingLogEntry
from ..storage.base import TableStore
from ..utils.text import as_number
from ..utils.time import parse_datetime, utc_now

logger = logging.getLogger(__name__)


class RoutingLog:
    """Append-only ledger of routing events.

    The ROW column is the dedup index: a staging row counts as routed as soon
    as any entry carries its number. Entries with the same content key are
    allowed and never merged.

    With ``indexed=True`` the routed row numbers are cached in memory, built
    from the ledger on first use. Only use it when this process is the sole
    writer of the ledger.
    """

    def __init__(
        self,
        store: TableStore,
        *,
        table: str,
        indexed: bool = False,
        clock: Callable = utc_now,
    ) -> None:
        self._store = store
        self._table = table
        self._indexed = indexed
        self._clock = clock
        self._routed: set[float] | None = None

    @property
    def table(self) -> str:
        return self._table

    def _row_numbers(self) -> list[float]:
        if self._store.get_table(self._table) is None:
            return []
        last = self._store.last_row(self._table)
        out: list[float] = []
        for row in range(FIRST_DATA_ROW, last + 1):
            (value,) = self._store.read_row(self._table, row, LEDGER_ROW_COLUMN, 1)
            number = as_number(value)
            if number is not None:
                out.append(number)
        return out

    def was_routed(self, row: int) -> bool:
        wanted = float(row)
        if not self._indexed:
            return wanted in self._row_numbers()
        if self._routed is None:
            self._routed = set(self._row_numbers())
            logger.debug("ledger index rebuilt: %d rows", len(self._routed))
        return wanted in self._routed

    def append(self, key: str, dest: str, row: int) -> RoutingLogEntry:
        if self._store.get_table(self._table) is None:
            self._store.create_table(self._table)
            self._store.write_row(self._table, 1, 1, list(LEDGER_HEADER))
        entry = RoutingLogEntry(key=key, when=self._clock(), dest=dest, row=row)
        self._store.append_row(self._table, [entry.key, entry.when, entry.dest, entry.row])
        if self._routed is not None:
            self._routed.add(float(row))
        return entry

    def entries(self) -> list[RoutingLogEntry]:
        if self._store.get_table(self._table) is None:
            return []
        last = self._store.last_row(self._table)
        out: list[RoutingLogEntry] = []
        for row in range(FIRST_DATA_ROW, last + 1):
            key, when, dest, source_row = self._store.read_row(self._table, row, 1, 4)
            number = as_number(source_row)
            out.append(
                RoutingLogEntry(
                    key="" if key is None else str(key),
                    when=_parse_when(when, row),
                    dest="" if dest is None else str(dest),
                    row=None if number is None else int(number),
                )
            )
        return out


def _parse_when(value, row: int) -> datetime | None:
    # WHEN cells may be edited by hand; keep the entry even if unreadable.
    try:
        return parse_datetime(value)
    except ValueError:
        logger.warning("ledger row %d has unreadable WHEN value %r", row, value)
        return None
