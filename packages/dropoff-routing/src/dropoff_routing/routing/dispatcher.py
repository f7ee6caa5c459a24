from __future__ import annotations

import logging

from ..layout import FIRST_DATA_ROW, RECORD_WIDTH
from ..models import EditEvent, RouteOutcome
from .engine import RoutingEngine

logger = logging.getLogger(__name__)


class EditDispatcher:
    """Turns staging edits into one routing attempt per touched row.

    A failure while routing one row is logged and never stops the others.
    """

    def __init__(self, engine: RoutingEngine) -> None:
        self.engine = engine

    @property
    def staging_table(self) -> str:
        return self.engine.settings.staging_table

    def handle_edit(self, event: EditEvent) -> list[RouteOutcome]:
        if event.table != self.staging_table:
            return []
        if event.last_column < 1 or event.column > RECORD_WIDTH:
            return []
        return self._route_rows(
            range(max(event.row, FIRST_DATA_ROW), event.last_row + 1)
        )

    def rescan(self, start_row: int = FIRST_DATA_ROW) -> list[RouteOutcome]:
        store = self.engine.store
        if store.get_table(self.staging_table) is None:
            return []
        last = store.last_row(self.staging_table)
        return self._route_rows(range(max(start_row, FIRST_DATA_ROW), last + 1))

    def _route_rows(self, rows) -> list[RouteOutcome]:
        outcomes: list[RouteOutcome] = []
        for row in rows:
            try:
                outcomes.append(self.engine.route_row(row))
            except Exception:
                logger.exception("routing row %d failed", row)
        return outcomes
