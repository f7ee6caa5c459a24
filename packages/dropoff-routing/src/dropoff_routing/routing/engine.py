from __future__ import annotations

import logging
from typing import Sequence

from ..config import RouterSettings
from ..layout import HEADER_ROW, PRIMARY_HEADER, RECORD_WIDTH, SECONDARY_HEADER
from ..models import RouteOutcome, RouteStatus, SourceRecord
from ..notify import Notifier, notify_quietly
from ..storage.base import TableStore, hold_lock
from ..utils.text import canonical_name
from .ledger import RoutingLog
from .planner import next_row
from .resolver import DestinationResolver

logger = logging.getLogger(__name__)


def get_or_create_table(store: TableStore, name: str) -> str:
    """Find a table by exact name, then by trimmed case-insensitive name.

    Creates it under the trimmed requested name when neither matches.
    """
    wanted = str(name).strip()
    found = store.get_table(wanted)
    if found is not None:
        return found
    key = canonical_name(wanted)
    for existing in store.list_table_names():
        if canonical_name(existing) == key:
            return existing
    logger.info("creating destination table %r", wanted)
    return store.create_table(wanted)


def ensure_headers(store: TableStore, table: str, header: Sequence[str]) -> bool:
    """Write `header` into row 1 unless it already matches case-insensitively.

    Returns True when the header was (re)written.
    """
    width = len(header)
    current = store.read_row(table, HEADER_ROW, 1, width)
    current_norm = ["" if v is None else str(v).upper() for v in current]
    if current_norm == [h.upper() for h in header]:
        return False
    store.write_row(table, HEADER_ROW, 1, list(header))
    return True


class RoutingEngine:
    def __init__(
        self,
        store: TableStore,
        settings: RouterSettings | None = None,
        *,
        notifier: Notifier | None = None,
        ledger: RoutingLog | None = None,
    ) -> None:
        self.store = store
        self.settings = settings or RouterSettings()
        self.notifier = notifier
        self.resolver = DestinationResolver(
            store,
            config_table=self.settings.config_table,
            fallback=self.settings.fallback_destination,
        )
        self.ledger = ledger or RoutingLog(
            store,
            table=self.settings.ledger_table,
            indexed=self.settings.indexed_ledger,
        )

    def route_row(self, row: int) -> RouteOutcome:
        """Route one staging row at most once, under the document lock."""
        with hold_lock(self.store.lock, self.settings.lock_timeout_ms) as acquired:
            if not acquired:
                logger.warning(
                    "lock not acquired within %dms; row %d left for a later trigger",
                    self.settings.lock_timeout_ms,
                    row,
                )
                return RouteOutcome(row=row, status=RouteStatus.lock_timeout)
            outcome = self._route_locked(row)

        if outcome.routed:
            notify_quietly(
                self.notifier,
                f"Routed row {row} → {outcome.destination}",
                title="Drop-off",
            )
        return outcome

    def _route_locked(self, row: int) -> RouteOutcome:
        staging = self.store.get_table(self.settings.staging_table)
        if staging is None:
            logger.debug("staging table %r missing", self.settings.staging_table)
            return RouteOutcome(row=row, status=RouteStatus.no_staging)

        record = SourceRecord.from_cells(
            row, self.store.read_row(staging, row, 1, RECORD_WIDTH)
        )
        if not record.is_complete():
            logger.debug("row %d incomplete; skipping", row)
            return RouteOutcome(row=row, status=RouteStatus.incomplete)

        if self.ledger.was_routed(row):
            logger.debug("row %d already routed", row)
            return RouteOutcome(row=row, status=RouteStatus.already_routed)

        resolution = self.resolver.resolve(record.classification)
        if not resolution.name.strip():
            logger.info("row %d: no destination for %r", row, record.classification)
            return RouteOutcome(row=row, status=RouteStatus.unresolved)

        target = get_or_create_table(self.store, resolution.name)
        primary = resolution.is_default or canonical_name(
            resolution.name
        ) == canonical_name(self.settings.primary_destination)
        ensure_headers(
            self.store, target, PRIMARY_HEADER if primary else SECONDARY_HEADER
        )

        target_row = next_row(self.store, target, RECORD_WIDTH)
        self.store.write_row(target, target_row, 1, list(record.values))
        self.ledger.append(record.content_key(), resolution.name, row)

        logger.info("routed row %d -> %s (row %d)", row, resolution.name, target_row)
        return RouteOutcome(
            row=row,
            status=RouteStatus.routed,
            destination=resolution.name,
            target_row=target_row,
            primary_layout=primary,
        )
