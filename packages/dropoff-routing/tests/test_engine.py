import itertools
import threading

import pytest

from dropoff_routing.config import RouterSettings
from dropoff_routing.errors import StoreError
from dropoff_routing.layout import PRIMARY_HEADER, SECONDARY_HEADER
from dropoff_routing.models import RouteStatus
from dropoff_routing.routing.engine import (
    RoutingEngine,
    ensure_headers,
    get_or_create_table,
)
from dropoff_routing.storage.memory import MemoryTableStore

from .fixtures.workbook import build_workbook, staged_row, table_rows

RULES = [["", "ORDERS", "TRUE"], ["ACME", "ACME_TAB", ""]]


class RecordingNotifier:
    def __init__(self):
        self.messages = []

    def notify(self, message, *, title="", seconds=3):
        self.messages.append((title, message))


class BrokenNotifier:
    def notify(self, message, *, title="", seconds=3):
        raise RuntimeError("toast backend down")


class FailingWriteStore(MemoryTableStore):
    def write_row(self, table, row, col_start, values):
        if table == "ORDERS" and row > 1:
            raise StoreError("quota exceeded")
        super().write_row(table, row, col_start, values)


def test_routes_to_default_destination_with_full_header() -> None:
    store = build_workbook(rules=RULES, rows=[staged_row("P1", "ZULU")])
    notifier = RecordingNotifier()
    outcome = RoutingEngine(store, notifier=notifier).route_row(2)

    assert outcome.status is RouteStatus.routed
    assert outcome.destination == "ORDERS"
    assert outcome.target_row == 2
    assert outcome.primary_layout is True
    assert store.read_row("ORDERS", 1, 1, 6) == list(PRIMARY_HEADER)
    assert table_rows(store, "ORDERS") == [staged_row("P1", "ZULU")]
    assert notifier.messages == [("Drop-off", "Routed row 2 → ORDERS")]


def test_secondary_destination_gets_short_header_but_full_record() -> None:
    store = build_workbook(rules=RULES, rows=[staged_row("P1", "acme")])
    outcome = RoutingEngine(store).route_row(2)

    assert outcome.destination == "ACME_TAB"
    assert outcome.primary_layout is False
    assert store.read_row("ACME_TAB", 1, 1, 6) == list(SECONDARY_HEADER) + [None, None]
    assert table_rows(store, "ACME_TAB") == [staged_row("P1", "acme")]


def test_exact_rule_targeting_primary_uses_full_header() -> None:
    store = build_workbook(
        rules=[["ACME", " orders ", ""]], rows=[staged_row("P1", "ACME")]
    )
    outcome = RoutingEngine(store).route_row(2)

    assert outcome.primary_layout is True
    assert store.read_row(" orders ".strip(), 1, 1, 6) == list(PRIMARY_HEADER)


def test_route_row_is_idempotent() -> None:
    store = build_workbook(rules=RULES, rows=[staged_row("P1")])
    engine = RoutingEngine(store)

    statuses = [engine.route_row(2).status for _ in range(4)]

    assert statuses == [RouteStatus.routed] + [RouteStatus.already_routed] * 3
    assert [e.row for e in engine.ledger.entries()] == [2]
    assert len(table_rows(store, "ACME_TAB")) == 1


def test_data_changed_after_routing_is_not_rerouted() -> None:
    store = build_workbook(rules=RULES, rows=[staged_row("P1", "ACME")])
    engine = RoutingEngine(store)
    engine.route_row(2)
    store.write_row("DROP_OFF", 2, 3, ["ZULU"])

    assert engine.route_row(2).status is RouteStatus.already_routed
    assert store.get_table("ORDERS") is None


@pytest.mark.parametrize(
    "blanks",
    [
        combo
        for size in range(1, 7)
        for combo in itertools.combinations(range(6), size)
    ],
)
def test_incomplete_row_is_a_no_op(blanks) -> None:
    values = staged_row("P1")
    for idx in blanks:
        values[idx] = "" if idx % 2 else None
    store = build_workbook(rules=RULES)
    store.write_row("DROP_OFF", 2, 1, values)
    before = store.list_table_names()

    outcome = RoutingEngine(store).route_row(2)

    assert outcome.status is RouteStatus.incomplete
    assert store.list_table_names() == before


def test_whitespace_counts_as_present() -> None:
    values = staged_row("P1")
    values[5] = " "
    store = build_workbook(rules=RULES, rows=[values])

    assert RoutingEngine(store).route_row(2).status is RouteStatus.routed


def test_missing_staging_table() -> None:
    outcome = RoutingEngine(MemoryTableStore()).route_row(2)

    assert outcome.status is RouteStatus.no_staging


def test_blank_fallback_is_unresolved_and_writes_nothing() -> None:
    store = build_workbook(rows=[staged_row("P1")])
    settings = RouterSettings(fallback_destination="  ")
    before = store.list_table_names()

    outcome = RoutingEngine(store, settings).route_row(2)

    assert outcome.status is RouteStatus.unresolved
    assert store.list_table_names() == before


def test_lock_timeout_leaves_row_unrouted() -> None:
    store = build_workbook(rules=RULES, rows=[staged_row("P1")])
    engine = RoutingEngine(store, RouterSettings(lock_timeout_ms=50))
    assert store.lock.acquire(1000)
    try:
        outcome = engine.route_row(2)
    finally:
        store.lock.release()

    assert outcome.status is RouteStatus.lock_timeout
    assert store.get_table("LOG") is None
    assert engine.route_row(2).status is RouteStatus.routed


def test_store_fault_propagates_and_releases_lock() -> None:
    store = build_workbook(store=FailingWriteStore(), rows=[staged_row("P1")])
    engine = RoutingEngine(store)

    with pytest.raises(StoreError):
        engine.route_row(2)

    assert store.get_table("LOG") is None
    assert store.lock.acquire(0)
    store.lock.release()


def test_notifier_failure_does_not_affect_outcome() -> None:
    store = build_workbook(rules=RULES, rows=[staged_row("P1")])
    outcome = RoutingEngine(store, notifier=BrokenNotifier()).route_row(2)

    assert outcome.status is RouteStatus.routed
    assert len(table_rows(store, "ACME_TAB")) == 1


def test_notification_happens_outside_lock() -> None:
    store = build_workbook(rules=RULES, rows=[staged_row("P1")])
    seen = []

    class LockProbe:
        def notify(self, message, *, title="", seconds=3):
            free = store.lock.acquire(0)
            if free:
                store.lock.release()
            seen.append(free)

    RoutingEngine(store, notifier=LockProbe()).route_row(2)

    assert seen == [True]


def test_ledger_entry_records_content_key() -> None:
    store = build_workbook(rules=RULES, rows=[[" p1", "bin", "acme", 9.5, "d", "x "]])
    engine = RoutingEngine(store)
    engine.route_row(2)

    (entry,) = engine.ledger.entries()
    assert entry.key == "P1||BIN||ACME||9.5||D||X"
    assert entry.dest == "ACME_TAB"
    assert entry.row == 2


def test_ensure_headers_leaves_matching_header_untouched() -> None:
    store = MemoryTableStore()
    store.create_table("ORDERS")
    existing = ["part", "Loc", "CUSTM", "price", "date", "descr", "extra"]
    store.write_row("ORDERS", 1, 1, existing)

    assert ensure_headers(store, "ORDERS", PRIMARY_HEADER) is False
    assert store.read_row("ORDERS", 1, 1, 7) == existing


def test_ensure_headers_overwrites_mismatch() -> None:
    store = MemoryTableStore()
    store.create_table("ACME_TAB")
    store.write_row("ACME_TAB", 1, 1, ["PART", "WHERE"])

    assert ensure_headers(store, "ACME_TAB", SECONDARY_HEADER) is True
    assert store.read_row("ACME_TAB", 1, 1, 4) == list(SECONDARY_HEADER)


def test_get_or_create_table_matches_loosely_and_creates_trimmed() -> None:
    store = MemoryTableStore()
    store.create_table(" Acme_Tab")

    assert get_or_create_table(store, "ACME_TAB ") == " Acme_Tab"
    assert get_or_create_table(store, "  NEW_TAB ") == "NEW_TAB"
    assert store.list_table_names() == [" Acme_Tab", "NEW_TAB"]


def test_concurrent_calls_for_same_row_write_once() -> None:
    store = build_workbook(rules=RULES, rows=[staged_row("P1")])
    engine = RoutingEngine(store)
    barrier = threading.Barrier(8)
    results = []

    def worker():
        barrier.wait()
        results.append(engine.route_row(2).status)

    threads = [threading.Thread(target=worker) for _ in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert results.count(RouteStatus.routed) == 1
    assert len(table_rows(store, "ACME_TAB")) == 1
