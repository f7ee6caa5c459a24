from __future__ import annotations

import threading
from contextlib import contextmanager
from typing import Any, Iterator, Protocol, Sequence


class DocumentLock(Protocol):
    def acquire(self, timeout_ms: int) -> bool: ...

    def release(self) -> None: ...


class TableStore(Protocol):
    """Row/column addressed tables. Rows and columns are 1-based."""

    lock: DocumentLock

    def read_row(
        self, table: str, row: int, col_start: int, col_count: int
    ) -> list[Any]: ...

    def write_row(
        self, table: str, row: int, col_start: int, values: Sequence[Any]
    ) -> None: ...

    def append_row(self, table: str, values: Sequence[Any]) -> None: ...

    def last_row(self, table: str) -> int: ...

    def get_table(self, name: str) -> str | None: ...

    def create_table(self, name: str) -> str: ...

    def list_table_names(self) -> list[str]: ...


class ThreadDocumentLock:
    def __init__(self) -> None:
        self._lock = threading.Lock()

    def acquire(self, timeout_ms: int) -> bool:
        return self._lock.acquire(timeout=max(0, timeout_ms) / 1000)

    def release(self) -> None:
        self._lock.release()


@contextmanager
def hold_lock(lock: DocumentLock, timeout_ms: int) -> Iterator[bool]:
    """Yield whether the lock was acquired; release it on every exit path."""
    acquired = lock.acquire(timeout_ms)
    try:
        yield acquired
    finally:
        if acquired:
            lock.release()
