from .base import DocumentLock, TableStore, ThreadDocumentLock, hold_lock
from .memory import MemoryTableStore
from .sqlite import SqliteTableStore

__all__ = [
    "DocumentLock",
    "MemoryTableStore",
    "SqliteTableStore",
    "TableStore",
    "ThreadDocumentLock",
    "hold_lock",
]
