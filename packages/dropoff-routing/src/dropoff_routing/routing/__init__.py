from .dispatcher import EditDispatcher
from .engine import RoutingEngine, ensure_headers, get_or_create_table
from .ledger import RoutingLog
from .planner import next_row
from .resolver import DestinationResolver

__all__ = [
    "DestinationResolver",
    "EditDispatcher",
    "RoutingEngine",
    "RoutingLog",
    "ensure_headers",
    "get_or_create_table",
    "next_row",
]
