from .config import RouterSettings
from .errors import RoutingError, StoreError
from .models import (
    EditEvent,
    Resolution,
    RouteOutcome,
    RouteStatus,
    RoutingLogEntry,
    SourceRecord,
)
from .routing.dispatcher import EditDispatcher
from .routing.engine import RoutingEngine

__all__ = [
    "EditDispatcher",
    "EditEvent",
    "Resolution",
    "RouteOutcome",
    "RouteStatus",
    "RouterSettings",
    "RoutingEngine",
    "RoutingError",
    "RoutingLogEntry",
    "SourceRecord",
    "StoreError",
]
