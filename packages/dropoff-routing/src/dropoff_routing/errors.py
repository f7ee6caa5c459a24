from __future__ import annotations


class RoutingError(RuntimeError):
    pass


class StoreError(RoutingError):
    pass
