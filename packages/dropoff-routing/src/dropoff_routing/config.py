from __future__ import annotations

import json
from pathlib import Path

from pydantic import BaseModel, Field


class RouterSettings(BaseModel):
    """Table names and limits for one routed document."""

    staging_table: str = "DROP_OFF"
    config_table: str = "CONFIG"
    ledger_table: str = "LOG"

    # Destination that gets the full six-column header.
    primary_destination: str = "ORDERS"
    # Used when the config table names no default.
    fallback_destination: str = "ORDERS"

    lock_timeout_ms: int = Field(default=5000, gt=0)
    indexed_ledger: bool = False

    @classmethod
    def load(cls, path: str | Path | None) -> "RouterSettings":
        if path is None:
            return cls()
        p = Path(path)
        if not p.exists():
            return cls()
        return cls.model_validate(json.loads(p.read_text(encoding="utf-8")))
