from __future__ import annotations

from datetime import date, datetime, timezone


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def parse_datetime(value) -> datetime | None:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=timezone.utc)
    if isinstance(value, (int, float)):
        return datetime.fromtimestamp(value, tz=timezone.utc)
    if isinstance(value, str):
        text = value.replace("Z", "+00:00")
        return parse_datetime(datetime.fromisoformat(text))
    raise ValueError(f"Unsupported datetime value: {value!r}")


def to_cell(value):
    """Render temporal values the way the SQLite store persists them."""
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    return value
