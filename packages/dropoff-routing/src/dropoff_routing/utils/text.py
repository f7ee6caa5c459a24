from __future__ import annotations

from typing import Any, Iterable


def canonical_name(value: Any) -> str:
    """Trim + upper-case; used before any comparison of table or rule names."""
    if value is None:
        return ""
    return str(value).strip().upper()


def is_blank(value: Any) -> bool:
    return value is None or value == ""


def content_key(values: Iterable[Any], *, sep: str = "||") -> str:
    return sep.join("" if v is None else str(v).strip() for v in values).upper()


def as_number(value: Any) -> float | None:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    text = str(value).strip()
    if not text:
        return None
    try:
        return float(text)
    except ValueError:
        return None
