from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import StrEnum
from typing import Any, Sequence

from .layout import CLASSIFICATION_INDEX, RECORD_WIDTH
from .utils.text import content_key, is_blank


@dataclass(frozen=True)
class SourceRecord:
    row: int
    part: Any
    loc: Any
    custm: Any
    price: Any
    date: Any
    descr: Any

    @classmethod
    def from_cells(cls, row: int, cells: Sequence[Any]) -> "SourceRecord":
        padded = list(cells[:RECORD_WIDTH]) + [None] * (RECORD_WIDTH - len(cells))
        return cls(row, *padded)

    @property
    def values(self) -> tuple[Any, ...]:
        return (self.part, self.loc, self.custm, self.price, self.date, self.descr)

    @property
    def classification(self) -> Any:
        return self.values[CLASSIFICATION_INDEX]

    def is_complete(self) -> bool:
        return not any(is_blank(v) for v in self.values)

    def content_key(self) -> str:
        return content_key(self.values)


@dataclass(frozen=True)
class DestinationRule:
    code: Any
    destination: Any
    is_default: bool


@dataclass(frozen=True)
class Resolution:
    name: str
    is_default: bool


@dataclass(frozen=True)
class RoutingLogEntry:
    key: str
    when: datetime | None
    dest: str
    row: int | None


class RouteStatus(StrEnum):
    routed = "routed"
    incomplete = "incomplete"
    already_routed = "already_routed"
    unresolved = "unresolved"
    lock_timeout = "lock_timeout"
    no_staging = "no_staging"


@dataclass(frozen=True)
class RouteOutcome:
    row: int
    status: RouteStatus
    destination: str | None = None
    target_row: int | None = None
    primary_layout: bool | None = None

    @property
    def routed(self) -> bool:
        return self.status is RouteStatus.routed


@dataclass(frozen=True)
class EditEvent:
    """A rectangular edit reported by whatever watches the staging table."""

    table: str
    row: int
    column: int
    num_rows: int = 1
    num_columns: int = 1

    @property
    def last_row(self) -> int:
        return self.row + self.num_rows - 1

    @property
    def last_column(self) -> int:
        return self.column + self.num_columns - 1
