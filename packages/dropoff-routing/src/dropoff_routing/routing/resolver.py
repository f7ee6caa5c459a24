from __future__ import annotations

from ..layout import DEFAULT_FLAG, FIRST_DATA_ROW
from ..models import DestinationRule, Resolution
from ..storage.base import TableStore
from ..utils.text import canonical_name, is_blank


class DestinationResolver:
    """Maps a classification key to a destination table via the config table.

    Rules are read from columns A-C (code, destination, default flag). The
    last rule flagged default that names a destination becomes the default;
    an exact (trimmed, case-insensitive) code match wins over it.
    """

    def __init__(self, store: TableStore, *, config_table: str, fallback: str) -> None:
        self._store = store
        self._config_table = config_table
        self._fallback = fallback

    def rules(self) -> list[DestinationRule]:
        if self._store.get_table(self._config_table) is None:
            return []
        last = self._store.last_row(self._config_table)
        out: list[DestinationRule] = []
        for row in range(FIRST_DATA_ROW, last + 1):
            code, dest, flag = self._store.read_row(self._config_table, row, 1, 3)
            out.append(
                DestinationRule(
                    code=code,
                    destination=dest,
                    is_default=str(flag).upper() == DEFAULT_FLAG,
                )
            )
        return out

    def resolve(self, key) -> Resolution:
        rules = self.rules()

        default_target = None
        for rule in rules:
            if rule.is_default and not is_blank(rule.destination):
                default_target = rule.destination

        wanted = canonical_name(key)
        for rule in rules:
            if is_blank(rule.code):
                continue
            if canonical_name(rule.code) == wanted:
                name = _first_present(rule.destination, default_target, self._fallback)
                return Resolution(name=name, is_default=False)

        return Resolution(
            name=_first_present(default_target, self._fallback), is_default=True
        )


def _first_present(*values) -> str:
    for value in values:
        if not is_blank(value):
            return str(value)
    return ""
