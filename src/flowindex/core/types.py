"""Type aliases and small value types shared across flowindex."""

from __future__ import annotations

from dataclasses import dataclass
from typing import NamedTuple

RowKey = bytes
Columns = dict[str, bytes]


class Row(NamedTuple):
    """A single stored row: its key plus every column present on it."""

    key: RowKey
    columns: Columns


@dataclass(frozen=True)
class ColumnValueFilter:
    """Store-side filter keeping rows whose ``column`` equals ``value``.

    When ``filter_if_missing`` is set, rows without the column are dropped too.
    """

    column: str
    value: bytes
    filter_if_missing: bool = True

    def matches(self, columns: Columns) -> bool:
        stored = columns.get(self.column)
        if stored is None:
            return not self.filter_if_missing
        return stored == self.value
