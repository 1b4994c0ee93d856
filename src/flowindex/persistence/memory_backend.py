"""In-memory sorted store for unit tests and local development."""

from __future__ import annotations

import bisect
from contextlib import contextmanager
from typing import Iterator, Optional

from flowindex.core.exceptions import StorageError
from flowindex.core.types import Columns, ColumnValueFilter, Row, RowKey


class _MemoryTableData:
    def __init__(self) -> None:
        self.keys: list[bytes] = []
        self.rows: dict[bytes, Columns] = {}


class MemoryScanner:
    """Scanner over a live in-memory table.

    Each step seeks past the last returned key, so rows written or deleted
    mid-scan are seen the way a real store cursor would see them.
    """

    def __init__(self, table: MemoryTable, start_row: RowKey,
                 column_filter: Optional[ColumnValueFilter],
                 stop_row: Optional[RowKey] = None) -> None:
        self._table = table
        self._start_row = start_row
        self._stop_row = stop_row
        self._filter = column_filter
        self._closed = False
        table.store._acquire()

    def __iter__(self) -> Iterator[Row]:
        data = self._table.data
        idx = bisect.bisect_left(data.keys, self._start_row)
        while not self._closed and idx < len(data.keys):
            key = data.keys[idx]
            if self._stop_row is not None and key >= self._stop_row:
                return
            columns = data.rows[key]
            if self._filter is None or self._filter.matches(columns):
                yield Row(key, dict(columns))
            idx = bisect.bisect_right(data.keys, key)

    def __enter__(self) -> MemoryScanner:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def close(self) -> None:
        if not self._closed:
            self._closed = True
            self._table.store._release()


class MemoryTable:
    """Dict-backed ITable keeping row keys in sorted order."""

    def __init__(self, store: MemorySortedStore, name: str, data: _MemoryTableData) -> None:
        self.store = store
        self._name = name
        self.data = data

    @property
    def name(self) -> str:
        return self._name

    def get(self, row_key: RowKey) -> Optional[Columns]:
        self.store._check("get", self._name)
        columns = self.data.rows.get(row_key)
        return dict(columns) if columns else None

    def get_many(self, row_keys: list[RowKey]) -> list[Optional[Columns]]:
        self.store._check("get_many", self._name)
        out: list[Optional[Columns]] = []
        for key in row_keys:
            columns = self.data.rows.get(key)
            out.append(dict(columns) if columns else None)
        return out

    def put(self, row_key: RowKey, columns: Columns) -> None:
        self.store._check("put", self._name)
        if row_key not in self.data.rows:
            bisect.insort(self.data.keys, row_key)
            self.data.rows[row_key] = {}
        self.data.rows[row_key].update(columns)

    def delete(self, row_key: RowKey) -> None:
        self.store._check("delete", self._name)
        if self.data.rows.pop(row_key, None) is not None:
            idx = bisect.bisect_left(self.data.keys, row_key)
            del self.data.keys[idx]

    def scan(self, start_row: RowKey,
             column_filter: Optional[ColumnValueFilter] = None,
             stop_row: Optional[RowKey] = None) -> MemoryScanner:
        self.store._check("scan", self._name)
        return MemoryScanner(self, start_row, column_filter, stop_row)


class MemorySortedStore:
    """Dict-backed ISortedStore.

    Tracks how many table and scanner handles are open, and can be told to
    fail the next call of a given operation, so tests can check cleanup and
    partial-failure behavior.
    """

    def __init__(self) -> None:
        self._tables: dict[str, _MemoryTableData] = {}
        self._failures: dict[str, int] = {}
        self.open_handles = 0

    @contextmanager
    def table(self, name: str) -> Iterator[MemoryTable]:
        data = self._tables.setdefault(name, _MemoryTableData())
        self._acquire()
        try:
            yield MemoryTable(self, name, data)
        finally:
            self._release()

    def rows(self, name: str) -> list[Row]:
        """Snapshot of every row in a table, in key order."""
        data = self._tables.get(name)
        if data is None:
            return []
        return [Row(k, dict(data.rows[k])) for k in data.keys]

    def inject_failure(self, operation: str, times: int = 1) -> None:
        """Make the next ``times`` calls of ``operation`` raise StorageError."""
        self._failures[operation] = self._failures.get(operation, 0) + times

    def _check(self, operation: str, table: str) -> None:
        remaining = self._failures.get(operation, 0)
        if remaining:
            self._failures[operation] = remaining - 1
            raise StorageError(operation, table, "injected failure")

    def _acquire(self) -> None:
        self.open_handles += 1

    def _release(self) -> None:
        self.open_handles -= 1
