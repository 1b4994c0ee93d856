"""Protocol interfaces for flowindex abstractions.

Backends and collaborators are matched structurally; no inheritance is
required, and every protocol can be checked with isinstance().
"""

from __future__ import annotations

from contextlib import AbstractContextManager
from typing import TYPE_CHECKING, Iterator, Optional, Protocol, runtime_checkable

from flowindex.core.types import Columns, ColumnValueFilter, Row, RowKey

if TYPE_CHECKING:
    from flowindex.models.flow import FlowRecord
    from flowindex.models.job import QualifiedJobId


# ---------------------------------------------------------------------------
# Persistence: Sorted key-value store
# ---------------------------------------------------------------------------

@runtime_checkable
class IScanner(Protocol):
    """Forward iterator over rows in key order; must be closed when done."""

    def __iter__(self) -> Iterator[Row]: ...

    def __enter__(self) -> IScanner: ...

    def __exit__(self, *exc_info: object) -> None: ...

    def close(self) -> None: ...


@runtime_checkable
class ITable(Protocol):
    """One logical table of a sorted store. Atomicity holds per row only."""

    @property
    def name(self) -> str: ...

    def get(self, row_key: RowKey) -> Optional[Columns]: ...

    def get_many(self, row_keys: list[RowKey]) -> list[Optional[Columns]]: ...

    def put(self, row_key: RowKey, columns: Columns) -> None: ...

    def delete(self, row_key: RowKey) -> None: ...

    def scan(
        self,
        start_row: RowKey,
        column_filter: Optional[ColumnValueFilter] = None,
        stop_row: Optional[RowKey] = None,
    ) -> IScanner:
        """Rows with ``start_row <= key < stop_row``; no upper bound when ``stop_row`` is None."""
        ...


@runtime_checkable
class ISortedStore(Protocol):
    """Sorted key-value store handing out scoped table handles."""

    def table(self, name: str) -> AbstractContextManager[ITable]: ...


# ---------------------------------------------------------------------------
# Ingest: Job history parsing
# ---------------------------------------------------------------------------

@runtime_checkable
class IHistoryParser(Protocol):
    """Turns raw job history bytes into a flow record, or raises FormatError."""

    def __call__(self, contents: bytes, job_id: Optional[QualifiedJobId]) -> FlowRecord: ...
