"""Status index over the flow queue table.

Rows are keyed by ``(cluster, status, timestamp, flow_id)``, so every flow in
one status on one cluster is a contiguous key range. The price is that a
status change moves the row to a new key, which the store cannot do
atomically. ``transition`` copies then deletes: a reader may briefly see the
flow under both keys, and a failure between the two steps leaves it under
both until the transition is re-run. Re-running is safe because the copy is
verbatim and the delete is idempotent.
"""

from __future__ import annotations

from typing import Optional

from pydantic import ValidationError

from flowindex.codec import (
    decode_flow_key,
    decode_int,
    decode_status_key,
    encode_flow_key,
    encode_int,
    encode_status_key,
    prefix_stop_row,
    status_prefix,
)
from flowindex.core.exceptions import DecodeError, InvalidArgument, NotFoundError
from flowindex.core.logging import get_logger
from flowindex.core.protocols import ISortedStore
from flowindex.core.types import Columns, ColumnValueFilter, Row
from flowindex.models.flow import FlowRecord, FlowStatus, PaginatedResult, StatusKey

logger = get_logger(__name__)

ROWKEY_COL = "rowkey"
JOB_GRAPH_COL = "dag"
FLOW_NAME_COL = "flowname"
USER_NAME_COL = "username"
PROGRESS_COL = "progress"

DEFAULT_TABLE = "flow_queue"


def _text(columns: Columns, column: str) -> Optional[str]:
    raw = columns.get(column)
    if raw is None:
        return None
    try:
        return raw.decode("utf-8")
    except UnicodeDecodeError as exc:
        raise DecodeError(f"Column {column!r} is not valid UTF-8") from exc


class StatusIndex:
    """Reads and writes flow records keyed by their current status."""

    def __init__(self, store: ISortedStore, table_name: str = DEFAULT_TABLE) -> None:
        self._store = store
        self._table_name = table_name

    # ---- writes ----

    def columns_for(self, flow: FlowRecord) -> Columns:
        """Columns to write for ``flow``; absent fields are left out."""
        columns: Columns = {}
        if flow.flow_key is not None:
            columns[ROWKEY_COL] = encode_flow_key(flow.flow_key)
        if flow.job_graph_json is not None:
            columns[JOB_GRAPH_COL] = flow.job_graph_json.encode("utf-8")
        if flow.flow_name is not None:
            columns[FLOW_NAME_COL] = flow.flow_name.encode("utf-8")
        if flow.user_name is not None:
            columns[USER_NAME_COL] = flow.user_name.encode("utf-8")
        columns[PROGRESS_COL] = encode_int(flow.progress)
        return columns

    def write(self, key: StatusKey, flow: FlowRecord) -> None:
        """Write ``flow`` at ``key``, overwriting only the columns it carries."""
        row_key = encode_status_key(key)
        columns = self.columns_for(flow)
        with self._store.table(self._table_name) as table:
            table.put(row_key, columns)
        logger.debug("flow_written", cluster=key.cluster, status=key.status.name,
                     flow_id=key.flow_id, columns=sorted(columns))

    def transition(self, old_key: StatusKey, new_key: StatusKey) -> None:
        """Move the row at ``old_key`` to ``new_key``, copying every column.

        When both keys encode to the same row, the row is left as it is.

        Raises:
            NotFoundError: if there is no row at ``old_key``; nothing is written.
        """
        old_row = encode_status_key(old_key)
        new_row = encode_status_key(new_key)
        with self._store.table(self._table_name) as table:
            columns = table.get(old_row)
            if not columns:
                raise NotFoundError(f"No row for key {old_row!r}")
            if new_row == old_row:
                logger.debug("flow_transition_skipped", cluster=old_key.cluster,
                             flow_id=old_key.flow_id, status=old_key.status.name)
                return
            table.put(new_row, columns)
            table.delete(old_row)
        logger.info("flow_transitioned", cluster=old_key.cluster, flow_id=old_key.flow_id,
                    from_status=old_key.status.name, to_status=new_key.status.name)

    # ---- point reads ----

    def get(self, key: StatusKey) -> FlowRecord:
        """Read the row stored at exactly ``key``."""
        row_key = encode_status_key(key)
        with self._store.table(self._table_name) as table:
            columns = table.get(row_key)
        if not columns:
            raise NotFoundError(f"No row for key {row_key!r}")
        return self.materialize(Row(row_key, columns))

    def lookup(self, cluster: str, timestamp: int, flow_id: str) -> FlowRecord:
        """Find a flow without knowing its status.

        Issues one batched get covering every FlowStatus and returns the first
        live row. Callers must not rely on which status is checked first.
        """
        row_keys = [
            encode_status_key(StatusKey(cluster=cluster, status=status,
                                        timestamp=timestamp, flow_id=flow_id))
            for status in FlowStatus
        ]
        with self._store.table(self._table_name) as table:
            results = table.get_many(row_keys)
        for row_key, columns in zip(row_keys, results):
            if columns:
                return self.materialize(Row(row_key, columns))
        raise NotFoundError(
            f"No flow {flow_id!r} at timestamp {timestamp} on cluster {cluster!r} in any status"
        )

    # ---- scans ----

    def scan_by_status(
        self,
        cluster: str,
        status: FlowStatus,
        limit: int,
        user: Optional[str] = None,
        start_row: Optional[bytes] = None,
    ) -> list[FlowRecord]:
        """Return up to ``limit`` flows in ``status``, in key order.

        Args:
            cluster: Cluster the flows ran on.
            status: Status to list.
            limit: Maximum number of flows to return.
            user: Only return flows whose stored user name equals this.
            start_row: Resume at this encoded key (inclusive), as returned
                in ``PaginatedResult.next_start_row``.
        """
        if limit < 1:
            raise InvalidArgument(f"limit must be positive, got {limit}")
        prefix = status_prefix(cluster, status)
        if start_row is None:
            start_row = prefix
        column_filter = None
        if user is not None:
            column_filter = ColumnValueFilter(USER_NAME_COL, user.encode("utf-8"))

        flows: list[FlowRecord] = []
        with self._store.table(self._table_name) as table:
            with table.scan(start_row, column_filter, prefix_stop_row(prefix)) as scanner:
                for row in scanner:
                    if not row.key.startswith(prefix):
                        break
                    flows.append(self.materialize(row))
                    if len(flows) >= limit:
                        break
        logger.debug("flows_scanned", cluster=cluster, status=status.name,
                     user=user, limit=limit, returned=len(flows))
        return flows

    def scan_page(
        self,
        cluster: str,
        status: FlowStatus,
        limit: int,
        user: Optional[str] = None,
        start_row: Optional[bytes] = None,
    ) -> PaginatedResult[FlowRecord]:
        """Return one page of flows plus the cursor of the next page, if any."""
        flows = self.scan_by_status(cluster, status, limit + 1, user, start_row)
        if len(flows) > limit:
            next_flow = flows[limit]
            return PaginatedResult[FlowRecord](
                values=flows[:limit],
                limit=limit,
                next_start_row=encode_status_key(next_flow.queue_key),
            )
        return PaginatedResult[FlowRecord](values=flows, limit=limit)

    # ---- decoding ----

    def materialize(self, row: Row) -> FlowRecord:
        """Build a FlowRecord from a stored row.

        Columns missing from older rows decode to the field default.
        """
        columns = row.columns
        fields: dict = {"queue_key": decode_status_key(row.key)}
        # The flow key is only known once the flow has been launched.
        if ROWKEY_COL in columns:
            fields["flow_key"] = decode_flow_key(columns[ROWKEY_COL])
        fields["job_graph_json"] = _text(columns, JOB_GRAPH_COL)
        fields["flow_name"] = _text(columns, FLOW_NAME_COL)
        fields["user_name"] = _text(columns, USER_NAME_COL)
        if PROGRESS_COL in columns:
            fields["progress"] = decode_int(columns[PROGRESS_COL], PROGRESS_COL)
        try:
            return FlowRecord(**fields)
        except ValidationError as exc:
            raise DecodeError(f"Row {row.key!r} does not hold a valid flow: {exc}") from exc
