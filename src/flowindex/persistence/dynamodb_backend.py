"""DynamoDB backend implementing ISortedStore.

Each logical table maps to one DynamoDB table whose items all share a single
partition value, with the row key hex-encoded into the sort key. Hex keeps
byte order (two fixed-width digits per byte, ``0-9`` before ``a-f``), so a
``query`` on the sort key walks rows in the same order as the raw keys.
Columns are stored as Binary attributes named ``c_<column>``.

DynamoDB caps a sort key at 1024 bytes, so row keys longer than
``MAX_ROW_KEY_BYTES`` are rejected with InvalidArgument before any call.
"""

from __future__ import annotations

from contextlib import contextmanager
from typing import Any, Iterator, Optional

import boto3
from boto3.dynamodb.conditions import Attr, Key
from boto3.dynamodb.types import Binary
from botocore.exceptions import BotoCoreError, ClientError

from flowindex.core.exceptions import InvalidArgument, StorageError
from flowindex.core.logging import get_logger
from flowindex.core.types import Columns, ColumnValueFilter, Row, RowKey

logger = get_logger(__name__)

PARTITION = "ROWS"
_COL_PREFIX = "c_"
_BATCH_GET_MAX = 100
MAX_ROW_KEY_BYTES = 512

_AWS_ERRORS = (BotoCoreError, ClientError)


def _sort_key(row_key: RowKey) -> str:
    if len(row_key) > MAX_ROW_KEY_BYTES:
        raise InvalidArgument(
            f"Row key is {len(row_key)} bytes; DynamoDB tables hold at most {MAX_ROW_KEY_BYTES}"
        )
    return row_key.hex()


def _item_key(row_key: RowKey) -> dict[str, str]:
    return {"PK": PARTITION, "SK": _sort_key(row_key)}


def _to_bytes(value: Any) -> bytes:
    if isinstance(value, Binary):
        return value.value
    return bytes(value)


def _columns(item: Optional[dict[str, Any]]) -> Optional[Columns]:
    """Strip key attributes and the column prefix from a DynamoDB item."""
    if not item:
        return None
    columns = {
        name[len(_COL_PREFIX):]: _to_bytes(value)
        for name, value in item.items()
        if name.startswith(_COL_PREFIX)
    }
    return columns or None


def _filter_expression(column_filter: ColumnValueFilter):
    attr = Attr(f"{_COL_PREFIX}{column_filter.column}")
    expr = attr.eq(column_filter.value)
    if not column_filter.filter_if_missing:
        expr = expr | attr.not_exists()
    return expr


class DynamoDBScanner:
    """Pages through a ``query`` on the sort key, one page at a time."""

    def __init__(self, table: DynamoDBTable, start_row: RowKey,
                 column_filter: Optional[ColumnValueFilter],
                 stop_row: Optional[RowKey] = None) -> None:
        self._table = table
        self._start_row = start_row
        self._stop_sk = _sort_key(stop_row) if stop_row is not None else None
        self._filter = column_filter
        self._closed = False

    def _query_kwargs(self) -> dict[str, Any]:
        condition = Key("PK").eq(PARTITION)
        # A key condition allows one sort key clause; BETWEEN is inclusive, so
        # the stop row itself is dropped while iterating.
        if self._start_row and self._stop_sk is not None:
            condition = condition & Key("SK").between(_sort_key(self._start_row), self._stop_sk)
        elif self._start_row:
            condition = condition & Key("SK").gte(_sort_key(self._start_row))
        elif self._stop_sk is not None:
            condition = condition & Key("SK").lt(self._stop_sk)
        kwargs: dict[str, Any] = {
            "KeyConditionExpression": condition,
            "ConsistentRead": True,
            "Limit": self._table.page_size,
        }
        if self._filter is not None:
            kwargs["FilterExpression"] = _filter_expression(self._filter)
        return kwargs

    def __iter__(self) -> Iterator[Row]:
        if self._stop_sk is not None and _sort_key(self._start_row) >= self._stop_sk:
            return
        kwargs = self._query_kwargs()
        while not self._closed:
            try:
                resp = self._table.resource.query(**kwargs)
            except _AWS_ERRORS as exc:
                raise StorageError("scan", self._table.name, str(exc)) from exc
            for item in resp.get("Items", []):
                if item["SK"] == self._stop_sk:
                    return
                columns = _columns(item)
                if columns is not None:
                    yield Row(bytes.fromhex(item["SK"]), columns)
                if self._closed:
                    return
            last = resp.get("LastEvaluatedKey")
            if not last:
                return
            kwargs["ExclusiveStartKey"] = last

    def __enter__(self) -> DynamoDBScanner:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def close(self) -> None:
        self._closed = True


class DynamoDBTable:
    """ITable over one DynamoDB table."""

    def __init__(self, ddb: Any, name: str, physical_name: str, page_size: int) -> None:
        self._ddb = ddb
        self._name = name
        self._physical_name = physical_name
        self.resource = ddb.Table(physical_name)
        self.page_size = page_size

    @property
    def name(self) -> str:
        return self._name

    def get(self, row_key: RowKey) -> Optional[Columns]:
        try:
            resp = self.resource.get_item(Key=_item_key(row_key), ConsistentRead=True)
        except _AWS_ERRORS as exc:
            raise StorageError("get", self._name, str(exc)) from exc
        return _columns(resp.get("Item"))

    def get_many(self, row_keys: list[RowKey]) -> list[Optional[Columns]]:
        found: dict[str, Columns] = {}
        for start in range(0, len(row_keys), _BATCH_GET_MAX):
            chunk = row_keys[start:start + _BATCH_GET_MAX]
            request = {
                self._physical_name: {
                    "Keys": [_item_key(k) for k in dict.fromkeys(chunk)],
                    "ConsistentRead": True,
                }
            }
            # UnprocessedKeys is partial completion of one batch, not a failure.
            while request:
                try:
                    resp = self._ddb.batch_get_item(RequestItems=request)
                except _AWS_ERRORS as exc:
                    raise StorageError("get_many", self._name, str(exc)) from exc
                for item in resp.get("Responses", {}).get(self._physical_name, []):
                    columns = _columns(item)
                    if columns is not None:
                        found[item["SK"]] = columns
                request = resp.get("UnprocessedKeys") or {}
        return [found.get(k.hex()) for k in row_keys]

    def put(self, row_key: RowKey, columns: Columns) -> None:
        if not columns:
            return
        names: dict[str, str] = {}
        values: dict[str, bytes] = {}
        assignments: list[str] = []
        for i, (column, value) in enumerate(columns.items()):
            names[f"#c{i}"] = f"{_COL_PREFIX}{column}"
            values[f":v{i}"] = value
            assignments.append(f"#c{i} = :v{i}")
        try:
            self.resource.update_item(
                Key=_item_key(row_key),
                UpdateExpression="SET " + ", ".join(assignments),
                ExpressionAttributeNames=names,
                ExpressionAttributeValues=values,
            )
        except _AWS_ERRORS as exc:
            raise StorageError("put", self._name, str(exc)) from exc

    def delete(self, row_key: RowKey) -> None:
        try:
            self.resource.delete_item(Key=_item_key(row_key))
        except _AWS_ERRORS as exc:
            raise StorageError("delete", self._name, str(exc)) from exc

    def scan(self, start_row: RowKey,
             column_filter: Optional[ColumnValueFilter] = None,
             stop_row: Optional[RowKey] = None) -> DynamoDBScanner:
        return DynamoDBScanner(self, start_row, column_filter, stop_row)


class DynamoDBSortedStore:
    """Production ISortedStore backed by DynamoDB."""

    def __init__(self, table_suffix: str = "", region: str = "us-east-1",
                 endpoint_url: str | None = None, page_size: int = 100) -> None:
        self._table_suffix = table_suffix
        self._region = region
        self._endpoint_url = endpoint_url
        self._page_size = page_size
        kwargs: dict = {"region_name": region}
        if endpoint_url:
            kwargs["endpoint_url"] = endpoint_url
        self._ddb = boto3.resource("dynamodb", **kwargs)

    def physical_name(self, name: str) -> str:
        return f"{name}{self._table_suffix}"

    @contextmanager
    def table(self, name: str) -> Iterator[DynamoDBTable]:
        logger.debug("table_opened", backend="dynamodb", table=self.physical_name(name))
        yield DynamoDBTable(self._ddb, name, self.physical_name(name), self._page_size)
