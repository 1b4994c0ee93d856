"""Redis backend implementing ISortedStore.

Per logical table, row keys live hex-encoded in a sorted set with every score
0, so ``ZRANGEBYLEX`` walks them in byte order. Each row's columns are a hash.
Puts and deletes touch both structures inside one MULTI/EXEC.
"""

from __future__ import annotations

from contextlib import contextmanager
from typing import Any, Iterator, Optional

import redis

from flowindex.core.exceptions import StorageError
from flowindex.core.types import Columns, ColumnValueFilter, Row, RowKey


def _columns(raw: dict[Any, Any]) -> Optional[Columns]:
    if not raw:
        return None
    return {
        (k.decode("utf-8") if isinstance(k, bytes) else k): bytes(v)
        for k, v in raw.items()
    }


class RedisScanner:
    """Reads the index in batches of ``scan_batch`` members per round trip."""

    def __init__(self, table: RedisTable, start_row: RowKey,
                 column_filter: Optional[ColumnValueFilter],
                 stop_row: Optional[RowKey] = None) -> None:
        self._table = table
        self._start_row = start_row
        self._filter = column_filter
        self._upper = b"(" + stop_row.hex().encode("ascii") if stop_row is not None else b"+"
        self._closed = False

    def _fetch(self, lower: bytes) -> tuple[list[bytes], list[Optional[Columns]]]:
        client = self._table.client
        try:
            members = client.zrangebylex(
                self._table.index_key, lower, self._upper, start=0, num=self._table.scan_batch,
            )
            pipe = client.pipeline(transaction=False)
            for member in members:
                pipe.hgetall(self._table.row_key(bytes.fromhex(member.decode("ascii"))))
            rows = pipe.execute() if members else []
        except redis.RedisError as exc:
            raise StorageError("scan", self._table.name, str(exc)) from exc
        return members, [_columns(r) for r in rows]

    def __iter__(self) -> Iterator[Row]:
        lower = b"[" + self._start_row.hex().encode("ascii") if self._start_row else b"-"
        while not self._closed:
            members, rows = self._fetch(lower)
            for member, columns in zip(members, rows):
                if self._closed:
                    return
                # Row deleted between reading the index and the hash.
                if columns is None:
                    continue
                if self._filter is not None and not self._filter.matches(columns):
                    continue
                yield Row(bytes.fromhex(member.decode("ascii")), columns)
            if len(members) < self._table.scan_batch:
                return
            lower = b"(" + members[-1]

    def __enter__(self) -> RedisScanner:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def close(self) -> None:
        self._closed = True


class RedisTable:
    """ITable over a sorted-set index plus one hash per row."""

    def __init__(self, client: redis.Redis, name: str, scan_batch: int) -> None:
        self.client = client
        self._name = name
        self.scan_batch = scan_batch
        self.index_key = f"{name}:keys"

    @property
    def name(self) -> str:
        return self._name

    def row_key(self, row_key: RowKey) -> str:
        return f"{self._name}:row:{row_key.hex()}"

    def get(self, row_key: RowKey) -> Optional[Columns]:
        try:
            return _columns(self.client.hgetall(self.row_key(row_key)))
        except redis.RedisError as exc:
            raise StorageError("get", self._name, str(exc)) from exc

    def get_many(self, row_keys: list[RowKey]) -> list[Optional[Columns]]:
        try:
            pipe = self.client.pipeline(transaction=False)
            for key in row_keys:
                pipe.hgetall(self.row_key(key))
            results = pipe.execute() if row_keys else []
        except redis.RedisError as exc:
            raise StorageError("get_many", self._name, str(exc)) from exc
        return [_columns(r) for r in results]

    def put(self, row_key: RowKey, columns: Columns) -> None:
        if not columns:
            return
        try:
            pipe = self.client.pipeline(transaction=True)
            pipe.hset(self.row_key(row_key), mapping=columns)
            pipe.zadd(self.index_key, {row_key.hex(): 0})
            pipe.execute()
        except redis.RedisError as exc:
            raise StorageError("put", self._name, str(exc)) from exc

    def delete(self, row_key: RowKey) -> None:
        try:
            pipe = self.client.pipeline(transaction=True)
            pipe.delete(self.row_key(row_key))
            pipe.zrem(self.index_key, row_key.hex())
            pipe.execute()
        except redis.RedisError as exc:
            raise StorageError("delete", self._name, str(exc)) from exc

    def scan(self, start_row: RowKey,
             column_filter: Optional[ColumnValueFilter] = None,
             stop_row: Optional[RowKey] = None) -> RedisScanner:
        return RedisScanner(self, start_row, column_filter, stop_row)


class RedisSortedStore:
    """Production ISortedStore backed by Redis."""

    def __init__(self, host: str = "localhost", port: int = 6379, db: int = 0,
                 scan_batch: int = 100) -> None:
        self._host = host
        self._port = port
        self._db = db
        self._scan_batch = scan_batch
        self._client = redis.Redis(host=host, port=port, db=db, decode_responses=False)

    @contextmanager
    def table(self, name: str) -> Iterator[RedisTable]:
        yield RedisTable(self._client, name, self._scan_batch)
