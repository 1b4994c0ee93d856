"""Pluggable sorted key-value store backends behind Protocol interfaces."""

from __future__ import annotations

from flowindex.core.config import AppSettings
from flowindex.core.protocols import ISortedStore
from flowindex.persistence.dynamodb_backend import DynamoDBSortedStore
from flowindex.persistence.memory_backend import MemorySortedStore
from flowindex.persistence.redis_backend import RedisSortedStore


def create_store(settings: AppSettings | None = None) -> ISortedStore:
    """Create the sorted store selected by ``settings.store.backend``."""
    if settings is None:
        settings = AppSettings()

    backend = settings.store.backend
    if backend == "dynamodb":
        return DynamoDBSortedStore(
            table_suffix=settings.dynamodb.table_suffix,
            region=settings.dynamodb.region,
            endpoint_url=settings.dynamodb.endpoint_url,
            page_size=settings.dynamodb.page_size,
        )
    if backend == "redis":
        return RedisSortedStore(
            host=settings.redis.host,
            port=settings.redis.port,
            db=settings.redis.db,
            scan_batch=settings.redis.scan_batch,
        )
    return MemorySortedStore()


__all__ = ["DynamoDBSortedStore", "MemorySortedStore", "RedisSortedStore", "create_store"]
