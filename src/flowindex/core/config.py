"""Application configuration using pydantic-settings with grouped env prefixes."""

from __future__ import annotations

from typing import Literal

from pydantic_settings import BaseSettings


class StoreConfig(BaseSettings):
    """Which sorted key-value backend to use and the logical table names."""

    model_config = {"env_prefix": "FLOWINDEX_STORE_"}

    backend: Literal["memory", "dynamodb", "redis"] = "memory"
    flow_queue_table: str = "flow_queue"
    job_index_table: str = "history_by_jobid"


class DynamoDBConfig(BaseSettings):
    """DynamoDB configuration."""

    model_config = {"env_prefix": "FLOWINDEX_DYNAMO_"}

    table_suffix: str = ""  # "-dev", "-uat", or "" for prod
    region: str = "us-east-1"
    endpoint_url: str | None = None  # LocalStack override
    page_size: int = 100


class RedisConfig(BaseSettings):
    """Redis configuration."""

    model_config = {"env_prefix": "FLOWINDEX_REDIS_"}

    host: str = "localhost"
    port: int = 6379
    db: int = 0
    scan_batch: int = 100


class AppSettings(BaseSettings):
    """Root application settings aggregating all sub-configs."""

    model_config = {"env_prefix": "FLOWINDEX_"}

    environment: Literal["dev", "uat", "prod"] = "dev"
    log_level: str = "INFO"
    json_logs: bool = False

    store: StoreConfig = StoreConfig()
    dynamodb: DynamoDBConfig = DynamoDBConfig()
    redis: RedisConfig = RedisConfig()
