"""Shared unit test fixtures: one sorted store per backend."""

from __future__ import annotations

from unittest.mock import patch

import boto3
import fakeredis
import pytest
from moto import mock_aws

from flowindex.persistence.dynamodb_backend import DynamoDBSortedStore
from flowindex.persistence.memory_backend import MemorySortedStore
from flowindex.persistence.redis_backend import RedisSortedStore

TABLE_SUFFIX = "-test"
REGION = "us-east-1"
FLOW_QUEUE = "flow_queue"
JOB_INDEX = "history_by_jobid"


def create_dynamodb_table(client, name: str) -> None:
    """Create a DynamoDB table with the PK/SK layout the backend expects."""
    client.create_table(
        TableName=name,
        KeySchema=[
            {"AttributeName": "PK", "KeyType": "HASH"},
            {"AttributeName": "SK", "KeyType": "RANGE"},
        ],
        AttributeDefinitions=[
            {"AttributeName": "PK", "AttributeType": "S"},
            {"AttributeName": "SK", "AttributeType": "S"},
        ],
        BillingMode="PAY_PER_REQUEST",
    )


@pytest.fixture
def memory_store():
    return MemorySortedStore()


@pytest.fixture
def dynamodb_store():
    with mock_aws():
        client = boto3.client("dynamodb", region_name=REGION)
        for name in (FLOW_QUEUE, JOB_INDEX, "rows"):
            create_dynamodb_table(client, f"{name}{TABLE_SUFFIX}")
        # Small pages so multi-page queries are exercised.
        yield DynamoDBSortedStore(table_suffix=TABLE_SUFFIX, region=REGION, page_size=3)


@pytest.fixture
def fake_server():
    return fakeredis.FakeServer()


@pytest.fixture
def redis_store(fake_server):
    with patch("redis.Redis", return_value=fakeredis.FakeRedis(server=fake_server)):
        yield RedisSortedStore(host="localhost", port=6379, db=0, scan_batch=3)


@pytest.fixture(params=["memory", "dynamodb", "redis"])
def store(request):
    """Every backend, so behavior tests run against each one."""
    return request.getfixturevalue(f"{request.param}_store")
