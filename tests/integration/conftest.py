"""Integration test fixtures: LocalStack DynamoDB."""

from __future__ import annotations

import os
import sys
from pathlib import Path

import boto3
import pytest
from botocore.exceptions import BotoCoreError, ClientError

# Default LocalStack endpoint
LOCALSTACK_URL = os.environ.get("LOCALSTACK_URL", "http://localhost:4566")
TABLE_SUFFIX = "-inttest"


def _localstack_available() -> bool:
    """Check if LocalStack is reachable."""
    try:
        client = boto3.client("dynamodb", region_name="us-east-1", endpoint_url=LOCALSTACK_URL)
        client.list_tables()
        return True
    except (BotoCoreError, ClientError):
        return False


def pytest_collection_modifyitems(config, items):
    here = Path(__file__).resolve().parent
    ours = [item for item in items if here in item.path.resolve().parents]
    if not ours or _localstack_available():
        return
    skip = pytest.mark.skip(reason="LocalStack not available")
    for item in ours:
        item.add_marker(skip)


@pytest.fixture(scope="session")
def localstack_ddb():
    """DynamoDB resource pointing at LocalStack."""
    return boto3.resource("dynamodb", region_name="us-east-1", endpoint_url=LOCALSTACK_URL)


@pytest.fixture(scope="session")
def provisioned_tables(localstack_ddb):
    """Create the index tables via the provisioning script."""
    sys.path.insert(0, str(Path(__file__).resolve().parent.parent.parent / "scripts"))
    from create_tables import create_tables

    create_tables(localstack_ddb, suffix=TABLE_SUFFIX)
    return TABLE_SUFFIX


@pytest.fixture
def endpoint_url():
    return LOCALSTACK_URL
