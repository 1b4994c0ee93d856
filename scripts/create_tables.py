"""Create the DynamoDB tables backing the flow status and job indexes.

Usage:
    python scripts/create_tables.py --endpoint-url http://localhost:4566 --suffix -dev
"""

from __future__ import annotations

import argparse
from typing import Any

import boto3

TABLE_DEFINITIONS: list[dict[str, Any]] = [
    {"name": "flow_queue"},
    {"name": "history_by_jobid"},
]


def create_tables(ddb: Any, suffix: str = "") -> list[str]:
    """Create every index table. Skips tables that already exist.

    Returns:
        Names of the tables that were created.
    """
    client = ddb.meta.client
    existing = client.list_tables().get("TableNames", [])
    created: list[str] = []

    for defn in TABLE_DEFINITIONS:
        table_name = f"{defn['name']}{suffix}"
        if table_name in existing:
            print(f"  Table {table_name} already exists, skipping")
            continue
        client.create_table(
            TableName=table_name,
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
        created.append(table_name)
        print(f"  Created table {table_name}")
    return created


def main() -> None:
    parser = argparse.ArgumentParser(description="Create flowindex DynamoDB tables")
    parser.add_argument("--endpoint-url", default=None, help="LocalStack endpoint URL")
    parser.add_argument("--region", default="us-east-1")
    parser.add_argument("--suffix", default="", help="Table name suffix (e.g. -dev)")
    args = parser.parse_args()

    kwargs: dict[str, Any] = {"region_name": args.region}
    if args.endpoint_url:
        kwargs["endpoint_url"] = args.endpoint_url
    ddb = boto3.resource("dynamodb", **kwargs)

    print("Creating tables...")
    create_tables(ddb, suffix=args.suffix)
    print("Done.")


if __name__ == "__main__":
    main()
