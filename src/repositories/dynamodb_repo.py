"""DynamoDB repository for the billing cache and group tables."""

import json
import threading
from decimal import Decimal
from typing import Any, Dict, Iterator, List, Optional

import boto3
from boto3.dynamodb.conditions import Key


def to_dynamo(item: Dict[str, Any]) -> Dict[str, Any]:
    """Convert floats to Decimal; boto3 rejects float attributes."""
    return json.loads(json.dumps(item), parse_float=Decimal)


def from_dynamo(value: Any) -> Any:
    """Turn boto3 Decimals back into ints/floats, recursively."""
    if isinstance(value, Decimal):
        return int(value) if value == value.to_integral_value() else float(value)
    if isinstance(value, dict):
        return {k: from_dynamo(v) for k, v in value.items()}
    if isinstance(value, list):
        return [from_dynamo(v) for v in value]
    return value


class DynamoDbRepository:
    """Provide basic scan/query/CRUD helpers for one table."""

    def __init__(self, table_name: str, dynamodb=None):
        self.table_name = table_name
        self.table = (dynamodb or get_dynamodb()).Table(table_name)

    def get(self, key: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        """Fetch one item by primary key."""
        resp = self.table.get_item(Key=key)
        item = resp.get("Item")
        return from_dynamo(item) if item else None

    def put(self, item: Dict[str, Any]) -> None:
        """Insert or replace an item."""
        self.table.put_item(Item=to_dynamo(item))

    def delete(self, key: Dict[str, Any]) -> None:
        self.table.delete_item(Key=key)

    def scan_all(self) -> List[Dict[str, Any]]:
        """Read the whole table, following pagination."""
        return list(self._paginate(self.table.scan))

    def query_index(
        self, index_name: str, attribute: str, value: str
    ) -> List[Dict[str, Any]]:
        """Query a GSI for all items whose partition key equals ``value``."""
        return list(
            self._paginate(
                self.table.query,
                IndexName=index_name,
                KeyConditionExpression=Key(attribute).eq(value),
            )
        )

    def _paginate(self, operation, **kwargs) -> Iterator[Dict[str, Any]]:
        while True:
            resp = operation(**kwargs)
            for item in resp.get("Items", []):
                yield from_dynamo(item)
            last_key = resp.get("LastEvaluatedKey")
            if not last_key:
                return
            kwargs["ExclusiveStartKey"] = last_key


_local = threading.local()


def get_dynamodb():
    """
    Get or create a DynamoDB resource for the current thread.

    boto3 resources must not be shared between threads, and snapshot
    reads run on a small pool.
    """
    resource = getattr(_local, "dynamodb", None)
    if resource is None:
        resource = boto3.session.Session().resource("dynamodb")
        _local.dynamodb = resource
    return resource
