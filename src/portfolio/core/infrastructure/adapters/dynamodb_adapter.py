"""Thin DynamoDB adapter wrapping boto3 table operations."""

from typing import Any, Protocol, cast

import boto3
from botocore.config import Config

from portfolio.core.config import PortfolioSettings
from portfolio.core.infrastructure.connection import BackendConnection
from portfolio.core.utils.constants import DEFAULT_BACKEND_MAX_ATTEMPTS


class DynamoDBTable(Protocol):
    """Minimal DynamoDB Table protocol."""

    def put_item(self, *, Item: dict[str, Any], **kwargs: Any) -> dict[str, Any]: ...
    def get_item(self, *, Key: dict[str, Any], **kwargs: Any) -> dict[str, Any]: ...
    def delete_item(self, *, Key: dict[str, Any], **kwargs: Any) -> dict[str, Any]: ...
    def scan(self, **kwargs: Any) -> dict[str, Any]: ...
    def load(self) -> None: ...


class DynamoDBAdapterProtocol(Protocol):
    """Minimal DynamoDB adapter protocol (key-value-store-facing)."""

    connection: BackendConnection[Any]

    def put_item(self, *, item: dict[str, Any]) -> dict[str, Any]: ...
    def get_item(self, *, key: dict[str, Any]) -> dict[str, Any]: ...
    def delete_item(self, *, key: dict[str, Any]) -> dict[str, Any]: ...
    def scan_attribute(self, *, attribute: str) -> list[Any]: ...


class DynamoDBAdapter:
    """Low-level DynamoDB operations (mechanical, no error handling).

    This adapter:
    - Wraps a boto3 DynamoDB table behind a BackendConnection
    - Does NOT handle errors (lets them bubble up)
    - The key-value store implementation catches and translates errors
    """

    def __init__(self, settings: PortfolioSettings | None = None) -> None:
        """Prepare a lazily created table handle from configuration."""
        settings = settings or PortfolioSettings.from_env()
        if not settings.metadata_table_name:
            raise RuntimeError("DynamoDB metadata table name is not configured")

        self.table_name = settings.metadata_table_name
        self._endpoint_url = settings.aws_endpoint_url
        self._region = settings.aws_region
        self._config = Config(
            connect_timeout=settings.backend_timeout_seconds,
            read_timeout=settings.backend_timeout_seconds,
            retries={"max_attempts": DEFAULT_BACKEND_MAX_ATTEMPTS, "mode": "standard"},
        )
        self.connection: BackendConnection[DynamoDBTable] = BackendConnection(
            "dynamodb",
            self._create_table,
            probe=lambda table: table.load(),
            retry_after=settings.backend_retry_seconds,
        )

    def _create_table(self) -> DynamoDBTable:
        dynamodb = boto3.resource(
            "dynamodb",
            endpoint_url=self._endpoint_url,
            region_name=self._region,
            config=self._config,
        )
        return cast(DynamoDBTable, dynamodb.Table(self.table_name))

    def put_item(self, *, item: dict[str, Any]) -> dict[str, Any]:
        """Insert or replace an item.

        Raises boto3 exceptions - caught by the key-value store.
        """
        return self.connection.client().put_item(Item=item)

    def get_item(self, *, key: dict[str, Any]) -> dict[str, Any]:
        """Retrieve item by key with a strongly consistent read.

        Raises boto3 exceptions - caught by the key-value store.
        """
        return self.connection.client().get_item(Key=key, ConsistentRead=True)

    def delete_item(self, *, key: dict[str, Any]) -> dict[str, Any]:
        """Delete item by key, returning the old attributes.

        Raises boto3 exceptions - caught by the key-value store.
        """
        return self.connection.client().delete_item(Key=key, ReturnValues="ALL_OLD")

    def scan_attribute(self, *, attribute: str) -> list[Any]:
        """Return one attribute of every item, following scan pagination.

        Raises boto3 exceptions - caught by the key-value store.
        """
        table = self.connection.client()
        kwargs: dict[str, Any] = {
            "ProjectionExpression": "#attr",
            "ExpressionAttributeNames": {"#attr": attribute},
        }
        values: list[Any] = []

        while True:
            response = table.scan(**kwargs)
            values.extend(item[attribute] for item in response.get("Items", []) if attribute in item)
            last_key = response.get("LastEvaluatedKey")
            if not last_key:
                return values
            kwargs["ExclusiveStartKey"] = last_key
