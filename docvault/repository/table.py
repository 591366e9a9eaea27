"""DynamoDB table access for document metadata rows."""

from __future__ import annotations

import asyncio
import logging
import math
from decimal import Decimal
from typing import Any, AsyncIterator, Callable, Dict, List, Mapping, Optional, Tuple

from boto3.dynamodb.types import TypeDeserializer, TypeSerializer
from botocore.exceptions import BotoCoreError, ClientError, WaiterError

from docvault.core.exceptions import DocumentNotFoundError, StorageUnavailableError

logger = logging.getLogger(__name__)

KEY_ATTRIBUTE = "id"
WAITER_DELAY_SECONDS = 2

_serializer = TypeSerializer()
_deserializer = TypeDeserializer()


def serialize_item(item: Mapping[str, Any]) -> Dict[str, Any]:
    return {key: _serializer.serialize(_to_dynamo(value)) for key, value in item.items()}


def deserialize_item(raw: Mapping[str, Any]) -> Dict[str, Any]:
    return {key: _from_dynamo(_deserializer.deserialize(value)) for key, value in raw.items()}


def _to_dynamo(value: Any) -> Any:
    if isinstance(value, float):
        return Decimal(str(value))
    if isinstance(value, dict):
        return {key: _to_dynamo(inner) for key, inner in value.items()}
    if isinstance(value, (list, tuple)):
        return [_to_dynamo(inner) for inner in value]
    return value


def _from_dynamo(value: Any) -> Any:
    if isinstance(value, Decimal):
        return int(value) if value == value.to_integral_value() else float(value)
    if isinstance(value, dict):
        return {key: _from_dynamo(inner) for key, inner in value.items()}
    if isinstance(value, (list, set)):
        return [_from_dynamo(inner) for inner in value]
    return value


def _error_code(exc: ClientError) -> str:
    return exc.response.get("Error", {}).get("Code", "")


class DynamoTableClient:
    """Thin async wrapper around the low-level DynamoDB client for a single table."""

    def __init__(self, client: Any, table_name: str) -> None:
        self._client = client
        self.table_name = table_name

    async def _call(self, operation: str, func: Callable[..., Any], **kwargs: Any) -> Any:
        try:
            return await asyncio.to_thread(func, **kwargs)
        except (ClientError, BotoCoreError) as exc:
            raise StorageUnavailableError(f"DynamoDB {operation} on {self.table_name} failed: {exc}") from exc

    async def exists(self) -> bool:
        try:
            await asyncio.to_thread(self._client.describe_table, TableName=self.table_name)
        except ClientError as exc:
            if _error_code(exc) == "ResourceNotFoundException":
                return False
            raise StorageUnavailableError(f"DynamoDB describe_table on {self.table_name} failed: {exc}") from exc
        except BotoCoreError as exc:
            raise StorageUnavailableError(f"DynamoDB describe_table on {self.table_name} failed: {exc}") from exc
        return True

    async def create(self) -> None:
        """Create the table with a single string hash key and on-demand billing."""

        try:
            await asyncio.to_thread(
                self._client.create_table,
                TableName=self.table_name,
                AttributeDefinitions=[{"AttributeName": KEY_ATTRIBUTE, "AttributeType": "S"}],
                KeySchema=[{"AttributeName": KEY_ATTRIBUTE, "KeyType": "HASH"}],
                BillingMode="PAY_PER_REQUEST",
            )
        except ClientError as exc:
            if _error_code(exc) == "ResourceInUseException":
                logger.info("Table %s is already being created elsewhere", self.table_name)
                return
            raise StorageUnavailableError(f"DynamoDB create_table on {self.table_name} failed: {exc}") from exc
        except BotoCoreError as exc:
            raise StorageUnavailableError(f"DynamoDB create_table on {self.table_name} failed: {exc}") from exc

    async def wait_until_ready(self, timeout_seconds: int) -> None:
        waiter = self._client.get_waiter("table_exists")
        max_attempts = max(1, math.ceil(timeout_seconds / WAITER_DELAY_SECONDS))
        try:
            await asyncio.to_thread(
                waiter.wait,
                TableName=self.table_name,
                WaiterConfig={"Delay": WAITER_DELAY_SECONDS, "MaxAttempts": max_attempts},
            )
        except WaiterError as exc:
            raise StorageUnavailableError(
                f"Table {self.table_name} did not become active within {timeout_seconds}s"
            ) from exc

    async def put(self, item: Mapping[str, Any]) -> None:
        await self._call("put_item", self._client.put_item, TableName=self.table_name, Item=serialize_item(item))

    async def get(self, key: str) -> Optional[Dict[str, Any]]:
        response = await self._call(
            "get_item",
            self._client.get_item,
            TableName=self.table_name,
            Key=serialize_item({KEY_ATTRIBUTE: key}),
        )
        raw = response.get("Item")
        return deserialize_item(raw) if raw else None

    async def update(self, key: str, fields: Mapping[str, Any]) -> Dict[str, Any]:
        """Apply `SET` for every entry in `fields` and return the full updated row.

        The write is conditional on the row existing, so an update racing a
        delete raises `DocumentNotFoundError` instead of leaving a partial row.
        """

        assignments: List[str] = []
        names: Dict[str, str] = {"#key": KEY_ATTRIBUTE}
        values: Dict[str, Any] = {}
        for index, (name, value) in enumerate(fields.items()):
            assignments.append(f"#field{index} = :value{index}")
            names[f"#field{index}"] = name
            values[f":value{index}"] = value

        try:
            response = await asyncio.to_thread(
                self._client.update_item,
                TableName=self.table_name,
                Key=serialize_item({KEY_ATTRIBUTE: key}),
                UpdateExpression="SET " + ", ".join(assignments),
                ConditionExpression="attribute_exists(#key)",
                ExpressionAttributeNames=names,
                ExpressionAttributeValues=serialize_item(values),
                ReturnValues="ALL_NEW",
            )
        except ClientError as exc:
            if _error_code(exc) == "ConditionalCheckFailedException":
                raise DocumentNotFoundError(key) from exc
            raise StorageUnavailableError(f"DynamoDB update_item on {self.table_name} failed: {exc}") from exc
        except BotoCoreError as exc:
            raise StorageUnavailableError(f"DynamoDB update_item on {self.table_name} failed: {exc}") from exc
        return deserialize_item(response.get("Attributes", {}))

    async def delete(self, key: str) -> None:
        await self._call(
            "delete_item",
            self._client.delete_item,
            TableName=self.table_name,
            Key=serialize_item({KEY_ATTRIBUTE: key}),
        )

    async def scan_page(
        self, start_key: Optional[Dict[str, Any]] = None
    ) -> Tuple[List[Dict[str, Any]], Optional[Dict[str, Any]]]:
        kwargs: Dict[str, Any] = {"TableName": self.table_name}
        if start_key:
            kwargs["ExclusiveStartKey"] = start_key
        response = await self._call("scan", self._client.scan, **kwargs)
        items = [deserialize_item(raw) for raw in response.get("Items", [])]
        return items, response.get("LastEvaluatedKey")

    async def scan_all(self) -> AsyncIterator[Dict[str, Any]]:
        """Yield every row, following continuation keys until the scan is exhausted."""

        start_key: Optional[Dict[str, Any]] = None
        pages = 0
        while True:
            items, start_key = await self.scan_page(start_key)
            pages += 1
            logger.debug("Scanned page %d of %s (%d items)", pages, self.table_name, len(items))
            for item in items:
                yield item
            if not start_key:
                break
