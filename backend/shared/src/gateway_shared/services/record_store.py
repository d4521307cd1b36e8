"""Document store used for booking records and the payment audit log.

RecordStore is the collaborator interface consumed by the webhook pipeline.
DynamoDBRecordStore maps each collection to a table named
"{prefix}-{collection}". Updatable collections are keyed by an "id" string
attribute; append-only collections are keyed by "log_id" so the appended
payload keeps its own "id" field.
"""

import datetime as dt
import json
import uuid
from abc import ABC, abstractmethod
from decimal import Decimal
from typing import Any

import boto3
from botocore.exceptions import BotoCoreError, ClientError
from starlette.concurrency import run_in_threadpool

from gateway_shared.models.errors import RecordNotFoundError, StoreUnavailableError
from gateway_shared.utils.logging import get_logger

logger = get_logger(__name__)

RECORD_KEY = "id"
LOG_KEY = "log_id"


class RecordStore(ABC):
    """Contract for the external document store."""

    @abstractmethod
    def is_available(self) -> bool:
        """Return False when the store is not configured or its client failed."""

    @abstractmethod
    async def get(self, collection: str, record_id: str) -> dict[str, Any] | None:
        """Get a record by ID, or None if it does not exist."""

    @abstractmethod
    async def update(self, collection: str, record_id: str, fields: dict[str, Any]) -> None:
        """Merge fields into an existing record.

        Field names may be dotted paths one level deep ("transaction.status").

        Raises:
            RecordNotFoundError: If the record does not exist. Never creates.
        """

    @abstractmethod
    async def append(self, collection: str, record: dict[str, Any]) -> str:
        """Insert a record under a generated ID and return the ID.

        The generated ID never replaces a field of the record itself.
        """


def to_dynamodb_value(value: Any) -> Any:
    """Convert floats (at any depth) to Decimal for boto3."""
    return json.loads(json.dumps(value, default=str), parse_float=Decimal)


class DynamoDBRecordStore(RecordStore):
    """RecordStore backed by DynamoDB tables."""

    def __init__(self, table_prefix: str) -> None:
        """Initialize the DynamoDB resource.

        A resource that cannot be created leaves the store unavailable
        instead of failing application startup.

        Args:
            table_prefix: Prefix for every table name
        """
        self.table_prefix = table_prefix
        self._dynamodb: Any = None
        try:
            self._dynamodb = boto3.resource("dynamodb")
        except BotoCoreError as e:
            logger.error("Failed to initialize DynamoDB resource: %s", e)
            logger.warning("Record store disabled - check AWS region and credentials")

    def is_available(self) -> bool:
        return self._dynamodb is not None

    def _table_name(self, collection: str) -> str:
        return f"{self.table_prefix}-{collection}"

    def _get_table(self, collection: str) -> Any:
        if self._dynamodb is None:
            raise StoreUnavailableError("DynamoDB record store is not available")
        return self._dynamodb.Table(self._table_name(collection))

    async def get(self, collection: str, record_id: str) -> dict[str, Any] | None:
        table = self._get_table(collection)
        response = await run_in_threadpool(table.get_item, Key={RECORD_KEY: record_id})
        item: dict[str, Any] | None = response.get("Item")
        return item

    async def update(self, collection: str, record_id: str, fields: dict[str, Any]) -> None:
        if not fields:
            return
        table = self._get_table(collection)

        names: dict[str, str] = {"#pk": RECORD_KEY}
        values: dict[str, Any] = {}
        assignments: list[str] = []
        parents: dict[str, str] = {}

        for index, (path, value) in enumerate(fields.items()):
            parts = path.split(".")
            if len(parts) > 2:
                raise ValueError(f"Field path too deep: {path}")

            value_ref = f":v{index}"
            values[value_ref] = to_dynamodb_value(value)

            if len(parts) == 2:
                parent, child = parts
                if parent not in parents:
                    parents[parent] = f"#p{len(parents)}"
                    names[parents[parent]] = parent
                child_ref = f"#c{index}"
                names[child_ref] = child
                assignments.append(f"{parents[parent]}.{child_ref} = {value_ref}")
            else:
                name_ref = f"#f{index}"
                names[name_ref] = path
                assignments.append(f"{name_ref} = {value_ref}")

        # Nested SETs fail on a missing parent map, and a parent and its
        # children cannot be assigned in one expression.
        if parents:
            await self._update_item(
                table,
                collection,
                record_id,
                "SET " + ", ".join(f"{ref} = if_not_exists({ref}, :empty)" for ref in parents.values()),
                {ref: name for ref, name in names.items() if ref == "#pk" or ref in parents.values()},
                {":empty": {}},
            )

        await self._update_item(
            table,
            collection,
            record_id,
            "SET " + ", ".join(assignments),
            names,
            values,
        )

    async def _update_item(
        self,
        table: Any,
        collection: str,
        record_id: str,
        update_expression: str,
        names: dict[str, str],
        values: dict[str, Any],
    ) -> None:
        try:
            await run_in_threadpool(
                table.update_item,
                Key={RECORD_KEY: record_id},
                UpdateExpression=update_expression,
                ExpressionAttributeNames=names,
                ExpressionAttributeValues=values,
                ConditionExpression="attribute_exists(#pk)",
            )
        except ClientError as e:
            if e.response["Error"]["Code"] == "ConditionalCheckFailedException":
                raise RecordNotFoundError(collection, record_id) from e
            raise

    async def append(self, collection: str, record: dict[str, Any]) -> str:
        table = self._get_table(collection)
        record_id = uuid.uuid4().hex
        item = to_dynamodb_value(
            {
                **record,
                LOG_KEY: record_id,
                "createdAt": dt.datetime.now(dt.UTC).isoformat(),
            }
        )
        await run_in_threadpool(table.put_item, Item=item)
        return record_id
