"""
DynamoDB stores used by the deployed handlers.

Each store wraps one table through a boto3 low-level client. Items are
(de)serialized with boto3's TypeSerializer/TypeDeserializer. Conditional
writes surface as ConditionalCheckFailedError, every other client error as
StorageError.

Note: the workflow engine's own execution state lives in Step Functions, so
there is no DynamoDB ExecutionStore.
"""

import asyncio
from typing import Any

from botocore.exceptions import BotoCoreError, ClientError
from loguru import logger

from propflow.core.exceptions import ConditionalCheckFailedError, StorageError
from propflow.engine.streams import deserialize_image, serialize_image
from propflow.storage.base import ContractStatusStore, ContractStore, PropertyStore
from propflow.storage.schemas import (
    REPLACEABLE_CONTRACT_STATUSES,
    ContractRecord,
    ContractStatus,
    ContractStatusRecord,
    PropertyRecord,
)

_CONTRACT_STATUS_FIELDS = (
    "contract_id",
    "contract_status",
    "contract_last_modified_on",
    "sfn_wait_approved_task_token",
)


def _is_conditional_check_failure(exc: ClientError) -> bool:
    return exc.response.get("Error", {}).get("Code") == "ConditionalCheckFailedException"


class _DynamoDBTable:
    """Shared client handling for a single table."""

    def __init__(self, table_name: str, client: Any = None, region: str | None = None) -> None:
        self.table_name = table_name
        self.region = region
        self._client = client

    @property
    def client(self) -> Any:
        if self._client is None:
            import boto3

            self._client = boto3.client("dynamodb", region_name=self.region)
        return self._client

    async def _call(self, operation: str, **kwargs: Any) -> dict[str, Any]:
        """Invoke a client operation against this table, translating errors.

        boto3 is blocking, so the request runs in a worker thread.
        """
        method = getattr(self.client, operation)
        try:
            return await asyncio.to_thread(method, TableName=self.table_name, **kwargs)
        except ClientError as e:
            if _is_conditional_check_failure(e):
                raise ConditionalCheckFailedError(
                    f"Condition failed on {self.table_name}.{operation}",
                    table=self.table_name,
                ) from e
            logger.error(f"{operation} failed on {self.table_name}: {e}")
            raise StorageError(
                f"{operation} failed on {self.table_name}: {e}", table=self.table_name
            ) from e
        except BotoCoreError as e:
            logger.error(f"{operation} failed on {self.table_name}: {e}")
            raise StorageError(
                f"{operation} failed on {self.table_name}: {e}", table=self.table_name
            ) from e

    async def _paginate(self, operation: str, **kwargs: Any) -> list[dict[str, Any]]:
        """Collect the items of every page of a Query or Scan."""
        items: list[dict[str, Any]] = []
        while True:
            response = await self._call(operation, **kwargs)
            items.extend(deserialize_image(item) for item in response.get("Items", []))
            last_key = response.get("LastEvaluatedKey")
            if not last_key:
                return items
            kwargs["ExclusiveStartKey"] = last_key


class DynamoDBContractStatusStore(_DynamoDBTable, ContractStatusStore):
    """
    Contract status table.

    Writes use UpdateItem so absent fields are removed and ``version`` is
    incremented atomically, conditional on the caller's expected version.
    """

    async def get_contract_status(self, property_id: str) -> ContractStatusRecord | None:
        response = await self._call(
            "get_item",
            Key=serialize_image({"property_id": property_id}),
            ConsistentRead=True,
        )
        item = response.get("Item")
        return ContractStatusRecord.from_dict(deserialize_image(item)) if item else None

    async def put_contract_status(
        self,
        record: ContractStatusRecord,
        expected_version: int | None = None,
    ) -> ContractStatusRecord:
        names: dict[str, str] = {"#version": "version"}
        values: dict[str, Any] = {":one": 1}
        set_parts: list[str] = []
        remove_parts: list[str] = []

        for index, field_name in enumerate(_CONTRACT_STATUS_FIELDS):
            placeholder = f"#f{index}"
            names[placeholder] = field_name
            value = getattr(record, field_name)
            if value is None:
                remove_parts.append(placeholder)
            else:
                set_parts.append(f"{placeholder} = :v{index}")
                values[f":v{index}"] = value

        expression = "ADD #version :one"
        if set_parts:
            expression = f"SET {', '.join(set_parts)} {expression}"
        if remove_parts:
            expression = f"{expression} REMOVE {', '.join(remove_parts)}"

        kwargs: dict[str, Any] = {}
        if expected_version == 0:
            kwargs["ConditionExpression"] = "attribute_not_exists(property_id)"
        elif expected_version is not None:
            kwargs["ConditionExpression"] = "#version = :expected"
            values[":expected"] = expected_version

        response = await self._call(
            "update_item",
            Key=serialize_image({"property_id": record.property_id}),
            UpdateExpression=expression,
            ExpressionAttributeNames=names,
            ExpressionAttributeValues=serialize_image(values),
            ReturnValues="ALL_NEW",
            **kwargs,
        )
        return ContractStatusRecord.from_dict(deserialize_image(response["Attributes"]))

    async def clear_task_token(self, property_id: str, token: str) -> bool:
        try:
            await self._call(
                "update_item",
                Key=serialize_image({"property_id": property_id}),
                UpdateExpression="REMOVE sfn_wait_approved_task_token ADD #version :one",
                ConditionExpression="sfn_wait_approved_task_token = :token",
                ExpressionAttributeNames={"#version": "version"},
                ExpressionAttributeValues=serialize_image({":one": 1, ":token": token}),
            )
        except ConditionalCheckFailedError:
            return False
        return True

    async def list_contract_statuses(self) -> list[ContractStatusRecord]:
        return [ContractStatusRecord.from_dict(item) for item in await self._paginate("scan")]


class DynamoDBPropertyStore(_DynamoDBTable, PropertyStore):
    """Search projection table keyed by PK/SK."""

    async def get_property(self, pk: str, sk: str) -> PropertyRecord | None:
        response = await self._call("get_item", Key=serialize_image({"PK": pk, "SK": sk}))
        item = response.get("Item")
        return PropertyRecord.from_dict(deserialize_image(item)) if item else None

    async def put_property(self, record: PropertyRecord) -> None:
        await self._call("put_item", Item=serialize_image(record.to_dict()))

    async def query_properties(
        self, pk: str, sk_prefix: str | None = None, status: str | None = None
    ) -> list[PropertyRecord]:
        values: dict[str, Any] = {":pk": pk}
        condition = "PK = :pk"
        if sk_prefix is not None:
            condition += " AND begins_with(SK, :sk)"
            values[":sk"] = sk_prefix

        kwargs: dict[str, Any] = {"KeyConditionExpression": condition}
        if status is not None:
            kwargs["FilterExpression"] = "#status = :s"
            kwargs["ExpressionAttributeNames"] = {"#status": "status"}
            values[":s"] = status
        kwargs["ExpressionAttributeValues"] = serialize_image(values)

        items = await self._paginate("query", **kwargs)
        return [PropertyRecord.from_dict(item) for item in items]

    async def update_property_status(self, pk: str, sk: str, status: str) -> None:
        await self._call(
            "update_item",
            Key=serialize_image({"PK": pk, "SK": sk}),
            UpdateExpression="SET #status = :s",
            ExpressionAttributeNames={"#status": "status"},
            ExpressionAttributeValues=serialize_image({":s": status}),
        )


class DynamoDBContractStore(_DynamoDBTable, ContractStore):
    """Contracts table keyed by property_id."""

    async def get_contract(self, property_id: str) -> ContractRecord | None:
        response = await self._call(
            "get_item",
            Key=serialize_image({"property_id": property_id}),
            ConsistentRead=True,
        )
        item = response.get("Item")
        return ContractRecord.from_dict(deserialize_image(item)) if item else None

    async def create_contract(self, record: ContractRecord) -> None:
        values = {
            f":s{index}": status.value
            for index, status in enumerate(REPLACEABLE_CONTRACT_STATUSES)
        }
        await self._call(
            "put_item",
            Item=serialize_image(record.to_dict()),
            ConditionExpression=(
                f"attribute_not_exists(property_id) OR contract_status IN ({', '.join(values)})"
            ),
            ExpressionAttributeValues=serialize_image(values),
        )

    async def approve_contract(self, property_id: str, modified_on: str) -> ContractRecord:
        response = await self._call(
            "update_item",
            Key=serialize_image({"property_id": property_id}),
            UpdateExpression="SET contract_status = :approved, contract_last_modified_on = :m",
            ConditionExpression="attribute_exists(property_id) AND contract_status = :draft",
            ExpressionAttributeValues=serialize_image(
                {
                    ":approved": ContractStatus.APPROVED.value,
                    ":draft": ContractStatus.DRAFT.value,
                    ":m": modified_on,
                }
            ),
            ReturnValues="ALL_NEW",
        )
        return ContractRecord.from_dict(deserialize_image(response["Attributes"]))
