"""
Change stream records.

Stores emit one record per successful write, shaped exactly like a
DynamoDB Streams record (NEW_AND_OLD_IMAGES view) so the same stream
consumers run against the local runtime and against Lambda event sources.
"""

import uuid
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, Mapping, Optional

from boto3.dynamodb.types import TypeDeserializer, TypeSerializer

_serializer = TypeSerializer()
_deserializer = TypeDeserializer()


class StreamEventName(str, Enum):
    INSERT = "INSERT"
    MODIFY = "MODIFY"
    REMOVE = "REMOVE"


def _to_dynamo_value(value: Any) -> Any:
    """Convert Python values into types the DynamoDB serializer accepts."""
    if isinstance(value, float):
        return Decimal(str(value))
    if isinstance(value, dict):
        return {k: _to_dynamo_value(v) for k, v in value.items() if v is not None}
    if isinstance(value, (list, tuple)):
        return [_to_dynamo_value(v) for v in value]
    return value


def _from_dynamo_value(value: Any) -> Any:
    """Convert deserialized DynamoDB values back into plain Python types."""
    if isinstance(value, Decimal):
        return int(value) if value == value.to_integral_value() else float(value)
    if isinstance(value, dict):
        return {k: _from_dynamo_value(v) for k, v in value.items()}
    if isinstance(value, (list, set)):
        return [_from_dynamo_value(v) for v in value]
    return value


def serialize_image(item: Mapping[str, Any]) -> Dict[str, Any]:
    """Serialize a plain item into a DynamoDB attribute-value map; None values are dropped."""
    return {
        key: _serializer.serialize(_to_dynamo_value(value))
        for key, value in item.items()
        if value is not None
    }


def deserialize_image(image: Optional[Mapping[str, Any]]) -> Optional[Dict[str, Any]]:
    """Deserialize a DynamoDB attribute-value map into a plain item."""
    if image is None:
        return None
    return {
        key: _from_dynamo_value(_deserializer.deserialize(value))
        for key, value in image.items()
    }


def make_stream_record(
    keys: Mapping[str, Any],
    old_image: Optional[Mapping[str, Any]],
    new_image: Optional[Mapping[str, Any]],
    event_source_arn: str = "",
) -> Dict[str, Any]:
    """
    Build a DynamoDB Streams record for a single write.

    Args:
        keys: Primary key attributes of the written item
        old_image: Item before the write (None on insert)
        new_image: Item after the write (None on remove)
        event_source_arn: Identifies the emitting table

    Returns:
        Record dict as found in ``event["Records"]`` of a stream invocation
    """
    if old_image is None:
        event_name = StreamEventName.INSERT
    elif new_image is None:
        event_name = StreamEventName.REMOVE
    else:
        event_name = StreamEventName.MODIFY

    dynamodb: Dict[str, Any] = {
        "Keys": serialize_image(keys),
        "SequenceNumber": uuid.uuid4().hex,
        "StreamViewType": "NEW_AND_OLD_IMAGES",
    }
    if old_image is not None:
        dynamodb["OldImage"] = serialize_image(old_image)
    if new_image is not None:
        dynamodb["NewImage"] = serialize_image(new_image)

    return {
        "eventID": uuid.uuid4().hex,
        "eventName": event_name.value,
        "eventVersion": "1.1",
        "eventSource": "aws:dynamodb",
        "eventSourceARN": event_source_arn,
        "dynamodb": dynamodb,
    }
