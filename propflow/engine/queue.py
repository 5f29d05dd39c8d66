"""
Durable command queues.

SQSQueue sends through boto3. InMemoryQueue delivers each message on its
own as an SQS-shaped ``{"Records": [...]}`` event (batch size 1),
redelivering a failed message up to ``max_receive_count`` times before
moving it to ``dead_letters``.
"""

import asyncio
import json
import threading
import uuid
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, List, Optional

from botocore.exceptions import BotoCoreError, ClientError
from loguru import logger

from propflow.core.exceptions import EventPublishError

QueueConsumer = Callable[[Dict[str, Any]], Awaitable[Any]]


class MessageQueue(ABC):
    """Abstract base class for message queues."""

    @abstractmethod
    async def send_message(
        self, body: Dict[str, Any], attributes: Optional[Dict[str, str]] = None
    ) -> str:
        """
        Enqueue a JSON message.

        Args:
            body: Message body, serialized as JSON
            attributes: Optional string message attributes

        Returns:
            Message id
        """
        pass


class SQSQueue(MessageQueue):
    """Send messages to an Amazon SQS queue."""

    def __init__(self, queue_url: str, client: Any = None, region: Optional[str] = None) -> None:
        self.queue_url = queue_url
        self.region = region
        self._client = client

    @property
    def client(self) -> Any:
        if self._client is None:
            import boto3

            self._client = boto3.client("sqs", region_name=self.region)
        return self._client

    async def send_message(
        self, body: Dict[str, Any], attributes: Optional[Dict[str, str]] = None
    ) -> str:
        request: Dict[str, Any] = {
            "QueueUrl": self.queue_url,
            "MessageBody": json.dumps(body),
        }
        if attributes:
            request["MessageAttributes"] = {
                name: {"DataType": "String", "StringValue": value}
                for name, value in attributes.items()
            }
        try:
            response = await asyncio.to_thread(self.client.send_message, **request)
        except (BotoCoreError, ClientError) as e:
            raise EventPublishError(f"SQS send_message failed: {e}", queue_url=self.queue_url) from e
        return response["MessageId"]


@dataclass
class QueuedMessage:
    message_id: str
    body: str
    attributes: Dict[str, str] = field(default_factory=dict)
    receive_count: int = 0

    def to_record(self, queue_name: str) -> Dict[str, Any]:
        """Render as a record of an SQS Lambda event."""
        return {
            "messageId": self.message_id,
            "receiptHandle": self.message_id,
            "body": self.body,
            "attributes": {"ApproximateReceiveCount": str(self.receive_count)},
            "messageAttributes": {
                name: {"stringValue": value, "dataType": "String"}
                for name, value in self.attributes.items()
            },
            "eventSource": "aws:sqs",
            "eventSourceARN": f"arn:local:sqs:{queue_name}",
        }


class InMemoryQueue(MessageQueue):
    """
    In-process queue with a single consumer.

    Example:
        >>> queue = InMemoryQueue("approvals")
        >>> queue.set_consumer(handler.handle)
        >>> await queue.send_message({"property_id": "usa/anytown/main-street/111"})
        >>> await queue.deliver_pending()
    """

    def __init__(self, name: str, max_receive_count: int = 3) -> None:
        self.name = name
        self.max_receive_count = max_receive_count
        self.dead_letters: List[QueuedMessage] = []
        self.sent: List[QueuedMessage] = []
        self._messages: List[QueuedMessage] = []
        self._consumer: Optional[QueueConsumer] = None
        self._lock = threading.RLock()

    def set_consumer(self, consumer: QueueConsumer) -> None:
        self._consumer = consumer

    async def send_message(
        self, body: Dict[str, Any], attributes: Optional[Dict[str, str]] = None
    ) -> str:
        message = QueuedMessage(
            message_id=str(uuid.uuid4()),
            body=json.dumps(body),
            attributes=dict(attributes or {}),
        )
        with self._lock:
            self._messages.append(message)
            self.sent.append(message)
        logger.debug(f"Message queued on {self.name}", message_id=message.message_id)
        return message.message_id

    def pending(self) -> int:
        with self._lock:
            return len(self._messages)

    async def deliver_pending(self) -> int:
        """
        Deliver the messages queued so far, one per consumer invocation.

        A message whose delivery raises goes back on the queue until it has
        been received ``max_receive_count`` times.

        Returns:
            Number of deliveries attempted
        """
        if self._consumer is None:
            return 0

        with self._lock:
            batch, self._messages = self._messages, []

        for message in batch:
            message.receive_count += 1
            try:
                await self._consumer({"Records": [message.to_record(self.name)]})
            except Exception as e:
                if message.receive_count >= self.max_receive_count:
                    logger.error(
                        f"Message moved to dead-letter list of {self.name}",
                        message_id=message.message_id,
                        receive_count=message.receive_count,
                        error=str(e),
                    )
                    self.dead_letters.append(message)
                else:
                    logger.warning(
                        f"Delivery failed on {self.name}, will redeliver",
                        message_id=message.message_id,
                        receive_count=message.receive_count,
                        error=str(e),
                    )
                    with self._lock:
                        self._messages.append(message)
        return len(batch)
