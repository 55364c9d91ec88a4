"""Amazon SQS adapter for the outbound notification queue."""

import asyncio
from typing import Any, Protocol

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from ..logging_config import get_logger, log_context
from ..models import QueueMessage

logger = get_logger(__name__)


class QueueError(Exception):
    """A queue operation failed in transport."""


class IMessageQueue(Protocol):
    """At-least-once message queue: receive, delete, purge."""

    async def receive(self, wait_seconds: int) -> list[QueueMessage]:
        """Long-poll for messages. Empty list when none arrived."""
        ...

    async def delete(self, message: QueueMessage) -> None:
        """Delete a received message so it is not redelivered."""
        ...

    async def purge(self) -> None:
        """Drop every message in the queue."""
        ...


class SqsQueue:
    """SQS queue accessed through boto3, off the event loop."""

    def __init__(
        self,
        queue_url: str,
        client: Any | None = None,
        region_name: str | None = None,
        visibility_timeout: int = 20,
        max_messages: int = 1,
    ):
        self.queue_url = queue_url
        self._client = client or boto3.client(
            "sqs", region_name=region_name, api_version="2012-11-05"
        )
        self._visibility_timeout = visibility_timeout
        self._max_messages = max_messages

    async def receive(self, wait_seconds: int) -> list[QueueMessage]:
        """
        Long-poll for messages.

        Args:
            wait_seconds: Server-side wait, clamped to SQS's 0..20 range

        Raises:
            QueueError: On transport or API errors
        """
        wait_seconds = max(0, min(20, int(wait_seconds)))
        try:
            data = await asyncio.to_thread(
                self._client.receive_message,
                QueueUrl=self.queue_url,
                AttributeNames=["SentTimestamp"],
                MaxNumberOfMessages=self._max_messages,
                MessageAttributeNames=["All"],
                VisibilityTimeout=self._visibility_timeout,
                WaitTimeSeconds=wait_seconds,
            )
        except (BotoCoreError, ClientError) as e:
            raise QueueError(f"receive_message failed: {e}") from e

        return [
            QueueMessage(
                body=m["Body"],
                receipt_handle=m["ReceiptHandle"],
                message_id=m.get("MessageId"),
            )
            for m in data.get("Messages") or []
        ]

    async def delete(self, message: QueueMessage) -> None:
        """
        Delete a received message.

        Raises:
            QueueError: On transport or API errors
        """
        try:
            await asyncio.to_thread(
                self._client.delete_message,
                QueueUrl=self.queue_url,
                ReceiptHandle=message.receipt_handle,
            )
        except (BotoCoreError, ClientError) as e:
            raise QueueError(f"delete_message failed: {e}") from e

    async def purge(self) -> None:
        """Drop every message in the queue. Failures are logged, not raised."""
        try:
            await asyncio.to_thread(self._client.purge_queue, QueueUrl=self.queue_url)
            logger.info("Purged queue", extra=log_context(queue_url=self.queue_url))
        except (BotoCoreError, ClientError) as e:
            logger.warning(
                "Could not purge queue: %s", e, extra=log_context(queue_url=self.queue_url)
            )
