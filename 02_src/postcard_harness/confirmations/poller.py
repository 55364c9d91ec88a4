"""Deadline-bounded polling of the confirmation queue."""

import asyncio

from ..logging_config import get_logger, log_context
from ..models import Confirmation, QueueMessage
from .decoder import extract
from .sqs_queue import IMessageQueue, QueueError

logger = get_logger(__name__)


class QueuePoller:
    """Drains a queue until a confirmation email shows up or time runs out."""

    def __init__(
        self,
        queue: IMessageQueue,
        backoff: float = 1.0,
        long_poll_seconds: int = 10,
    ):
        self._queue = queue
        self._backoff = backoff
        self._long_poll_seconds = long_poll_seconds

    async def poll_for_message(self, timeout: float = 10.0) -> Confirmation | None:
        """
        Return the first confirmation received before the deadline.

        Every received message is deleted before it is decoded, so a
        message that is not a confirmation is dropped, not redelivered.

        Args:
            timeout: Overall budget in seconds

        Returns:
            Confirmation, or None if none arrived in time
        """
        loop = asyncio.get_running_loop()
        deadline = loop.time() + timeout

        while loop.time() < deadline:
            remaining = deadline - loop.time()
            wait_seconds = min(self._long_poll_seconds, int(remaining))

            confirmation = await self._receive_once(wait_seconds)
            if confirmation:
                return confirmation

            remaining = deadline - loop.time()
            if remaining <= 0:
                break
            await asyncio.sleep(min(self._backoff, remaining))

        logger.info("No confirmation received within %.1fs", timeout)
        return None

    async def _receive_once(self, wait_seconds: int) -> Confirmation | None:
        try:
            messages = await self._queue.receive(wait_seconds)
        except QueueError as e:
            logger.warning("Queue receive failed: %s", e)
            return None

        found = None
        for message in messages:
            await self._delete(message)
            confirmation = extract(message.body)
            if confirmation is None:
                logger.debug(
                    "Discarded non-confirmation message",
                    extra=log_context(message_id=message.message_id),
                )
            elif found is None:
                found = confirmation
        return found

    async def _delete(self, message: QueueMessage) -> None:
        try:
            await self._queue.delete(message)
        except QueueError as e:
            logger.warning(
                "Could not delete message: %s",
                e,
                extra=log_context(message_id=message.message_id),
            )


async def poll_for_message(
    queue: IMessageQueue,
    timeout: float = 10.0,
    backoff: float = 1.0,
    long_poll_seconds: int = 10,
) -> Confirmation | None:
    """Poll queue once for a confirmation. See QueuePoller.poll_for_message."""
    poller = QueuePoller(queue, backoff=backoff, long_poll_seconds=long_poll_seconds)
    return await poller.poll_for_message(timeout)
