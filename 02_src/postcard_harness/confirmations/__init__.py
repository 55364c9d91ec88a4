"""Confirmation emails: queue access, polling and decoding."""

from .decoder import CONFIRMATION_LINK, decode_content, extract
from .poller import QueuePoller, poll_for_message
from .sqs_queue import IMessageQueue, QueueError, SqsQueue

__all__ = [
    "CONFIRMATION_LINK",
    "decode_content",
    "extract",
    "QueuePoller",
    "poll_for_message",
    "IMessageQueue",
    "QueueError",
    "SqsQueue",
]
