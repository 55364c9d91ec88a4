"""Outbound queue models."""

from dataclasses import dataclass


@dataclass(frozen=True)
class QueueMessage:
    """A message received from the outbound notification queue."""

    body: str
    receipt_handle: str
    message_id: str | None = None


@dataclass(frozen=True)
class Confirmation:
    """Recipient and token extracted from a confirmation email."""

    recipient: str
    token: str
