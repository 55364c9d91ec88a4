"""Push-channel event models."""

from dataclasses import dataclass
from enum import Enum
from typing import Any

# Whatever the server pushed: a decoded JSON value, or the raw frame text
# when it was not JSON (echoed payloads).
Event = Any


class EventType(str, Enum):
    """Notification types pushed by the postcard service."""

    POSTCARD_RECEIVED = "postcard-received"
    POSTCARD_DELIVERED = "postcard-delivered"
    SET_AS_FRIEND = "set-as-friend"


def notification(event_type: EventType, id: str) -> dict:
    """Build the wire shape of a notification, for comparisons in assertions."""
    return {"type": event_type.value, "id": id}


@dataclass(frozen=True)
class CloseEvent:
    """The server closed the push channel."""

    code: int | None
    reason: str = ""


@dataclass(frozen=True)
class HandshakeRejected:
    """The push channel refused the opening handshake."""

    address: str
    status_code: int | None  # None when no HTTP response was received
    reason: str = ""


@dataclass
class Endpoint:
    """A push endpoint registered for a session."""

    id: str
    expires: str | None = None
