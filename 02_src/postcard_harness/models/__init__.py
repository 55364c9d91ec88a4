"""Data models for the postcard harness."""

from .events import (
    CloseEvent,
    Endpoint,
    Event,
    EventType,
    HandshakeRejected,
    notification,
)
from .waits import AckResult, WaitOutcome, WaitResult, WaitState, WaitTimeoutError
from .confirmations import Confirmation, QueueMessage
from .tracing import TraceEvent

__all__ = [
    # Events
    "Event",
    "EventType",
    "notification",
    "CloseEvent",
    "HandshakeRejected",
    "Endpoint",
    # Waits
    "WaitState",
    "WaitOutcome",
    "WaitResult",
    "WaitTimeoutError",
    "AckResult",
    # Confirmations
    "QueueMessage",
    "Confirmation",
    # Tracing
    "TraceEvent",
]
