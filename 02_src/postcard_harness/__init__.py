"""Postcard conformance harness."""

from .app import Harness, IHarness
from .config import HarnessConfig, load_config
from .confirmations import (
    IMessageQueue,
    QueueError,
    QueuePoller,
    SqsQueue,
    extract,
    poll_for_message,
)
from .events import EventBuffer, IEventBuffer, PendingWait, wait_for_count
from .models import (
    AckResult,
    CloseEvent,
    Confirmation,
    Endpoint,
    Event,
    EventType,
    HandshakeRejected,
    QueueMessage,
    TraceEvent,
    WaitOutcome,
    WaitResult,
    WaitState,
    WaitTimeoutError,
    notification,
)
from .push import EndpointClient, PushConnection, connect_to_endpoints, wait_for_ack
from .storage import IStorage, Storage
from .tracker import ITracker, Tracker

__all__ = [
    # Harness
    "Harness",
    "IHarness",
    "HarnessConfig",
    "load_config",
    # Models
    "Event",
    "EventType",
    "notification",
    "CloseEvent",
    "HandshakeRejected",
    "Endpoint",
    "WaitState",
    "WaitOutcome",
    "WaitResult",
    "WaitTimeoutError",
    "AckResult",
    "QueueMessage",
    "Confirmation",
    "TraceEvent",
    # Events
    "IEventBuffer",
    "EventBuffer",
    "PendingWait",
    "wait_for_count",
    # Push channel
    "EndpointClient",
    "PushConnection",
    "connect_to_endpoints",
    "wait_for_ack",
    # Confirmations
    "IMessageQueue",
    "QueueError",
    "SqsQueue",
    "QueuePoller",
    "poll_for_message",
    "extract",
    # Components
    "IStorage",
    "Storage",
    "ITracker",
    "Tracker",
]
