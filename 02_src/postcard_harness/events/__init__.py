"""Event buffering and waiting."""

from .buffer import EventBuffer, EventSubscriber, IEventBuffer
from .wait import PendingWait, wait_for_count

__all__ = [
    "EventBuffer",
    "EventSubscriber",
    "IEventBuffer",
    "PendingWait",
    "wait_for_count",
]
