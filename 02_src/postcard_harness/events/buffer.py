"""EventBuffer implementation: ordered event log with synchronous subscribers."""

from typing import Callable, Protocol

from ..logging_config import get_logger
from ..models import Event

logger = get_logger(__name__)


EventSubscriber = Callable[[Event], None]


class IEventBuffer(Protocol):
    """Append-only log of events observed on one connection."""

    def append(self, event: Event) -> None:
        """Append event and notify current subscribers synchronously."""
        ...

    def subscribe(self, callback: EventSubscriber) -> None:
        """Register a callback for events appended from now on."""
        ...

    def unsubscribe(self, callback: EventSubscriber) -> None:
        """Remove a callback. No-op if it is not registered."""
        ...

    def snapshot(self) -> list[Event]:
        """Get all events observed so far."""
        ...


class EventBuffer:
    """Ordered event log plus subscriber registry.

    Only the owning connection's receive loop appends. Subscribers run inside
    ``append`` and must return quickly.
    """

    def __init__(self, name: str = "buffer"):
        self.name = name
        self._events: list[Event] = []
        self._subscribers: list[EventSubscriber] = []

    def append(self, event: Event) -> None:
        """Append event and notify current subscribers synchronously."""
        self._events.append(event)

        # Iterate over a copy: a subscriber may unsubscribe itself
        for subscriber in list(self._subscribers):
            try:
                subscriber(event)
            except Exception as e:
                logger.error(
                    "Error in subscriber %r of %s: %s",
                    subscriber,
                    self.name,
                    e,
                    exc_info=True,
                )

    def subscribe(self, callback: EventSubscriber) -> None:
        """Register a callback for events appended from now on."""
        self._subscribers.append(callback)

    def unsubscribe(self, callback: EventSubscriber) -> None:
        """Remove a callback. No-op if it is not registered."""
        self._subscribers = [s for s in self._subscribers if s is not callback]

    def snapshot(self) -> list[Event]:
        """Get all events observed so far."""
        return self._events.copy()

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)

    def __len__(self) -> int:
        return len(self._events)

    def __repr__(self) -> str:
        return f"EventBuffer({self.name!r}, events={len(self._events)})"
