"""Tracker implementation for recording observation TraceEvents."""

import uuid
from datetime import datetime, timezone
from typing import Protocol

from ..logging_config import get_logger
from ..models import AckResult, TraceEvent, WaitResult
from ..storage import IStorage

logger = get_logger(__name__)


class ITracker(Protocol):
    """Records what the harness observed, for inspection after a run."""

    async def track(self, event_type: str, actor: str, data: dict) -> None:
        """Create TraceEvent and save to Storage."""
        ...


class Tracker:
    """Creates TraceEvents from observation outcomes."""

    def __init__(self, storage: IStorage):
        self._storage = storage

    async def track(self, event_type: str, actor: str, data: dict) -> None:
        """Create TraceEvent and save to Storage."""
        trace_event = TraceEvent(
            id=str(uuid.uuid4()),
            event_type=event_type,
            actor=actor,
            data=data,
            timestamp=datetime.now(timezone.utc),
        )
        await self._storage.save_trace_event(trace_event)

    async def track_wait(self, source: str, expected: int, result: WaitResult) -> None:
        """Record a settled buffer wait."""
        await self.track(
            event_type="wait_settled",
            actor="wait_primitive",
            data={
                "source": source,
                "expected": expected,
                "outcome": result.outcome.value,
                "received": len(result.events),
                "elapsed": round(result.elapsed, 4),
                "events_summary": str(result.events)[:100],
            },
        )

    async def track_acks(self, results: list[AckResult]) -> None:
        """Record one trace per probed connection."""
        for result in results:
            await self.track(
                event_type="ack_settled",
                actor="liveness_prober",
                data={
                    "connection": repr(result.connection),
                    "outcome": result.outcome.value,
                    "elapsed": round(result.elapsed, 4),
                },
            )
