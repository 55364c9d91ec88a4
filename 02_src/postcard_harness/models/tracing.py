"""Observation trace models."""

from dataclasses import dataclass
from datetime import datetime


@dataclass
class TraceEvent:
    """A single recorded observation, kept for post-run inspection."""

    id: str
    event_type: str  # e.g. "wait_settled", "ack_settled"
    actor: str  # component that recorded it
    data: dict  # self-contained details
    timestamp: datetime
