"""Wait outcome models."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from .events import Event


class WaitState(str, Enum):
    """Lifecycle of a pending wait. Leaves PENDING at most once."""

    PENDING = "pending"
    SUCCEEDED = "succeeded"
    TIMED_OUT = "timed_out"


class WaitOutcome(str, Enum):
    """How a settled wait ended."""

    SUCCEEDED = "succeeded"
    TIMED_OUT = "timed_out"


class WaitTimeoutError(TimeoutError):
    """An expected asynchronous arrival did not happen in time."""


@dataclass
class WaitResult:
    """Result of waiting for events on a buffer."""

    outcome: WaitOutcome
    events: list[Event] = field(default_factory=list)  # snapshot at settlement
    elapsed: float = 0.0  # seconds

    @property
    def ok(self) -> bool:
        return self.outcome is WaitOutcome.SUCCEEDED

    def raise_for_timeout(self) -> list[Event]:
        """Return the events, or raise WaitTimeoutError if the wait timed out."""
        if not self.ok:
            raise WaitTimeoutError(
                f"Timeout after {self.elapsed:.3f}s with {len(self.events)} event(s)"
            )
        return self.events


@dataclass
class AckResult:
    """Outcome of one liveness probe."""

    connection: Any  # PushConnection
    outcome: WaitOutcome
    elapsed: float = 0.0  # seconds

    @property
    def ok(self) -> bool:
        return self.outcome is WaitOutcome.SUCCEEDED
