"""Settle-once waits over event buffers."""

import asyncio
from typing import Any, Callable

from ..logging_config import get_logger
from ..models import WaitOutcome, WaitResult, WaitState
from .buffer import IEventBuffer

logger = get_logger(__name__)


class PendingWait:
    """
    A wait that resolves exactly once, by success or by timeout.

    The deadline timer is armed on creation. Whichever of ``succeed()`` or
    the timer runs first moves the state out of PENDING; every later call is
    inert. Cleanups registered with ``add_cleanup`` run exactly once, at
    settlement or when the waiting task is cancelled.

    Must be created inside a running event loop.
    """

    def __init__(
        self,
        timeout: float,
        timeout_value: Callable[[], Any] | None = None,
    ):
        self._loop = asyncio.get_running_loop()
        self._future: asyncio.Future = self._loop.create_future()
        self._state = WaitState.PENDING
        self._started = self._loop.time()
        self._elapsed = 0.0
        self._value: Any = None
        self._timeout_value = timeout_value
        self._cleanups: list[Callable[[], None]] = []
        self._released = False
        self._timer = self._loop.call_later(timeout, self._on_deadline)

    @property
    def state(self) -> WaitState:
        return self._state

    @property
    def settled(self) -> bool:
        return self._state is not WaitState.PENDING

    @property
    def value(self) -> Any:
        """Value captured at settlement."""
        return self._value

    @property
    def elapsed(self) -> float:
        """Seconds from creation to settlement (or until now, while pending)."""
        if self.settled:
            return self._elapsed
        return self._loop.time() - self._started

    def add_cleanup(self, cleanup: Callable[[], None]) -> None:
        """Register a callback to run once when the wait is released."""
        self._cleanups.append(cleanup)

    def succeed(self, value: Any = None) -> bool:
        """Settle successfully. Returns False if already settled."""
        return self._settle(WaitState.SUCCEEDED, value)

    def time_out(self, value: Any = None) -> bool:
        """Settle by timeout. Returns False if already settled."""
        return self._settle(WaitState.TIMED_OUT, value)

    async def wait(self) -> WaitOutcome:
        """Suspend until settled."""
        try:
            return await asyncio.shield(self._future)
        except asyncio.CancelledError:
            self._release()
            raise

    def _on_deadline(self) -> None:
        value = self._timeout_value() if self._timeout_value else None
        self.time_out(value)

    def _settle(self, state: WaitState, value: Any) -> bool:
        if self._state is not WaitState.PENDING:
            return False

        self._state = state
        self._value = value
        self._elapsed = self._loop.time() - self._started
        self._release()
        if not self._future.done():
            self._future.set_result(WaitOutcome(state.value))
        return True

    def _release(self) -> None:
        if self._released:
            return
        self._released = True
        self._timer.cancel()
        for cleanup in self._cleanups:
            try:
                cleanup()
            except Exception as e:
                logger.error("Error in wait cleanup %r: %s", cleanup, e)


async def wait_for_count(
    buffer: IEventBuffer,
    n: int = 1,
    timeout: float = 1.0,
) -> WaitResult:
    """
    Wait until buffer holds at least n events, or timeout elapses.

    Returns without suspending when the buffer already holds n events.

    Args:
        buffer: Buffer to observe
        n: Number of events required
        timeout: Seconds to wait

    Returns:
        WaitResult with the buffer snapshot taken at settlement. A timeout
        is reported as WaitOutcome.TIMED_OUT, not raised.
    """
    if len(buffer.snapshot()) >= n:
        return WaitResult(WaitOutcome.SUCCEEDED, buffer.snapshot(), 0.0)

    pending = PendingWait(timeout, timeout_value=buffer.snapshot)

    def on_event(_event) -> None:
        if pending.settled:
            return
        events = buffer.snapshot()
        if len(events) >= n:
            pending.succeed(events)

    buffer.subscribe(on_event)
    pending.add_cleanup(lambda: buffer.unsubscribe(on_event))

    outcome = await pending.wait()
    logger.debug(
        "Wait for %d event(s) on %r %s after %.3fs",
        n,
        buffer,
        outcome.value,
        pending.elapsed,
    )
    return WaitResult(outcome, pending.value, pending.elapsed)
