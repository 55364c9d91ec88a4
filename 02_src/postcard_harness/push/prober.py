"""Liveness probing of open push channels."""

import asyncio
from typing import Protocol

from websockets import ConnectionClosed

from ..events import PendingWait
from ..logging_config import get_logger
from ..models import AckResult

logger = get_logger(__name__)


class IProbeTarget(Protocol):
    """A connection that can answer liveness probes."""

    async def ping(self) -> asyncio.Future:
        """Send a probe; the returned future completes on acknowledgement."""
        ...


async def _probe(connection: IProbeTarget, timeout: float) -> AckResult:
    pending = PendingWait(timeout)

    def on_ack(ack: asyncio.Future) -> None:
        # A pong waiter fails with ConnectionClosed when the channel drops;
        # that is not an acknowledgement, the deadline settles it instead.
        if ack.cancelled() or ack.exception() is not None:
            return
        pending.succeed()

    try:
        ack = await connection.ping()
    except ConnectionClosed:
        logger.debug("Probe not sent, %r is closed", connection)
    else:
        ack.add_done_callback(on_ack)
        pending.add_cleanup(lambda: ack.remove_done_callback(on_ack))

    outcome = await pending.wait()
    logger.debug(
        "Probe on %r %s after %.3fs", connection, outcome.value, pending.elapsed
    )
    return AckResult(connection=connection, outcome=outcome, elapsed=pending.elapsed)


async def wait_for_ack(
    connections: list[IProbeTarget],
    timeout: float = 1.0,
) -> list[AckResult]:
    """
    Probe every connection concurrently and wait for each to settle.

    Each connection settles on its own, by acknowledgement or by timeout;
    one connection timing out does not affect the others.

    Args:
        connections: Connections to probe
        timeout: Seconds each connection is given to acknowledge

    Returns:
        One AckResult per connection, in input order
    """
    return list(
        await asyncio.gather(*[_probe(c, timeout) for c in connections])
    )
