"""WebSocket push-channel connection with buffered events."""

import asyncio
import json
from typing import Any

import websockets
from websockets import ClientConnection, ConnectionClosed
from websockets.exceptions import InvalidHandshake, InvalidStatus
from websockets.protocol import State

from ..events import EventBuffer
from ..logging_config import get_logger, log_context
from ..models import CloseEvent, Endpoint, Event, HandshakeRejected

logger = get_logger(__name__)


def endpoint_address(base_address: str, endpoint: Endpoint | str) -> str:
    """WebSocket address of an endpoint, e.g. ws://host/v1/endpoints/<id>."""
    endpoint_id = endpoint.id if isinstance(endpoint, Endpoint) else endpoint
    return f"{base_address.rstrip('/')}/{endpoint_id}"


def parse_frame(frame: str | bytes) -> Event:
    """Decode a frame as JSON, falling back to its raw text."""
    text = frame.decode("utf-8", errors="replace") if isinstance(frame, bytes) else frame
    try:
        return json.loads(text)
    except ValueError:
        return text


class PushConnection:
    """
    One open push channel.

    A single receive-loop task is the only producer for both buffers:
    ``messages`` gets every pushed frame in arrival order, ``closes`` gets a
    CloseEvent when the channel closes.
    """

    def __init__(self, ws: ClientConnection, address: str):
        self.address = address
        self.messages = EventBuffer(f"messages:{address}")
        self.closes = EventBuffer(f"closes:{address}")
        self._ws = ws
        self._task: asyncio.Task | None = None

    @classmethod
    async def connect(
        cls,
        address: str,
        open_timeout: float = 10.0,
    ) -> "PushConnection | HandshakeRejected":
        """
        Open a push channel and start buffering.

        Args:
            address: Endpoint WebSocket address
            open_timeout: Seconds allowed for the opening handshake

        Returns:
            A started PushConnection, or HandshakeRejected when the server
            refuses the handshake (unknown or expired endpoint).
        """
        try:
            ws = await websockets.connect(
                address,
                open_timeout=open_timeout,
                ping_interval=None,  # liveness probes are sent explicitly
                ping_timeout=None,
            )
        except InvalidStatus as e:
            logger.info(
                "Handshake rejected: HTTP %s",
                e.response.status_code,
                extra=log_context(address=address),
            )
            return HandshakeRejected(
                address=address,
                status_code=e.response.status_code,
                reason=e.response.reason_phrase,
            )
        except InvalidHandshake as e:
            logger.info("Handshake failed: %s", e, extra=log_context(address=address))
            return HandshakeRejected(address=address, status_code=None, reason=str(e))

        connection = cls(ws, address)
        connection.start()
        logger.debug("Connected", extra=log_context(address=address))
        return connection

    def start(self) -> None:
        """Start the receive loop."""
        if self._task is None:
            self._task = asyncio.create_task(self._receive_loop())

    @property
    def is_open(self) -> bool:
        return self._ws.state is State.OPEN

    async def send(self, payload: Any) -> None:
        """Send a payload. Non-string payloads are sent as JSON text."""
        if not isinstance(payload, (str, bytes)):
            payload = json.dumps(payload)
        await self._ws.send(payload)

    async def ping(self) -> asyncio.Future:
        """
        Send a liveness probe.

        Returns:
            Future completed when the matching pong arrives.

        Raises:
            ConnectionClosed: If the channel is already closed
        """
        return await self._ws.ping()

    async def close(self) -> None:
        """Close the channel and wait for the receive loop to finish."""
        await self._ws.close()
        if self._task:
            await self._task

    async def _receive_loop(self) -> None:
        while True:
            try:
                frame = await self._ws.recv()
            except ConnectionClosed as e:
                frame_received = e.rcvd
                close = CloseEvent(
                    code=frame_received.code if frame_received else None,
                    reason=frame_received.reason if frame_received else "",
                )
                logger.debug(
                    "Connection closed: %s", close, extra=log_context(address=self.address)
                )
                self.closes.append(close)
                return

            self.messages.append(parse_frame(frame))

    def __repr__(self) -> str:
        return f"PushConnection({self.address!r})"


async def connect_to_endpoints(
    addresses: list[str],
    open_timeout: float = 10.0,
) -> list[PushConnection | HandshakeRejected]:
    """Open several push channels concurrently, results in input order."""
    return list(
        await asyncio.gather(
            *[PushConnection.connect(a, open_timeout=open_timeout) for a in addresses]
        )
    )
