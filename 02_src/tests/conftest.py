"""Pytest configuration and fixtures."""

import base64
import json
import quopri
import sys
import uuid
from http import HTTPStatus
from pathlib import Path

import pytest
import pytest_asyncio
import websockets

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent))


def pytest_configure(config):
    """Log harness activity to 04_logs/test_run.log, only warnings to the console."""
    from postcard_harness.config import LOGS_DIR
    from postcard_harness.logging_config import setup_logging

    setup_logging(
        log_level="DEBUG",
        log_file=str(LOGS_DIR / "test_run.log"),
        console_level="WARNING",
    )


@pytest_asyncio.fixture
async def storage():
    """Create in-memory storage for testing."""
    from postcard_harness.storage import Storage

    st = Storage(":memory:")
    await st.init()
    yield st
    await st.close()


@pytest.fixture
def tracker(storage):
    """Create Tracker with storage."""
    from postcard_harness.tracker import Tracker

    return Tracker(storage)


@pytest.fixture
def buffer():
    """Create an empty EventBuffer."""
    from postcard_harness.events import EventBuffer

    return EventBuffer("test")


class FakePostcardService:
    """
    Local push-channel server standing in for the service under test.

    Echoes every frame, pushes notifications on request, answers pings,
    closes a recipient's older connection when a newer one opens and
    refuses unknown endpoints with 401.
    """

    SUPERSEDED = 4000
    LOGGED_OUT = 4001

    def __init__(self):
        self.endpoints: dict[str, str] = {}  # endpoint_id -> recipient
        self.connections: dict[str, object] = {}  # recipient -> ServerConnection
        self.address = ""
        self._server = None

    def register(self, recipient: str) -> str:
        """Register an endpoint for recipient and return its id."""
        endpoint_id = str(uuid.uuid4())
        self.endpoints[endpoint_id] = recipient
        return endpoint_id

    def address_for(self, endpoint_id: str) -> str:
        return f"{self.address}/{endpoint_id}"

    async def push(self, recipient: str, event) -> bool:
        """Push an event to recipient's active connection, if any."""
        connection = self.connections.get(recipient)
        if connection is None:
            return False
        await connection.send(event if isinstance(event, str) else json.dumps(event))
        return True

    async def logout(self, recipient: str) -> None:
        connection = self.connections.pop(recipient, None)
        if connection is not None:
            await connection.close(self.LOGGED_OUT, "Session invalidated")

    async def start(self) -> None:
        self._server = await websockets.serve(
            self._handler,
            "127.0.0.1",
            0,
            process_request=self._process_request,
            ping_interval=None,
        )
        port = self._server.sockets[0].getsockname()[1]
        self.address = f"ws://127.0.0.1:{port}/v1/endpoints"

    async def stop(self) -> None:
        self._server.close()
        await self._server.wait_closed()

    def _endpoint_id(self, path: str) -> str:
        return path.rstrip("/").rsplit("/", 1)[-1]

    def _process_request(self, connection, request):
        if self._endpoint_id(request.path) not in self.endpoints:
            return connection.respond(HTTPStatus.UNAUTHORIZED, "Unauthorized\n")
        return None

    async def _handler(self, connection) -> None:
        recipient = self.endpoints[self._endpoint_id(connection.request.path)]

        # The newer connection is registered before the older one is closed
        previous = self.connections.get(recipient)
        self.connections[recipient] = connection
        if previous is not None:
            await previous.close(self.SUPERSEDED, "Superseded")

        try:
            async for message in connection:
                await connection.send(message)
        except websockets.ConnectionClosed:
            pass
        finally:
            if self.connections.get(recipient) is connection:
                del self.connections[recipient]


@pytest_asyncio.fixture
async def push_service():
    """Start a local push-channel server."""
    service = FakePostcardService()
    await service.start()
    yield service
    await service.stop()


class FakeQueue:
    """In-memory IMessageQueue recording every call."""

    def __init__(self, batches=None, fail_receives: int = 0):
        self.batches = list(batches or [])  # one list per receive call
        self.fail_receives = fail_receives
        self.receive_calls: list[int] = []
        self.deleted: list = []
        self.purged = 0

    async def receive(self, wait_seconds: int):
        from postcard_harness.confirmations import QueueError

        self.receive_calls.append(wait_seconds)
        if self.fail_receives:
            self.fail_receives -= 1
            raise QueueError("receive_message failed: throttled")
        if self.batches:
            return self.batches.pop(0)
        return []

    async def delete(self, message) -> None:
        self.deleted.append(message)

    async def purge(self) -> None:
        self.batches.clear()
        self.purged += 1


def make_queue_body(
    recipient: str = "a@example.com",
    html: str = '<a href="https://host/registrations/abc123?x=1">Confirm</a>',
) -> str:
    """Build an SNS/SES message body the way the email pipeline delivers it."""
    mime = (
        f"To: {recipient}\r\n"
        "Content-Type: text/html; charset=UTF-8\r\n"
        "Content-Transfer-Encoding: quoted-printable\r\n\r\n"
    ).encode("ascii") + quopri.encodestring(html.encode("utf-8"))
    notification = {
        "notificationType": "Received",
        "mail": {"destination": [recipient]},
        "content": base64.b64encode(mime).decode("ascii"),
    }
    return json.dumps({"Type": "Notification", "Message": json.dumps(notification)})


@pytest.fixture
def queue_body():
    """Factory for encoded confirmation message bodies."""
    return make_queue_body


@pytest.fixture
def fake_queue():
    """Factory for FakeQueue instances."""
    return FakeQueue
