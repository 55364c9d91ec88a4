"""Harness bootstrap and lifecycle management."""

from typing import Protocol

from .config import HarnessConfig, load_config
from .confirmations import IMessageQueue, QueuePoller, SqsQueue
from .events import wait_for_count
from .logging_config import get_logger
from .models import (
    AckResult,
    Confirmation,
    Endpoint,
    HandshakeRejected,
    WaitResult,
)
from .push import (
    EndpointClient,
    IEndpointClient,
    PushConnection,
    connect_to_endpoints,
    endpoint_address,
    wait_for_ack,
)
from .storage import IStorage, Storage
from .tracker import Tracker

logger = get_logger(__name__)


class IHarness(Protocol):
    """Bootstrap and lifecycle."""

    async def start(self) -> None:
        """Initialize components in dependency order."""
        ...

    async def stop(self) -> None:
        """Shutdown in reverse order."""
        ...

    async def reset(self) -> None:
        """Reset recorded traces between test runs."""
        ...


class Harness:
    """Observation harness for one test session.

    Owns the push connections it opens and closes them on stop().
    """

    def __init__(
        self,
        config: HarnessConfig | None = None,
        queue: IMessageQueue | None = None,
        endpoint_client: IEndpointClient | None = None,
    ):
        self._config = config or load_config()
        self._queue = queue
        self._endpoint_client = endpoint_client

        # Components (will be initialized in start())
        self._storage: IStorage | None = None
        self._tracker: Tracker | None = None
        self._poller: QueuePoller | None = None
        self._connections: list[PushConnection] = []

    async def start(self) -> None:
        """Initialize components in dependency order."""
        logger.info("Starting harness")

        # 1. Storage (no dependencies)
        self._storage = Storage(self._config.trace_db_path)
        await self._storage.init()

        # 2. Tracker (depends on Storage)
        self._tracker = Tracker(self._storage)

        # 3. Endpoint registration over HTTP
        if self._endpoint_client is None:
            self._endpoint_client = EndpointClient(self._config.api_address)

        # 4. Confirmation queue, only when one is configured
        if self._queue is None and self._config.queue_url:
            self._queue = SqsQueue(
                self._config.queue_url,
                region_name=self._config.aws_region,
                visibility_timeout=self._config.visibility_timeout,
            )
        if self._queue is not None:
            self._poller = QueuePoller(
                self._queue,
                backoff=self._config.poll_backoff,
                long_poll_seconds=self._config.long_poll_seconds,
            )
        else:
            logger.info("No confirmation queue configured")

        logger.info("Harness started")

    async def stop(self) -> None:
        """Shutdown in reverse order."""
        for connection in self._connections:
            if connection.is_open:
                await connection.close()
        self._connections.clear()

        if isinstance(self._endpoint_client, EndpointClient):
            await self._endpoint_client.aclose()
        if self._storage:
            await self._storage.close()
            logger.info("Storage closed")

    async def reset(self) -> None:
        """Reset recorded traces between test runs."""
        await self.storage.clear()
        logger.info("Storage cleared")

    # Push channel

    async def create_endpoints(self, session_tokens: list[str]) -> list[Endpoint]:
        """Register one push endpoint per session."""
        if self._endpoint_client is None:
            raise RuntimeError("Harness not started")
        return await self._endpoint_client.create_endpoints(session_tokens)

    async def connect(
        self, endpoints: list[Endpoint | str]
    ) -> list[PushConnection | HandshakeRejected]:
        """Open push channels for endpoints, concurrently, in input order."""
        addresses = [
            endpoint_address(self._config.endpoint_address, e) for e in endpoints
        ]
        results = await connect_to_endpoints(addresses)

        for result in results:
            if isinstance(result, HandshakeRejected):
                await self.tracker.track(
                    "connection_rejected",
                    "push_channel",
                    {"address": result.address, "status_code": result.status_code},
                )
            else:
                self._connections.append(result)
                await self.tracker.track(
                    "connection_opened", "push_channel", {"address": result.address}
                )
        return results

    async def wait_for_messages(
        self,
        connection: PushConnection,
        n: int = 1,
        timeout: float | None = None,
    ) -> WaitResult:
        """Wait until connection has received n messages."""
        result = await wait_for_count(
            connection.messages, n, self._timeout(timeout, self._config.wait_timeout)
        )
        await self.tracker.track_wait(connection.messages.name, n, result)
        return result

    async def wait_for_close(
        self,
        connection: PushConnection,
        timeout: float | None = None,
    ) -> WaitResult:
        """Wait until the server has closed connection."""
        result = await wait_for_count(
            connection.closes, 1, self._timeout(timeout, self._config.wait_timeout)
        )
        await self.tracker.track_wait(connection.closes.name, 1, result)
        return result

    async def wait_for_ack(
        self,
        connections: list[PushConnection],
        timeout: float | None = None,
    ) -> list[AckResult]:
        """Probe connections and wait until each acknowledged or timed out."""
        results = await wait_for_ack(
            connections, self._timeout(timeout, self._config.ack_timeout)
        )
        await self.tracker.track_acks(results)
        return results

    # Confirmation queue

    async def poll_confirmation(self, timeout: float | None = None) -> Confirmation | None:
        """Poll the queue for the next confirmation email."""
        if self._poller is None:
            raise RuntimeError("No confirmation queue configured")

        confirmation = await self._poller.poll_for_message(
            self._timeout(timeout, self._config.poll_timeout)
        )
        await self.tracker.track(
            "confirmation_polled",
            "queue_poller",
            {
                "found": confirmation is not None,
                "recipient": confirmation.recipient if confirmation else None,
            },
        )
        return confirmation

    async def clear_queue(self) -> None:
        """Purge the confirmation queue."""
        if self._queue is None:
            raise RuntimeError("No confirmation queue configured")

        await self._queue.purge()
        await self.tracker.track("queue_purged", "queue_poller", {})

    @staticmethod
    def _timeout(value: float | None, default: float) -> float:
        return default if value is None else value

    @property
    def config(self) -> HarnessConfig:
        return self._config

    @property
    def storage(self) -> IStorage:
        """Get storage instance."""
        if not self._storage:
            raise RuntimeError("Harness not started")
        return self._storage

    @property
    def tracker(self) -> Tracker:
        """Get tracker instance."""
        if not self._tracker:
            raise RuntimeError("Harness not started")
        return self._tracker

    @property
    def connections(self) -> list[PushConnection]:
        """Connections opened by this harness."""
        return list(self._connections)
