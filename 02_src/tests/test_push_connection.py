"""Tests for PushConnection against a local push-channel server."""

import logging

import pytest

from postcard_harness.events import wait_for_count
from postcard_harness.models import (
    CloseEvent,
    Endpoint,
    EventType,
    HandshakeRejected,
    notification,
)
from postcard_harness.push import (
    PushConnection,
    connect_to_endpoints,
    endpoint_address,
    parse_frame,
    wait_for_ack,
)


class TestHelpers:
    """Tests for address and frame helpers."""

    def test_endpoint_address(self):
        """Test building an endpoint address from an Endpoint or an id."""
        base = "ws://localhost:4000/v1/endpoints/"

        assert endpoint_address(base, "ep1") == "ws://localhost:4000/v1/endpoints/ep1"
        assert (
            endpoint_address(base, Endpoint(id="ep2"))
            == "ws://localhost:4000/v1/endpoints/ep2"
        )

    def test_parse_frame_json(self):
        """Test that JSON frames are decoded."""
        assert parse_frame('{"type": "set-as-friend", "id": "u2"}') == {
            "type": "set-as-friend",
            "id": "u2",
        }

    def test_parse_frame_raw_text(self):
        """Test that non-JSON frames are kept verbatim."""
        assert parse_frame("HELLO") == "HELLO"
        assert parse_frame(b"HELLO") == "HELLO"

    def test_notification_shape(self):
        """Test the notification helper builds the wire shape."""
        assert notification(EventType.POSTCARD_RECEIVED, "p1") == {
            "type": "postcard-received",
            "id": "p1",
        }


class TestPushConnectionEvents:
    """Tests for buffering pushed events."""

    @pytest.mark.asyncio
    async def test_notify_received_postcard(self, push_service):
        """Test that a pushed notification lands in the message buffer."""
        endpoint = push_service.register("u2@example.com")
        connection = await PushConnection.connect(push_service.address_for(endpoint))

        await push_service.push(
            "u2@example.com", notification(EventType.POSTCARD_RECEIVED, "p1")
        )
        result = await wait_for_count(connection.messages, 1, timeout=1.0)

        assert result.ok
        assert result.events[0] == {"type": "postcard-received", "id": "p1"}

        await connection.close()

    @pytest.mark.asyncio
    async def test_events_keep_arrival_order(self, push_service):
        """Test that several pushes are buffered in order."""
        endpoint = push_service.register("u1@example.com")
        connection = await PushConnection.connect(push_service.address_for(endpoint))

        for event_type in EventType:
            await push_service.push("u1@example.com", notification(event_type, "x"))
        result = await wait_for_count(connection.messages, 3, timeout=1.0)

        assert [e["type"] for e in result.events] == [
            "postcard-received",
            "postcard-delivered",
            "set-as-friend",
        ]

        await connection.close()

    @pytest.mark.asyncio
    async def test_echo_sent_messages(self, push_service):
        """Test that a sent payload is echoed back verbatim."""
        endpoint = push_service.register("u1@example.com")
        connection = await PushConnection.connect(push_service.address_for(endpoint))

        await connection.send("HELLO")
        result = await wait_for_count(connection.messages, 1, timeout=1.0)

        assert result.events == ["HELLO"]

        await connection.close()

    @pytest.mark.asyncio
    async def test_echo_json_payload(self, push_service):
        """Test that dict payloads are sent as JSON and decoded on echo."""
        endpoint = push_service.register("u1@example.com")
        connection = await PushConnection.connect(push_service.address_for(endpoint))

        await connection.send({"token": "abc"})
        result = await wait_for_count(connection.messages, 1, timeout=1.0)

        assert result.events == [{"token": "abc"}]

        await connection.close()


class TestPushConnectionClose:
    """Tests for server-initiated closes."""

    @pytest.mark.asyncio
    async def test_close_on_logout(self, push_service):
        """Test that invalidating the session closes the channel."""
        endpoint = push_service.register("u3@example.com")
        connection = await PushConnection.connect(push_service.address_for(endpoint))

        await wait_for_ack([connection], timeout=1.0)
        assert connection.closes.snapshot() == []

        await push_service.logout("u3@example.com")
        result = await wait_for_count(connection.closes, 1, timeout=1.0)

        assert result.ok
        assert result.events == [
            CloseEvent(code=push_service.LOGGED_OUT, reason="Session invalidated")
        ]
        assert not connection.is_open

    @pytest.mark.asyncio
    async def test_new_connection_supersedes_old(self, push_service):
        """Test that a second connection for a recipient closes the first."""
        first_endpoint = push_service.register("u2@example.com")
        first = await PushConnection.connect(push_service.address_for(first_endpoint))

        await push_service.push(
            "u2@example.com", notification(EventType.POSTCARD_RECEIVED, "p1")
        )
        assert (await wait_for_count(first.messages, 1, timeout=1.0)).ok
        assert first.closes.snapshot() == []

        second_endpoint = push_service.register("u2@example.com")
        second = await PushConnection.connect(push_service.address_for(second_endpoint))

        closed = await wait_for_count(first.closes, 1, timeout=1.0)
        assert closed.ok
        assert closed.events[0].code == push_service.SUPERSEDED

        await push_service.push(
            "u2@example.com", notification(EventType.POSTCARD_RECEIVED, "p2")
        )
        received = await wait_for_count(second.messages, 1, timeout=1.0)

        assert received.events == [{"type": "postcard-received", "id": "p2"}]
        assert first.messages.snapshot() == [{"type": "postcard-received", "id": "p1"}]

        await second.close()

    @pytest.mark.asyncio
    async def test_client_close_is_recorded(self, push_service):
        """Test that closing from the client side also records a CloseEvent."""
        endpoint = push_service.register("u1@example.com")
        connection = await PushConnection.connect(push_service.address_for(endpoint))

        await connection.close()

        assert len(connection.closes) == 1
        assert isinstance(connection.closes.snapshot()[0], CloseEvent)


class TestPushConnectionHandshake:
    """Tests for connecting to endpoints."""

    @pytest.mark.asyncio
    async def test_invalid_endpoint_is_rejected(self, push_service, caplog):
        """Test that an unknown endpoint yields HandshakeRejected, not an error."""
        caplog.set_level(logging.INFO, logger="postcard_harness.push")
        address = push_service.address_for("no-such-endpoint")

        result = await PushConnection.connect(address)

        assert isinstance(result, HandshakeRejected)
        assert result.status_code == 401
        assert result.address == address
        rejected = [r for r in caplog.records if r.getMessage().startswith("Handshake")]
        assert rejected[-1].context == {"address": address}

    @pytest.mark.asyncio
    async def test_connect_to_endpoints(self, push_service):
        """Test opening several channels at once, in order."""
        valid = push_service.register("u1@example.com")
        addresses = [
            push_service.address_for(valid),
            push_service.address_for("unknown"),
        ]

        opened, rejected = await connect_to_endpoints(addresses)

        assert isinstance(opened, PushConnection)
        assert opened.is_open
        assert isinstance(rejected, HandshakeRejected)

        await opened.close()
