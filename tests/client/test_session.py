"""Tests for the reconnecting websocket session using in-memory connections."""

from __future__ import annotations

import asyncio
import json

import anyio
import pytest
from websockets.exceptions import ConnectionClosedError
from websockets.frames import Close

from order_alerts.client.channel import (
    ConnectionStatusChanged,
    EventChannel,
    NotificationReceived,
    RoomsJoined,
)
from order_alerts.client.session import TransportSession, notifications_url

END = object()


class FakeConnection:
    """Connection double whose incoming frames are fed through a queue."""

    def __init__(self, *frames) -> None:
        self.sent: list[dict] = []
        self.closed = False
        self._queue: asyncio.Queue = asyncio.Queue()
        for frame in frames:
            self._queue.put_nowait(frame)

    def push(self, frame) -> None:
        self._queue.put_nowait(frame)

    async def send(self, message: str) -> None:
        self.sent.append(json.loads(message))

    async def close(self) -> None:
        self.closed = True

    def __aiter__(self):
        return self._frames()

    async def _frames(self):
        while True:
            frame = await self._queue.get()
            if frame is END:
                return
            if isinstance(frame, Close):
                raise ConnectionClosedError(frame, None)
            yield frame


class FakeConnector:
    def __init__(self, *connections: FakeConnection) -> None:
        self.connections = list(connections)
        self.urls: list[str] = []

    def __call__(self, url: str):
        self.urls.append(url)
        return self._iterate()

    async def _iterate(self):
        for connection in self.connections:
            yield connection


async def wait_for(predicate, timeout: float = 2.0) -> None:
    with anyio.fail_after(timeout):
        while not predicate():
            await anyio.sleep(0.01)


def notification_frame(notification_id: str, order_id: int = 7, **data) -> str:
    payload = {
        "id": notification_id,
        "type": "new-order",
        "orderId": order_id,
        "orderNumber": order_id,
        "customerName": "Aziz",
        "total": "19000",
        "itemCount": 2,
        "timestamp": "2024-05-01T12:00:00Z",
        "message": f"New order #{order_id} from Aziz",
        "priority": "high",
    }
    payload.update(data)
    return json.dumps({"type": "new-order", "data": payload})


def recording_channel() -> tuple[EventChannel, list]:
    channel = EventChannel()
    events: list = []
    for event_type in (NotificationReceived, ConnectionStatusChanged, RoomsJoined):
        channel.subscribe(event_type, events.append)
    return channel, events


def test_notifications_url_appends_path() -> None:
    assert notifications_url("ws://localhost:4000/") == "ws://localhost:4000/notifications/ws"


@pytest.mark.anyio
async def test_join_is_sent_first_and_frames_are_published() -> None:
    connection = FakeConnection(
        json.dumps({"type": "joined", "data": {"rooms": ["admins", "user-1"]}}),
        notification_frame("order-7-1"),
    )
    channel, events = recording_channel()
    session = TransportSession(
        "ws://testserver/notifications/ws", "tok", channel, connector=FakeConnector(connection)
    )

    await session.start()
    await wait_for(lambda: any(isinstance(e, NotificationReceived) for e in events))

    assert connection.sent[0] == {"type": "join", "token": "tok"}
    assert session.connected is True
    assert RoomsJoined(("admins", "user-1")) in events
    received = [e.notification for e in events if isinstance(e, NotificationReceived)]
    assert received[0].id == "order-7-1"
    assert received[0].customer_name == "Aziz"
    assert received[0].read is False

    await session.close()


@pytest.mark.anyio
async def test_malformed_frames_are_ignored() -> None:
    connection = FakeConnection(
        "not json",
        json.dumps(["a", "list"]),
        json.dumps({"type": "new-order", "data": {"id": ""}}),
        json.dumps({"type": "something-else"}),
        notification_frame("order-8-1", order_id=8),
    )
    channel, events = recording_channel()
    session = TransportSession("ws://x/notifications/ws", "tok", channel, connector=FakeConnector(connection))

    await session.start()
    await wait_for(lambda: any(isinstance(e, NotificationReceived) for e in events))

    received = [e.notification.id for e in events if isinstance(e, NotificationReceived)]
    assert received == ["order-8-1"]

    await session.close()


@pytest.mark.anyio
async def test_reconnects_after_abnormal_close_and_rejoins() -> None:
    first = FakeConnection(Close(1011, "server restart"))
    second = FakeConnection(notification_frame("order-9-1", order_id=9))
    channel, events = recording_channel()
    session = TransportSession("ws://x/notifications/ws", "tok", channel, connector=FakeConnector(first, second))

    await session.start()
    await wait_for(lambda: any(isinstance(e, NotificationReceived) for e in events))

    assert first.sent == [{"type": "join", "token": "tok"}]
    assert second.sent == [{"type": "join", "token": "tok"}]
    statuses = [e.connected for e in events if isinstance(e, ConnectionStatusChanged)]
    assert statuses == [True, False, True]
    assert session.rejected is False

    await session.close()


@pytest.mark.anyio
async def test_policy_violation_stops_reconnecting() -> None:
    rejected = FakeConnection(Close(1008, "Not authorized"))
    spare = FakeConnection()
    channel, events = recording_channel()
    session = TransportSession("ws://x/notifications/ws", "tok", channel, connector=FakeConnector(rejected, spare))

    await session.start()
    with anyio.fail_after(2):
        await session.wait_closed()

    assert session.rejected is True
    assert session.connected is False
    assert spare.sent == []


@pytest.mark.anyio
async def test_start_twice_opens_one_connection() -> None:
    connector = FakeConnector(FakeConnection())
    channel, _ = recording_channel()
    session = TransportSession("ws://x/notifications/ws", "tok", channel, connector=connector)

    await session.start()
    await session.start()
    await wait_for(lambda: session.connected)

    assert connector.urls == ["ws://x/notifications/ws"]

    await session.close()


@pytest.mark.anyio
async def test_close_stops_publishing_and_closes_socket() -> None:
    connection = FakeConnection()
    channel, events = recording_channel()
    session = TransportSession("ws://x/notifications/ws", "tok", channel, connector=FakeConnector(connection))

    await session.start()
    await wait_for(lambda: session.connected)
    await session.close()
    connection.push(notification_frame("late"))
    await anyio.sleep(0.05)

    assert connection.closed is True
    assert session.connected is False
    assert session.running is False
    assert not any(isinstance(e, NotificationReceived) for e in events)


@pytest.mark.anyio
async def test_heartbeat_sends_pings() -> None:
    connection = FakeConnection()
    channel, _ = recording_channel()
    session = TransportSession(
        "ws://x/notifications/ws",
        "tok",
        channel,
        connector=FakeConnector(connection),
        ping_interval=0.01,
    )

    await session.start()
    await wait_for(lambda: {"type": "ping"} in connection.sent)

    assert connection.sent[0]["type"] == "join"

    await session.close()


@pytest.mark.anyio
async def test_connector_exhaustion_ends_session() -> None:
    channel, events = recording_channel()
    session = TransportSession(
        "ws://x/notifications/ws", "tok", channel, connector=FakeConnector(FakeConnection(END))
    )

    await session.start()
    with anyio.fail_after(2):
        await session.wait_closed()

    assert session.connected is False
    assert session.rejected is False
    statuses = [e.connected for e in events if isinstance(e, ConnectionStatusChanged)]
    assert statuses == [True, False]


@pytest.mark.anyio
@pytest.mark.parametrize("data", [["admins"], "admins", None, {"rooms": "admins"}])
async def test_malformed_joined_frame_keeps_session_alive(data) -> None:
    connection = FakeConnection(
        json.dumps({"type": "joined", "data": data}),
        notification_frame("order-10-1", order_id=10),
    )
    channel, events = recording_channel()
    session = TransportSession(
        "ws://x/notifications/ws", "tok", channel, connector=FakeConnector(connection)
    )

    await session.start()
    await wait_for(lambda: any(isinstance(e, NotificationReceived) for e in events))

    assert RoomsJoined(()) in events
    assert session.running is True
    assert session.connected is True

    await session.close()


@pytest.mark.anyio
async def test_cancelled_waiter_does_not_stop_the_session() -> None:
    channel, _ = recording_channel()
    session = TransportSession(
        "ws://x/notifications/ws", "tok", channel, connector=FakeConnector(FakeConnection())
    )
    await session.start()
    await wait_for(lambda: session.connected)

    waiter = asyncio.create_task(session.wait_closed())
    await anyio.sleep(0.01)
    waiter.cancel()
    await asyncio.gather(waiter, return_exceptions=True)

    assert session.running is True
    assert session.connected is True

    await session.close()
