"""Websocket session that feeds server notifications into an event channel."""

from __future__ import annotations

import asyncio
import contextlib
import json
import logging
from typing import Any, AsyncIterable, Callable, Protocol

import websockets
from pydantic import ValidationError
from websockets.exceptions import ConnectionClosed

from order_alerts.domain.entities import (
    NOTIFICATION_TYPE_NEW_ORDER,
    NOTIFICATION_TYPE_ORDER_ASSIGNED,
)
from order_alerts.interfaces.api.schemas import OrderNotificationPayload

from .channel import (
    ConnectionStatusChanged,
    EventChannel,
    NotificationReceived,
    RoomsJoined,
)

logger = logging.getLogger(__name__)

NOTIFICATION_EVENT_TYPES = frozenset(
    {NOTIFICATION_TYPE_NEW_ORDER, NOTIFICATION_TYPE_ORDER_ASSIGNED}
)

# Close code the server uses when it refuses a join.
POLICY_VIOLATION = 1008


class Connection(Protocol):
    async def send(self, message: str) -> None: ...

    async def close(self) -> None: ...

    def __aiter__(self) -> Any: ...


Connector = Callable[[str], AsyncIterable[Connection]]


def websocket_connector(uri: str) -> AsyncIterable[Connection]:
    """Return the reconnecting ``websockets`` client for ``uri``.

    Iterating it yields a fresh connection after every drop and backs off
    exponentially while the server is unreachable.
    """

    return websockets.connect(uri, open_timeout=10)


def notifications_url(server_url: str) -> str:
    return f"{server_url.rstrip('/')}/notifications/ws"


class TransportSession:
    """Own exactly one notification socket for a signed-in staff member."""

    def __init__(
        self,
        url: str,
        token: str,
        channel: EventChannel,
        *,
        connector: Connector | None = None,
        ping_interval: float = 25.0,
    ) -> None:
        self._url = url
        self._token = token
        self._channel = channel
        self._connector = connector or websocket_connector
        self._ping_interval = ping_interval
        self._task: asyncio.Task | None = None
        self._connection: Connection | None = None
        self._connected = False
        self._rejected = False

    @property
    def connected(self) -> bool:
        return self._connected

    @property
    def rejected(self) -> bool:
        """``True`` once the server refused the join for this token."""

        return self._rejected

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def start(self) -> None:
        """Open the socket unless this session already has one."""

        if self.running:
            logger.debug("Notification session already running; not reconnecting")
            return
        self._rejected = False
        self._task = asyncio.create_task(self._run(), name="order-alerts-transport")

    async def close(self) -> None:
        """Close the socket and stop reading; nothing is published afterwards."""

        task, self._task = self._task, None
        connection, self._connection = self._connection, None
        if task is not None:
            task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await task
        if connection is not None:
            with contextlib.suppress(Exception):
                await connection.close()
        self._set_connected(False)

    async def wait_closed(self) -> None:
        """Wait until the session stops on its own (for example a rejected join)."""

        if self._task is not None:
            await asyncio.wait({self._task})

    async def _run(self) -> None:
        try:
            async for connection in self._connector(self._url):
                self._connection = connection
                try:
                    await self._serve(connection)
                except ConnectionClosed as exc:
                    if exc.rcvd is not None and exc.rcvd.code == POLICY_VIOLATION:
                        self._rejected = True
                        logger.error("Notification server rejected the join: %s", exc.rcvd.reason)
                        return
                    logger.warning("Notification socket dropped (%s); reconnecting", exc)
                finally:
                    self._connection = None
                    self._set_connected(False)
        except asyncio.CancelledError:
            raise
        except Exception:
            logger.exception("Notification transport stopped")
            self._set_connected(False)

    async def _serve(self, connection: Connection) -> None:
        await connection.send(json.dumps({"type": "join", "token": self._token}))
        self._set_connected(True)

        heartbeat = asyncio.create_task(self._heartbeat(connection))
        try:
            async for raw in connection:
                self._handle_frame(raw)
        finally:
            heartbeat.cancel()
            with contextlib.suppress(asyncio.CancelledError, ConnectionClosed):
                await heartbeat

    async def _heartbeat(self, connection: Connection) -> None:
        while True:
            await asyncio.sleep(self._ping_interval)
            await connection.send(json.dumps({"type": "ping"}))

    def _handle_frame(self, raw: str | bytes) -> None:
        try:
            message = json.loads(raw)
        except (TypeError, ValueError):
            logger.debug("Ignoring non-JSON frame")
            return
        if not isinstance(message, dict):
            return

        message_type = message.get("type")
        if message_type in NOTIFICATION_EVENT_TYPES:
            try:
                payload = OrderNotificationPayload.model_validate(message.get("data"))
            except ValidationError:
                logger.warning("Ignoring malformed %s event", message_type)
                return
            self._channel.publish(NotificationReceived(payload.to_entity()))
        elif message_type == "joined":
            data = message.get("data")
            rooms_value = data.get("rooms") if isinstance(data, dict) else None
            if not isinstance(rooms_value, list):
                rooms_value = []
            rooms = tuple(str(room) for room in rooms_value)
            logger.info("Listening for notifications in %s", ", ".join(rooms) or "no rooms")
            self._channel.publish(RoomsJoined(rooms))

    def _set_connected(self, connected: bool) -> None:
        if connected == self._connected:
            return
        self._connected = connected
        self._channel.publish(ConnectionStatusChanged(connected))


__all__ = [
    "Connector",
    "NOTIFICATION_EVENT_TYPES",
    "TransportSession",
    "notifications_url",
    "websocket_connector",
]
