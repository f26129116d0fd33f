"""Connection management helpers for notification websockets."""

from __future__ import annotations

import logging
from collections import defaultdict
from typing import Any, DefaultDict, Iterable, Set

from fastapi import WebSocket

logger = logging.getLogger(__name__)


class RoomConnectionManager:
    """Manage active websocket connections grouped by room."""

    def __init__(self) -> None:
        self._rooms: DefaultDict[str, Set[WebSocket]] = defaultdict(set)
        self._memberships: dict[WebSocket, set[str]] = {}

    async def connect(self, websocket: WebSocket) -> None:
        """Accept the websocket connection and track it without any room."""

        await websocket.accept()
        self._memberships.setdefault(websocket, set())

    def join(self, websocket: WebSocket, rooms: Iterable[str]) -> set[str]:
        """Add ``websocket`` to ``rooms`` and return its full membership.

        Joining a room twice has no effect, so a client repeating its join
        message never ends up subscribed twice.
        """

        membership = self._memberships.setdefault(websocket, set())
        for room in rooms:
            self._rooms[room].add(websocket)
            membership.add(room)
        return set(membership)

    def disconnect(self, websocket: WebSocket) -> None:
        """Remove ``websocket`` from every room it joined."""

        rooms = self._memberships.pop(websocket, set())
        for room in rooms:
            members = self._rooms.get(room)
            if members is None:
                continue
            members.discard(websocket)
            if not members:
                self._rooms.pop(room, None)

    def rooms_of(self, websocket: WebSocket) -> set[str]:
        return set(self._memberships.get(websocket, set()))

    def connection_count(self) -> int:
        return len(self._memberships)

    def room_sizes(self) -> dict[str, int]:
        return {room: len(members) for room, members in self._rooms.items()}

    async def emit(self, rooms: Iterable[str], message: dict[str, Any]) -> int:
        """Send ``message`` once to every socket in any of ``rooms``.

        Returns the number of sockets the message was written to. Sockets that
        fail to receive the message are dropped.
        """

        targets: set[WebSocket] = set()
        for room in rooms:
            targets.update(self._rooms.get(room, set()))

        delivered = 0
        for connection in list(targets):
            try:
                await connection.send_json(message)
            except Exception:  # noqa: BLE001 - any send failure means the socket is gone
                logger.warning("Dropping notification socket after a failed send")
                self.disconnect(connection)
            else:
                delivered += 1
        return delivered

    async def close_all(self, code: int = 1001) -> None:
        """Close every tracked socket, used when the server shuts down."""

        for connection in list(self._memberships):
            try:
                await connection.close(code=code)
            except Exception:  # noqa: BLE001 - the socket may already be gone
                logger.debug("Socket was already closed during shutdown")
            self.disconnect(connection)


notification_manager = RoomConnectionManager()


__all__ = ["RoomConnectionManager", "notification_manager"]
