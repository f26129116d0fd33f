"""In-process channel between the transport session and its consumers."""

from __future__ import annotations

import logging
from collections import defaultdict
from dataclasses import dataclass
from typing import Callable, DefaultDict, TypeVar

from order_alerts.domain.entities import OrderNotification

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class NotificationReceived:
    """A notification frame arrived on the socket."""

    notification: OrderNotification


@dataclass(frozen=True)
class ConnectionStatusChanged:
    """The socket opened or dropped."""

    connected: bool


@dataclass(frozen=True)
class RoomsJoined:
    """The server confirmed which rooms the session listens to."""

    rooms: tuple[str, ...]


ChannelEvent = NotificationReceived | ConnectionStatusChanged | RoomsJoined
E = TypeVar("E", NotificationReceived, ConnectionStatusChanged, RoomsJoined)


class EventChannel:
    """Synchronous publish/subscribe hub keyed by event type.

    Handlers run to completion, in subscription order, inside ``publish``.
    Once the channel is closed every later ``publish`` is ignored so that
    frames arriving during teardown never reach discarded state.
    """

    def __init__(self) -> None:
        self._handlers: DefaultDict[type, list[Callable]] = defaultdict(list)
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def subscribe(self, event_type: type[E], handler: Callable[[E], None]) -> Callable[[], None]:
        """Register ``handler`` for ``event_type`` and return an unsubscribe callable."""

        if self._closed:
            raise RuntimeError("Cannot subscribe to a closed channel")
        self._handlers[event_type].append(handler)

        def unsubscribe() -> None:
            handlers = self._handlers.get(event_type, [])
            if handler in handlers:
                handlers.remove(handler)

        return unsubscribe

    def publish(self, event: ChannelEvent) -> None:
        if self._closed:
            logger.debug("Dropping %s published after close", type(event).__name__)
            return
        for handler in list(self._handlers.get(type(event), [])):
            handler(event)

    def close(self) -> None:
        self._closed = True
        self._handlers.clear()


__all__ = [
    "ChannelEvent",
    "ConnectionStatusChanged",
    "EventChannel",
    "NotificationReceived",
    "RoomsJoined",
]
