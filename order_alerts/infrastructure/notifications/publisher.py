"""Utility helpers to push order notifications to websocket rooms."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Iterable

from anyio import from_thread

from order_alerts.domain.entities import OrderNotification

from .manager import RoomConnectionManager, notification_manager

logger = logging.getLogger(__name__)


class NotificationPublisher:
    """Serialize notifications and schedule their delivery to rooms."""

    def __init__(self, manager: RoomConnectionManager) -> None:
        self._manager = manager
        self._pending: set[asyncio.Task] = set()

    @property
    def pending_tasks(self) -> frozenset[asyncio.Task]:
        return frozenset(self._pending)

    def dispatch(self, notification: OrderNotification, rooms: Iterable[str]) -> None:
        """Schedule ``notification`` to be delivered to every socket in ``rooms``."""

        targets = sorted({room for room in rooms if room})
        if not targets:
            return

        message = {"type": notification.type, "data": serialize_notification(notification)}
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            self._send_from_thread(targets, message)
        else:
            task = loop.create_task(self._send(targets, message))
            self._pending.add(task)
            task.add_done_callback(self._pending.discard)

    async def _send(self, rooms: list[str], message: dict[str, Any]) -> None:
        delivered = await self._manager.emit(rooms, message)
        logger.info(
            "Delivered %s notification %s to %s socket(s) in %s",
            message["type"],
            message["data"]["id"],
            delivered,
            ", ".join(rooms),
        )

    def _send_from_thread(self, rooms: list[str], message: dict[str, Any]) -> None:
        try:
            from_thread.run(self._send, rooms, message)
        except RuntimeError:
            # Not an anyio worker thread, so there is no loop to hand off to.
            logger.warning(
                "No event loop available; notification %s was not delivered",
                message["data"]["id"],
            )


def serialize_notification(notification: OrderNotification) -> dict[str, Any]:
    """Return the camelCase websocket payload for ``notification``."""

    payload: dict[str, Any] = {
        "id": notification.id,
        "type": notification.type,
        "orderId": notification.order_id,
        "orderNumber": notification.order_number,
        "customerName": notification.customer_name,
        "total": notification.total,
        "itemCount": notification.item_count,
        "timestamp": notification.timestamp.isoformat(),
        "message": notification.message,
        "priority": notification.priority,
    }
    if notification.customer_email:
        payload["customerEmail"] = notification.customer_email
    return payload


notification_publisher = NotificationPublisher(notification_manager)


def dispatch_notification(notification: OrderNotification, rooms: Iterable[str]) -> None:
    """Public helper that delegates to the shared publisher instance."""

    notification_publisher.dispatch(notification, rooms)


__all__ = [
    "NotificationPublisher",
    "notification_publisher",
    "dispatch_notification",
    "serialize_notification",
]
