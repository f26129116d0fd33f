"""Domain entity representing an order notification."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

NOTIFICATION_TYPE_NEW_ORDER = "new-order"
NOTIFICATION_TYPE_ORDER_ASSIGNED = "order-assigned"

PRIORITY_HIGH = "high"
PRIORITY_NORMAL = "normal"


@dataclass
class OrderNotification:
    """Snapshot of an order pushed to staff when something happens to it.

    The customer and total fields are captured when the event is emitted and
    are never refreshed afterwards. ``read`` is only ever changed on the
    receiving side.
    """

    id: str
    order_id: int
    order_number: int
    customer_name: str
    total: str
    item_count: int
    timestamp: datetime
    message: str
    priority: str = PRIORITY_HIGH
    type: str = NOTIFICATION_TYPE_NEW_ORDER
    customer_email: str | None = None
    read: bool = False

    @property
    def tag(self) -> str:
        """Identifier shared by every notification about the same order."""

        return f"order-{self.order_id}"


__all__ = [
    "NOTIFICATION_TYPE_NEW_ORDER",
    "NOTIFICATION_TYPE_ORDER_ASSIGNED",
    "PRIORITY_HIGH",
    "PRIORITY_NORMAL",
    "OrderNotification",
]
