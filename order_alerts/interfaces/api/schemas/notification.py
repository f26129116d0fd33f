"""Pydantic models describing notification payloads."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from order_alerts.domain.entities import (
    NOTIFICATION_TYPE_NEW_ORDER,
    PRIORITY_HIGH,
    OrderNotification,
)


class OrderNotificationPayload(BaseModel):
    """JSON shape of an order notification exchanged over the websocket."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: str = Field(..., min_length=1)
    type: str = NOTIFICATION_TYPE_NEW_ORDER
    order_id: int
    order_number: int
    customer_name: str
    customer_email: str | None = None
    total: str
    item_count: int = Field(default=0, ge=0)
    timestamp: datetime
    message: str = ""
    priority: str = PRIORITY_HIGH

    def to_entity(self) -> OrderNotification:
        """Return an unread :class:`OrderNotification` built from the payload."""

        return OrderNotification(
            id=self.id,
            order_id=self.order_id,
            order_number=self.order_number,
            customer_name=self.customer_name,
            customer_email=self.customer_email,
            total=self.total,
            item_count=self.item_count,
            timestamp=self.timestamp,
            message=self.message,
            priority=self.priority,
            type=self.type,
            read=False,
        )


class JoinMessage(BaseModel):
    """First message a client sends after the socket opens."""

    type: str
    token: str = Field(..., min_length=1)


class ConnectionStatusRead(BaseModel):
    """Summary of the live notification sockets."""

    connections: int
    rooms: dict[str, int] = Field(default_factory=dict)


__all__ = [
    "ConnectionStatusRead",
    "JoinMessage",
    "OrderNotificationPayload",
]
