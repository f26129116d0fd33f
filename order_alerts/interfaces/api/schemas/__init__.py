from .notification import (
    ConnectionStatusRead,
    JoinMessage,
    OrderNotificationPayload,
)

__all__ = [
    "ConnectionStatusRead",
    "JoinMessage",
    "OrderNotificationPayload",
]
