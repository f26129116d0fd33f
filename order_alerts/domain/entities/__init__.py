"""Domain entities exposed by the application."""

from .identity import (
    ADMINS_ROOM,
    ADMIN_ROLES,
    NOTIFICATION_ROLES,
    RIDERS_ROOM,
    ROLE_ADMIN,
    ROLE_CUSTOMER,
    ROLE_PRODUCT_MANAGER,
    ROLE_RIDER,
    ROLE_SUPER_ADMIN,
    Identity,
    user_room,
)
from .notification import (
    NOTIFICATION_TYPE_NEW_ORDER,
    NOTIFICATION_TYPE_ORDER_ASSIGNED,
    PRIORITY_HIGH,
    PRIORITY_NORMAL,
    OrderNotification,
)
from .order import OrderSummary

__all__ = [
    "ADMINS_ROOM",
    "ADMIN_ROLES",
    "NOTIFICATION_ROLES",
    "RIDERS_ROOM",
    "ROLE_ADMIN",
    "ROLE_CUSTOMER",
    "ROLE_PRODUCT_MANAGER",
    "ROLE_RIDER",
    "ROLE_SUPER_ADMIN",
    "Identity",
    "user_room",
    "NOTIFICATION_TYPE_NEW_ORDER",
    "NOTIFICATION_TYPE_ORDER_ASSIGNED",
    "PRIORITY_HIGH",
    "PRIORITY_NORMAL",
    "OrderNotification",
    "OrderSummary",
]
