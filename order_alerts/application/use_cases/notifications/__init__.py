"""Public helpers for emitting order notifications."""

from .events import (
    build_new_order_notification,
    build_rider_assignment_notification,
    new_order_rooms,
    notify_new_order,
    notify_rider_assigned,
)

__all__ = [
    "build_new_order_notification",
    "build_rider_assignment_notification",
    "new_order_rooms",
    "notify_new_order",
    "notify_rider_assigned",
]
