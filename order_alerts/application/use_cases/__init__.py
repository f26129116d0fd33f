"""Aggregate application use cases."""

from .notifications import notify_new_order, notify_rider_assigned

__all__ = [
    "notify_new_order",
    "notify_rider_assigned",
]
