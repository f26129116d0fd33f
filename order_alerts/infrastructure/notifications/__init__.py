"""Realtime notification helpers for the infrastructure layer."""

from .commit_hooks import pending_notifications, publish_after_commit
from .manager import RoomConnectionManager, notification_manager
from .publisher import (
    NotificationPublisher,
    dispatch_notification,
    notification_publisher,
    serialize_notification,
)

__all__ = [
    "RoomConnectionManager",
    "notification_manager",
    "NotificationPublisher",
    "notification_publisher",
    "dispatch_notification",
    "serialize_notification",
    "publish_after_commit",
    "pending_notifications",
]
