"""Utility helpers to generate and dispatch order notifications."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Iterable

from sqlalchemy.orm import Session

from order_alerts.domain.entities import (
    ADMINS_ROOM,
    NOTIFICATION_TYPE_NEW_ORDER,
    NOTIFICATION_TYPE_ORDER_ASSIGNED,
    PRIORITY_HIGH,
    PRIORITY_NORMAL,
    OrderNotification,
    OrderSummary,
    user_room,
)
from order_alerts.infrastructure.notifications import publish_after_commit
from order_alerts.utils import ensure_app_timezone, now_in_app_timezone, to_epoch_millis


def _format_total(total: Decimal | str) -> str:
    if isinstance(total, Decimal):
        return format(total, "f")
    value = str(total).strip()
    if not value:
        raise ValueError("Order total is required")
    return value


def _build_notification(
    order: OrderSummary,
    *,
    notification_type: str,
    message: str,
    priority: str,
    now: datetime | None,
) -> OrderNotification:
    timestamp = ensure_app_timezone(now) if now is not None else now_in_app_timezone()
    return OrderNotification(
        id=f"order-{order.id}-{to_epoch_millis(timestamp)}",
        order_id=order.id,
        order_number=order.id,
        customer_name=order.customer_name,
        customer_email=order.customer_email,
        total=_format_total(order.total),
        item_count=order.item_count,
        timestamp=timestamp,
        message=message,
        priority=priority,
        type=notification_type,
    )


def build_new_order_notification(
    order: OrderSummary, *, now: datetime | None = None
) -> OrderNotification:
    """Return the notification staff receive when ``order`` is placed."""

    return _build_notification(
        order,
        notification_type=NOTIFICATION_TYPE_NEW_ORDER,
        message=f"New order #{order.id} from {order.customer_name}",
        priority=PRIORITY_HIGH,
        now=now,
    )


def build_rider_assignment_notification(
    order: OrderSummary, *, now: datetime | None = None
) -> OrderNotification:
    """Return the notification a rider receives when ``order`` is assigned."""

    return _build_notification(
        order,
        notification_type=NOTIFICATION_TYPE_ORDER_ASSIGNED,
        message=f"Order #{order.id} for {order.customer_name} was assigned to you",
        priority=PRIORITY_NORMAL,
        now=now,
    )


def new_order_rooms(admin_ids: Iterable[int | None] = ()) -> set[str]:
    """Return the rooms that should hear about a new order."""

    rooms = {ADMINS_ROOM}
    rooms.update(user_room(admin_id) for admin_id in admin_ids if admin_id)
    return rooms


def notify_new_order(
    session: Session,
    *,
    order: OrderSummary,
    admin_ids: Iterable[int | None] = (),
    now: datetime | None = None,
) -> OrderNotification:
    """Tell every connected admin about ``order`` once ``session`` commits.

    Call this from the order-creation path inside the transaction that writes
    the order. Nothing is sent if that transaction rolls back.
    """

    notification = build_new_order_notification(order, now=now)
    publish_after_commit(session, notification, new_order_rooms(admin_ids))
    return notification


def notify_rider_assigned(
    session: Session,
    *,
    order: OrderSummary,
    rider_id: int,
    now: datetime | None = None,
) -> OrderNotification:
    """Tell ``rider_id`` about an assignment once ``session`` commits."""

    if not rider_id:
        raise ValueError("Rider ID is required")

    notification = build_rider_assignment_notification(order, now=now)
    publish_after_commit(session, notification, {user_room(rider_id)})
    return notification


__all__ = [
    "build_new_order_notification",
    "build_rider_assignment_notification",
    "new_order_rooms",
    "notify_new_order",
    "notify_rider_assigned",
]
