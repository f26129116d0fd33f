"""View model for the notification bell and its dropdown panel."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation
from typing import Callable

from order_alerts.domain.entities import (
    NOTIFICATION_TYPE_ORDER_ASSIGNED,
    ROLE_RIDER,
    OrderNotification,
)

from .store import NotificationStore

BADGE_CAP = 9

DEFAULT_CURRENCY = "UZS"
CURRENCY_SYMBOLS = {"UZS": "сум", "USD": "$", "EUR": "€", "RUB": "₽"}

Navigator = Callable[[int], None]


def badge_label(count: int, cap: int = BADGE_CAP) -> str | None:
    """Return the badge text for ``count`` unread entries, ``None`` when hidden."""

    if count <= 0:
        return None
    if count > cap:
        return f"{cap}+"
    return str(count)


def format_time_ago(value: datetime, now: datetime | None = None) -> str:
    """Return a short relative time such as ``5m ago``."""

    reference = now or datetime.now(timezone.utc)
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    if reference.tzinfo is None:
        reference = reference.replace(tzinfo=timezone.utc)

    seconds = int((reference - value).total_seconds())
    if seconds < 60:
        return "just now"
    if seconds < 3600:
        return f"{seconds // 60}m ago"
    if seconds < 86400:
        return f"{seconds // 3600}h ago"
    return f"{seconds // 86400}d ago"


def format_price(amount: Decimal | str | float, currency: str = DEFAULT_CURRENCY) -> str:
    """Format ``amount`` the way the storefront prints prices.

    Som amounts use spaces between thousands and the ``сум`` suffix; other
    currencies get a leading symbol and two decimals.
    """

    code = currency if currency in CURRENCY_SYMBOLS else DEFAULT_CURRENCY
    symbol = CURRENCY_SYMBOLS[code]
    try:
        value = Decimal(str(amount))
    except InvalidOperation:
        value = Decimal("NaN")
    if not value.is_finite():
        return f"0 {symbol}"

    if code == "UZS":
        if value == value.to_integral_value():
            grouped = f"{int(value):,}".replace(",", " ")
        else:
            grouped = f"{value:,.2f}".replace(",", " ").replace(".", ",")
        return f"{grouped} {symbol}"
    return f"{symbol}{value:,.2f}"


def order_detail_path(role: str, order_id: int) -> str:
    """Return the client route showing ``order_id`` for a user with ``role``."""

    if role.lower() == ROLE_RIDER:
        return f"/rider?orderId={order_id}"
    return f"/admin/orders?orderId={order_id}"


@dataclass(frozen=True)
class PanelRow:
    """One line of the notification panel."""

    notification_id: str
    order_id: int
    title: str
    message: str
    customer_name: str
    total_label: str
    time_label: str
    read: bool

    @property
    def emphasized(self) -> bool:
        return not self.read


def _row_title(notification: OrderNotification) -> str:
    if notification.type == NOTIFICATION_TYPE_ORDER_ASSIGNED:
        return f"Order #{notification.order_number} assigned"
    return f"New order #{notification.order_number}"


class NotificationPanel:
    """Bell badge plus dropdown list backed by a :class:`NotificationStore`."""

    def __init__(
        self,
        store: NotificationStore,
        navigator: Navigator,
        *,
        badge_cap: int = BADGE_CAP,
        currency: str = DEFAULT_CURRENCY,
    ) -> None:
        self._store = store
        self._navigator = navigator
        self._badge_cap = badge_cap
        self._currency = currency
        self.connected = False

    @property
    def badge(self) -> str | None:
        return badge_label(self._store.unread_count, self._badge_cap)

    @property
    def show_mark_all_read(self) -> bool:
        return self._store.unread_count > 0

    @property
    def show_clear_all(self) -> bool:
        return len(self._store) > 0

    @property
    def connection_indicator(self) -> str:
        return "connected" if self.connected else "disconnected"

    def rows(self, now: datetime | None = None) -> list[PanelRow]:
        return [
            PanelRow(
                notification_id=notification.id,
                order_id=notification.order_id,
                title=_row_title(notification),
                message=notification.message,
                customer_name=notification.customer_name,
                total_label=format_price(notification.total, self._currency),
                time_label=format_time_ago(notification.timestamp, now),
                read=notification.read,
            )
            for notification in self._store.notifications
        ]

    def click(self, notification_id: str) -> bool:
        """Mark the entry read and open its order; ``False`` if it is unknown."""

        notification = self._store.get(notification_id)
        if notification is None:
            return False
        self._store.mark_as_read(notification_id)
        self._navigator(notification.order_id)
        return True

    def mark_all_read(self) -> None:
        self._store.mark_all_as_read()

    def clear_all(self) -> None:
        self._store.clear_all()

    def render_text(self, now: datetime | None = None) -> str:
        """Return a plain-text rendering of the badge and the panel."""

        badge = self.badge
        header = "Notifications"
        if badge:
            header += f" [{badge}]"
        lines = [f"{header} ({self.connection_indicator})"]

        rows = self.rows(now)
        if not rows:
            lines.append("  No notifications")
            return "\n".join(lines)

        for row in rows:
            marker = "*" if row.emphasized else " "
            lines.append(f"{marker} {row.title} - {row.customer_name} - {row.total_label} ({row.time_label})")

        actions = []
        if self.show_mark_all_read:
            actions.append("mark all read")
        if self.show_clear_all:
            actions.append("clear all")
        lines.append("  actions: " + ", ".join(actions))
        return "\n".join(lines)


__all__ = [
    "BADGE_CAP",
    "NotificationPanel",
    "PanelRow",
    "badge_label",
    "format_price",
    "format_time_ago",
    "order_detail_path",
]
