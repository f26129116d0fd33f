"""Client-side list of received notifications and their read state."""

from __future__ import annotations

from collections import deque
from dataclasses import replace
from typing import Iterator

from order_alerts.domain.entities import OrderNotification


class NotificationStore:
    """Newest-first, id-deduplicated notifications held for one session.

    ``unread_count`` is maintained incrementally so the badge can be updated
    without scanning the list; :meth:`count_unread` recomputes it and both
    always agree.
    """

    def __init__(self) -> None:
        self._entries: deque[OrderNotification] = deque()
        self._by_id: dict[str, OrderNotification] = {}
        self._unread = 0

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[OrderNotification]:
        return iter(self.notifications)

    def __contains__(self, notification_id: object) -> bool:
        return notification_id in self._by_id

    @property
    def notifications(self) -> tuple[OrderNotification, ...]:
        """Return a snapshot of the list, newest first."""

        return tuple(self._entries)

    @property
    def unread_count(self) -> int:
        return self._unread

    def count_unread(self) -> int:
        """Recompute the unread count from the entries themselves."""

        return sum(1 for entry in self._entries if not entry.read)

    def get(self, notification_id: str) -> OrderNotification | None:
        return self._by_id.get(notification_id)

    def ingest(self, notification: OrderNotification) -> bool:
        """Prepend ``notification`` unless its id is already stored.

        Returns ``True`` when the notification was accepted. Incoming entries
        always start unread; a duplicate never replaces the stored entry.
        """

        if notification.id in self._by_id:
            return False

        entry = replace(notification, read=False)
        self._entries.appendleft(entry)
        self._by_id[entry.id] = entry
        self._unread += 1
        return True

    def mark_as_read(self, notification_id: str) -> bool:
        """Mark one entry as read; returns ``True`` if it was unread."""

        entry = self._by_id.get(notification_id)
        if entry is None or entry.read:
            return False
        entry.read = True
        self._unread = max(0, self._unread - 1)
        return True

    def mark_all_as_read(self) -> None:
        for entry in self._entries:
            entry.read = True
        self._unread = 0

    def clear_all(self) -> None:
        self._entries.clear()
        self._by_id.clear()
        self._unread = 0


__all__ = ["NotificationStore"]
