"""Deliver notifications only once the outermost transaction commits."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Iterable

from sqlalchemy import event
from sqlalchemy.orm import Session, SessionTransaction

from order_alerts.domain.entities import OrderNotification

from .publisher import dispatch_notification

logger = logging.getLogger(__name__)

Dispatcher = Callable[[OrderNotification, Iterable[str]], None]

_PENDING_KEY = "order_alerts.pending_notifications"


@dataclass
class _PendingNotification:
    notification: OrderNotification
    rooms: frozenset[str]
    dispatcher: Dispatcher
    # Innermost savepoint the notification was queued in; ``None`` for the root.
    savepoint: SessionTransaction | None


def publish_after_commit(
    session: Session,
    notification: OrderNotification,
    rooms: Iterable[str],
    *,
    dispatcher: Dispatcher | None = None,
) -> None:
    """Queue ``notification`` on ``session`` until its transaction commits.

    Releasing a savepoint does not deliver anything; only the commit of the
    outermost transaction does. Rolling back a savepoint drops what was queued
    inside it, and rolling back the outermost transaction drops everything.
    """

    pending = session.info.setdefault(_PENDING_KEY, [])
    pending.append(
        _PendingNotification(
            notification=notification,
            rooms=frozenset(rooms),
            dispatcher=dispatcher or dispatch_notification,
            savepoint=session.get_nested_transaction(),
        )
    )

    if not event.contains(session, "after_commit", _deliver_pending):
        event.listen(session, "after_commit", _deliver_pending)
        event.listen(session, "after_soft_rollback", _discard_pending)


def pending_notifications(session: Session) -> list[OrderNotification]:
    """Return the notifications still waiting for ``session`` to commit."""

    return [entry.notification for entry in session.info.get(_PENDING_KEY, [])]


def _deliver_pending(session: Session) -> None:
    savepoint = session.get_nested_transaction()
    if savepoint is not None:
        # A released savepoint hands its notifications to the enclosing one.
        parent = savepoint.parent if savepoint.parent and savepoint.parent.nested else None
        for entry in session.info.get(_PENDING_KEY, []):
            if entry.savepoint is savepoint:
                entry.savepoint = parent
        return

    for entry in session.info.pop(_PENDING_KEY, []):
        try:
            entry.dispatcher(entry.notification, entry.rooms)
        except Exception:  # noqa: BLE001 - the order is already committed
            logger.exception(
                "Failed to dispatch notification %s for order %s",
                entry.notification.id,
                entry.notification.order_id,
            )


def _discard_pending(session: Session, previous_transaction: SessionTransaction) -> None:
    pending = session.info.get(_PENDING_KEY, [])
    if previous_transaction.parent is None:
        discarded = pending
        session.info.pop(_PENDING_KEY, None)
    else:
        discarded = [entry for entry in pending if entry.savepoint is previous_transaction]
        pending[:] = [entry for entry in pending if entry.savepoint is not previous_transaction]
    if discarded:
        logger.info(
            "Transaction rolled back; discarding %s pending notification(s)", len(discarded)
        )


__all__ = ["publish_after_commit", "pending_notifications"]
