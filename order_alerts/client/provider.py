"""Lifecycle owner tying the session, store, side effects and panel together."""

from __future__ import annotations

import logging
from types import TracebackType

from order_alerts.config import Settings, get_settings
from order_alerts.domain.entities import Identity

from .channel import ConnectionStatusChanged, EventChannel, NotificationReceived
from .presentation import Navigator, NotificationPanel
from .session import Connector, TransportSession, notifications_url
from .side_effects import PermissionRequest, SideEffectDispatcher
from .store import NotificationStore

logger = logging.getLogger(__name__)


class NotificationAccessError(ValueError):
    """Raised when a role that does not receive notifications asks for them."""


class NotificationProvider:
    """Per-login notification context.

    Create one when an authorized staff member signs in and call :meth:`stop`
    (or leave the ``async with`` block) on logout. Instances share nothing,
    so tests can run several side by side.
    """

    def __init__(
        self,
        identity: Identity,
        token: str,
        *,
        navigator: Navigator,
        dispatcher: SideEffectDispatcher | None = None,
        connector: Connector | None = None,
        permission_request: PermissionRequest | None = None,
        settings: Settings | None = None,
    ) -> None:
        if not identity.can_receive_notifications():
            raise NotificationAccessError(
                f"Role '{identity.role}' does not receive order notifications"
            )

        self._settings = settings or get_settings()
        self.identity = identity
        self.channel = EventChannel()
        self.store = NotificationStore()
        self.dispatcher = dispatcher or SideEffectDispatcher()
        self.panel = NotificationPanel(
            self.store, navigator, badge_cap=self._settings.badge_cap
        )
        self._permission_request = permission_request
        self.session = TransportSession(
            notifications_url(self._settings.server_url),
            token,
            self.channel,
            connector=connector,
            ping_interval=self._settings.ping_interval,
        )
        self.channel.subscribe(NotificationReceived, self._on_notification)
        self.channel.subscribe(ConnectionStatusChanged, self._on_connection_status)
        self._started = False

    @property
    def connected(self) -> bool:
        return self.panel.connected

    async def start(self) -> None:
        """Negotiate desktop permission once, then open the socket."""

        if self.channel.closed:
            raise RuntimeError("A stopped notification provider cannot be restarted")
        if self._started:
            return
        self._started = True
        await self.dispatcher.negotiate(
            self._settings.desktop_notifications, self._permission_request
        )
        await self.session.start()
        logger.info(
            "Notifications started for user %s (%s)", self.identity.user_id, self.identity.role
        )

    async def stop(self) -> None:
        """Close the socket and drop every subscriber."""

        await self.session.close()
        self.channel.close()
        logger.info("Notifications stopped for user %s", self.identity.user_id)

    async def __aenter__(self) -> "NotificationProvider":
        await self.start()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.stop()

    def _on_notification(self, event: NotificationReceived) -> None:
        notification = event.notification
        if not self.store.ingest(notification):
            logger.debug("Dropping duplicate notification %s", notification.id)
            return
        logger.info("New notification %s: %s", notification.id, notification.message)
        self.dispatcher.dispatch(notification)

    def _on_connection_status(self, event: ConnectionStatusChanged) -> None:
        self.panel.connected = event.connected


__all__ = ["NotificationAccessError", "NotificationProvider"]
