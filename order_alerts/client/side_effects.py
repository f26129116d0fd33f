"""Best-effort attention cues fired for newly accepted notifications."""

from __future__ import annotations

import enum
import logging
import shutil
import subprocess
import sys
import time
from typing import Awaitable, Callable, Protocol, TextIO

from order_alerts.domain.entities import NOTIFICATION_TYPE_ORDER_ASSIGNED, OrderNotification

logger = logging.getLogger(__name__)


class DesktopPermission(str, enum.Enum):
    """Outcome of asking whether desktop notifications may be shown."""

    GRANTED = "granted"
    DENIED = "denied"
    DEFAULT = "default"
    UNSUPPORTED = "unsupported"


PermissionRequest = Callable[[], Awaitable[DesktopPermission | str]]


class Chime(Protocol):
    def play(self) -> None: ...


class DesktopBackend(Protocol):
    def is_supported(self) -> bool: ...

    def show(self, title: str, body: str, *, tag: str) -> None: ...


class TerminalBellChime:
    """Ring the terminal bell on ``stream``."""

    def __init__(self, stream: TextIO | None = None) -> None:
        self._stream = stream

    def play(self) -> None:
        stream = self._stream or sys.stdout
        stream.write("\a")
        stream.flush()


class NullChime:
    def play(self) -> None:
        return None


class NotifySendBackend:
    """Show desktop notifications through the freedesktop ``notify-send`` tool.

    The tag is passed as both the Canonical and dunst stacking hints so a
    second notification about the same order replaces the first one instead
    of piling up. The tool is started without waiting for it; finished
    processes are reaped on the next call and ones still running after
    ``timeout`` seconds are killed.
    """

    def __init__(self, executable: str = "notify-send", *, timeout: float = 5.0) -> None:
        self._executable = executable
        self._timeout = timeout
        self._running: list[tuple[subprocess.Popen, float]] = []

    def is_supported(self) -> bool:
        return shutil.which(self._executable) is not None

    def show(self, title: str, body: str, *, tag: str) -> None:
        self._reap()
        process = subprocess.Popen(
            [
                self._executable,
                "--app-name=Order Alerts",
                "--hint",
                f"string:x-canonical-private-synchronous:{tag}",
                "--hint",
                f"string:x-dunst-stack-tag:{tag}",
                title,
                body,
            ],
            stdin=subprocess.DEVNULL,
            stdout=subprocess.DEVNULL,
            stderr=subprocess.DEVNULL,
        )
        self._running.append((process, time.monotonic()))

    def _reap(self) -> None:
        now = time.monotonic()
        still_running = []
        for process, started in self._running:
            returncode = process.poll()
            if returncode is None:
                if now - started < self._timeout:
                    still_running.append((process, started))
                    continue
                process.kill()
                process.wait()
                logger.debug("Killed notify-send after %.1fs", now - started)
            elif returncode:
                logger.debug("notify-send exited with status %s", returncode)
        self._running = still_running


class NullDesktopBackend:
    def is_supported(self) -> bool:
        return False

    def show(self, title: str, body: str, *, tag: str) -> None:
        return None


async def negotiate_desktop_permission(
    backend: DesktopBackend,
    configured: DesktopPermission | str,
    request: PermissionRequest | None = None,
) -> DesktopPermission:
    """Resolve the desktop permission for this session.

    ``request`` is awaited only when the stored decision is still
    ``default``. A failing request leaves the permission at ``default``.
    """

    if not backend.is_supported():
        return DesktopPermission.UNSUPPORTED

    current = DesktopPermission(configured)
    if current is not DesktopPermission.DEFAULT or request is None:
        return current

    try:
        answer = await request()
    except Exception:  # noqa: BLE001 - asking is optional
        logger.debug("Desktop notification permission request failed", exc_info=True)
        return DesktopPermission.DEFAULT

    try:
        result = DesktopPermission(answer)
    except ValueError:
        logger.debug("Ignoring unknown permission answer %r", answer)
        return DesktopPermission.DEFAULT
    logger.info("Desktop notification permission: %s", result.value)
    return result


def _desktop_title(notification: OrderNotification) -> str:
    if notification.type == NOTIFICATION_TYPE_ORDER_ASSIGNED:
        return "Order Assigned"
    return "New Order Received!"


def _desktop_body(notification: OrderNotification) -> str:
    return notification.message or (
        f"Order #{notification.order_number} from {notification.customer_name}"
    )


class SideEffectDispatcher:
    """Play the chime and show a desktop notification without ever raising."""

    def __init__(
        self,
        *,
        chime: Chime | None = None,
        desktop: DesktopBackend | None = None,
        permission: DesktopPermission = DesktopPermission.DEFAULT,
    ) -> None:
        self._chime = chime or NullChime()
        self._desktop = desktop or NullDesktopBackend()
        self._permission = permission
        self._negotiated = False

    @property
    def permission(self) -> DesktopPermission:
        return self._permission

    async def negotiate(
        self,
        configured: DesktopPermission | str,
        request: PermissionRequest | None = None,
    ) -> DesktopPermission:
        """Run the capability check once and cache the outcome."""

        if not self._negotiated:
            self._permission = await negotiate_desktop_permission(
                self._desktop, configured, request
            )
            self._negotiated = True
        return self._permission

    def dispatch(self, notification: OrderNotification) -> None:
        self._play_chime()
        self._show_desktop(notification)

    def _play_chime(self) -> None:
        try:
            self._chime.play()
        except Exception:  # noqa: BLE001 - audio is best effort
            logger.debug("Could not play notification sound", exc_info=True)

    def _show_desktop(self, notification: OrderNotification) -> None:
        if self._permission is not DesktopPermission.GRANTED:
            return
        try:
            self._desktop.show(
                _desktop_title(notification),
                _desktop_body(notification),
                tag=notification.tag,
            )
        except Exception:  # noqa: BLE001 - desktop notifications are best effort
            logger.debug("Desktop notification failed", exc_info=True)


__all__ = [
    "Chime",
    "DesktopBackend",
    "DesktopPermission",
    "NotifySendBackend",
    "NullChime",
    "NullDesktopBackend",
    "PermissionRequest",
    "SideEffectDispatcher",
    "TerminalBellChime",
    "negotiate_desktop_permission",
]
