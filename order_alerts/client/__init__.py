"""Staff-side notification client: transport, store, side effects and panel."""

from .channel import (
    ConnectionStatusChanged,
    EventChannel,
    NotificationReceived,
    RoomsJoined,
)
from .presentation import NotificationPanel, PanelRow, badge_label
from .provider import NotificationAccessError, NotificationProvider
from .session import TransportSession
from .side_effects import DesktopPermission, SideEffectDispatcher
from .store import NotificationStore

__all__ = [
    "ConnectionStatusChanged",
    "DesktopPermission",
    "EventChannel",
    "NotificationAccessError",
    "NotificationPanel",
    "NotificationProvider",
    "NotificationReceived",
    "NotificationStore",
    "PanelRow",
    "RoomsJoined",
    "SideEffectDispatcher",
    "TransportSession",
    "badge_label",
]
