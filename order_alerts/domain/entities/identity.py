"""Domain entity describing who is listening for notifications."""

from __future__ import annotations

from dataclasses import dataclass

ROLE_CUSTOMER = "customer"
ROLE_ADMIN = "admin"
ROLE_SUPER_ADMIN = "super_admin"
ROLE_RIDER = "rider"
ROLE_PRODUCT_MANAGER = "product_manager"

NOTIFICATION_ROLES = frozenset({ROLE_ADMIN, ROLE_SUPER_ADMIN, ROLE_RIDER})
ADMIN_ROLES = frozenset({ROLE_ADMIN, ROLE_SUPER_ADMIN})

ADMINS_ROOM = "admins"
RIDERS_ROOM = "riders"


def user_room(user_id: int) -> str:
    """Return the personal room name for ``user_id``."""

    return f"user-{user_id}"


@dataclass(frozen=True)
class Identity:
    """Authenticated user as far as notification routing is concerned."""

    user_id: int
    role: str

    def has_role(self, alias: str) -> bool:
        """Return ``True`` when the identity's role matches ``alias``."""

        return self.role.lower() == alias.lower()

    def is_admin(self) -> bool:
        """Return ``True`` for admins and super admins."""

        return self.role.lower() in ADMIN_ROLES

    def is_rider(self) -> bool:
        return self.has_role(ROLE_RIDER)

    def can_receive_notifications(self) -> bool:
        """Return ``True`` when the role is allowed on the notification socket."""

        return self.role.lower() in NOTIFICATION_ROLES

    def rooms(self) -> frozenset[str]:
        """Return every room this identity belongs to."""

        rooms = {user_room(self.user_id)}
        if self.is_admin():
            rooms.add(ADMINS_ROOM)
        if self.is_rider():
            rooms.add(RIDERS_ROOM)
        return frozenset(rooms)


__all__ = [
    "ADMINS_ROOM",
    "ADMIN_ROLES",
    "Identity",
    "NOTIFICATION_ROLES",
    "RIDERS_ROOM",
    "ROLE_ADMIN",
    "ROLE_CUSTOMER",
    "ROLE_PRODUCT_MANAGER",
    "ROLE_RIDER",
    "ROLE_SUPER_ADMIN",
    "user_room",
]
