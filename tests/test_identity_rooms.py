"""Tests for identity roles and notification room membership."""

from __future__ import annotations

import pytest

from order_alerts.domain.entities import Identity, OrderSummary, user_room


@pytest.mark.parametrize(
    ("role", "expected"),
    [
        ("admin", {"admins", "user-1"}),
        ("super_admin", {"admins", "user-1"}),
        ("SUPER_ADMIN", {"admins", "user-1"}),
        ("rider", {"riders", "user-1"}),
        ("customer", {"user-1"}),
    ],
)
def test_rooms_by_role(role: str, expected: set[str]) -> None:
    assert Identity(user_id=1, role=role).rooms() == expected


@pytest.mark.parametrize(
    ("role", "allowed"),
    [
        ("admin", True),
        ("super_admin", True),
        ("rider", True),
        ("customer", False),
        ("product_manager", False),
    ],
)
def test_only_staff_roles_receive_notifications(role: str, allowed: bool) -> None:
    assert Identity(user_id=1, role=role).can_receive_notifications() is allowed


def test_user_room_name() -> None:
    assert user_room(42) == "user-42"


@pytest.mark.parametrize(
    ("first_name", "username", "expected"),
    [
        ("Dilnoza", "dilnoza99", "Dilnoza"),
        (None, "dilnoza99", "dilnoza99"),
        ("", "", "Customer"),
        (None, None, "Customer"),
    ],
)
def test_customer_name_fallback(first_name, username, expected: str) -> None:
    order = OrderSummary(
        id=1,
        total="1000",
        item_count=1,
        customer_first_name=first_name,
        customer_username=username,
    )

    assert order.customer_name == expected
