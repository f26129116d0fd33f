"""Shared fixtures for the order notification test-suite."""

from __future__ import annotations

import os
import sys
from datetime import datetime, timezone
from pathlib import Path

import pytest

# Ensure the project root (which contains ``main`` and ``order_alerts``) is importable
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ.setdefault("APP_TIMEZONE", "UTC")
os.environ.setdefault("SERVER_URL", "ws://testserver")

from order_alerts.domain.entities import OrderNotification  # noqa: E402


@pytest.fixture
def anyio_backend() -> str:
    return "asyncio"


@pytest.fixture
def make_notification():
    """Return a factory building unread notifications with sensible defaults."""

    def factory(notification_id: str = "n-1", order_id: int = 1, **overrides) -> OrderNotification:
        values = {
            "id": notification_id,
            "order_id": order_id,
            "order_number": order_id,
            "customer_name": "Dilnoza",
            "customer_email": "dilnoza@example.com",
            "total": "125000.00",
            "item_count": 3,
            "timestamp": datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc),
            "message": f"New order #{order_id} from Dilnoza",
        }
        values.update(overrides)
        return OrderNotification(**values)

    return factory
