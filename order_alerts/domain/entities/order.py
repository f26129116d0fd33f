"""Domain entity describing the order data a notification is built from."""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal


@dataclass(frozen=True)
class OrderSummary:
    """Committed order fields handed over by the order-creation path."""

    id: int
    total: Decimal | str
    item_count: int
    customer_first_name: str | None = None
    customer_username: str | None = None
    customer_email: str | None = None

    @property
    def customer_name(self) -> str:
        """Return the name shown to staff, falling back to ``Customer``."""

        return self.customer_first_name or self.customer_username or "Customer"


__all__ = ["OrderSummary"]
