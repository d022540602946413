"""Data models for bills, line items and dashboard figures."""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal

from .errors import BillingError


def to_decimal(value: Decimal | int | float | str) -> Decimal:
    """Convert a user-supplied amount to Decimal.

    Floats go through ``str`` so that 0.1 becomes Decimal("0.1") rather
    than its binary expansion.
    """
    if isinstance(value, Decimal):
        return value
    if isinstance(value, float):
        return Decimal(str(value))
    return Decimal(value)


@dataclass
class LineItem:
    """One product line submitted as part of a bill."""

    product_name: str
    quantity: int
    price_per_unit: Decimal

    @property
    def line_total(self) -> Decimal:
        return self.quantity * to_decimal(self.price_per_unit)


@dataclass
class Allocation:
    """Computed money fields for one line item."""

    line_total: Decimal
    paid_amount: Decimal
    remaining_amount: Decimal


@dataclass
class BillRecord:
    """A persisted bill row.

    ``items`` is only filled by a group lookup and holds every line item of
    the bill group in ID order.
    """

    id: int
    group_id: str
    customer_name: str
    product_name: str
    quantity: int
    price_per_unit: Decimal
    total: Decimal
    paid_amount: Decimal
    remaining_amount: Decimal
    created_at: str = ""
    updated_at: str = ""
    items: list[LineItem] = field(default_factory=list)

    @classmethod
    def from_row(cls, row: dict) -> BillRecord:
        return cls(
            id=row["id"],
            group_id=row.get("group_id") or "",
            customer_name=row["customer_name"],
            product_name=row["product_name"],
            quantity=int(row["quantity"]),
            price_per_unit=Decimal(str(row["price_per_unit"])),
            total=Decimal(str(row["total"])),
            paid_amount=Decimal(str(row["paid_amount"])),
            remaining_amount=Decimal(str(row["remaining_amount"])),
            created_at=row.get("created_at") or "",
            updated_at=row.get("updated_at") or "",
        )

    def to_line_item(self) -> LineItem:
        return LineItem(
            product_name=self.product_name,
            quantity=self.quantity,
            price_per_unit=self.price_per_unit,
        )


@dataclass
class BillResult:
    """Outcome of a create, update or delete call."""

    success: bool
    group_id: str = ""
    record_ids: list[int] = field(default_factory=list)
    error: BillingError | None = None

    @property
    def message(self) -> str:
        return str(self.error) if self.error is not None else ""


@dataclass
class DashboardStats:
    total_bills: int = 0
    total_amount: Decimal = Decimal("0")
    total_paid: Decimal = Decimal("0")
    total_remaining: Decimal = Decimal("0")
