"""Proportional allocation of a single payment across bill line items."""

from __future__ import annotations

from collections.abc import Sequence
from decimal import Decimal

from .models import Allocation, LineItem, to_decimal

_ZERO = Decimal("0")


def grand_total(items: Sequence[LineItem]) -> Decimal:
    return sum((item.line_total for item in items), _ZERO)


def allocate(
    items: Sequence[LineItem],
    paid_amount: Decimal | int | float | str,
) -> list[Allocation]:
    """Split one paid amount across items by their share of the grand total.

    Each item receives ``paid_amount * line_total / grand_total``; its
    remaining amount is ``line_total - paid``, so paid and remaining always
    add up to the line total exactly. When the grand total is zero every
    item gets zero paid and zero remaining.

    A negative ``paid_amount`` is not rejected here; callers validate input.

    Args:
        items: Line items in submission order.
        paid_amount: The lump sum paid for the whole bill.

    Returns:
        One Allocation per item, in the same order as ``items``.
    """
    paid = to_decimal(paid_amount)
    overall = grand_total(items)

    allocations: list[Allocation] = []
    for item in items:
        total = item.line_total
        item_paid = paid * total / overall if overall > 0 else _ZERO
        allocations.append(
            Allocation(
                line_total=total,
                paid_amount=item_paid,
                remaining_amount=total - item_paid,
            )
        )
    return allocations
