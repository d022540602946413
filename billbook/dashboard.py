"""Dashboard totals and customer filtering over bill rows."""

from __future__ import annotations

from collections.abc import Iterable
from decimal import Decimal

from .models import BillRecord, DashboardStats


def compute_stats(
    records: Iterable[BillRecord], customer: str | None = None
) -> DashboardStats:
    """Count bills and sum their total, paid and remaining amounts.

    Args:
        records: Bill rows to aggregate.
        customer: Only count rows for this customer name, if given.
    """
    stats = DashboardStats()
    for record in records:
        if customer and record.customer_name != customer:
            continue
        stats.total_bills += 1
        stats.total_amount += record.total
        stats.total_paid += record.paid_amount
        stats.total_remaining += record.remaining_amount
    return stats


def list_customers(records: Iterable[BillRecord]) -> list[str]:
    """Unique non-empty customer names in first-seen order."""
    seen: dict[str, None] = {}
    for record in records:
        if record.customer_name:
            seen.setdefault(record.customer_name, None)
    return list(seen)


def filter_bills(
    records: Iterable[BillRecord],
    customer: str | None = None,
    query: str = "",
) -> list[BillRecord]:
    """Filter by exact customer, then by case-insensitive text search.

    The search matches against both product and customer names.
    """
    result = [r for r in records if not customer or r.customer_name == customer]
    if query:
        needle = query.lower()
        result = [
            r
            for r in result
            if needle in r.product_name.lower() or needle in r.customer_name.lower()
        ]
    return result


def format_money(amount: Decimal, currency: str = "$") -> str:
    """Format an amount for display, rounded to two decimal places."""
    return f"{currency}{amount:.2f}"
