"""Error types raised by the billing layer."""

from __future__ import annotations


class BillingError(Exception):
    """Base class for billing errors."""


class NotFoundError(BillingError, LookupError):
    """A bill lookup by ID matched no row."""

    def __init__(self, bill_id: int) -> None:
        super().__init__(f"Bill not found: {bill_id}")
        self.bill_id = bill_id


class StoreError(BillingError):
    """The underlying record store failed."""


class ValidationError(BillingError, ValueError):
    """Caller input was rejected before reaching the store."""
