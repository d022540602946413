"""Bill groups: create, fetch, edit and delete multi-item bills."""

from __future__ import annotations

import logging
import random
import string
import time
from collections.abc import Sequence
from decimal import Decimal, InvalidOperation

from .allocation import allocate
from .db.store import RecordStore
from .errors import NotFoundError, StoreError, ValidationError
from .models import Allocation, BillRecord, BillResult, LineItem, to_decimal

logger = logging.getLogger(__name__)

TABLE = "bills"

_GROUP_SUFFIX_CHARS = string.ascii_lowercase + string.digits


def new_group_id() -> str:
    """Return a group ID of the form ``bill_<epoch-ms>_<5 base36 chars>``."""
    millis = int(time.time() * 1000)
    suffix = "".join(random.choices(_GROUP_SUFFIX_CHARS, k=5))
    return f"bill_{millis}_{suffix}"


def validate_submission(
    customer_name: str,
    items: Sequence[LineItem],
    paid_amount,
) -> tuple[list[LineItem], Decimal]:
    """Check a bill submission and normalise its amounts to Decimal.

    Raises:
        ValidationError: On a blank customer or product name, an empty item
            list, a quantity below one, or a negative price.
    """
    if not isinstance(customer_name, str) or not customer_name.strip():
        raise ValidationError("Customer name is required")
    if not items:
        raise ValidationError("At least one item is required")

    normalised: list[LineItem] = []
    for idx, item in enumerate(items, 1):
        if not isinstance(item, LineItem):
            raise ValidationError(f"Item {idx}: expected a LineItem, got {item!r}")
        if not isinstance(item.product_name, str) or not item.product_name.strip():
            raise ValidationError(f"Item {idx}: product name is required")
        if isinstance(item.quantity, bool) or not isinstance(item.quantity, int):
            raise ValidationError(f"Item {idx}: quantity must be a whole number")
        if item.quantity < 1:
            raise ValidationError(f"Item {idx}: quantity must be at least 1")
        try:
            price = to_decimal(item.price_per_unit)
        except (InvalidOperation, TypeError, ValueError):
            raise ValidationError(
                f"Item {idx}: invalid price {item.price_per_unit!r}"
            ) from None
        if not price.is_finite() or price < 0:
            raise ValidationError(f"Item {idx}: price must not be negative")
        normalised.append(LineItem(item.product_name, item.quantity, price))

    try:
        paid = to_decimal(paid_amount)
    except (InvalidOperation, TypeError, ValueError):
        raise ValidationError(f"Invalid paid amount {paid_amount!r}") from None
    if not paid.is_finite():
        raise ValidationError(f"Invalid paid amount {paid_amount!r}")
    return normalised, paid


def _row_fields(
    customer_name: str, item: LineItem, alloc: Allocation
) -> dict:
    return {
        "customer_name": customer_name,
        "product_name": item.product_name,
        "quantity": item.quantity,
        "price_per_unit": item.price_per_unit,
        "total": alloc.line_total,
        "paid_amount": alloc.paid_amount,
        "remaining_amount": alloc.remaining_amount,
    }


class BillGroupManager:
    """Owns the lifecycle of bill groups.

    A bill group is every row sharing one ``group_id``. Writes are issued
    one at a time with no surrounding transaction: if a store call fails
    part way, rows already written stay in place and the failure is
    returned in the BillResult.
    """

    def __init__(self, store: RecordStore) -> None:
        self._store = store

    def create(
        self,
        customer_name: str,
        items: Sequence[LineItem],
        paid_amount: Decimal | int | float | str = 0,
    ) -> BillResult:
        """Store a new bill with one row per item under a fresh group ID.

        Raises:
            ValidationError: If the submission is malformed.
        """
        items, paid = validate_submission(customer_name, items, paid_amount)
        group_id = new_group_id()
        allocations = allocate(items, paid)

        inserted: list[int] = []
        for item, alloc in zip(items, allocations):
            record = {"group_id": group_id, **_row_fields(customer_name, item, alloc)}
            try:
                inserted.append(self._store.insert(TABLE, record))
            except StoreError as e:
                logger.error("Error creating bill in group %s: %s", group_id, e)
                return BillResult(
                    success=False, group_id=group_id, record_ids=inserted, error=e
                )

        logger.info(
            "Created bill group %s for %s (%d items)",
            group_id,
            customer_name,
            len(inserted),
        )
        return BillResult(success=True, group_id=group_id, record_ids=inserted)

    def get(self, bill_id: int) -> BillRecord:
        """Fetch a bill with every item of its group attached.

        The returned record carries ``items`` in group order (ID ascending).
        A record without a group ID, or whose group query fails or comes
        back empty, is returned as a one-item group.

        Raises:
            NotFoundError: If no bill has ``bill_id``.
            StoreError: If the store fails to load the record itself.
        """
        row = self._store.select_by_id(TABLE, bill_id)
        if row is None:
            raise NotFoundError(bill_id)
        bill = BillRecord.from_row(row)

        members: list[BillRecord] = []
        if bill.group_id:
            try:
                members = self.list_group(bill.group_id)
            except StoreError as e:
                logger.warning(
                    "Error loading group %s for bill %s: %s", bill.group_id, bill_id, e
                )

        if members:
            bill.items = [m.to_line_item() for m in members]
        else:
            bill.items = [bill.to_line_item()]
        return bill

    def update(
        self,
        bill_id: int,
        customer_name: str,
        items: Sequence[LineItem],
        paid_amount: Decimal | int | float | str = 0,
    ) -> BillResult:
        """Replace a bill group with a new item list.

        The target row keeps its ID and creation time and takes the first
        item; every other member of the group is deleted and items 2..n are
        inserted as new rows. A target without a group ID gets a fresh one.

        Raises:
            ValidationError: If the submission is malformed.
        """
        items, paid = validate_submission(customer_name, items, paid_amount)

        try:
            row = self._store.select_by_id(TABLE, bill_id)
        except StoreError as e:
            logger.error("Error loading bill %s: %s", bill_id, e)
            return BillResult(success=False, error=e)
        if row is None:
            logger.error("Cannot update bill %s: not found", bill_id)
            return BillResult(success=False, error=NotFoundError(bill_id))

        group_id = row.get("group_id") or new_group_id()
        allocations = allocate(items, paid)
        record_ids = [bill_id]

        try:
            logger.debug("Updating bill %s in group %s", bill_id, group_id)
            self._store.update(
                TABLE,
                bill_id,
                {"group_id": group_id, **_row_fields(customer_name, items[0], allocations[0])},
            )
            removed = self._store.delete_where(
                TABLE, "group_id", group_id, exclude_id=bill_id
            )
            logger.debug("Removed %d old rows from group %s", removed, group_id)
            for item, alloc in zip(items[1:], allocations[1:]):
                record = {"group_id": group_id, **_row_fields(customer_name, item, alloc)}
                record_ids.append(self._store.insert(TABLE, record))
        except (StoreError, NotFoundError) as e:
            logger.error("Error updating bill %s: %s", bill_id, e)
            return BillResult(
                success=False, group_id=group_id, record_ids=record_ids, error=e
            )

        logger.info(
            "Updated bill %s in group %s (%d items)", bill_id, group_id, len(items)
        )
        return BillResult(success=True, group_id=group_id, record_ids=record_ids)

    def delete(self, bill_id: int) -> BillResult:
        """Delete exactly one bill row; other group members are left alone."""
        try:
            removed = self._store.delete(TABLE, bill_id)
        except StoreError as e:
            logger.error("Error deleting bill %s: %s", bill_id, e)
            return BillResult(success=False, error=e)
        if removed == 0:
            return BillResult(success=False, error=NotFoundError(bill_id))
        logger.info("Deleted bill %s", bill_id)
        return BillResult(success=True, record_ids=[bill_id])

    def list_bills(self) -> list[BillRecord]:
        """Return every bill row, oldest first."""
        rows = self._store.select_all(TABLE, order_by=("created_at", "id"))
        return [BillRecord.from_row(r) for r in rows]

    def list_group(self, group_id: str) -> list[BillRecord]:
        rows = self._store.select_where(TABLE, "group_id", group_id, order_by="id")
        return [BillRecord.from_row(r) for r in rows]
