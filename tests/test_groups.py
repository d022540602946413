"""Tests for BillGroupManager create/get/update/delete."""

import re
from decimal import Decimal
from unittest.mock import MagicMock

import pytest

from billbook.errors import NotFoundError, StoreError, ValidationError
from billbook.groups import TABLE, BillGroupManager, new_group_id
from billbook.models import LineItem


def _shape(items):
    return [(i.product_name, i.quantity, i.price_per_unit) for i in items]


class TestGroupId:
    def test_format(self):
        assert re.fullmatch(r"bill_\d{13}_[a-z0-9]{5}", new_group_id())

    def test_unique(self):
        ids = {new_group_id() for _ in range(200)}
        assert len(ids) == 200


class TestCreate:
    def test_create_inserts_one_row_per_item(self, manager, store, sample_items):
        result = manager.create("Asha", sample_items, Decimal("25.00"))

        assert result.success is True
        assert result.error is None
        assert len(result.record_ids) == 2
        rows = store.select_where(TABLE, "group_id", result.group_id, order_by="id")
        assert [r["id"] for r in rows] == result.record_ids
        assert {r["customer_name"] for r in rows} == {"Asha"}

    def test_create_stores_allocated_amounts(self, manager, sample_items):
        result = manager.create("Asha", sample_items, Decimal("25.00"))
        group = manager.list_group(result.group_id)

        widget, gadget = group
        assert widget.total == Decimal("20")
        assert widget.paid_amount == Decimal("10")
        assert widget.remaining_amount == Decimal("10")
        assert gadget.total == Decimal("30")
        assert gadget.paid_amount == Decimal("15")
        assert gadget.remaining_amount == Decimal("15")

    def test_amounts_round_trip_exactly(self, manager):
        items = [LineItem("A", 1, Decimal("10")) for _ in range(3)]
        result = manager.create("Ravi", items, Decimal("10"))

        group = manager.list_group(result.group_id)
        for bill in group:
            assert bill.paid_amount + bill.remaining_amount == bill.total
        assert abs(sum(b.paid_amount for b in group) - Decimal("10")) < Decimal("1e-6")

    def test_each_create_gets_new_group(self, manager, sample_items):
        first = manager.create("Asha", sample_items, 0)
        second = manager.create("Asha", sample_items, 0)
        assert first.group_id != second.group_id

    @pytest.mark.parametrize(
        "customer, items",
        [
            ("", [LineItem("A", 1, Decimal("1"))]),
            ("   ", [LineItem("A", 1, Decimal("1"))]),
            ("Asha", []),
            ("Asha", [LineItem("", 1, Decimal("1"))]),
            ("Asha", [LineItem("A", 0, Decimal("1"))]),
            ("Asha", [LineItem("A", 1.5, Decimal("1"))]),
            ("Asha", [LineItem("A", 1, Decimal("-1"))]),
            ("Asha", [LineItem("A", 1, "abc")]),
            (123, [LineItem("A", 1, Decimal("1"))]),
            ("Asha", [LineItem(5, 1, Decimal("1"))]),
            ("Asha", [{"product_name": "A", "quantity": 1, "price_per_unit": 1}]),
        ],
    )
    def test_create_rejects_malformed_input(self, manager, store, customer, items):
        with pytest.raises(ValidationError):
            manager.create(customer, items, 0)
        assert store.select_all(TABLE) == []

    def test_create_failure_keeps_earlier_rows(self, store, sample_items):
        """A mid-create failure is reported but not rolled back."""
        failing = MagicMock(wraps=store)
        calls = {"n": 0}

        def insert(table, record):
            calls["n"] += 1
            if calls["n"] == 2:
                raise StoreError("disk full")
            return store.insert(table, record)

        failing.insert.side_effect = insert
        manager = BillGroupManager(failing)

        result = manager.create("Asha", sample_items, Decimal("25"))

        assert result.success is False
        assert isinstance(result.error, StoreError)
        assert "disk full" in result.message
        assert len(result.record_ids) == 1
        rows = store.select_where(TABLE, "group_id", result.group_id)
        assert len(rows) == 1
        assert rows[0]["product_name"] == "Widget"


class TestGet:
    def test_get_returns_group_items_in_order(self, manager, sample_items):
        result = manager.create("Asha", sample_items, Decimal("25"))
        bill = manager.get(result.record_ids[0])

        assert bill.id == result.record_ids[0]
        assert bill.customer_name == "Asha"
        assert _shape(bill.items) == _shape(sample_items)

    def test_get_from_non_first_member(self, manager, sample_items):
        result = manager.create("Asha", sample_items, 0)
        bill = manager.get(result.record_ids[1])

        assert bill.product_name == "Gadget"
        assert _shape(bill.items) == _shape(sample_items)

    def test_get_missing_raises(self, manager):
        with pytest.raises(NotFoundError):
            manager.get(999)

    def test_get_row_without_group(self, manager, store):
        row_id = store.insert(TABLE, {
            "customer_name": "Legacy",
            "product_name": "Old item",
            "quantity": 4,
            "price_per_unit": Decimal("2.50"),
            "total": Decimal("10.00"),
            "paid_amount": Decimal("0"),
            "remaining_amount": Decimal("10.00"),
        })
        bill = manager.get(row_id)

        assert bill.group_id == ""
        assert _shape(bill.items) == [("Old item", 4, Decimal("2.50"))]

    def test_get_falls_back_when_group_query_empty(self, store):
        row_id = store.insert(TABLE, {
            "group_id": "bill_1_abcde",
            "customer_name": "Asha",
            "product_name": "Solo",
            "quantity": 1,
            "price_per_unit": Decimal("3"),
            "total": Decimal("3"),
        })
        stub = MagicMock(wraps=store)
        stub.select_where.return_value = []
        bill = BillGroupManager(stub).get(row_id)

        assert _shape(bill.items) == [("Solo", 1, Decimal("3"))]

    def test_get_falls_back_when_group_query_fails(self, manager, store, sample_items, caplog):
        result = manager.create("Asha", sample_items, 0)
        stub = MagicMock(wraps=store)
        stub.select_where.side_effect = StoreError("database is locked")

        with caplog.at_level("WARNING", logger="billbook.groups"):
            bill = BillGroupManager(stub).get(result.record_ids[0])

        assert _shape(bill.items) == [("Widget", 2, Decimal("10.00"))]
        assert "database is locked" in caplog.text


class TestUpdate:
    def test_update_replaces_group_membership(self, manager, store, sample_items):
        created = manager.create("Asha", sample_items, Decimal("25"))
        target = created.record_ids[0]
        new_items = [
            LineItem("Widget", 3, Decimal("10.00")),
            LineItem("Cable", 2, Decimal("5.00")),
            LineItem("Case", 1, Decimal("20.00")),
        ]

        result = manager.update(target, "Asha K", new_items, Decimal("30"))

        assert result.success is True
        assert result.group_id == created.group_id
        group = manager.list_group(created.group_id)
        assert [b.id for b in group][0] == target
        assert _shape(group) == _shape(new_items)
        assert {b.customer_name for b in group} == {"Asha K"}
        assert created.record_ids[1] not in [b.id for b in group]
        # 30 of 60 paid → every row half paid
        for bill in group:
            assert bill.paid_amount * 2 == bill.total

    def test_update_keeps_target_created_at(self, manager, store, sample_items):
        created = manager.create("Asha", sample_items, 0)
        target = created.record_ids[0]
        before = store.select_by_id(TABLE, target)

        manager.update(target, "Asha", sample_items[:1], 0)

        after = store.select_by_id(TABLE, target)
        assert after["created_at"] == before["created_at"]

    def test_update_same_items_keeps_shape(self, manager, sample_items):
        created = manager.create("Asha", sample_items, Decimal("25"))
        target = created.record_ids[0]

        manager.update(target, "Asha", sample_items, Decimal("25"))

        group = manager.list_group(created.group_id)
        assert _shape(group) == _shape(sample_items)
        assert group[0].id == target
        assert group[1].id != created.record_ids[1]
        assert [b.paid_amount for b in group] == [Decimal("10"), Decimal("15")]

    def test_update_shrinks_group_to_one(self, manager, sample_items):
        created = manager.create("Asha", sample_items, 0)
        manager.update(created.record_ids[0], "Asha", sample_items[1:], Decimal("30"))

        group = manager.list_group(created.group_id)
        assert len(group) == 1
        assert group[0].product_name == "Gadget"
        assert group[0].remaining_amount == 0

    def test_update_legacy_row_mints_group(self, manager, store):
        row_id = store.insert(TABLE, {
            "customer_name": "Legacy",
            "product_name": "Old",
            "quantity": 1,
            "price_per_unit": Decimal("5"),
            "total": Decimal("5"),
        })
        other_legacy = store.insert(TABLE, {
            "customer_name": "Legacy",
            "product_name": "Other",
            "quantity": 1,
            "price_per_unit": Decimal("1"),
            "total": Decimal("1"),
        })

        result = manager.update(
            row_id, "Legacy",
            [LineItem("New", 1, Decimal("5")), LineItem("Extra", 1, Decimal("5"))],
            0,
        )

        assert result.success is True
        assert result.group_id.startswith("bill_")
        assert [b.product_name for b in manager.list_group(result.group_id)] == ["New", "Extra"]
        # other rows without a group are untouched
        assert store.select_by_id(TABLE, other_legacy) is not None

    def test_update_missing_target(self, manager, sample_items):
        result = manager.update(404, "Asha", sample_items, 0)
        assert result.success is False
        assert isinstance(result.error, NotFoundError)

    def test_update_rejects_malformed_input(self, manager, sample_items):
        created = manager.create("Asha", sample_items, 0)
        with pytest.raises(ValidationError):
            manager.update(created.record_ids[0], "Asha", [], 0)

    def test_update_store_failure_is_reported(self, store, sample_items):
        manager = BillGroupManager(store)
        created = manager.create("Asha", sample_items, 0)

        failing = MagicMock(wraps=store)
        failing.delete_where.side_effect = StoreError("locked")
        result = BillGroupManager(failing).update(
            created.record_ids[0], "Asha", sample_items, 0
        )

        assert result.success is False
        assert "locked" in result.message


class TestDelete:
    def test_delete_non_representative_member(self, manager, sample_items):
        created = manager.create("Asha", sample_items, 0)

        result = manager.delete(created.record_ids[1])

        assert result.success is True
        group = manager.list_group(created.group_id)
        assert [b.id for b in group] == [created.record_ids[0]]

    def test_delete_representative_orphans_rest(self, manager, sample_items):
        """Deleting the first row leaves later rows in the group."""
        created = manager.create("Asha", sample_items, 0)

        manager.delete(created.record_ids[0])

        group = manager.list_group(created.group_id)
        assert [b.id for b in group] == [created.record_ids[1]]
        bill = manager.get(created.record_ids[1])
        assert _shape(bill.items) == _shape(sample_items[1:])

    def test_delete_missing(self, manager):
        result = manager.delete(12345)
        assert result.success is False
        assert isinstance(result.error, NotFoundError)

    def test_delete_store_failure(self, store):
        failing = MagicMock(wraps=store)
        failing.delete.side_effect = StoreError("readonly database")
        result = BillGroupManager(failing).delete(1)
        assert result.success is False
        assert isinstance(result.error, StoreError)


def test_list_bills_oldest_first(manager, sample_items):
    manager.create("Asha", sample_items, 0)
    manager.create("Ravi", [LineItem("Pen", 5, Decimal("1.20"))], Decimal("6"))

    bills = manager.list_bills()
    assert [b.customer_name for b in bills] == ["Asha", "Asha", "Ravi"]
    assert [b.id for b in bills] == sorted(b.id for b in bills)
