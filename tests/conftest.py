"""Shared fixtures for billbook tests."""

from decimal import Decimal

import pytest

from billbook.db.store import RecordStore
from billbook.groups import BillGroupManager
from billbook.models import LineItem


@pytest.fixture
def store(tmp_path):
    """A RecordStore backed by a temporary database."""
    s = RecordStore(db_path=tmp_path / "bills.db")
    yield s
    s.close()


@pytest.fixture
def manager(store):
    return BillGroupManager(store)


@pytest.fixture
def sample_items():
    return [
        LineItem("Widget", 2, Decimal("10.00")),
        LineItem("Gadget", 1, Decimal("30.00")),
    ]
