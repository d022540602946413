"""Billing records with proportional payment splits and PDF export."""

from .allocation import allocate
from .config import (
    BillingConfig,
    DatabaseConfig,
    DisplayConfig,
    PDFConfig,
    PrinterConfig,
    load_config,
)
from .dashboard import compute_stats, filter_bills, list_customers
from .db import RecordStore, get_store
from .errors import BillingError, NotFoundError, StoreError, ValidationError
from .groups import BillGroupManager, new_group_id
from .models import Allocation, BillRecord, BillResult, DashboardStats, LineItem

__all__ = [
    "allocate",
    "Allocation",
    "LineItem",
    "BillRecord",
    "BillResult",
    "DashboardStats",
    "BillGroupManager",
    "new_group_id",
    "RecordStore",
    "get_store",
    "compute_stats",
    "filter_bills",
    "list_customers",
    "BillingError",
    "NotFoundError",
    "StoreError",
    "ValidationError",
    "BillingConfig",
    "DatabaseConfig",
    "DisplayConfig",
    "PDFConfig",
    "PrinterConfig",
    "load_config",
]
