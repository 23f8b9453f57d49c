"""Read-only selectors over the inventory models."""

from inventory_kernel.selectors.alert_selector import AlertSelector
from inventory_kernel.selectors.analytics_selector import AnalyticsSelector
from inventory_kernel.selectors.inventory_ledger_selector import (
    InventoryLedgerSelector,
    InventoryLogDTO,
)
from inventory_kernel.selectors.product_selector import ProductSelector
from inventory_kernel.selectors.query import Page, ReturnsQuery, SalesQuery
from inventory_kernel.selectors.returns_selector import (
    ReturnActivityDTO,
    ReturnsSelector,
)
from inventory_kernel.selectors.sales_selector import SaleSummary, SalesSelector

__all__ = [
    "AlertSelector",
    "AnalyticsSelector",
    "InventoryLedgerSelector",
    "InventoryLogDTO",
    "ProductSelector",
    "Page",
    "ReturnsQuery",
    "SalesQuery",
    "ReturnActivityDTO",
    "ReturnsSelector",
    "SaleSummary",
    "SalesSelector",
]
