"""Kernel services: the imperative shell around the inventory models."""

from inventory_kernel.services.alert_service import AlertService
from inventory_kernel.services.forecast_service import ForecastService
from inventory_kernel.services.ledger_coordinator import LedgerCoordinator
from inventory_kernel.services.notification_service import NotificationService
from inventory_kernel.services.product_service import ProductService
from inventory_kernel.services.return_service import ReturnService
from inventory_kernel.services.sale_service import SaleService
from inventory_kernel.services.stock_ledger import StockLedgerService

__all__ = [
    "AlertService",
    "ForecastService",
    "LedgerCoordinator",
    "NotificationService",
    "ProductService",
    "ReturnService",
    "SaleService",
    "StockLedgerService",
]
