"""Domain models for the inventory kernel."""

from inventory_kernel.models.alert import (
    PRIORITY_RANK,
    AlertPriority,
    AlertStatus,
    AlertType,
    LowStockAlert,
)
from inventory_kernel.models.forecast import DemandPrediction, SeasonalTrend
from inventory_kernel.models.inventory_log import (
    InventoryChangeReason,
    InventoryLogEntry,
)
from inventory_kernel.models.notification import NotificationLog, NotificationStatus
from inventory_kernel.models.product import Product
from inventory_kernel.models.return_record import (
    VALID_RETURN_TRANSITIONS,
    ReturnActivity,
    ReturnRecord,
    ReturnStatus,
)
from inventory_kernel.models.sale import SaleRecord

__all__ = [
    "Product",
    "SaleRecord",
    "ReturnRecord",
    "ReturnActivity",
    "ReturnStatus",
    "VALID_RETURN_TRANSITIONS",
    "InventoryLogEntry",
    "InventoryChangeReason",
    "LowStockAlert",
    "AlertStatus",
    "AlertType",
    "AlertPriority",
    "PRIORITY_RANK",
    "DemandPrediction",
    "SeasonalTrend",
    "NotificationLog",
    "NotificationStatus",
]
