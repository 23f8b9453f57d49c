"""Orchestration layer: unit-owning facades over the inventory kernel."""

from inventory_services.analytics_orchestrator import AnalyticsOrchestrator
from inventory_services.core import InventoryCore
from inventory_services.stock_orchestrator import StockOrchestrator

__all__ = [
    "AnalyticsOrchestrator",
    "InventoryCore",
    "StockOrchestrator",
]
