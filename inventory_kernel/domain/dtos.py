"""
DTOs -- Immutable results returned across the kernel boundary.

Responsibility:
    Defines the frozen data structures that stock, alert and analytics
    operations hand back to callers, so that request handlers never hold
    live ORM entities after a unit has closed.

Architecture position:
    Kernel > Domain -- pure, zero I/O.  Free of ORM dependencies;
    ``from_model()`` converters are called only from the service layer.

Failure modes:
    - ValueError from InventoryDelta when quantity_change is zero or not
      an int.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from enum import Enum
from uuid import UUID


# ---------------------------------------------------------------------------
# Products
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ProductSnapshot:
    """Read-only view of a product."""

    product_id: UUID
    name: str
    sku: str | None
    quantity: int
    cost_price: Decimal
    selling_price: Decimal
    low_stock_threshold: int | None
    is_active: bool

    @classmethod
    def from_model(cls, product) -> ProductSnapshot:
        return cls(
            product_id=product.id,
            name=product.name,
            sku=product.sku,
            quantity=product.quantity,
            cost_price=product.cost_price,
            selling_price=product.selling_price,
            low_stock_threshold=product.low_stock_threshold,
            is_active=product.is_active,
        )


# ---------------------------------------------------------------------------
# Stock mutations
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class SaleResult:
    """Outcome of a recorded sale."""

    sale_id: UUID
    total_amount: Decimal
    remaining_stock: int
    needs_restocking: bool


@dataclass(frozen=True)
class ReturnProcessingResult:
    """Outcome of processing an approved return."""

    return_updated: bool
    restocked: bool
    new_quantity: int | None
    product_id: UUID | None = None


@dataclass(frozen=True)
class InventoryDelta:
    """
    One requested quantity change in a bulk update.

    Guarantees:
        - quantity_change is a non-zero int.
        - reason is non-empty.
    """

    product_id: UUID
    quantity_change: int
    reason: str = "manual_adjustment"

    def __post_init__(self) -> None:
        if isinstance(self.quantity_change, bool) or not isinstance(
            self.quantity_change, int
        ):
            raise ValueError(
                f"quantity_change must be an int, got {self.quantity_change!r}"
            )
        if self.quantity_change == 0:
            raise ValueError("quantity_change must be non-zero")
        if not self.reason:
            raise ValueError("reason must be non-empty")


@dataclass(frozen=True)
class InventoryChange:
    """One applied change, reported back from a bulk update."""

    product_id: UUID
    product_name: str
    previous_quantity: int
    new_quantity: int
    change: int


# ---------------------------------------------------------------------------
# Returns
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ReturnSnapshot:
    """Read-only view of a return after a lifecycle step."""

    return_id: UUID
    status: str
    product_id: UUID | None
    quantity: int
    customer_name: str
    refund_amount: Decimal | None
    restocked: bool

    @classmethod
    def from_model(cls, record) -> ReturnSnapshot:
        return cls(
            return_id=record.id,
            status=record.status,
            product_id=record.product_id,
            quantity=record.quantity,
            customer_name=record.customer_name,
            refund_amount=record.refund_amount,
            restocked=record.restocked,
        )


# ---------------------------------------------------------------------------
# Alerts
# ---------------------------------------------------------------------------


class AlertOutcome(str, Enum):
    """What evaluating one product did to its alert state."""

    CREATED = "created"
    RESOLVED = "resolved"
    UNCHANGED = "unchanged"


@dataclass(frozen=True)
class AlertEvaluation:
    product_id: UUID
    outcome: AlertOutcome
    alert_id: UUID | None = None


@dataclass(frozen=True)
class AlertSweepResult:
    """Counts from one pass of the low-stock sweep."""

    evaluated: int = 0
    created: int = 0
    resolved: int = 0
    failed: int = 0


@dataclass(frozen=True)
class AlertSnapshot:
    alert_id: UUID
    product_id: UUID
    product_name: str
    current_quantity: int
    threshold_quantity: int
    status: str
    alert_type: str
    priority: str
    alerted_at: datetime

    @classmethod
    def from_model(cls, alert) -> AlertSnapshot:
        return cls(
            alert_id=alert.id,
            product_id=alert.product_id,
            product_name=alert.product_name,
            current_quantity=alert.current_quantity,
            threshold_quantity=alert.threshold_quantity,
            status=alert.status,
            alert_type=alert.alert_type,
            priority=alert.priority,
            alerted_at=alert.alerted_at,
        )


# ---------------------------------------------------------------------------
# Analytics
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class DemandForecast:
    """A persisted demand prediction."""

    prediction_id: UUID
    product_id: UUID
    product_name: str
    predicted_demand: int
    confidence_level: float
    prediction_period: str
    moving_average_short: float | None
    moving_average_long: float | None
    linear_trend: float | None
    prediction_date: datetime


@dataclass(frozen=True)
class MonthlyBucket:
    month: int
    sales: int
    revenue: Decimal
    transactions: int


@dataclass(frozen=True)
class SeasonalAnalysis:
    """One product's seasonality profile for one year."""

    product_id: UUID
    product_name: str
    year: int
    monthly: tuple[MonthlyBucket, ...]
    seasonal_indices: tuple[float, ...]
    annual_sales: int
    annual_revenue: Decimal
    peak_month: int
    low_month: int
    trend_strength: float


@dataclass(frozen=True)
class DashboardStats:
    """Headline figures for the inventory dashboard."""

    product_count: int
    total_units: int
    low_stock_count: int
    out_of_stock_count: int
    inventory_cost_value: Decimal
    total_sales_revenue: Decimal
    total_sales_count: int


@dataclass(frozen=True)
class AnalyticsDashboard:
    active_alerts: tuple[AlertSnapshot, ...] = field(default_factory=tuple)
    recent_predictions: tuple[DemandForecast, ...] = field(default_factory=tuple)
    seasonal_trends: tuple[SeasonalAnalysis, ...] = field(default_factory=tuple)


# ---------------------------------------------------------------------------
# Ledger reconciliation
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class LedgerReconciliation:
    """
    Comparison of a product's quantity against its inventory log.

    Guarantees:
        - is_consistent is True only when the log chains without gaps and
          its last new_quantity equals the product's quantity.
    """

    product_id: UUID
    product_quantity: int
    ledger_quantity: int | None
    entry_count: int
    chain_intact: bool

    @property
    def is_consistent(self) -> bool:
        if not self.chain_intact:
            return False
        if self.ledger_quantity is None:
            return self.product_quantity == 0
        return self.ledger_quantity == self.product_quantity
