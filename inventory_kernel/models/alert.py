"""
Module: inventory_kernel.models.alert
Responsibility: ORM persistence for low-stock alerts.
Architecture position: Kernel > Models.  May import from db/ only.

Invariants enforced:
    - At most one ACTIVE alert per product (partial unique index
      uq_low_stock_alert_active on product_id WHERE status = 'active').
    - alert_type and priority are fixed when the alert is created.

Lifecycle:
    none -> active -> resolved | ignored
    resolved | ignored -> (new row) active
"""

from datetime import datetime
from enum import Enum
from uuid import UUID

from sqlalchemy import Boolean, ForeignKey, Index, Integer, String, text
from sqlalchemy.orm import Mapped, mapped_column

from inventory_kernel.db.base import Base, UUIDString


class AlertStatus(str, Enum):
    ACTIVE = "active"
    RESOLVED = "resolved"
    IGNORED = "ignored"


class AlertType(str, Enum):
    LOW_STOCK = "low_stock"
    OUT_OF_STOCK = "out_of_stock"
    CRITICAL = "critical"


class AlertPriority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


# Higher rank sorts first.
PRIORITY_RANK: dict[str, int] = {
    AlertPriority.CRITICAL.value: 4,
    AlertPriority.HIGH.value: 3,
    AlertPriority.MEDIUM.value: 2,
    AlertPriority.LOW.value: 1,
}


class LowStockAlert(Base):
    """A low-stock condition raised for one product."""

    __tablename__ = "low_stock_alerts"

    __table_args__ = (
        Index(
            "uq_low_stock_alert_active",
            "product_id",
            unique=True,
            sqlite_where=text("status = 'active'"),
            postgresql_where=text("status = 'active'"),
        ),
        Index("idx_low_stock_alert_status", "status", "alerted_at"),
    )

    product_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("products.id"),
        nullable=False,
    )

    product_name: Mapped[str] = mapped_column(String(255), nullable=False)

    current_quantity: Mapped[int] = mapped_column(Integer, nullable=False)

    threshold_quantity: Mapped[int] = mapped_column(Integer, nullable=False)

    status: Mapped[str] = mapped_column(
        String(20), default=AlertStatus.ACTIVE.value, nullable=False
    )

    alert_type: Mapped[str] = mapped_column(String(20), nullable=False)

    priority: Mapped[str] = mapped_column(String(20), nullable=False)

    alerted_at: Mapped[datetime] = mapped_column(nullable=False)

    resolved_at: Mapped[datetime | None] = mapped_column(nullable=True)

    resolved_by_id: Mapped[UUID | None] = mapped_column(UUIDString(), nullable=True)

    auto_resolved: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    def __repr__(self) -> str:
        return f"<LowStockAlert {self.product_name} {self.priority} {self.status}>"
