"""
Module: inventory_kernel.models.sale
Responsibility: ORM persistence for completed sales.
Architecture position: Kernel > Models.  May import from db/ only.

Invariants enforced:
    - quantity_sold > 0 and sale_price > 0 (CHECK constraints).
    - total_amount == quantity_sold * sale_price, computed by SaleService.
    - Append-only: UPDATE/DELETE blocked by db/immutability.py.
"""

from datetime import datetime
from decimal import Decimal
from uuid import UUID

from sqlalchemy import CheckConstraint, ForeignKey, Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from inventory_kernel.db.base import TrackedBase, UUIDString


class SaleRecord(TrackedBase):
    """One sale of one product on one platform."""

    __tablename__ = "sales"

    __table_args__ = (
        CheckConstraint("quantity_sold > 0", name="ck_sale_quantity_positive"),
        CheckConstraint("sale_price > 0", name="ck_sale_price_positive"),
        Index("idx_sale_product_date", "product_id", "sale_date"),
        Index("idx_sale_date", "sale_date"),
    )

    product_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("products.id"),
        nullable=False,
    )

    quantity_sold: Mapped[int] = mapped_column(Integer, nullable=False)

    sale_price: Mapped[Decimal] = mapped_column(nullable=False)

    total_amount: Mapped[Decimal] = mapped_column(nullable=False)

    sales_platform: Mapped[str] = mapped_column(String(50), nullable=False)

    customer_info: Mapped[str | None] = mapped_column(String(500), nullable=True)

    payment_method: Mapped[str | None] = mapped_column(String(50), nullable=True)

    sale_date: Mapped[datetime] = mapped_column(nullable=False)

    def __repr__(self) -> str:
        return f"<SaleRecord {self.id} qty={self.quantity_sold}>"
