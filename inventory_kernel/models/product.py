"""
Module: inventory_kernel.models.product
Responsibility: ORM persistence for sellable products and their on-hand
    quantity.
Architecture position: Kernel > Models.  May import from db/ only.

Invariants enforced:
    - quantity >= 0 (CHECK constraint ck_product_quantity_non_negative).  The
      stock ledger also checks before writing, so the constraint is the
      backstop, not the first line.
    - Every change to quantity is paired with one InventoryLogEntry (enforced
      by StockLedgerService, the only writer of this column).

Failure modes:
    - IntegrityError if a write bypasses the ledger and drives quantity < 0.
"""

from decimal import Decimal

from sqlalchemy import Boolean, CheckConstraint, Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from inventory_kernel.db.base import TrackedBase


class Product(TrackedBase):
    """
    A product held in stock.

    Guarantees:
        - sku is unique when present.
        - low_stock_threshold is optional; the configured default applies
          when it is NULL.
    """

    __tablename__ = "products"

    __table_args__ = (
        CheckConstraint("quantity >= 0", name="ck_product_quantity_non_negative"),
        Index("idx_product_sku", "sku", unique=True),
        Index("idx_product_active", "is_active"),
    )

    name: Mapped[str] = mapped_column(String(255), nullable=False)

    sku: Mapped[str | None] = mapped_column(String(100), nullable=True)

    category: Mapped[str | None] = mapped_column(String(100), nullable=True)

    brand: Mapped[str | None] = mapped_column(String(100), nullable=True)

    quantity: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    cost_price: Mapped[Decimal] = mapped_column(default=Decimal("0"), nullable=False)

    selling_price: Mapped[Decimal] = mapped_column(
        default=Decimal("0"), nullable=False
    )

    low_stock_threshold: Mapped[int | None] = mapped_column(Integer, nullable=True)

    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    def effective_threshold(self, default_threshold: int) -> int:
        """Threshold for alerting and restocking decisions."""
        if self.low_stock_threshold is None:
            return default_threshold
        return self.low_stock_threshold

    def __repr__(self) -> str:
        return f"<Product {self.name} qty={self.quantity}>"
