"""
Module: inventory_kernel.models.inventory_log
Responsibility: Append-only ledger of every change to Product.quantity.
Architecture position: Kernel > Models.  May import from db/ only.

Invariants enforced:
    - new_quantity == previous_quantity + change_amount (written together by
      StockLedgerService).
    - new_quantity >= 0.
    - Append-only: UPDATE/DELETE blocked by db/immutability.py.

Audit relevance:
    Replaying the entries for a product in logged order reconstructs its
    quantity; InventoryLedgerSelector.reconcile() checks exactly that.
"""

from datetime import datetime
from enum import Enum
from uuid import UUID

from sqlalchemy import CheckConstraint, ForeignKey, Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from inventory_kernel.db.base import Base, UUIDString


class InventoryChangeReason(str, Enum):
    """Well-known reasons; callers may supply any other short string."""

    INITIAL_STOCK = "initial_stock"
    SALE = "sale"
    RETURN_RESTOCK = "return_restock"
    MANUAL_ADJUSTMENT = "manual_adjustment"


class InventoryLogEntry(Base):
    """One signed delta applied to one product."""

    __tablename__ = "inventory_logs"

    __table_args__ = (
        CheckConstraint("new_quantity >= 0", name="ck_inventory_log_non_negative"),
        CheckConstraint(
            "new_quantity = previous_quantity + change_amount",
            name="ck_inventory_log_delta_chain",
        ),
        Index("idx_inventory_log_product", "product_id", "sequence"),
    )

    product_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("products.id"),
        nullable=False,
    )

    # Per-product ordinal; orders entries logged within the same clock tick.
    sequence: Mapped[int] = mapped_column(Integer, nullable=False)

    previous_quantity: Mapped[int] = mapped_column(Integer, nullable=False)

    new_quantity: Mapped[int] = mapped_column(Integer, nullable=False)

    change_amount: Mapped[int] = mapped_column(Integer, nullable=False)

    reason: Mapped[str] = mapped_column(String(100), nullable=False)

    reference_type: Mapped[str | None] = mapped_column(String(50), nullable=True)

    reference_id: Mapped[UUID | None] = mapped_column(UUIDString(), nullable=True)

    actor_id: Mapped[UUID | None] = mapped_column(UUIDString(), nullable=True)

    logged_at: Mapped[datetime] = mapped_column(nullable=False)

    def __repr__(self) -> str:
        return (
            f"<InventoryLogEntry {self.product_id} "
            f"{self.previous_quantity}->{self.new_quantity} ({self.reason})>"
        )
