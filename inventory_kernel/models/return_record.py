"""
Module: inventory_kernel.models.return_record
Responsibility: ORM persistence for customer returns and their append-only
    activity trail.
Architecture position: Kernel > Models.  May import from db/ and exceptions only.

Invariants enforced:
    - Status transitions follow VALID_RETURN_TRANSITIONS:
          pending  -> approved | rejected | cancelled
          approved -> processed | cancelled
      processed, rejected and cancelled are terminal.
    - quantity > 0 (CHECK constraint).
    - ReturnActivity rows are append-only (db/immutability.py).

Failure modes:
    - ReturnStateConflictError (raised by ReturnService) when
      validate_transition() rejects a target status.
"""

from datetime import datetime
from decimal import Decimal
from enum import Enum
from uuid import UUID

from sqlalchemy import Boolean, CheckConstraint, ForeignKey, Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from inventory_kernel.db.base import Base, TrackedBase, UUIDString
from inventory_kernel.exceptions import ReturnStateConflictError


class ReturnStatus(str, Enum):
    """Lifecycle status of a return."""

    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    PROCESSED = "processed"
    CANCELLED = "cancelled"


VALID_RETURN_TRANSITIONS: dict[ReturnStatus, frozenset[ReturnStatus]] = {
    ReturnStatus.PENDING: frozenset({
        ReturnStatus.APPROVED, ReturnStatus.REJECTED, ReturnStatus.CANCELLED,
    }),
    ReturnStatus.APPROVED: frozenset({
        ReturnStatus.PROCESSED, ReturnStatus.CANCELLED,
    }),
    # Terminal states
    ReturnStatus.REJECTED: frozenset(),
    ReturnStatus.PROCESSED: frozenset(),
    ReturnStatus.CANCELLED: frozenset(),
}


class ReturnRecord(TrackedBase):
    """
    A customer return.

    Contract:
        Only ReturnService mutates status, always through
        validate_transition().  The product quantity is touched only when an
        approved return is processed with a positive restock quantity.
    """

    __tablename__ = "returns"

    __table_args__ = (
        CheckConstraint("quantity > 0", name="ck_return_quantity_positive"),
        Index("idx_return_status", "status"),
        Index("idx_return_product", "product_id"),
    )

    sale_id: Mapped[UUID | None] = mapped_column(
        UUIDString(),
        ForeignKey("sales.id"),
        nullable=True,
    )

    product_id: Mapped[UUID | None] = mapped_column(
        UUIDString(),
        ForeignKey("products.id"),
        nullable=True,
    )

    product_name: Mapped[str | None] = mapped_column(String(255), nullable=True)

    customer_name: Mapped[str] = mapped_column(String(255), nullable=False)

    customer_email: Mapped[str | None] = mapped_column(String(255), nullable=True)

    quantity: Mapped[int] = mapped_column(Integer, nullable=False)

    return_reason: Mapped[str] = mapped_column(String(255), nullable=False)

    return_condition: Mapped[str] = mapped_column(
        String(50), default="good", nullable=False
    )

    sales_platform: Mapped[str | None] = mapped_column(String(50), nullable=True)

    notes: Mapped[str | None] = mapped_column(String(4000), nullable=True)

    status: Mapped[str] = mapped_column(
        String(20),
        default=ReturnStatus.PENDING.value,
        nullable=False,
    )

    return_date: Mapped[datetime] = mapped_column(nullable=False)

    refund_amount: Mapped[Decimal | None] = mapped_column(nullable=True)

    refund_method: Mapped[str | None] = mapped_column(String(50), nullable=True)

    restocked: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    approved_by_id: Mapped[UUID | None] = mapped_column(UUIDString(), nullable=True)
    approved_at: Mapped[datetime | None] = mapped_column(nullable=True)

    rejected_by_id: Mapped[UUID | None] = mapped_column(UUIDString(), nullable=True)
    rejected_at: Mapped[datetime | None] = mapped_column(nullable=True)
    rejection_reason: Mapped[str | None] = mapped_column(String(500), nullable=True)

    processed_by_id: Mapped[UUID | None] = mapped_column(UUIDString(), nullable=True)
    processed_at: Mapped[datetime | None] = mapped_column(nullable=True)

    @property
    def status_enum(self) -> ReturnStatus:
        return ReturnStatus(self.status)

    def validate_transition(self, target: ReturnStatus) -> None:
        """
        Raise ReturnStateConflictError unless ``target`` is reachable from
        the current status.
        """
        allowed = VALID_RETURN_TRANSITIONS.get(self.status_enum, frozenset())
        if target not in allowed:
            raise ReturnStateConflictError(
                return_id=str(self.id),
                current_status=self.status,
                attempted_status=target.value,
            )

    def __repr__(self) -> str:
        return f"<ReturnRecord {self.id} {self.status}>"


class ReturnActivity(Base):
    """One entry in a return's audit trail."""

    __tablename__ = "return_activities"

    __table_args__ = (
        Index("idx_return_activity_return", "return_id", "sequence"),
    )

    return_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("returns.id"),
        nullable=False,
    )

    # Per-return ordinal; orders activities logged within the same clock tick.
    sequence: Mapped[int] = mapped_column(Integer, nullable=False)

    activity_type: Mapped[str] = mapped_column(String(50), nullable=False)

    description: Mapped[str] = mapped_column(String(500), nullable=False)

    performed_by_id: Mapped[UUID | None] = mapped_column(UUIDString(), nullable=True)

    notes: Mapped[str | None] = mapped_column(String(4000), nullable=True)

    occurred_at: Mapped[datetime] = mapped_column(nullable=False)
