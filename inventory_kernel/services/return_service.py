"""
ReturnService -- Customer return lifecycle.

Responsibility:
    Creates returns and moves them through the status machine defined by
    VALID_RETURN_TRANSITIONS, appending a ReturnActivity for every step.
    Processing an approved return records the refund and, when asked to,
    restocks the product through StockLedgerService.

Architecture position:
    Kernel > Services.  Runs inside a LedgerCoordinator unit; flushes only.

Invariants enforced:
    - Only approved returns can be processed; only pending returns can be
      approved or rejected.  A rejected transition writes nothing.
    - Every lifecycle step appends exactly one ReturnActivity.
    - Restocking goes through the stock ledger, so it is paired with an
      InventoryLogEntry(reason "return_restock").

Failure modes:
    - ValidationError for malformed input (checked before any query).
    - ReturnNotFoundError, ProductNotFoundError.
    - ReturnStateConflictError(return_id, current_status, attempted_status).
"""

from __future__ import annotations

from decimal import Decimal
from uuid import UUID, uuid4

from sqlalchemy import func, select

from inventory_kernel.domain.dtos import ReturnProcessingResult, ReturnSnapshot
from inventory_kernel.domain.validation import (
    require_amount,
    require_non_negative_int,
    require_positive_int,
    require_text,
)
from inventory_kernel.exceptions import (
    ProductNotFoundError,
    ReturnNotFoundError,
    SaleNotFoundError,
)
from inventory_kernel.logging_config import get_logger
from inventory_kernel.models.inventory_log import InventoryChangeReason
from inventory_kernel.models.product import Product
from inventory_kernel.models.return_record import (
    ReturnActivity,
    ReturnRecord,
    ReturnStatus,
)
from inventory_kernel.models.sale import SaleRecord
from inventory_kernel.services.base import BaseService
from inventory_kernel.services.stock_ledger import StockLedgerService

logger = get_logger("services.return")


class ReturnService(BaseService[ReturnRecord]):
    """Return lifecycle with an append-only activity trail."""

    def __init__(self, session, clock=None):
        super().__init__(session, clock)
        self._ledger = StockLedgerService(session, self.clock)

    def _lock_return(self, return_id: UUID) -> ReturnRecord:
        stmt = (
            select(ReturnRecord)
            .where(ReturnRecord.id == return_id)
            .with_for_update()
        )
        record = self.session.execute(stmt).scalar_one_or_none()
        if record is None:
            raise ReturnNotFoundError(str(return_id))
        return record

    def _add_activity(
        self,
        record: ReturnRecord,
        activity_type: str,
        description: str,
        performed_by: UUID | None,
        notes: str | None = None,
    ) -> None:
        current = self.session.execute(
            select(func.max(ReturnActivity.sequence)).where(
                ReturnActivity.return_id == record.id
            )
        ).scalar_one_or_none()
        self.session.add(
            ReturnActivity(
                return_id=record.id,
                sequence=(current or 0) + 1,
                activity_type=activity_type,
                description=description,
                performed_by_id=performed_by,
                notes=notes,
                occurred_at=self.clock.now(),
            )
        )

    def create_return(
        self,
        customer_name: str,
        quantity: int,
        return_reason: str,
        product_id: UUID | None = None,
        sale_id: UUID | None = None,
        customer_email: str | None = None,
        return_condition: str = "good",
        sales_platform: str | None = None,
        notes: str | None = None,
        created_by: UUID | None = None,
    ) -> ReturnSnapshot:
        """
        Open a pending return.

        When only ``sale_id`` is given, the product is taken from the sale.
        """
        customer_name = require_text(customer_name, "customer_name")
        require_positive_int(quantity, "quantity")
        return_reason = require_text(return_reason, "return_reason")

        product_name = None
        if sale_id is not None:
            sale = self.session.get(SaleRecord, sale_id)
            if sale is None:
                raise SaleNotFoundError(str(sale_id))
            if product_id is None:
                product_id = sale.product_id
            if sales_platform is None:
                sales_platform = sale.sales_platform
        if product_id is not None:
            product = self.session.get(Product, product_id)
            if product is None:
                raise ProductNotFoundError(str(product_id))
            product_name = product.name

        record = ReturnRecord(
            id=uuid4(),
            sale_id=sale_id,
            product_id=product_id,
            product_name=product_name,
            customer_name=customer_name,
            customer_email=customer_email,
            quantity=quantity,
            return_reason=return_reason,
            return_condition=return_condition,
            sales_platform=sales_platform,
            notes=notes,
            status=ReturnStatus.PENDING.value,
            return_date=self.clock.now(),
            restocked=False,
            created_by_id=created_by,
        )
        self.session.add(record)
        self.session.flush()
        self._add_activity(
            record,
            "created",
            f"Return created for {customer_name}",
            created_by,
            notes,
        )
        self.session.flush()

        logger.info(
            "return_created",
            extra={"return_id": str(record.id), "quantity": quantity},
        )
        return ReturnSnapshot.from_model(record)

    def approve_return(
        self,
        return_id: UUID,
        approved_by: UUID | None = None,
        notes: str | None = None,
    ) -> ReturnSnapshot:
        record = self._lock_return(return_id)
        record.validate_transition(ReturnStatus.APPROVED)

        record.status = ReturnStatus.APPROVED.value
        record.approved_by_id = approved_by
        record.approved_at = self.clock.now()
        record.updated_by_id = approved_by
        self._add_activity(record, "approved", "Return approved", approved_by, notes)
        self.session.flush()

        logger.info("return_approved", extra={"return_id": str(record.id)})
        return ReturnSnapshot.from_model(record)

    def reject_return(
        self,
        return_id: UUID,
        rejected_by: UUID | None,
        reason: str,
        notes: str | None = None,
    ) -> ReturnSnapshot:
        reason = require_text(reason, "reason")
        record = self._lock_return(return_id)
        record.validate_transition(ReturnStatus.REJECTED)

        record.status = ReturnStatus.REJECTED.value
        record.rejected_by_id = rejected_by
        record.rejected_at = self.clock.now()
        record.rejection_reason = reason
        record.updated_by_id = rejected_by
        self._add_activity(
            record, "rejected", f"Return rejected: {reason}", rejected_by, notes
        )
        self.session.flush()

        logger.info(
            "return_rejected",
            extra={"return_id": str(record.id), "reason": reason},
        )
        return ReturnSnapshot.from_model(record)

    def cancel_return(
        self,
        return_id: UUID,
        cancelled_by: UUID | None = None,
        notes: str | None = None,
    ) -> ReturnSnapshot:
        record = self._lock_return(return_id)
        record.validate_transition(ReturnStatus.CANCELLED)

        record.status = ReturnStatus.CANCELLED.value
        record.updated_by_id = cancelled_by
        self._add_activity(record, "cancelled", "Return cancelled", cancelled_by, notes)
        self.session.flush()

        logger.info("return_cancelled", extra={"return_id": str(record.id)})
        return ReturnSnapshot.from_model(record)

    def process_return(
        self,
        return_id: UUID,
        processed_by: UUID | None,
        refund_amount: Decimal | int | str,
        refund_method: str,
        restock_quantity: int = 0,
        product_id: UUID | None = None,
    ) -> ReturnProcessingResult:
        """
        Complete an approved return.

        The refund is recorded and the return marked restocked.  When
        ``restock_quantity`` > 0 and a product is known (``product_id``, else
        the return's own product), that many units go back on hand.
        """
        refund = require_amount(refund_amount, "refund_amount", allow_zero=True)
        refund_method = require_text(refund_method, "refund_method")
        require_non_negative_int(restock_quantity, "restock_quantity")

        record = self._lock_return(return_id)
        record.validate_transition(ReturnStatus.PROCESSED)

        now = self.clock.now()
        record.status = ReturnStatus.PROCESSED.value
        record.refund_amount = refund
        record.refund_method = refund_method
        record.processed_by_id = processed_by
        record.processed_at = now
        record.restocked = True
        record.updated_by_id = processed_by

        target_id = product_id or record.product_id
        new_quantity: int | None = None
        if target_id is not None and restock_quantity > 0:
            product = self._ledger.lock_product(target_id)
            self._ledger.apply_change(
                product,
                restock_quantity,
                InventoryChangeReason.RETURN_RESTOCK.value,
                reference_type="return",
                reference_id=record.id,
                actor_id=processed_by,
            )
            new_quantity = product.quantity
        elif target_id is not None:
            # nothing goes back on hand; the product is only read, and may be gone
            product = self.session.get(Product, target_id)
            new_quantity = product.quantity if product is not None else None

        self._add_activity(
            record,
            "processed",
            f"Return processed: refund {refund} via {refund_method}",
            processed_by,
        )
        self.session.flush()

        logger.info(
            "return_processed",
            extra={
                "return_id": str(record.id),
                "refund_amount": str(refund),
                "restock_quantity": restock_quantity,
                "new_quantity": new_quantity,
            },
        )
        return ReturnProcessingResult(
            return_updated=True,
            restocked=True,
            new_quantity=new_quantity,
            product_id=target_id,
        )
