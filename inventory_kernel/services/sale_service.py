"""
SaleService -- Records a sale and decrements stock in one flush.

Responsibility:
    Validates a sale request, checks availability under the product row
    lock, writes the SaleRecord, applies the decrement through
    StockLedgerService, and reads the resulting quantity back.

Architecture position:
    Kernel > Services.  Runs inside a LedgerCoordinator unit opened by
    StockOrchestrator; flushes only.

Invariants enforced:
    - Input is validated before any query is issued.
    - Stock is checked BEFORE the sale row is written; an oversell leaves
      no trace.
    - total_amount == quantity_sold * sale_price, exact Decimal.

Failure modes:
    - ValidationError: quantity_sold not a positive int, sale_price not
      positive, sales_platform blank.
    - ProductNotFoundError / InsufficientStockError from the stock ledger.
"""

from __future__ import annotations

from decimal import Decimal
from uuid import UUID, uuid4

from inventory_kernel.domain.dtos import SaleResult
from inventory_kernel.domain.validation import (
    require_amount,
    require_positive_int,
    require_text,
)
from inventory_kernel.logging_config import get_logger
from inventory_kernel.models.inventory_log import InventoryChangeReason
from inventory_kernel.models.sale import SaleRecord
from inventory_kernel.services.base import BaseService
from inventory_kernel.services.stock_ledger import StockLedgerService

logger = get_logger("services.sale")

DEFAULT_LOW_STOCK_THRESHOLD = 10


class SaleService(BaseService[SaleRecord]):
    """Writes sales against locked products."""

    def __init__(
        self,
        session,
        clock=None,
        default_threshold: int = DEFAULT_LOW_STOCK_THRESHOLD,
    ):
        super().__init__(session, clock)
        self.default_threshold = default_threshold
        self._ledger = StockLedgerService(session, self.clock)

    def record_sale(
        self,
        product_id: UUID,
        quantity_sold: int,
        sale_price: Decimal | int | str,
        sales_platform: str,
        customer_info: str | None = None,
        payment_method: str | None = None,
        actor_id: UUID | None = None,
    ) -> SaleResult:
        """
        Record one sale.

        Returns:
            SaleResult with the new sale id, total, remaining stock and
            whether remaining stock is below the product's threshold.
        """
        require_positive_int(quantity_sold, "quantity_sold")
        price = require_amount(sale_price, "sale_price")
        platform = require_text(sales_platform, "sales_platform")

        product = self._ledger.lock_product(product_id)
        self._ledger.ensure_available(product, quantity_sold)

        total_amount = price * quantity_sold
        sale = SaleRecord(
            id=uuid4(),
            product_id=product.id,
            quantity_sold=quantity_sold,
            sale_price=price,
            total_amount=total_amount,
            sales_platform=platform,
            customer_info=customer_info,
            payment_method=payment_method,
            sale_date=self.clock.now(),
            created_by_id=actor_id,
        )
        self.session.add(sale)
        self.session.flush()

        self._ledger.apply_change(
            product,
            -quantity_sold,
            InventoryChangeReason.SALE.value,
            reference_type="sale",
            reference_id=sale.id,
            actor_id=actor_id,
        )

        self.session.refresh(product, ["quantity"])
        remaining = product.quantity
        threshold = product.effective_threshold(self.default_threshold)

        logger.info(
            "sale_recorded",
            extra={
                "sale_id": str(sale.id),
                "product_id": str(product.id),
                "quantity_sold": quantity_sold,
                "total_amount": str(total_amount),
                "remaining_stock": remaining,
            },
        )
        return SaleResult(
            sale_id=sale.id,
            total_amount=total_amount,
            remaining_stock=remaining,
            needs_restocking=remaining < threshold,
        )
