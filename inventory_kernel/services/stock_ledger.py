"""
StockLedgerService -- The only writer of Product.quantity.

Responsibility:
    Applies signed quantity changes to products under a row lock, refusing
    any change that would drive stock negative, and pairs every applied
    change with exactly one InventoryLogEntry.

Architecture position:
    Kernel > Services.  Used by SaleService, ReturnService, ProductService
    and bulk updates; flushes only, never commits.

Invariants enforced:
    - Non-negative stock: the availability check happens BEFORE any write,
      so a rejected change leaves nothing to roll back.
    - Ledger pairing: quantity and its InventoryLogEntry are written in the
      same flush with the same delta.
    - Per-product sequence numbers on log entries are gapless and
      increasing.

Failure modes:
    - ProductNotFoundError for an unknown product id.
    - InsufficientStockError(product_id, requested, available) when a
      negative change exceeds the quantity on hand.
    - ValidationError for an empty bulk update.
"""

from __future__ import annotations

from collections.abc import Sequence
from uuid import UUID

from sqlalchemy import func, select

from inventory_kernel.domain.dtos import InventoryChange, InventoryDelta
from inventory_kernel.exceptions import (
    InsufficientStockError,
    ProductNotFoundError,
    ValidationError,
)
from inventory_kernel.logging_config import get_logger
from inventory_kernel.models.inventory_log import InventoryLogEntry
from inventory_kernel.models.product import Product
from inventory_kernel.services.base import BaseService

logger = get_logger("services.stock_ledger")


class StockLedgerService(BaseService[Product]):
    """
    Row-locked quantity mutations with an append-only ledger.

    Contract:
        Callers pass a session inside an open unit.  Every public mutation
        either applies fully (quantity + log entry flushed) or raises
        before writing anything.
    """

    def lock_product(self, product_id: UUID) -> Product:
        """
        Load a product with SELECT ... FOR UPDATE.

        Raises:
            ProductNotFoundError: If the product does not exist.
        """
        stmt = select(Product).where(Product.id == product_id).with_for_update()
        product = self.session.execute(stmt).scalar_one_or_none()
        if product is None:
            raise ProductNotFoundError(str(product_id))
        return product

    def ensure_available(self, product: Product, requested: int) -> None:
        """Raise InsufficientStockError unless ``requested`` units are on hand."""
        if product.quantity - requested < 0:
            logger.warning(
                "insufficient_stock",
                extra={
                    "product_id": str(product.id),
                    "requested": requested,
                    "available": product.quantity,
                },
            )
            raise InsufficientStockError(
                product_id=str(product.id),
                requested=requested,
                available=product.quantity,
                product_name=product.name,
            )

    def _next_sequence(self, product_id: UUID) -> int:
        stmt = select(func.max(InventoryLogEntry.sequence)).where(
            InventoryLogEntry.product_id == product_id
        )
        current = self.session.execute(stmt).scalar_one_or_none()
        return (current or 0) + 1

    def apply_change(
        self,
        product: Product,
        change: int,
        reason: str,
        reference_type: str | None = None,
        reference_id: UUID | None = None,
        actor_id: UUID | None = None,
    ) -> InventoryLogEntry:
        """
        Apply a signed delta to an already-locked product.

        Preconditions: ``product`` was loaded via lock_product() in this
            session; ``change`` is a non-zero int.
        Postconditions: product.quantity changed by ``change`` and one
            InventoryLogEntry recording it is flushed.

        Raises:
            InsufficientStockError: If the result would be negative.
        """
        if change < 0:
            self.ensure_available(product, -change)

        previous = product.quantity
        new_quantity = previous + change

        entry = InventoryLogEntry(
            product_id=product.id,
            sequence=self._next_sequence(product.id),
            previous_quantity=previous,
            new_quantity=new_quantity,
            change_amount=change,
            reason=reason,
            reference_type=reference_type,
            reference_id=reference_id,
            actor_id=actor_id,
            logged_at=self.clock.now(),
        )
        product.quantity = new_quantity
        if actor_id is not None:
            product.updated_by_id = actor_id
        self.session.add(entry)
        self.session.flush()

        logger.info(
            "stock_changed",
            extra={
                "product_id": str(product.id),
                "previous_quantity": previous,
                "new_quantity": new_quantity,
                "change": change,
                "reason": reason,
            },
        )
        return entry

    def bulk_apply(
        self,
        deltas: Sequence[InventoryDelta],
        actor_id: UUID | None = None,
    ) -> tuple[InventoryChange, ...]:
        """
        Apply many deltas as one all-or-nothing step.

        Products are locked in id order before anything is written; deltas
        are then applied in input order, so repeated product ids chain.

        Raises:
            ValidationError: If ``deltas`` is empty or holds a non-delta.
            ProductNotFoundError: If any product is missing.
            InsufficientStockError: If any result would be negative.
        """
        if not deltas:
            raise ValidationError("deltas", "at least one inventory delta is required")
        for delta in deltas:
            if not isinstance(delta, InventoryDelta):
                raise ValidationError("deltas", f"expected InventoryDelta, got {delta!r}")

        locked: dict[UUID, Product] = {}
        for product_id in sorted({d.product_id for d in deltas}, key=str):
            locked[product_id] = self.lock_product(product_id)

        # Dry run so that a failing delta anywhere rejects the batch unwritten.
        running = {pid: p.quantity for pid, p in locked.items()}
        for delta in deltas:
            available = running[delta.product_id]
            if available + delta.quantity_change < 0:
                product = locked[delta.product_id]
                raise InsufficientStockError(
                    product_id=str(product.id),
                    requested=-delta.quantity_change,
                    available=available,
                    product_name=product.name,
                )
            running[delta.product_id] = available + delta.quantity_change

        changes: list[InventoryChange] = []
        for delta in deltas:
            product = locked[delta.product_id]
            entry = self.apply_change(
                product,
                delta.quantity_change,
                delta.reason,
                reference_type="adjustment",
                actor_id=actor_id,
            )
            changes.append(
                InventoryChange(
                    product_id=product.id,
                    product_name=product.name,
                    previous_quantity=entry.previous_quantity,
                    new_quantity=entry.new_quantity,
                    change=entry.change_amount,
                )
            )

        logger.info("bulk_inventory_applied", extra={"changes": len(changes)})
        return tuple(changes)
