"""
Module: inventory_kernel.selectors.inventory_ledger_selector
Responsibility: Read access to the inventory log and quantity reconciliation.
Architecture position: Kernel > Selectors.

Invariants checked:
    - Chaining: each entry's previous_quantity equals the prior entry's
      new_quantity, and the first entry starts from zero.
    - The last entry's new_quantity equals Product.quantity.

Audit relevance:
    reconcile() is the proof that no code path changed a quantity without
    logging it.
"""

from dataclasses import dataclass
from datetime import datetime
from uuid import UUID

from sqlalchemy import select

from inventory_kernel.domain.dtos import LedgerReconciliation
from inventory_kernel.exceptions import ProductNotFoundError
from inventory_kernel.models.inventory_log import InventoryLogEntry
from inventory_kernel.models.product import Product
from inventory_kernel.selectors.base import BaseSelector


@dataclass(frozen=True)
class InventoryLogDTO:
    sequence: int
    previous_quantity: int
    new_quantity: int
    change_amount: int
    reason: str
    reference_type: str | None
    reference_id: UUID | None
    logged_at: datetime


class InventoryLedgerSelector(BaseSelector[InventoryLogEntry]):
    def entries(self, product_id: UUID) -> list[InventoryLogDTO]:
        """All log entries of a product in sequence order."""
        stmt = (
            select(InventoryLogEntry)
            .where(InventoryLogEntry.product_id == product_id)
            .order_by(InventoryLogEntry.sequence)
        )
        return [
            InventoryLogDTO(
                sequence=e.sequence,
                previous_quantity=e.previous_quantity,
                new_quantity=e.new_quantity,
                change_amount=e.change_amount,
                reason=e.reason,
                reference_type=e.reference_type,
                reference_id=e.reference_id,
                logged_at=e.logged_at,
            )
            for e in self.session.execute(stmt).scalars()
        ]

    def reconcile(self, product_id: UUID) -> LedgerReconciliation:
        product = self.session.get(Product, product_id)
        if product is None:
            raise ProductNotFoundError(str(product_id))

        entries = self.entries(product_id)
        chain_intact = True
        expected_previous = 0
        for entry in entries:
            if (
                entry.previous_quantity != expected_previous
                or entry.new_quantity != entry.previous_quantity + entry.change_amount
            ):
                chain_intact = False
                break
            expected_previous = entry.new_quantity

        return LedgerReconciliation(
            product_id=product.id,
            product_quantity=product.quantity,
            ledger_quantity=entries[-1].new_quantity if entries else None,
            entry_count=len(entries),
            chain_intact=chain_intact,
        )
