"""
Append-only enforcement for inventory log entries, sales and return
activities.
"""

from decimal import Decimal

import pytest
from sqlalchemy import select

from inventory_kernel.exceptions import ImmutabilityViolationError
from inventory_kernel.models.inventory_log import InventoryLogEntry
from inventory_kernel.models.return_record import ReturnActivity
from inventory_kernel.models.sale import SaleRecord


class TestInventoryLogImmutability:
    def test_update_blocked(self, coordinator, make_product):
        product = make_product(quantity=20)

        with pytest.raises(ImmutabilityViolationError) as exc_info:
            with coordinator.unit() as session:
                entry = session.execute(
                    select(InventoryLogEntry).where(
                        InventoryLogEntry.product_id == product.product_id
                    )
                ).scalar_one()
                entry.change_amount = 999
                session.flush()

        assert exc_info.value.entity_type == "InventoryLogEntry"
        assert exc_info.value.code == "IMMUTABILITY_VIOLATION"

    def test_delete_blocked(self, coordinator, make_product):
        product = make_product(quantity=20)

        with pytest.raises(ImmutabilityViolationError, match="cannot be deleted"):
            with coordinator.unit() as session:
                entry = session.execute(
                    select(InventoryLogEntry).where(
                        InventoryLogEntry.product_id == product.product_id
                    )
                ).scalar_one()
                session.delete(entry)
                session.flush()

    def test_ledger_intact_after_blocked_update(self, coordinator, stock, make_product):
        product = make_product(quantity=20)

        with pytest.raises(ImmutabilityViolationError):
            with coordinator.unit() as session:
                entry = session.execute(
                    select(InventoryLogEntry).where(
                        InventoryLogEntry.product_id == product.product_id
                    )
                ).scalar_one()
                entry.new_quantity = 0
                session.flush()

        assert stock.reconcile(product.product_id).is_consistent


class TestSaleImmutability:
    def test_update_blocked(self, coordinator, stock, make_product):
        product = make_product(quantity=20)
        sale = stock.record_sale(product.product_id, 2, Decimal("5.00"), "web")

        with pytest.raises(ImmutabilityViolationError) as exc_info:
            with coordinator.unit() as session:
                record = session.get(SaleRecord, sale.sale_id)
                record.quantity_sold = 1
                session.flush()

        assert exc_info.value.entity_type == "SaleRecord"


class TestReturnActivityImmutability:
    def test_update_blocked(self, coordinator, stock):
        created = stock.create_return("Ada", 1, "damaged")

        with pytest.raises(ImmutabilityViolationError):
            with coordinator.unit() as session:
                activity = session.execute(
                    select(ReturnActivity).where(
                        ReturnActivity.return_id == created.return_id
                    )
                ).scalar_one()
                activity.description = "rewritten"
                session.flush()
