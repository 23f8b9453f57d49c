"""
Service layer for Product registration.

Stock on hand is never set directly: an initial quantity is applied through
StockLedgerService so that the inventory log starts with an
``initial_stock`` entry.
"""

from __future__ import annotations

from decimal import Decimal
from uuid import UUID

from sqlalchemy import select

from inventory_kernel.domain.dtos import ProductSnapshot
from inventory_kernel.domain.validation import (
    require_amount,
    require_non_negative_int,
    require_text,
)
from inventory_kernel.exceptions import ProductNotFoundError, ValidationError
from inventory_kernel.logging_config import get_logger
from inventory_kernel.models.inventory_log import InventoryChangeReason
from inventory_kernel.models.product import Product
from inventory_kernel.services.base import BaseService
from inventory_kernel.services.stock_ledger import StockLedgerService

logger = get_logger("services.product")


class ProductService(BaseService[Product]):
    """Creates products and exposes them as snapshots."""

    def create_product(
        self,
        name: str,
        quantity: int = 0,
        cost_price: Decimal | int | str = Decimal("0"),
        selling_price: Decimal | int | str = Decimal("0"),
        sku: str | None = None,
        category: str | None = None,
        brand: str | None = None,
        low_stock_threshold: int | None = None,
        actor_id: UUID | None = None,
    ) -> ProductSnapshot:
        """
        Register a product.

        Raises:
            ValidationError: On a blank name, negative quantity or price,
                or a duplicate sku.
        """
        name = require_text(name, "name")
        require_non_negative_int(quantity, "quantity")
        cost = require_amount(cost_price, "cost_price", allow_zero=True)
        price = require_amount(selling_price, "selling_price", allow_zero=True)
        if low_stock_threshold is not None:
            require_non_negative_int(low_stock_threshold, "low_stock_threshold")

        if sku is not None:
            existing = self.session.execute(
                select(Product.id).where(Product.sku == sku)
            ).scalar_one_or_none()
            if existing is not None:
                raise ValidationError("sku", f"already in use: {sku}")

        product = Product(
            name=name,
            sku=sku,
            category=category,
            brand=brand,
            quantity=0,
            cost_price=cost,
            selling_price=price,
            low_stock_threshold=low_stock_threshold,
            is_active=True,
            created_by_id=actor_id,
        )
        self.session.add(product)
        self.session.flush()

        if quantity > 0:
            StockLedgerService(self.session, self.clock).apply_change(
                product,
                quantity,
                InventoryChangeReason.INITIAL_STOCK.value,
                reference_type="product",
                reference_id=product.id,
                actor_id=actor_id,
            )

        logger.info(
            "product_created",
            extra={"product_id": str(product.id), "initial_quantity": quantity},
        )
        return ProductSnapshot.from_model(product)

    def get(self, product_id: UUID) -> ProductSnapshot:
        product = self.session.get(Product, product_id)
        if product is None:
            raise ProductNotFoundError(str(product_id))
        return ProductSnapshot.from_model(product)
