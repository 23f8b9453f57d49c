"""
Module: inventory_kernel.selectors.product_selector
Responsibility: Read access to products and the dashboard headline figures.
Architecture position: Kernel > Selectors.

Low-stock counting uses each product's own threshold when set, else the
configured default, matching what the alert service compares against.
"""

from decimal import Decimal
from uuid import UUID

from sqlalchemy import func, select

from inventory_kernel.domain.dtos import DashboardStats, ProductSnapshot
from inventory_kernel.exceptions import ProductNotFoundError
from inventory_kernel.models.product import Product
from inventory_kernel.models.sale import SaleRecord
from inventory_kernel.selectors.base import BaseSelector


class ProductSelector(BaseSelector[Product]):
    def get(self, product_id: UUID) -> ProductSnapshot:
        product = self.session.get(Product, product_id)
        if product is None:
            raise ProductNotFoundError(str(product_id))
        return ProductSnapshot.from_model(product)

    def list_active(self) -> list[ProductSnapshot]:
        stmt = select(Product).where(Product.is_active.is_(True)).order_by(Product.name)
        return [ProductSnapshot.from_model(p) for p in self.session.execute(stmt).scalars()]

    def active_ids(self) -> list[UUID]:
        stmt = select(Product.id).where(Product.is_active.is_(True)).order_by(Product.name)
        return list(self.session.execute(stmt).scalars())

    def dashboard_stats(self, default_threshold: int) -> DashboardStats:
        products = self.session.execute(
            select(
                Product.quantity,
                Product.cost_price,
                Product.low_stock_threshold,
            ).where(Product.is_active.is_(True))
        ).all()

        low_stock = 0
        out_of_stock = 0
        units = 0
        cost_value = Decimal("0")
        for quantity, cost_price, threshold in products:
            units += quantity
            cost_value += cost_price * quantity
            if quantity == 0:
                out_of_stock += 1
            elif quantity <= (default_threshold if threshold is None else threshold):
                low_stock += 1

        revenue, sale_count = self.session.execute(
            select(
                func.coalesce(func.sum(SaleRecord.total_amount), 0),
                func.count(SaleRecord.id),
            )
        ).one()

        return DashboardStats(
            product_count=len(products),
            total_units=units,
            low_stock_count=low_stock,
            out_of_stock_count=out_of_stock,
            inventory_cost_value=cost_value,
            total_sales_revenue=Decimal(str(revenue)),
            total_sales_count=sale_count,
        )
