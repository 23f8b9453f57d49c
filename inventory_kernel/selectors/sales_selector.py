"""
Module: inventory_kernel.selectors.sales_selector
Responsibility: Paged, filtered, allow-list-sorted read access to sales.
Architecture position: Kernel > Selectors.

Invariants enforced:
    - Sort columns come from SORT_COLUMNS keyed by the validated
      SalesQuery.sort_by; filters and search terms are bound parameters.
    - Ties on the sort column break on id so paging is stable.
"""

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from uuid import UUID

from sqlalchemy import func, or_, select

from inventory_kernel.models.product import Product
from inventory_kernel.models.sale import SaleRecord
from inventory_kernel.selectors.base import BaseSelector
from inventory_kernel.selectors.query import Page, SalesQuery

SORT_COLUMNS = {
    "sale_date": SaleRecord.sale_date,
    "total_amount": SaleRecord.total_amount,
    "quantity_sold": SaleRecord.quantity_sold,
    "sales_platform": SaleRecord.sales_platform,
    "created_date": SaleRecord.created_at,
}


@dataclass(frozen=True)
class SaleSummary:
    sale_id: UUID
    product_id: UUID
    product_name: str
    quantity_sold: int
    sale_price: Decimal
    total_amount: Decimal
    sales_platform: str
    customer_info: str | None
    payment_method: str | None
    sale_date: datetime


class SalesSelector(BaseSelector[SaleRecord]):
    def _filtered(self, query: SalesQuery):
        stmt = select(SaleRecord, Product.name).join(
            Product, Product.id == SaleRecord.product_id
        )
        if query.product_id is not None:
            stmt = stmt.where(SaleRecord.product_id == query.product_id)
        if query.sales_platform is not None:
            stmt = stmt.where(SaleRecord.sales_platform == query.sales_platform)
        if query.date_from is not None:
            stmt = stmt.where(SaleRecord.sale_date >= query.date_from)
        if query.date_to is not None:
            stmt = stmt.where(SaleRecord.sale_date <= query.date_to)
        if query.search:
            # autoescape: "%" and "_" in the search text match literally
            stmt = stmt.where(
                or_(
                    Product.name.icontains(query.search, autoescape=True),
                    SaleRecord.customer_info.icontains(query.search, autoescape=True),
                )
            )
        return stmt

    def list_sales(self, query: SalesQuery | None = None) -> Page:
        query = query or SalesQuery()
        stmt = self._filtered(query)

        total = self.session.execute(
            select(func.count()).select_from(stmt.subquery())
        ).scalar_one()

        column = SORT_COLUMNS[query.effective_sort_field]
        order = column.desc() if query.descending else column.asc()
        rows = self.session.execute(
            stmt.order_by(order, SaleRecord.id).limit(query.limit).offset(query.offset)
        ).all()

        items = tuple(
            SaleSummary(
                sale_id=sale.id,
                product_id=sale.product_id,
                product_name=product_name,
                quantity_sold=sale.quantity_sold,
                sale_price=sale.sale_price,
                total_amount=sale.total_amount,
                sales_platform=sale.sales_platform,
                customer_info=sale.customer_info,
                payment_method=sale.payment_method,
                sale_date=sale.sale_date,
            )
            for sale, product_name in rows
        )
        return Page(items=items, total=total, limit=query.limit, offset=query.offset)
