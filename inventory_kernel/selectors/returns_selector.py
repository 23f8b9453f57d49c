"""
Module: inventory_kernel.selectors.returns_selector
Responsibility: Paged, allow-list-sorted read access to returns and their
    activity trail.
Architecture position: Kernel > Selectors.
"""

from dataclasses import dataclass
from datetime import datetime
from uuid import UUID

from sqlalchemy import func, select

from inventory_kernel.domain.dtos import ReturnSnapshot
from inventory_kernel.exceptions import ReturnNotFoundError
from inventory_kernel.models.return_record import ReturnActivity, ReturnRecord
from inventory_kernel.selectors.base import BaseSelector
from inventory_kernel.selectors.query import Page, ReturnsQuery

SORT_COLUMNS = {
    "created_date": ReturnRecord.created_at,
    "return_status": ReturnRecord.status,
    "customer_name": ReturnRecord.customer_name,
    "quantity": ReturnRecord.quantity,
    "refund_amount": ReturnRecord.refund_amount,
}


@dataclass(frozen=True)
class ReturnActivityDTO:
    activity_type: str
    description: str
    performed_by_id: UUID | None
    notes: str | None
    occurred_at: datetime


class ReturnsSelector(BaseSelector[ReturnRecord]):
    def get(self, return_id: UUID) -> ReturnSnapshot:
        record = self.session.get(ReturnRecord, return_id)
        if record is None:
            raise ReturnNotFoundError(str(return_id))
        return ReturnSnapshot.from_model(record)

    def list_returns(self, query: ReturnsQuery | None = None) -> Page:
        query = query or ReturnsQuery()
        stmt = select(ReturnRecord)
        if query.status is not None:
            stmt = stmt.where(ReturnRecord.status == query.status)
        if query.product_id is not None:
            stmt = stmt.where(ReturnRecord.product_id == query.product_id)
        if query.search:
            stmt = stmt.where(
                ReturnRecord.customer_name.icontains(query.search, autoescape=True)
            )

        total = self.session.execute(
            select(func.count()).select_from(stmt.subquery())
        ).scalar_one()

        column = SORT_COLUMNS[query.effective_sort_field]
        order = column.desc() if query.descending else column.asc()
        records = self.session.execute(
            stmt.order_by(order, ReturnRecord.id).limit(query.limit).offset(query.offset)
        ).scalars()

        return Page(
            items=tuple(ReturnSnapshot.from_model(r) for r in records),
            total=total,
            limit=query.limit,
            offset=query.offset,
        )

    def activities(self, return_id: UUID) -> list[ReturnActivityDTO]:
        """Activity trail of a return, oldest first."""
        stmt = (
            select(ReturnActivity)
            .where(ReturnActivity.return_id == return_id)
            .order_by(ReturnActivity.sequence)
        )
        return [
            ReturnActivityDTO(
                activity_type=a.activity_type,
                description=a.description,
                performed_by_id=a.performed_by_id,
                notes=a.notes,
                occurred_at=a.occurred_at,
            )
            for a in self.session.execute(stmt).scalars()
        ]
