"""
Module: inventory_kernel.selectors.alert_selector
Responsibility: Read access to low-stock alerts.
Architecture position: Kernel > Selectors.
"""

from uuid import UUID

from sqlalchemy import case, select

from inventory_kernel.domain.dtos import AlertSnapshot
from inventory_kernel.models.alert import PRIORITY_RANK, AlertStatus, LowStockAlert
from inventory_kernel.selectors.base import BaseSelector

_priority_rank = case(PRIORITY_RANK, value=LowStockAlert.priority, else_=0)


class AlertSelector(BaseSelector[LowStockAlert]):
    def active_alerts(self) -> list[AlertSnapshot]:
        """Active alerts, most urgent priority first, then newest."""
        stmt = (
            select(LowStockAlert)
            .where(LowStockAlert.status == AlertStatus.ACTIVE.value)
            .order_by(_priority_rank.desc(), LowStockAlert.alerted_at.desc())
        )
        return [AlertSnapshot.from_model(a) for a in self.session.execute(stmt).scalars()]

    def history(self, product_id: UUID) -> list[AlertSnapshot]:
        stmt = (
            select(LowStockAlert)
            .where(LowStockAlert.product_id == product_id)
            .order_by(LowStockAlert.alerted_at.desc())
        )
        return [AlertSnapshot.from_model(a) for a in self.session.execute(stmt).scalars()]
