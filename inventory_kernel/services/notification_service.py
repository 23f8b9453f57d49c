"""
NotificationService -- records notification intent in the outbox table.

Delivery is somebody else's job: rows are written with status "pending"
inside the caller's unit, so a notification exists only if the change that
caused it committed.
"""

from __future__ import annotations

from uuid import UUID

from inventory_kernel.logging_config import get_logger
from inventory_kernel.models.notification import NotificationLog, NotificationStatus
from inventory_kernel.services.base import BaseService

logger = get_logger("services.notification")


class NotificationService(BaseService[NotificationLog]):
    def __init__(self, session, clock=None, recipient: str = "inventory-alerts"):
        super().__init__(session, clock)
        self.recipient = recipient

    def queue(
        self,
        notification_type: str,
        subject: str,
        body: str,
        reference_type: str | None = None,
        reference_id: UUID | None = None,
        recipient: str | None = None,
    ) -> NotificationLog:
        row = NotificationLog(
            notification_type=notification_type,
            recipient=recipient or self.recipient,
            subject=subject,
            body=body,
            status=NotificationStatus.PENDING.value,
            reference_type=reference_type,
            reference_id=reference_id,
            queued_at=self.clock.now(),
        )
        self.session.add(row)
        self.session.flush()
        logger.info(
            "notification_queued",
            extra={
                "notification_type": notification_type,
                "reference_id": str(reference_id) if reference_id else None,
            },
        )
        return row
