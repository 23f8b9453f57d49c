"""
Module: inventory_kernel.models.notification
Responsibility: Outbox of notifications the core wants delivered.
Architecture position: Kernel > Models.  May import from db/ only.

The core only records intent (status "pending"); a dispatcher outside the
core delivers and updates the row.
"""

from datetime import datetime
from enum import Enum
from uuid import UUID

from sqlalchemy import Index, String
from sqlalchemy.orm import Mapped, mapped_column

from inventory_kernel.db.base import Base, UUIDString


class NotificationStatus(str, Enum):
    PENDING = "pending"
    SENT = "sent"
    FAILED = "failed"


class NotificationLog(Base):
    __tablename__ = "notification_logs"

    __table_args__ = (
        Index("idx_notification_status", "status", "queued_at"),
    )

    notification_type: Mapped[str] = mapped_column(String(50), nullable=False)

    recipient: Mapped[str] = mapped_column(String(255), nullable=False)

    subject: Mapped[str] = mapped_column(String(255), nullable=False)

    body: Mapped[str] = mapped_column(String(4000), nullable=False)

    status: Mapped[str] = mapped_column(
        String(20), default=NotificationStatus.PENDING.value, nullable=False
    )

    reference_type: Mapped[str | None] = mapped_column(String(50), nullable=True)

    reference_id: Mapped[UUID | None] = mapped_column(UUIDString(), nullable=True)

    queued_at: Mapped[datetime] = mapped_column(nullable=False)
