"""
Declarative base for every inventory table.

Conventions applied through the type annotation map:

    UUID      -> String(36) via UUIDString, so SQLite and PostgreSQL store
                 ids identically
    Decimal   -> Numeric(38, 9); prices, totals and refunds are never floats
    datetime  -> DateTime(timezone=True)
    int       -> BigInteger

Kernel > DB.  Model modules import from here; nothing here imports models,
services or selectors.
"""

from datetime import datetime
from decimal import Decimal
from typing import ClassVar
from uuid import UUID, uuid4

from sqlalchemy import BigInteger, DateTime, Numeric, String, func
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column
from sqlalchemy.types import TypeDecorator

__all__ = ["Base", "TrackedBase", "UUID", "UUIDString"]


class UUIDString(TypeDecorator):
    """UUIDs in a String(36) column; accepts UUID or its string form on bind."""

    impl = String(36)
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        return str(value if isinstance(value, UUID) else UUID(str(value)))

    def process_result_value(self, value, dialect):
        return None if value is None else UUID(value)


class Base(DeclarativeBase):
    type_annotation_map: ClassVar[dict] = {
        UUID: UUIDString(),
        Decimal: Numeric(38, 9),
        datetime: DateTime(timezone=True),
        int: BigInteger,
    }

    id: Mapped[UUID] = mapped_column(UUIDString(), primary_key=True, default=uuid4)

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.id}>"


class TrackedBase(Base):
    """
    Adds row timestamps and the acting user.

    The actor columns are nullable because the alert sweep and the forecast
    jobs write rows with nobody behind them.
    """

    __abstract__ = True

    created_at: Mapped[datetime] = mapped_column(server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(
        server_default=func.now(), onupdate=func.now()
    )
    created_by_id: Mapped[UUID | None] = mapped_column(UUIDString())
    updated_by_id: Mapped[UUID | None] = mapped_column(UUIDString())
