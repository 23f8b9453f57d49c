"""
Shared constructor for read-only query objects.

Selectors run queries on a session the caller owns and hand back DTOs or
plain values.  They never add, delete, flush or commit.
"""

from abc import ABC
from typing import Generic, TypeVar

from sqlalchemy.orm import Session

from inventory_kernel.db.base import Base

RowT = TypeVar("RowT", bound=Base)


class BaseSelector(ABC, Generic[RowT]):
    def __init__(self, session: Session):
        self.session = session
