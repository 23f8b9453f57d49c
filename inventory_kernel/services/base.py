"""
Shared constructor for kernel services.

A service works inside a unit of work it did not open: it writes with
``session.flush()`` and leaves commit and rollback to LedgerCoordinator,
or to the test that handed it the session.
"""

from abc import ABC
from typing import Generic, TypeVar

from sqlalchemy.orm import Session

from inventory_kernel.db.base import Base
from inventory_kernel.domain.clock import Clock, SystemClock

RowT = TypeVar("RowT", bound=Base)


class BaseService(ABC, Generic[RowT]):
    def __init__(self, session: Session, clock: Clock | None = None):
        self.session = session
        self.clock = clock or SystemClock()
