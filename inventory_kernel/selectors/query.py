"""
Typed list queries with allow-listed sorting.

Sort fields and directions arrive from request parameters; they are checked
against per-query allow-lists and mapped onto model columns, so nothing a
caller supplies is ever spliced into SQL text.  Filter values are bound
parameters.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any, ClassVar
from uuid import UUID

from inventory_kernel.exceptions import ValidationError
from inventory_kernel.models.return_record import ReturnStatus

SORT_DIRECTIONS = frozenset({"asc", "desc"})
MAX_PAGE_SIZE = 500


@dataclass(frozen=True)
class ListQuery:
    """Common paging and sorting; subclasses name their sortable fields."""

    ALLOWED_SORT_FIELDS: ClassVar[frozenset[str]] = frozenset()
    DEFAULT_SORT_FIELD: ClassVar[str] = ""

    sort_by: str | None = None
    sort_direction: str = "desc"
    limit: int = 50
    offset: int = 0
    search: str | None = None

    def __post_init__(self) -> None:
        if self.sort_by is not None and self.sort_by not in self.ALLOWED_SORT_FIELDS:
            raise ValidationError(
                "sort_by",
                f"'{self.sort_by}' is not one of {sorted(self.ALLOWED_SORT_FIELDS)}",
            )
        if self.sort_direction.lower() not in SORT_DIRECTIONS:
            raise ValidationError(
                "sort_direction", f"'{self.sort_direction}' must be 'asc' or 'desc'"
            )
        if isinstance(self.limit, bool) or not isinstance(self.limit, int) or not (
            1 <= self.limit <= MAX_PAGE_SIZE
        ):
            raise ValidationError("limit", f"must be between 1 and {MAX_PAGE_SIZE}")
        if isinstance(self.offset, bool) or not isinstance(self.offset, int) or self.offset < 0:
            raise ValidationError("offset", "must be a non-negative integer")

    @property
    def effective_sort_field(self) -> str:
        return self.sort_by or self.DEFAULT_SORT_FIELD

    @property
    def descending(self) -> bool:
        return self.sort_direction.lower() == "desc"


@dataclass(frozen=True)
class SalesQuery(ListQuery):
    ALLOWED_SORT_FIELDS: ClassVar[frozenset[str]] = frozenset({
        "sale_date", "total_amount", "quantity_sold", "sales_platform", "created_date",
    })
    DEFAULT_SORT_FIELD: ClassVar[str] = "sale_date"

    product_id: UUID | None = None
    sales_platform: str | None = None
    date_from: datetime | None = None
    date_to: datetime | None = None


@dataclass(frozen=True)
class ReturnsQuery(ListQuery):
    ALLOWED_SORT_FIELDS: ClassVar[frozenset[str]] = frozenset({
        "created_date", "return_status", "customer_name", "quantity", "refund_amount",
    })
    DEFAULT_SORT_FIELD: ClassVar[str] = "created_date"

    status: str | None = None
    product_id: UUID | None = None

    def __post_init__(self) -> None:
        super().__post_init__()
        if self.status is not None and self.status not in {s.value for s in ReturnStatus}:
            raise ValidationError("status", f"unknown return status '{self.status}'")


@dataclass(frozen=True)
class Page:
    """One page of results plus the unpaged total."""

    items: tuple[Any, ...]
    total: int
    limit: int
    offset: int

    @property
    def has_more(self) -> bool:
        return self.offset + len(self.items) < self.total
