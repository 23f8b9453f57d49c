"""
Module: inventory_engines.seasonality
Responsibility:
    Monthly seasonality profile of a product for one calendar year: zero-
    filled monthly totals, seasonal indices, peak/low month and a
    coefficient-of-variation trend strength.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    May only import inventory_kernel/domain (and sibling engine modules).

Invariants enforced:
    - Exactly 12 buckets and 12 indices, months 1..12.
    - index[m] = sales[m] / (annual / 12); every index is 1.0 when the
      annual total is zero.
    - Ties for peak/low resolve to the earliest month.
    - 0 <= trend_strength <= 1.

Failure modes:
    - ValueError from bucket_by_month for a sale dated outside ``year``.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Iterable, Sequence

from inventory_engines.tracer import traced_engine
from inventory_kernel.domain.dtos import MonthlyBucket

MONTHS = tuple(range(1, 13))


@dataclass(frozen=True)
class SaleObservation:
    """One sale as the seasonality engine sees it."""

    sale_date: datetime
    quantity: int
    amount: Decimal


@dataclass(frozen=True)
class SeasonalProfile:
    monthly: tuple[MonthlyBucket, ...]
    seasonal_indices: tuple[float, ...]
    annual_sales: int
    annual_revenue: Decimal
    peak_month: int
    low_month: int
    trend_strength: float


def bucket_by_month(
    observations: Iterable[SaleObservation],
    year: int,
) -> tuple[MonthlyBucket, ...]:
    """Aggregate sales into 12 zero-filled monthly buckets."""
    sales = dict.fromkeys(MONTHS, 0)
    revenue = {m: Decimal("0") for m in MONTHS}
    transactions = dict.fromkeys(MONTHS, 0)

    for obs in observations:
        if obs.sale_date.year != year:
            raise ValueError(
                f"Sale dated {obs.sale_date.isoformat()} is outside year {year}"
            )
        month = obs.sale_date.month
        sales[month] += obs.quantity
        revenue[month] += obs.amount
        transactions[month] += 1

    return tuple(
        MonthlyBucket(
            month=m,
            sales=sales[m],
            revenue=revenue[m],
            transactions=transactions[m],
        )
        for m in MONTHS
    )


def seasonal_indices(monthly_sales: Sequence[int]) -> tuple[float, ...]:
    """Each month's sales relative to the average month."""
    annual = sum(monthly_sales)
    if annual <= 0:
        return tuple(1.0 for _ in monthly_sales)
    average = annual / 12
    return tuple(s / average for s in monthly_sales)


def peak_month(indices: Sequence[float]) -> int:
    """1-based month of the highest index; the first month wins ties."""
    best = 0
    for i in range(1, len(indices)):
        if indices[i] > indices[best]:
            best = i
    return best + 1


def low_month(indices: Sequence[float]) -> int:
    """1-based month of the lowest index; the first month wins ties."""
    best = 0
    for i in range(1, len(indices)):
        if indices[i] < indices[best]:
            best = i
    return best + 1


def trend_strength(indices: Sequence[float]) -> float:
    """Population coefficient of variation of the indices, clamped to [0, 1]."""
    if not indices:
        return 0.0
    mean = sum(indices) / len(indices)
    if mean <= 0:
        return 0.0
    variance = sum((v - mean) ** 2 for v in indices) / len(indices)
    return min(1.0, math.sqrt(variance) / mean)


@traced_engine("seasonality", "1.0", fingerprint_fields=("year",))
def analyze_year(
    *,
    observations: Iterable[SaleObservation],
    year: int,
) -> SeasonalProfile:
    """Build the full seasonal profile for one product-year."""
    monthly = bucket_by_month(observations, year)
    indices = seasonal_indices([b.sales for b in monthly])

    return SeasonalProfile(
        monthly=monthly,
        seasonal_indices=indices,
        annual_sales=sum(b.sales for b in monthly),
        annual_revenue=sum((b.revenue for b in monthly), Decimal("0")),
        peak_month=peak_month(indices),
        low_month=low_month(indices),
        trend_strength=trend_strength(indices),
    )
