"""
Tests for inventory_engines.seasonality.

Monthly bucketing, seasonal indices, peak/low month tie-breaking and the
coefficient-of-variation trend strength.
"""

from datetime import datetime
from decimal import Decimal

import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from inventory_engines.seasonality import (
    SaleObservation,
    analyze_year,
    bucket_by_month,
    low_month,
    peak_month,
    seasonal_indices,
    trend_strength,
)


def _sale(month: int, quantity: int, amount: str = "10.00", year: int = 2025, day: int = 15):
    return SaleObservation(
        sale_date=datetime(year, month, day, 10, 0, 0),
        quantity=quantity,
        amount=Decimal(amount),
    )


# =============================================================================
# Bucketing
# =============================================================================


class TestBucketByMonth:
    def test_zero_filled(self):
        buckets = bucket_by_month([], 2025)

        assert [b.month for b in buckets] == list(range(1, 13))
        assert all(b.sales == 0 and b.transactions == 0 for b in buckets)
        assert all(b.revenue == Decimal("0") for b in buckets)

    def test_aggregates_per_month(self):
        buckets = bucket_by_month(
            [
                _sale(3, 2, "20.00"),
                _sale(3, 5, "50.00", day=28),
                _sale(11, 1, "9.99"),
            ],
            2025,
        )

        march = buckets[2]
        assert march.sales == 7
        assert march.revenue == Decimal("70.00")
        assert march.transactions == 2
        assert buckets[10].sales == 1
        assert buckets[10].revenue == Decimal("9.99")

    def test_sale_outside_year_rejected(self):
        with pytest.raises(ValueError, match="outside year 2025"):
            bucket_by_month([_sale(1, 1, year=2024)], 2025)


# =============================================================================
# Indices and derived figures
# =============================================================================


class TestSeasonalIndices:
    def test_flat_year(self):
        assert seasonal_indices([10] * 12) == tuple([1.0] * 12)

    def test_zero_year_is_all_ones(self):
        assert seasonal_indices([0] * 12) == tuple([1.0] * 12)

    def test_relative_to_average_month(self):
        sales = [0] * 12
        sales[5] = 12
        indices = seasonal_indices(sales)

        assert indices[5] == pytest.approx(12.0)
        assert sum(indices) == pytest.approx(12.0)


class TestPeakAndLow:
    def test_first_month_wins_ties(self):
        indices = [1.0] * 12
        assert peak_month(indices) == 1
        assert low_month(indices) == 1

    def test_distinct_extremes(self):
        indices = [1.0, 0.5, 1.0, 2.0, 1.0, 0.2, 1.0, 2.0, 1.0, 1.0, 1.0, 0.2]
        assert peak_month(indices) == 4
        assert low_month(indices) == 6


class TestTrendStrength:
    def test_flat_is_zero(self):
        assert trend_strength([1.0] * 12) == 0.0

    def test_clamped_to_one(self):
        indices = [0.0] * 12
        indices[0] = 12.0
        assert trend_strength(indices) == 1.0

    def test_moderate_variation(self):
        indices = [0.5, 1.5] * 6
        assert trend_strength(indices) == pytest.approx(0.5)

    def test_empty(self):
        assert trend_strength([]) == 0.0


# =============================================================================
# analyze_year
# =============================================================================


class TestAnalyzeYear:
    def test_flat_sales_profile(self):
        """Equal sales in every month: no seasonality, first month wins."""
        observations = [_sale(m, 10) for m in range(1, 13)]
        profile = analyze_year(observations=observations, year=2025)

        assert profile.seasonal_indices == tuple([1.0] * 12)
        assert profile.peak_month == 1
        assert profile.low_month == 1
        assert profile.trend_strength == 0.0
        assert profile.annual_sales == 120
        assert profile.annual_revenue == Decimal("120.00")

    def test_no_sales_profile(self):
        profile = analyze_year(observations=[], year=2025)

        assert profile.seasonal_indices == tuple([1.0] * 12)
        assert profile.annual_sales == 0
        assert profile.annual_revenue == Decimal("0")
        assert profile.trend_strength == 0.0
        assert len(profile.monthly) == 12

    def test_holiday_peak(self):
        observations = [_sale(m, 5) for m in range(1, 12)] + [_sale(12, 40)]
        profile = analyze_year(observations=observations, year=2025)

        assert profile.peak_month == 12
        assert profile.low_month == 1
        assert profile.seasonal_indices[11] > 1.0
        assert 0.0 < profile.trend_strength <= 1.0


class TestSeasonalityProperties:
    @given(
        sales=st.lists(
            st.integers(min_value=0, max_value=10_000), min_size=12, max_size=12
        )
    )
    @settings(max_examples=150)
    def test_index_invariants(self, sales):
        indices = seasonal_indices(sales)

        assert len(indices) == 12
        if sum(sales) > 0:
            assert sum(indices) == pytest.approx(12.0)
        else:
            assert indices == tuple([1.0] * 12)
        assert 0.0 <= trend_strength(indices) <= 1.0
        assert 1 <= peak_month(indices) <= 12
        assert 1 <= low_month(indices) <= 12
