"""
AnalyticsOrchestrator: demand predictions from recorded sales, seasonal
trends, batch isolation and the cached analytics dashboard.
"""

from datetime import datetime, timedelta
from decimal import Decimal
from uuid import uuid4

import pytest

from inventory_kernel.exceptions import (
    PredictionNotFoundError,
    ProductNotFoundError,
    ValidationError,
)
from inventory_kernel.logging_config import LogContext
from inventory_kernel.services.forecast_service import ForecastService

START = datetime(2026, 2, 1, 12, 0, 0)
WEEK = [2, 3, 2, 4, 3, 2, 3]


def _messages(records):
    return [r["message"] for r in records]


def _sell_daily(stock, clock, product_id, quantities, end=START):
    """One sale per day, ending on ``end``; the clock is left at ``end``."""
    for offset, quantity in enumerate(quantities):
        clock.set_time(end - timedelta(days=len(quantities) - 1 - offset))
        stock.record_sale(product_id, quantity, Decimal("10.00"), "web")
    clock.set_time(end)


def _sell_at(stock, clock, product_id, when, quantity, price="10.00"):
    clock.set_time(when)
    stock.record_sale(product_id, quantity, Decimal(price), "web")


# =============================================================================
# Demand prediction
# =============================================================================


class TestPredictProductDemand:
    def test_one_week_of_sales(self, stock, analytics, clock, make_product):
        product = make_product(quantity=100)
        _sell_daily(stock, clock, product.product_id, WEEK)

        forecast = analytics.predict_product_demand(product.product_id)

        assert forecast.predicted_demand == 3
        assert forecast.confidence_level == pytest.approx(0.66)
        assert forecast.moving_average_short == pytest.approx(19 / 7)
        assert forecast.moving_average_long is None
        assert forecast.linear_trend == pytest.approx(3.0)
        assert forecast.prediction_period == "30_days"
        assert forecast.prediction_date == START

    def test_same_day_sales_are_summed(self, stock, analytics, clock, make_product):
        product = make_product(quantity=100)
        _sell_at(stock, clock, product.product_id, START - timedelta(hours=3), 2)
        _sell_at(stock, clock, product.product_id, START - timedelta(hours=1), 3)

        with analytics._coordinator.unit() as session:
            series = ForecastService(session, clock).daily_sales(product.product_id, 30)

        assert series == [5]

    def test_no_sales_is_insufficient_data(self, analytics, make_product, captured_logs):
        product = make_product(quantity=100)

        assert analytics.predict_product_demand(product.product_id) is None
        assert analytics.get_recent_predictions() == []
        assert "demand_prediction_insufficient_data" in _messages(captured_logs())

    def test_sales_outside_window_ignored(self, stock, analytics, clock, make_product):
        product = make_product(quantity=100)
        _sell_at(stock, clock, product.product_id, START - timedelta(days=40), 5)
        clock.set_time(START)

        assert analytics.predict_product_demand(product.product_id, days=30) is None

    def test_short_window_uses_all_estimators(self, stock, analytics, clock, make_product):
        product = make_product(quantity=100)
        _sell_daily(stock, clock, product.product_id, WEEK)

        forecast = analytics.predict_product_demand(product.product_id, days=7)

        assert forecast.moving_average_long == pytest.approx(19 / 7)
        assert forecast.confidence_level == pytest.approx(0.99)
        assert forecast.prediction_period == "7_days"

    @pytest.mark.parametrize("days", [0, -3, 1.5])
    def test_invalid_window(self, analytics, make_product, days):
        product = make_product(quantity=100)
        with pytest.raises(ValidationError):
            analytics.predict_product_demand(product.product_id, days=days)

    def test_unknown_product(self, analytics):
        with pytest.raises(ProductNotFoundError):
            analytics.predict_product_demand(uuid4())

    def test_prediction_is_stored(self, stock, analytics, clock, make_product):
        product = make_product(quantity=100)
        _sell_daily(stock, clock, product.product_id, WEEK)

        forecast = analytics.predict_product_demand(product.product_id)

        recent = analytics.get_recent_predictions()
        assert [p.prediction_id for p in recent] == [forecast.prediction_id]


class TestGenerateDemandPredictions:
    def test_skips_products_without_sales(
        self, stock, analytics, clock, make_product, captured_logs
    ):
        selling = make_product(quantity=100, name="Selling")
        make_product(quantity=100, name="Idle")
        _sell_daily(stock, clock, selling.product_id, WEEK)

        predictions = analytics.generate_demand_predictions()

        assert [p.product_name for p in predictions] == ["Selling"]
        completed = [
            r for r in captured_logs() if r["message"] == "demand_predictions_completed"
        ]
        assert completed[0]["products"] == 2
        assert completed[0]["succeeded"] == 1
        assert completed[0]["failed"] == 0

    def test_failure_isolated_per_product(
        self, stock, analytics, clock, make_product, monkeypatch, captured_logs
    ):
        first = make_product(quantity=100, name="Alpha")
        second = make_product(quantity=100, name="Beta")
        _sell_daily(stock, clock, first.product_id, WEEK)
        _sell_daily(stock, clock, second.product_id, WEEK)
        original = ForecastService.predict

        def flaky(self, product_id, days=30):
            if product_id == first.product_id:
                raise RuntimeError("bad history")
            return original(self, product_id, days)

        monkeypatch.setattr(ForecastService, "predict", flaky)

        predictions = analytics.generate_demand_predictions()

        assert [p.product_name for p in predictions] == ["Beta"]
        assert "demand_predictions_product_failed" in _messages(captured_logs())
        assert len(analytics.get_recent_predictions()) == 1


class TestRecordActualDemand:
    def test_accuracy_stored(self, stock, analytics, clock, make_product):
        product = make_product(quantity=100)
        _sell_daily(stock, clock, product.product_id, WEEK)
        forecast = analytics.predict_product_demand(product.product_id)

        assert analytics.record_actual_demand(forecast.prediction_id, 4) == pytest.approx(0.75)

    def test_unknown_prediction(self, analytics):
        with pytest.raises(PredictionNotFoundError):
            analytics.record_actual_demand(uuid4(), 3)

    def test_negative_actual_rejected(self, analytics):
        with pytest.raises(ValidationError):
            analytics.record_actual_demand(uuid4(), -1)


class TestRecentPredictions:
    def test_limit(self, stock, analytics, clock, make_product):
        product = make_product(quantity=100)
        _sell_daily(stock, clock, product.product_id, WEEK)
        for _ in range(3):
            analytics.predict_product_demand(product.product_id)

        assert len(analytics.get_recent_predictions(limit=2)) == 2
        assert len(analytics.get_recent_predictions()) == 3

    def test_invalid_limit(self, analytics):
        with pytest.raises(ValidationError):
            analytics.get_recent_predictions(limit=0)


# =============================================================================
# Seasonality
# =============================================================================


class TestSeasonalTrends:
    def test_analyze_one_product(self, stock, analytics, clock, make_product):
        product = make_product(quantity=200)
        _sell_at(stock, clock, product.product_id, datetime(2025, 3, 10, 9, 0), 5)
        _sell_at(stock, clock, product.product_id, datetime(2025, 3, 20, 9, 0), 5)
        _sell_at(stock, clock, product.product_id, datetime(2025, 12, 5, 9, 0), 20)
        _sell_at(stock, clock, product.product_id, datetime(2026, 1, 5, 9, 0), 50)
        clock.set_time(START)

        analysis = analytics.analyze_product_seasonal_trend(product.product_id, 2025)

        assert analysis.year == 2025
        assert analysis.annual_sales == 30
        assert analysis.annual_revenue == Decimal("300.00")
        assert analysis.peak_month == 12
        assert analysis.monthly[2].sales == 10
        assert analysis.monthly[2].transactions == 2
        assert analysis.seasonal_indices[11] == pytest.approx(8.0)

    def test_upsert_per_product_year(self, stock, analytics, clock, make_product):
        product = make_product(quantity=200)
        _sell_at(stock, clock, product.product_id, datetime(2025, 6, 1, 9, 0), 4)
        analytics.analyze_product_seasonal_trend(product.product_id, 2025)

        _sell_at(stock, clock, product.product_id, datetime(2025, 7, 1, 9, 0), 2)
        clock.set_time(START)
        analytics.analyze_product_seasonal_trend(product.product_id, 2025)

        trends = analytics.get_seasonal_trends(2025)
        assert len(trends) == 1
        assert trends[0].annual_sales == 6
        assert trends[0].monthly[6].sales == 2

    def test_product_without_sales_is_flat(self, analytics, make_product):
        make_product(quantity=10)

        trends = analytics.analyze_seasonal_trends()

        assert len(trends) == 1
        assert trends[0].year == 2026
        assert trends[0].seasonal_indices == tuple([1.0] * 12)
        assert trends[0].annual_sales == 0
        assert trends[0].trend_strength == 0.0

    def test_trends_ordered_by_strength(self, stock, analytics, clock, make_product):
        steady = make_product(quantity=500, name="Steady")
        seasonal = make_product(quantity=500, name="Seasonal")
        for month in range(1, 13):
            _sell_at(stock, clock, steady.product_id, datetime(2025, month, 2, 9, 0), 3)
        _sell_at(stock, clock, seasonal.product_id, datetime(2025, 12, 2, 9, 0), 30)
        clock.set_time(START)

        analytics.analyze_seasonal_trends(2025)

        names = [t.product_name for t in analytics.get_seasonal_trends(2025)]
        assert names == ["Seasonal", "Steady"]

    def test_unknown_product(self, analytics):
        with pytest.raises(ProductNotFoundError):
            analytics.analyze_product_seasonal_trend(uuid4(), 2025)

    def test_each_product_gets_its_own_unit(
        self, analytics, coordinator, make_product, monkeypatch
    ):
        for name in ("Alpha", "Beta", "Gamma"):
            make_product(quantity=100, name=name)
        original = ForecastService.analyze_seasonal
        unit_ids = []

        def recording(self, product_id, year):
            assert coordinator.in_unit
            unit_ids.append(LogContext.get_all()["unit_id"])
            return original(self, product_id, year)

        monkeypatch.setattr(ForecastService, "analyze_seasonal", recording)

        analytics.analyze_seasonal_trends(2025)

        assert len(unit_ids) == 3
        assert len(set(unit_ids)) == 3
        assert not coordinator.in_unit

    def test_stored_trends_cached_until_reanalyzed(
        self, stock, analytics, caches, clock, make_product
    ):
        product = make_product(quantity=200)
        _sell_at(stock, clock, product.product_id, datetime(2025, 6, 1, 9, 0), 4)
        clock.set_time(START)
        analytics.analyze_seasonal_trends(2025)

        first = analytics.get_seasonal_trends(2025)
        assert caches.get("reference").has("seasonal_trends:2025")
        assert analytics.get_seasonal_trends(2025) == first

        _sell_at(stock, clock, product.product_id, datetime(2025, 7, 1, 9, 0), 2)
        clock.set_time(START)
        analytics.analyze_product_seasonal_trend(product.product_id, 2025)

        assert analytics.get_seasonal_trends(2025)[0].annual_sales == 6


# =============================================================================
# Dashboard
# =============================================================================


class TestAnalyticsDashboard:
    def test_contents(self, stock, analytics, clock, make_product):
        product = make_product(quantity=8)
        _sell_daily(stock, clock, product.product_id, [1, 1])
        analytics.predict_product_demand(product.product_id)
        analytics.analyze_seasonal_trends()

        dashboard = analytics.get_dashboard_data()

        assert len(dashboard.active_alerts) == 1
        assert len(dashboard.recent_predictions) == 1
        assert len(dashboard.seasonal_trends) == 1

    def test_cached(self, analytics, make_product):
        make_product(quantity=50)
        first = analytics.get_dashboard_data()
        assert analytics.get_dashboard_data() is first

    def test_stock_mutation_invalidates(self, stock, analytics, make_product):
        product = make_product(quantity=12)
        assert analytics.get_dashboard_data().active_alerts == ()

        stock.record_sale(product.product_id, 5, Decimal("1.00"), "web")

        assert len(analytics.get_dashboard_data().active_alerts) == 1

    def test_alert_operation_invalidates(self, analytics, make_product):
        product = make_product(quantity=3)
        assert len(analytics.get_dashboard_data().active_alerts) == 1

        analytics.resolve_low_stock_alert(product.product_id)

        assert analytics.get_dashboard_data().active_alerts == ()
