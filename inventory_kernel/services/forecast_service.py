"""
ForecastService -- Persists demand predictions and seasonal trends.

Responsibility:
    Pulls sales history out of storage, hands it to the pure engines in
    inventory_engines.forecasting / inventory_engines.seasonality, and
    stores what they produce.

Architecture position:
    Kernel > Services.  Runs inside a LedgerCoordinator unit opened by
    AnalyticsOrchestrator; flushes only.

Invariants enforced:
    - Day and month grouping happens in Python on the sale timestamps, so
      SQLite and PostgreSQL group identically.
    - A product with no sales in the window gets no prediction row.
    - DemandPrediction is append-only apart from the actual-demand audit
      fields; SeasonalTrend is upserted per (product, year).

Failure modes:
    - ProductNotFoundError for an unknown product.
    - PredictionNotFoundError from record_actual_demand().
    - ValidationError for a window < 1 day or a negative actual demand.
"""

from __future__ import annotations

from datetime import datetime, timedelta
from uuid import UUID

from sqlalchemy import select

from inventory_engines.forecasting import (
    CONFIDENCE_STEP,
    LONG_PERIOD,
    SHORT_PERIOD,
    ForecastWeights,
    accuracy_score,
    estimate_demand,
)
from inventory_engines.seasonality import SaleObservation, analyze_year
from inventory_kernel.domain.dtos import DemandForecast, SeasonalAnalysis
from inventory_kernel.domain.validation import require_non_negative_int, require_positive_int
from inventory_kernel.exceptions import PredictionNotFoundError, ProductNotFoundError
from inventory_kernel.logging_config import get_logger
from inventory_kernel.models.forecast import DemandPrediction, SeasonalTrend
from inventory_kernel.models.product import Product
from inventory_kernel.models.sale import SaleRecord
from inventory_kernel.selectors.analytics_selector import prediction_to_dto
from inventory_kernel.services.base import BaseService

logger = get_logger("services.forecast")

MODEL_VERSION = "1.0"


class ForecastService(BaseService[DemandPrediction]):
    """Demand prediction and seasonality persistence."""

    def __init__(
        self,
        session,
        clock=None,
        weights: ForecastWeights | None = None,
        short_period: int = SHORT_PERIOD,
        long_period: int = LONG_PERIOD,
        confidence_step: float = CONFIDENCE_STEP,
        model_version: str = MODEL_VERSION,
    ):
        super().__init__(session, clock)
        self.weights = weights or ForecastWeights()
        self.short_period = short_period
        self.long_period = long_period
        self.confidence_step = confidence_step
        self.model_version = model_version

    def _product(self, product_id: UUID) -> Product:
        product = self.session.get(Product, product_id)
        if product is None:
            raise ProductNotFoundError(str(product_id))
        return product

    def daily_sales(self, product_id: UUID, days: int) -> list[int]:
        """
        Units sold per calendar day over the trailing ``days`` window,
        oldest first.  Days without sales are absent.
        """
        since = self.clock.now() - timedelta(days=days)
        stmt = (
            select(SaleRecord.sale_date, SaleRecord.quantity_sold)
            .where(
                SaleRecord.product_id == product_id,
                SaleRecord.sale_date >= since,
            )
            .order_by(SaleRecord.sale_date)
        )
        per_day: dict = {}
        for sale_date, quantity in self.session.execute(stmt):
            day = sale_date.date()
            per_day[day] = per_day.get(day, 0) + quantity
        return [per_day[d] for d in sorted(per_day)]

    def predict(self, product_id: UUID, days: int = LONG_PERIOD) -> DemandForecast | None:
        """
        Forecast one product and store the prediction.

        Returns None (and stores nothing) when the product has no sales in
        the window.
        """
        require_positive_int(days, "days")
        product = self._product(product_id)

        series = self.daily_sales(product.id, days)
        if not series:
            logger.info(
                "demand_prediction_insufficient_data",
                extra={"product_id": str(product.id), "days": days},
            )
            return None

        estimate = estimate_demand(
            daily_sales=series,
            window_days=days,
            weights=self.weights,
            short_period=self.short_period,
            long_period=self.long_period,
            confidence_step=self.confidence_step,
        )

        row = DemandPrediction(
            product_id=product.id,
            product_name=product.name,
            prediction_type="ensemble",
            prediction_period=f"{days}_days",
            predicted_demand=estimate.predicted_demand,
            confidence_level=estimate.confidence_level,
            features_used=estimate.features(),
            prediction_date=self.clock.now(),
            model_version=self.model_version,
        )
        self.session.add(row)
        self.session.flush()

        logger.info(
            "demand_prediction_stored",
            extra={
                "product_id": str(product.id),
                "prediction_id": str(row.id),
                "predicted_demand": estimate.predicted_demand,
                "confidence_level": estimate.confidence_level,
            },
        )
        return prediction_to_dto(row)

    def record_actual_demand(self, prediction_id: UUID, actual_demand: int) -> float:
        """Store observed demand against a prediction; returns the accuracy."""
        require_non_negative_int(actual_demand, "actual_demand")
        row = self.session.get(DemandPrediction, prediction_id)
        if row is None:
            raise PredictionNotFoundError(str(prediction_id))

        score = accuracy_score(row.predicted_demand, actual_demand)
        row.actual_demand = actual_demand
        row.accuracy_score = score
        self.session.flush()

        logger.info(
            "demand_prediction_scored",
            extra={
                "prediction_id": str(row.id),
                "predicted_demand": row.predicted_demand,
                "actual_demand": actual_demand,
                "accuracy_score": score,
            },
        )
        return score

    def _year_bounds(self, year: int) -> tuple[datetime, datetime]:
        tz = self.clock.now().tzinfo
        return datetime(year, 1, 1, tzinfo=tz), datetime(year + 1, 1, 1, tzinfo=tz)

    def analyze_seasonal(self, product_id: UUID, year: int) -> SeasonalAnalysis:
        """Compute and upsert one product's seasonal trend for ``year``."""
        product = self._product(product_id)
        start, end = self._year_bounds(year)

        stmt = select(
            SaleRecord.sale_date,
            SaleRecord.quantity_sold,
            SaleRecord.total_amount,
        ).where(
            SaleRecord.product_id == product.id,
            SaleRecord.sale_date >= start,
            SaleRecord.sale_date < end,
        )
        observations = [
            SaleObservation(sale_date=d, quantity=q, amount=a)
            for d, q, a in self.session.execute(stmt)
        ]
        profile = analyze_year(observations=observations, year=year)

        breakdown = [
            {
                "month": b.month,
                "sales": b.sales,
                "revenue": str(b.revenue),
                "transactions": b.transactions,
            }
            for b in profile.monthly
        ]

        row = self.session.execute(
            select(SeasonalTrend).where(
                SeasonalTrend.product_id == product.id,
                SeasonalTrend.trend_year == year,
            )
        ).scalar_one_or_none()
        if row is None:
            row = SeasonalTrend(product_id=product.id, trend_year=year)
            self.session.add(row)

        row.product_name = product.name
        row.monthly_breakdown = breakdown
        row.seasonal_indices = list(profile.seasonal_indices)
        row.annual_sales = profile.annual_sales
        row.annual_revenue = profile.annual_revenue
        row.peak_month = profile.peak_month
        row.low_month = profile.low_month
        row.trend_strength = profile.trend_strength
        row.analyzed_at = self.clock.now()
        self.session.flush()

        logger.info(
            "seasonal_trend_stored",
            extra={
                "product_id": str(product.id),
                "year": year,
                "annual_sales": profile.annual_sales,
                "peak_month": profile.peak_month,
                "trend_strength": profile.trend_strength,
            },
        )
        return SeasonalAnalysis(
            product_id=product.id,
            product_name=product.name,
            year=year,
            monthly=profile.monthly,
            seasonal_indices=profile.seasonal_indices,
            annual_sales=profile.annual_sales,
            annual_revenue=profile.annual_revenue,
            peak_month=profile.peak_month,
            low_month=profile.low_month,
            trend_strength=profile.trend_strength,
        )
