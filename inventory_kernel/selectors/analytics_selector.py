"""
Module: inventory_kernel.selectors.analytics_selector
Responsibility: Read access to stored demand predictions and seasonal trends.
Architecture position: Kernel > Selectors.
"""

from decimal import Decimal

from sqlalchemy import select

from inventory_kernel.domain.dtos import DemandForecast, MonthlyBucket, SeasonalAnalysis
from inventory_kernel.models.forecast import DemandPrediction, SeasonalTrend
from inventory_kernel.selectors.base import BaseSelector


def prediction_to_dto(row: DemandPrediction) -> DemandForecast:
    features = row.features_used or {}
    return DemandForecast(
        prediction_id=row.id,
        product_id=row.product_id,
        product_name=row.product_name,
        predicted_demand=row.predicted_demand,
        confidence_level=row.confidence_level,
        prediction_period=row.prediction_period,
        moving_average_short=features.get("moving_average_7"),
        moving_average_long=features.get("moving_average_30"),
        linear_trend=features.get("linear_trend"),
        prediction_date=row.prediction_date,
    )


def trend_to_dto(row: SeasonalTrend) -> SeasonalAnalysis:
    return SeasonalAnalysis(
        product_id=row.product_id,
        product_name=row.product_name,
        year=row.trend_year,
        monthly=tuple(
            MonthlyBucket(
                month=m["month"],
                sales=m["sales"],
                revenue=Decimal(m["revenue"]),
                transactions=m["transactions"],
            )
            for m in row.monthly_breakdown
        ),
        seasonal_indices=tuple(row.seasonal_indices),
        annual_sales=row.annual_sales,
        annual_revenue=row.annual_revenue,
        peak_month=row.peak_month,
        low_month=row.low_month,
        trend_strength=row.trend_strength,
    )


class AnalyticsSelector(BaseSelector[DemandPrediction]):
    def recent_predictions(self, limit: int = 20) -> list[DemandForecast]:
        stmt = (
            select(DemandPrediction)
            .order_by(DemandPrediction.prediction_date.desc(), DemandPrediction.id)
            .limit(limit)
        )
        return [prediction_to_dto(p) for p in self.session.execute(stmt).scalars()]

    def seasonal_trends(self, year: int) -> list[SeasonalAnalysis]:
        """Trends for ``year``, strongest seasonality first."""
        stmt = (
            select(SeasonalTrend)
            .where(SeasonalTrend.trend_year == year)
            .order_by(SeasonalTrend.trend_strength.desc(), SeasonalTrend.product_name)
        )
        return [trend_to_dto(t) for t in self.session.execute(stmt).scalars()]
