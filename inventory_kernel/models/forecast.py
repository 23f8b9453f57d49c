"""
Module: inventory_kernel.models.forecast
Responsibility: ORM persistence for demand predictions and seasonal trends.
Architecture position: Kernel > Models.  May import from db/ only.

Invariants enforced:
    - DemandPrediction rows are append-only apart from actual_demand and
      accuracy_score, which are filled in once the period has elapsed.
    - predicted_demand >= 0; 0 <= confidence_level <= 1 (CHECK constraints).
    - One SeasonalTrend per (product_id, trend_year); re-analysis updates
      the existing row.
"""

from datetime import datetime
from decimal import Decimal
from uuid import UUID

from sqlalchemy import (
    JSON,
    CheckConstraint,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column

from inventory_kernel.db.base import Base, UUIDString


class DemandPrediction(Base):
    """One ensemble demand forecast for one product."""

    __tablename__ = "demand_predictions"

    __table_args__ = (
        CheckConstraint(
            "predicted_demand >= 0", name="ck_prediction_non_negative"
        ),
        CheckConstraint(
            "confidence_level >= 0 AND confidence_level <= 1",
            name="ck_prediction_confidence_range",
        ),
        Index("idx_prediction_product_date", "product_id", "prediction_date"),
    )

    product_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("products.id"),
        nullable=False,
    )

    product_name: Mapped[str] = mapped_column(String(255), nullable=False)

    prediction_type: Mapped[str] = mapped_column(
        String(50), default="ensemble", nullable=False
    )

    # "{days}_days"
    prediction_period: Mapped[str] = mapped_column(String(50), nullable=False)

    predicted_demand: Mapped[int] = mapped_column(Integer, nullable=False)

    confidence_level: Mapped[float] = mapped_column(Float, nullable=False)

    features_used: Mapped[dict] = mapped_column(JSON, nullable=False)

    prediction_date: Mapped[datetime] = mapped_column(nullable=False)

    model_version: Mapped[str] = mapped_column(String(20), nullable=False)

    actual_demand: Mapped[int | None] = mapped_column(Integer, nullable=True)

    accuracy_score: Mapped[float | None] = mapped_column(Float, nullable=True)


class SeasonalTrend(Base):
    """Monthly seasonality profile of one product for one calendar year."""

    __tablename__ = "seasonal_trends"

    __table_args__ = (
        UniqueConstraint("product_id", "trend_year", name="uq_seasonal_trend_year"),
        Index("idx_seasonal_trend_year", "trend_year"),
    )

    product_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("products.id"),
        nullable=False,
    )

    product_name: Mapped[str] = mapped_column(String(255), nullable=False)

    trend_year: Mapped[int] = mapped_column(Integer, nullable=False)

    # 12 rows of {"month", "sales", "revenue", "transactions"}
    monthly_breakdown: Mapped[list] = mapped_column(JSON, nullable=False)

    seasonal_indices: Mapped[list] = mapped_column(JSON, nullable=False)

    annual_sales: Mapped[int] = mapped_column(Integer, nullable=False)

    annual_revenue: Mapped[Decimal] = mapped_column(nullable=False)

    peak_month: Mapped[int] = mapped_column(Integer, nullable=False)

    low_month: Mapped[int] = mapped_column(Integer, nullable=False)

    trend_strength: Mapped[float] = mapped_column(Float, nullable=False)

    analyzed_at: Mapped[datetime] = mapped_column(nullable=False)
