"""
inventory_services.analytics_orchestrator -- Alerts and forecasting entry points.

Responsibility:
    Runs the low-stock sweep, the demand-prediction batch and the seasonal
    analysis batch, each as one LedgerCoordinator unit with a SAVEPOINT
    per product, and serves the analytics read side.

Architecture position:
    Services -- orchestration over AlertService, ForecastService and the
    analytics selectors.  The periodic jobs in inventory_batch call the
    batch methods here.

Invariants enforced:
    - Per-product isolation: one product failing in a batch is rolled back
      to its SAVEPOINT, logged, and skipped; the others commit.
    - Predictions and trends are computed by the pure engines from stored
      sales only; nothing here writes stock.

Failure modes:
    - Single-product operations raise ProductNotFoundError /
      PredictionNotFoundError / ValidationError from the kernel.
    - Batch operations never raise for a per-product failure.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import TypeVar
from uuid import UUID

from sqlalchemy.orm import Session

from inventory_config import CoreConfig
from inventory_engines.alerting import AlertPolicy
from inventory_engines.forecasting import ForecastWeights
from inventory_kernel.domain.clock import Clock, SystemClock
from inventory_kernel.domain.dtos import (
    AlertEvaluation,
    AlertSnapshot,
    AlertSweepResult,
    AnalyticsDashboard,
    DemandForecast,
    SeasonalAnalysis,
)
from inventory_kernel.domain.validation import require_positive_int
from inventory_kernel.logging_config import LogContext, get_logger
from inventory_kernel.selectors.alert_selector import AlertSelector
from inventory_kernel.selectors.analytics_selector import AnalyticsSelector
from inventory_kernel.selectors.product_selector import ProductSelector
from inventory_kernel.services.alert_service import AlertService
from inventory_kernel.services.forecast_service import ForecastService
from inventory_kernel.services.ledger_coordinator import LedgerCoordinator
from inventory_kernel.services.notification_service import NotificationService
from inventory_kernel.utils.cache import CacheRegistry
from inventory_services import cache_keys

logger = get_logger("services.analytics_orchestrator")

R = TypeVar("R")


class AnalyticsOrchestrator:
    """Alert lifecycle and forecast operations over committed units."""

    def __init__(
        self,
        coordinator: LedgerCoordinator,
        caches: CacheRegistry,
        clock: Clock | None = None,
        config: CoreConfig | None = None,
    ) -> None:
        self._coordinator = coordinator
        self._caches = caches
        self._clock = clock or SystemClock()
        self._config = config or CoreConfig.with_defaults()

        alerts = self._config.alerts
        self._policy = AlertPolicy(
            default_threshold=alerts.default_threshold,
            critical_ratio=alerts.critical_ratio,
            resolve_ratio=alerts.resolve_ratio,
        )
        forecast = self._config.forecast
        self._weights = ForecastWeights(
            moving_average_short=forecast.weight_short,
            moving_average_long=forecast.weight_long,
            linear_trend=forecast.weight_trend,
        )

    def _alert_service(self, session: Session) -> AlertService:
        notifications = NotificationService(
            session, self._clock, recipient=self._config.alerts.notification_recipient
        )
        return AlertService(session, self._clock, self._policy, notifications)

    def _forecast_service(self, session: Session) -> ForecastService:
        forecast = self._config.forecast
        return ForecastService(
            session,
            self._clock,
            weights=self._weights,
            short_period=forecast.short_period,
            long_period=forecast.long_period,
            confidence_step=forecast.confidence_step,
            model_version=forecast.model_version,
        )

    def _invalidate_dashboard(self) -> None:
        self._caches.get("dashboard").delete_many(
            [cache_keys.ANALYTICS_DASHBOARD, cache_keys.DASHBOARD_STATS]
        )

    def _invalidate_trends(self, year: int) -> None:
        self._caches.get("reference").delete(cache_keys.seasonal_trends_key(year))
        self._invalidate_dashboard()

    def _for_each_product(
        self,
        operation: str,
        work: Callable[[Session, UUID], R | None],
    ) -> list[R]:
        """
        Run ``work`` for every active product, each in its own short unit so
        that stock mutations can interleave with a long batch.  Failures are
        logged and skipped; None results are dropped.
        """
        with self._coordinator.unit() as session:
            product_ids = ProductSelector(session).active_ids()

        results: list[R] = []
        failed = 0
        for product_id in product_ids:
            try:
                with LogContext.bind(product_id=str(product_id)):
                    with self._coordinator.unit() as session:
                        result = work(session, product_id)
            except Exception:
                failed += 1
                logger.exception(
                    f"{operation}_product_failed",
                    extra={"product_id": str(product_id)},
                )
                continue
            if result is not None:
                results.append(result)

        logger.info(
            f"{operation}_completed",
            extra={
                "products": len(product_ids),
                "succeeded": len(results),
                "failed": failed,
            },
        )
        return results

    # ------------------------------------------------------------------
    # Alerts
    # ------------------------------------------------------------------

    def check_low_stock_alerts(self) -> AlertSweepResult:
        """Evaluate every active product's alert state."""
        with self._coordinator.unit() as session:
            result = self._alert_service(session).sweep()
        self._invalidate_dashboard()
        return result

    def evaluate_product_alert(self, product_id: UUID) -> AlertEvaluation:
        with self._coordinator.unit() as session:
            evaluation = self._alert_service(session).evaluate_product(product_id)
        self._invalidate_dashboard()
        return evaluation

    def get_active_low_stock_alerts(self) -> list[AlertSnapshot]:
        """Active alerts, most urgent first."""
        with self._coordinator.unit() as session:
            return AlertSelector(session).active_alerts()

    def get_alert_history(self, product_id: UUID) -> list[AlertSnapshot]:
        with self._coordinator.unit() as session:
            return AlertSelector(session).history(product_id)

    def resolve_low_stock_alert(
        self,
        product_id: UUID,
        resolved_by: UUID | None = None,
    ) -> int:
        with self._coordinator.unit() as session:
            count = self._alert_service(session).resolve(product_id, resolved_by)
        self._invalidate_dashboard()
        return count

    def ignore_low_stock_alert(
        self,
        product_id: UUID,
        ignored_by: UUID | None = None,
    ) -> int:
        with self._coordinator.unit() as session:
            count = self._alert_service(session).ignore(product_id, ignored_by)
        self._invalidate_dashboard()
        return count

    # ------------------------------------------------------------------
    # Demand prediction
    # ------------------------------------------------------------------

    def predict_product_demand(
        self,
        product_id: UUID,
        days: int | None = None,
    ) -> DemandForecast | None:
        """
        Forecast one product over the trailing ``days`` window.

        Returns None when the product sold nothing in the window.
        """
        window = self._config.forecast.window_days if days is None else days
        require_positive_int(window, "days")
        with self._coordinator.unit() as session:
            forecast = self._forecast_service(session).predict(product_id, window)
        self._invalidate_dashboard()
        return forecast

    def generate_demand_predictions(self, days: int | None = None) -> list[DemandForecast]:
        """Forecast every active product; products without sales are skipped."""
        window = self._config.forecast.window_days if days is None else days
        require_positive_int(window, "days")
        predictions = self._for_each_product(
            "demand_predictions",
            lambda session, pid: self._forecast_service(session).predict(pid, window),
        )
        self._invalidate_dashboard()
        return predictions

    def record_actual_demand(self, prediction_id: UUID, actual_demand: int) -> float:
        """Score a stored prediction against observed demand."""
        with self._coordinator.unit() as session:
            return self._forecast_service(session).record_actual_demand(
                prediction_id, actual_demand
            )

    def get_recent_predictions(self, limit: int | None = None) -> list[DemandForecast]:
        limit = self._config.forecast.recent_limit if limit is None else limit
        require_positive_int(limit, "limit")
        with self._coordinator.unit() as session:
            return AnalyticsSelector(session).recent_predictions(limit)

    # ------------------------------------------------------------------
    # Seasonality
    # ------------------------------------------------------------------

    def _default_year(self, year: int | None) -> int:
        return self._clock.now().year if year is None else year

    def analyze_product_seasonal_trend(
        self,
        product_id: UUID,
        year: int | None = None,
    ) -> SeasonalAnalysis:
        target = self._default_year(year)
        with self._coordinator.unit() as session:
            analysis = self._forecast_service(session).analyze_seasonal(product_id, target)
        self._invalidate_trends(target)
        return analysis

    def analyze_seasonal_trends(self, year: int | None = None) -> list[SeasonalAnalysis]:
        """Analyze every active product for ``year`` (default: the current year)."""
        target = self._default_year(year)
        trends = self._for_each_product(
            "seasonal_analysis",
            lambda session, pid: self._forecast_service(session).analyze_seasonal(pid, target),
        )
        self._invalidate_trends(target)
        return trends

    def get_seasonal_trends(self, year: int | None = None) -> list[SeasonalAnalysis]:
        """Stored trends for ``year``, strongest first; held in the reference cache."""
        target = self._default_year(year)

        def fetch() -> tuple[SeasonalAnalysis, ...]:
            with self._coordinator.unit() as session:
                return tuple(AnalyticsSelector(session).seasonal_trends(target))

        cache = self._caches.get("reference")
        return list(cache.get_or_fetch(cache_keys.seasonal_trends_key(target), fetch))

    # ------------------------------------------------------------------
    # Dashboard
    # ------------------------------------------------------------------

    def get_dashboard_data(self) -> AnalyticsDashboard:
        """Active alerts, recent predictions and this year's trends, cached."""
        def fetch() -> AnalyticsDashboard:
            year = self._clock.now().year
            with self._coordinator.unit() as session:
                analytics = AnalyticsSelector(session)
                return AnalyticsDashboard(
                    active_alerts=tuple(AlertSelector(session).active_alerts()),
                    recent_predictions=tuple(
                        analytics.recent_predictions(self._config.forecast.recent_limit)
                    ),
                    seasonal_trends=tuple(analytics.seasonal_trends(year)),
                )

        return self._caches.get("dashboard").get_or_fetch(
            cache_keys.ANALYTICS_DASHBOARD, fetch
        )
