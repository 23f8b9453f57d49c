"""
The four periodic jobs of the inventory core.

    low_stock_check      hourly      AnalyticsOrchestrator.check_low_stock_alerts
    demand_predictions   02:00 daily AnalyticsOrchestrator.generate_demand_predictions
    seasonal_analysis    03:00 Sun   AnalyticsOrchestrator.analyze_seasonal_trends
    cache_cleanup        every 5 min CacheRegistry.cleanup_all

Cron expressions come from ``CoreConfig.jobs``.
"""

from __future__ import annotations

from inventory_batch.jobs import GuardedJob, JobRegistry
from inventory_services.core import InventoryCore

LOW_STOCK_CHECK = "low_stock_check"
DEMAND_PREDICTIONS = "demand_predictions"
SEASONAL_ANALYSIS = "seasonal_analysis"
CACHE_CLEANUP = "cache_cleanup"


def build_core_jobs(core: InventoryCore) -> JobRegistry:
    """
    Build the guarded jobs for one core.

    Raises:
        ValueError: If a configured cron expression does not parse.
    """
    crons = core.config.jobs
    analytics = core.analytics
    return JobRegistry([
        GuardedJob(
            LOW_STOCK_CHECK,
            crons.low_stock_check,
            analytics.check_low_stock_alerts,
            core.clock,
        ),
        GuardedJob(
            DEMAND_PREDICTIONS,
            crons.demand_predictions,
            analytics.generate_demand_predictions,
            core.clock,
        ),
        GuardedJob(
            SEASONAL_ANALYSIS,
            crons.seasonal_analysis,
            analytics.analyze_seasonal_trends,
            core.clock,
        ),
        GuardedJob(
            CACHE_CLEANUP,
            crons.cache_cleanup,
            core.caches.cleanup_all,
            core.clock,
        ),
    ])
