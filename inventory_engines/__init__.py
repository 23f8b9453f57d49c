"""
Module: inventory_engines
Responsibility:
    Package entrypoint re-exporting the pure calculation engines used by the
    inventory kernel services.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    May only import inventory_kernel/domain (and sibling engine modules).
    MUST NOT import inventory_services or the kernel's db/services layers.

Invariants enforced:
    - Purity: engines never read the clock; dates and windows are passed in.
    - Determinism: identical inputs always produce identical outputs.
"""

from inventory_engines.alerting import (
    AlertAction,
    AlertDecision,
    AlertPolicy,
    AlertSeverity,
    classify_severity,
    decide,
)
from inventory_engines.forecasting import (
    DemandEstimate,
    ForecastWeights,
    accuracy_score,
    estimate_demand,
    linear_trend,
    moving_average,
)
from inventory_engines.seasonality import (
    SaleObservation,
    SeasonalProfile,
    analyze_year,
)

__all__ = [
    "AlertAction",
    "AlertDecision",
    "AlertPolicy",
    "AlertSeverity",
    "classify_severity",
    "decide",
    "DemandEstimate",
    "ForecastWeights",
    "accuracy_score",
    "estimate_demand",
    "linear_trend",
    "moving_average",
    "SaleObservation",
    "SeasonalProfile",
    "analyze_year",
]
