"""
Module: inventory_engines.alerting
Responsibility:
    Low-stock alert policy: when to raise an alert, how severe it is, and
    when an active alert clears.

Architecture position:
    Engines -- pure calculation layer, zero I/O.  AlertService applies the
    decision to persisted alerts.

Invariants enforced:
    - Create only when quantity <= threshold and no alert is active.
    - Resolve only when quantity > threshold * resolve_ratio (hysteresis
      band between threshold and threshold * resolve_ratio).
    - Severity is computed once, at creation; an active alert is never
      re-classified.

Failure modes:
    - ValueError from AlertPolicy on a negative threshold or ratios outside
      0 < critical_ratio < 1 < resolve_ratio.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from inventory_engines.tracer import traced_engine


class AlertAction(str, Enum):
    CREATE = "create"
    RESOLVE = "resolve"
    NONE = "none"


@dataclass(frozen=True)
class AlertPolicy:
    """
    Thresholds that drive the alert state machine.

    Guarantees:
        - default_threshold >= 0.
        - 0 < critical_ratio < 1 < resolve_ratio.
    """

    default_threshold: int = 10
    critical_ratio: float = 0.5
    resolve_ratio: float = 1.5

    def __post_init__(self) -> None:
        if self.default_threshold < 0:
            raise ValueError("default_threshold must be >= 0")
        if not 0 < self.critical_ratio < 1:
            raise ValueError("critical_ratio must be between 0 and 1")
        if self.resolve_ratio <= 1:
            raise ValueError("resolve_ratio must be greater than 1")


@dataclass(frozen=True)
class AlertSeverity:
    alert_type: str
    priority: str


@dataclass(frozen=True)
class AlertDecision:
    action: AlertAction
    severity: AlertSeverity | None = None


OUT_OF_STOCK = AlertSeverity(alert_type="out_of_stock", priority="critical")
CRITICAL = AlertSeverity(alert_type="critical", priority="high")
LOW_STOCK = AlertSeverity(alert_type="low_stock", priority="medium")


def classify_severity(quantity: int, threshold: int, policy: AlertPolicy) -> AlertSeverity:
    """Severity of a new alert for ``quantity`` against ``threshold``."""
    if quantity <= 0:
        return OUT_OF_STOCK
    if quantity <= threshold * policy.critical_ratio:
        return CRITICAL
    return LOW_STOCK


def should_alert(quantity: int, threshold: int) -> bool:
    return quantity <= threshold


def should_resolve(quantity: int, threshold: int, policy: AlertPolicy) -> bool:
    return quantity > threshold * policy.resolve_ratio


@traced_engine("alerting", "1.0", fingerprint_fields=("quantity", "threshold", "has_active_alert"))
def decide(
    *,
    quantity: int,
    threshold: int,
    has_active_alert: bool,
    policy: AlertPolicy,
) -> AlertDecision:
    """
    Decide what to do with one product's alert state.

    Returns CREATE with a severity, RESOLVE, or NONE.
    """
    if has_active_alert:
        if should_resolve(quantity, threshold, policy):
            return AlertDecision(action=AlertAction.RESOLVE)
        return AlertDecision(action=AlertAction.NONE)

    if should_alert(quantity, threshold):
        return AlertDecision(
            action=AlertAction.CREATE,
            severity=classify_severity(quantity, threshold, policy),
        )
    return AlertDecision(action=AlertAction.NONE)
