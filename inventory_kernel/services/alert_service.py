"""
AlertService -- Low-stock alert lifecycle.

Responsibility:
    Applies the alert policy from inventory_engines.alerting to persisted
    LowStockAlert rows: raise, auto-resolve, resolve or ignore on request,
    and sweep every active product.

Architecture position:
    Kernel > Services.  Runs inside a LedgerCoordinator unit; flushes only.

Invariants enforced:
    - At most one active alert per product (also a partial unique index).
    - Severity (alert_type, priority) is fixed when the alert is created.
    - Auto-resolution only above threshold * resolve_ratio.
    - Every created alert queues one notification in the same flush.
    - Sweep isolation: each product is evaluated inside its own SAVEPOINT;
      a failure rolls back that product only and is counted.

Failure modes:
    - ProductNotFoundError from evaluate_product().
    - Sweep failures are logged (``low_stock_check_product_failed``) and
      counted, never raised.
"""

from __future__ import annotations

from uuid import UUID

from sqlalchemy import select

from inventory_engines.alerting import AlertAction, AlertPolicy, decide
from inventory_kernel.domain.dtos import AlertEvaluation, AlertOutcome, AlertSweepResult
from inventory_kernel.exceptions import ProductNotFoundError
from inventory_kernel.logging_config import LogContext, get_logger
from inventory_kernel.models.alert import AlertStatus, LowStockAlert
from inventory_kernel.models.product import Product
from inventory_kernel.services.base import BaseService
from inventory_kernel.services.notification_service import NotificationService

logger = get_logger("services.alert")


class AlertService(BaseService[LowStockAlert]):
    """Alert state machine over persisted alerts."""

    def __init__(
        self,
        session,
        clock=None,
        policy: AlertPolicy | None = None,
        notifications: NotificationService | None = None,
    ):
        super().__init__(session, clock)
        self.policy = policy or AlertPolicy()
        self.notifications = notifications or NotificationService(session, self.clock)

    def _active_alert(self, product_id: UUID) -> LowStockAlert | None:
        stmt = select(LowStockAlert).where(
            LowStockAlert.product_id == product_id,
            LowStockAlert.status == AlertStatus.ACTIVE.value,
        )
        return self.session.execute(stmt).scalar_one_or_none()

    def _active_alerts(self, product_id: UUID) -> list[LowStockAlert]:
        stmt = select(LowStockAlert).where(
            LowStockAlert.product_id == product_id,
            LowStockAlert.status == AlertStatus.ACTIVE.value,
        )
        return list(self.session.execute(stmt).scalars())

    def evaluate_product(self, product_id: UUID) -> AlertEvaluation:
        """
        Bring one product's alert state in line with its current quantity.

        Raises:
            ProductNotFoundError: If the product does not exist.
        """
        product = self.session.get(Product, product_id)
        if product is None:
            raise ProductNotFoundError(str(product_id))

        threshold = product.effective_threshold(self.policy.default_threshold)
        active = self._active_alert(product.id)
        decision = decide(
            quantity=product.quantity,
            threshold=threshold,
            has_active_alert=active is not None,
            policy=self.policy,
        )

        if decision.action == AlertAction.CREATE:
            alert = LowStockAlert(
                product_id=product.id,
                product_name=product.name,
                current_quantity=product.quantity,
                threshold_quantity=threshold,
                status=AlertStatus.ACTIVE.value,
                alert_type=decision.severity.alert_type,
                priority=decision.severity.priority,
                alerted_at=self.clock.now(),
                auto_resolved=False,
            )
            self.session.add(alert)
            self.session.flush()
            self.notifications.queue(
                notification_type="low_stock_alert",
                subject=f"Low stock: {product.name}",
                body=(
                    f"{product.name} has {product.quantity} units on hand "
                    f"(threshold {threshold}). Priority: {alert.priority}."
                ),
                reference_type="low_stock_alert",
                reference_id=alert.id,
            )
            logger.info(
                "low_stock_alert_created",
                extra={
                    "product_id": str(product.id),
                    "alert_id": str(alert.id),
                    "quantity": product.quantity,
                    "threshold": threshold,
                    "priority": alert.priority,
                },
            )
            return AlertEvaluation(product.id, AlertOutcome.CREATED, alert.id)

        if decision.action == AlertAction.RESOLVE:
            active.status = AlertStatus.RESOLVED.value
            active.resolved_at = self.clock.now()
            active.auto_resolved = True
            active.current_quantity = product.quantity
            self.session.flush()
            logger.info(
                "low_stock_alert_auto_resolved",
                extra={
                    "product_id": str(product.id),
                    "alert_id": str(active.id),
                    "quantity": product.quantity,
                },
            )
            return AlertEvaluation(product.id, AlertOutcome.RESOLVED, active.id)

        return AlertEvaluation(
            product.id,
            AlertOutcome.UNCHANGED,
            active.id if active is not None else None,
        )

    def sweep(self) -> AlertSweepResult:
        """Evaluate every active product, one SAVEPOINT each."""
        product_ids = list(
            self.session.execute(
                select(Product.id).where(Product.is_active.is_(True)).order_by(Product.name)
            ).scalars()
        )

        created = resolved = failed = 0
        for product_id in product_ids:
            savepoint = self.session.begin_nested()
            try:
                with LogContext.bind(product_id=str(product_id)):
                    evaluation = self.evaluate_product(product_id)
                savepoint.commit()
            except Exception:
                savepoint.rollback()
                failed += 1
                logger.exception(
                    "low_stock_check_product_failed",
                    extra={"product_id": str(product_id)},
                )
                continue

            if evaluation.outcome == AlertOutcome.CREATED:
                created += 1
            elif evaluation.outcome == AlertOutcome.RESOLVED:
                resolved += 1

        result = AlertSweepResult(
            evaluated=len(product_ids),
            created=created,
            resolved=resolved,
            failed=failed,
        )
        logger.info(
            "low_stock_check_completed",
            extra={
                "products_evaluated": result.evaluated,
                "alerts_created": result.created,
                "alerts_resolved": result.resolved,
                "products_failed": result.failed,
            },
        )
        return result

    def _close(
        self,
        product_id: UUID,
        status: AlertStatus,
        actor_id: UUID | None,
    ) -> int:
        alerts = self._active_alerts(product_id)
        now = self.clock.now()
        for alert in alerts:
            alert.status = status.value
            alert.resolved_at = now
            alert.resolved_by_id = actor_id
            alert.auto_resolved = False
        self.session.flush()
        return len(alerts)

    def resolve(self, product_id: UUID, resolved_by: UUID | None = None) -> int:
        """Manually resolve the product's active alert; returns how many."""
        count = self._close(product_id, AlertStatus.RESOLVED, resolved_by)
        logger.info(
            "low_stock_alert_resolved",
            extra={"product_id": str(product_id), "resolved": count},
        )
        return count

    def ignore(self, product_id: UUID, ignored_by: UUID | None = None) -> int:
        """Dismiss the product's active alert; returns how many."""
        count = self._close(product_id, AlertStatus.IGNORED, ignored_by)
        logger.info(
            "low_stock_alert_ignored",
            extra={"product_id": str(product_id), "ignored": count},
        )
        return count
