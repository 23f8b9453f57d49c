"""
inventory_services.stock_orchestrator -- Stock mutations as committed units.

Responsibility:
    The entry point request handlers call for anything that changes stock
    or a return.  Each operation opens one LedgerCoordinator unit, wires
    the kernel services over its session, and returns a DTO.  After the
    unit commits, the orchestrator invalidates the cache keys the change
    affects and re-evaluates low-stock alerts for every touched product.

Architecture position:
    Services -- orchestration over kernel services.  Owns no session; the
    coordinator owns commit/rollback.

Invariants enforced:
    - All-or-nothing: a sale, a processed return or a bulk update commits
      completely or leaves no trace.
    - Post-commit effects never undo a commit: the alert re-evaluation runs
      in its own unit and a failure there is logged
      (``post_commit_alert_evaluation_failed``) and swallowed.
    - Cache freshness: dashboard figures and per-product entries are
      deleted after every committed mutation.

Failure modes:
    - ValidationError, ProductNotFoundError, InsufficientStockError,
      ReturnNotFoundError, ReturnStateConflictError from the kernel.
    - StorageError when the unit cannot begin or commit.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from decimal import Decimal
from uuid import UUID

from inventory_config import CoreConfig
from inventory_engines.alerting import AlertPolicy
from inventory_kernel.domain.clock import Clock, SystemClock
from inventory_kernel.domain.dtos import (
    DashboardStats,
    InventoryChange,
    InventoryDelta,
    LedgerReconciliation,
    ProductSnapshot,
    ReturnProcessingResult,
    ReturnSnapshot,
    SaleResult,
)
from inventory_kernel.exceptions import ValidationError
from inventory_kernel.logging_config import get_logger
from inventory_kernel.selectors.inventory_ledger_selector import InventoryLedgerSelector
from inventory_kernel.selectors.product_selector import ProductSelector
from inventory_kernel.selectors.query import Page, ReturnsQuery, SalesQuery
from inventory_kernel.selectors.returns_selector import ReturnActivityDTO, ReturnsSelector
from inventory_kernel.selectors.sales_selector import SalesSelector
from inventory_kernel.services.alert_service import AlertService
from inventory_kernel.services.ledger_coordinator import LedgerCoordinator
from inventory_kernel.services.notification_service import NotificationService
from inventory_kernel.services.product_service import ProductService
from inventory_kernel.services.return_service import ReturnService
from inventory_kernel.services.sale_service import SaleService
from inventory_kernel.services.stock_ledger import StockLedgerService
from inventory_kernel.utils.cache import CacheRegistry
from inventory_services import cache_keys

logger = get_logger("services.stock_orchestrator")


class StockOrchestrator:
    """
    Committed stock and return operations plus their read side.

    Contract:
        Every mutating method runs in exactly one unit of ``coordinator``
        and returns only immutable DTOs.
    """

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

    @property
    def default_threshold(self) -> int:
        return self._policy.default_threshold

    # ------------------------------------------------------------------
    # Post-commit effects
    # ------------------------------------------------------------------

    def _after_commit(self, product_ids: Iterable[UUID | None]) -> None:
        touched = list(dict.fromkeys(pid for pid in product_ids if pid is not None))
        self._invalidate(touched)
        for product_id in touched:
            self._reevaluate_alert(product_id)

    def _invalidate(self, product_ids: Sequence[UUID]) -> None:
        dashboard = self._caches.get("dashboard")
        dashboard.delete_many([cache_keys.DASHBOARD_STATS, cache_keys.ANALYTICS_DASHBOARD])
        self._caches.get("default").delete_many(cache_keys.keys_for_products(product_ids))

    def _reevaluate_alert(self, product_id: UUID) -> None:
        try:
            with self._coordinator.unit() as session:
                self._alert_service(session).evaluate_product(product_id)
        except Exception:
            logger.exception(
                "post_commit_alert_evaluation_failed",
                extra={"product_id": str(product_id)},
            )

    def _alert_service(self, session) -> AlertService:
        notifications = NotificationService(
            session, self._clock, recipient=self._config.alerts.notification_recipient
        )
        return AlertService(session, self._clock, self._policy, notifications)

    # ------------------------------------------------------------------
    # Products
    # ------------------------------------------------------------------

    def create_product(
        self,
        name: str,
        quantity: int = 0,
        cost_price: Decimal | int | str = Decimal("0"),
        selling_price: Decimal | int | str = Decimal("0"),
        sku: str | None = None,
        category: str | None = None,
        brand: str | None = None,
        low_stock_threshold: int | None = None,
        actor_id: UUID | None = None,
    ) -> ProductSnapshot:
        with self._coordinator.unit() as session:
            snapshot = ProductService(session, self._clock).create_product(
                name=name,
                quantity=quantity,
                cost_price=cost_price,
                selling_price=selling_price,
                sku=sku,
                category=category,
                brand=brand,
                low_stock_threshold=low_stock_threshold,
                actor_id=actor_id,
            )
        self._after_commit([snapshot.product_id])
        return snapshot

    def get_product(self, product_id: UUID) -> ProductSnapshot:
        """Product snapshot, served from the default cache."""
        def fetch() -> ProductSnapshot:
            with self._coordinator.unit() as session:
                return ProductSelector(session).get(product_id)

        return self._caches.get("default").get_or_fetch(
            cache_keys.product_key(product_id), fetch
        )

    def adjust_product_quantity(
        self,
        product_id: UUID,
        quantity_change: int,
        reason: str = "manual_adjustment",
        actor_id: UUID | None = None,
    ) -> InventoryChange:
        """Single-product patch; same rules as bulk_inventory_update()."""
        try:
            delta = InventoryDelta(product_id, quantity_change, reason)
        except ValueError as exc:
            raise ValidationError("quantity_change", str(exc)) from exc
        return self.bulk_inventory_update([delta], actor_id=actor_id)[0]

    # ------------------------------------------------------------------
    # Stock mutations
    # ------------------------------------------------------------------

    def record_sale(
        self,
        product_id: UUID,
        quantity_sold: int,
        sale_price: Decimal | int | str,
        sales_platform: str,
        customer_info: str | None = None,
        payment_method: str | None = None,
        actor_id: UUID | None = None,
    ) -> SaleResult:
        """
        Record a sale and decrement stock in one unit.

        Raises:
            ValidationError: Before any query, on malformed input.
            ProductNotFoundError: Unknown product.
            InsufficientStockError: quantity_sold exceeds stock on hand;
                nothing is written.
        """
        with self._coordinator.unit() as session:
            result = SaleService(
                session, self._clock, default_threshold=self.default_threshold
            ).record_sale(
                product_id=product_id,
                quantity_sold=quantity_sold,
                sale_price=sale_price,
                sales_platform=sales_platform,
                customer_info=customer_info,
                payment_method=payment_method,
                actor_id=actor_id,
            )
        self._after_commit([product_id])
        return result

    def process_return(
        self,
        return_id: UUID,
        processed_by: UUID | None,
        refund_amount: Decimal | int | str,
        refund_method: str,
        restock_quantity: int = 0,
        product_id: UUID | None = None,
    ) -> ReturnProcessingResult:
        """
        Process an approved return, optionally restocking.

        Raises:
            ReturnNotFoundError: Unknown return.
            ReturnStateConflictError: The return is not approved.
        """
        with self._coordinator.unit() as session:
            result = ReturnService(session, self._clock).process_return(
                return_id=return_id,
                processed_by=processed_by,
                refund_amount=refund_amount,
                refund_method=refund_method,
                restock_quantity=restock_quantity,
                product_id=product_id,
            )
        if restock_quantity > 0:
            self._after_commit([result.product_id])
        else:
            self._invalidate([])
        return result

    def bulk_inventory_update(
        self,
        deltas: Sequence[InventoryDelta],
        actor_id: UUID | None = None,
    ) -> tuple[InventoryChange, ...]:
        """
        Apply every delta or none.

        Returns:
            One InventoryChange per delta, in input order.
        """
        with self._coordinator.unit() as session:
            changes = StockLedgerService(session, self._clock).bulk_apply(
                deltas, actor_id=actor_id
            )
        self._after_commit(c.product_id for c in changes)
        return changes

    # ------------------------------------------------------------------
    # Return lifecycle
    # ------------------------------------------------------------------

    def create_return(
        self,
        customer_name: str,
        quantity: int,
        return_reason: str,
        product_id: UUID | None = None,
        sale_id: UUID | None = None,
        customer_email: str | None = None,
        return_condition: str = "good",
        sales_platform: str | None = None,
        notes: str | None = None,
        created_by: UUID | None = None,
    ) -> ReturnSnapshot:
        """Open a pending return against a product, a sale, or neither."""
        with self._coordinator.unit() as session:
            return ReturnService(session, self._clock).create_return(
                customer_name=customer_name,
                quantity=quantity,
                return_reason=return_reason,
                product_id=product_id,
                sale_id=sale_id,
                customer_email=customer_email,
                return_condition=return_condition,
                sales_platform=sales_platform,
                notes=notes,
                created_by=created_by,
            )

    def approve_return(
        self,
        return_id: UUID,
        approved_by: UUID | None = None,
        notes: str | None = None,
    ) -> ReturnSnapshot:
        with self._coordinator.unit() as session:
            return ReturnService(session, self._clock).approve_return(
                return_id, approved_by, notes
            )

    def reject_return(
        self,
        return_id: UUID,
        rejected_by: UUID | None,
        reason: str,
        notes: str | None = None,
    ) -> ReturnSnapshot:
        with self._coordinator.unit() as session:
            return ReturnService(session, self._clock).reject_return(
                return_id, rejected_by, reason, notes
            )

    def cancel_return(
        self,
        return_id: UUID,
        cancelled_by: UUID | None = None,
        notes: str | None = None,
    ) -> ReturnSnapshot:
        with self._coordinator.unit() as session:
            return ReturnService(session, self._clock).cancel_return(
                return_id, cancelled_by, notes
            )

    # ------------------------------------------------------------------
    # Read side
    # ------------------------------------------------------------------

    def get_dashboard_stats(self) -> DashboardStats:
        """Headline figures, cached for the dashboard cache's TTL."""
        def fetch() -> DashboardStats:
            with self._coordinator.unit() as session:
                return ProductSelector(session).dashboard_stats(self.default_threshold)

        return self._caches.get("dashboard").get_or_fetch(cache_keys.DASHBOARD_STATS, fetch)

    def list_sales(self, query: SalesQuery | None = None) -> Page:
        with self._coordinator.unit() as session:
            return SalesSelector(session).list_sales(query)

    def list_returns(self, query: ReturnsQuery | None = None) -> Page:
        with self._coordinator.unit() as session:
            return ReturnsSelector(session).list_returns(query)

    def get_return(self, return_id: UUID) -> ReturnSnapshot:
        with self._coordinator.unit() as session:
            return ReturnsSelector(session).get(return_id)

    def reconcile(self, product_id: UUID) -> LedgerReconciliation:
        """Check the product's quantity against its inventory log."""
        with self._coordinator.unit() as session:
            return InventoryLedgerSelector(session).reconcile(product_id)

    def get_return_activities(self, return_id: UUID) -> list[ReturnActivityDTO]:
        with self._coordinator.unit() as session:
            return ReturnsSelector(session).activities(return_id)
