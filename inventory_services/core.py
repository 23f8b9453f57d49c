"""
inventory_services.core -- Wires one running inventory core.

Builds the coordinator, the cache registry and both orchestrators from a
CoreConfig, once, so that every caller shares the same mutex and caches.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass

from sqlalchemy.orm import Session

from inventory_config import CoreConfig
from inventory_kernel.db.engine import get_session_factory, init_engine_from_url
from inventory_kernel.domain.clock import Clock, SystemClock
from inventory_kernel.services.ledger_coordinator import LedgerCoordinator
from inventory_kernel.utils.cache import CacheRegistry
from inventory_services.analytics_orchestrator import AnalyticsOrchestrator
from inventory_services.stock_orchestrator import StockOrchestrator


@dataclass(frozen=True)
class InventoryCore:
    config: CoreConfig
    clock: Clock
    coordinator: LedgerCoordinator
    caches: CacheRegistry
    stock: StockOrchestrator
    analytics: AnalyticsOrchestrator

    @classmethod
    def build(
        cls,
        config: CoreConfig | None = None,
        session_factory: Callable[[], Session] | None = None,
        clock: Clock | None = None,
    ) -> InventoryCore:
        """
        Assemble the core.

        Without ``session_factory`` the module-level engine is initialized
        from ``config.database``.
        """
        config = config or CoreConfig.with_defaults()
        clock = clock or SystemClock()
        if session_factory is None:
            db = config.database
            init_engine_from_url(
                db.url,
                echo=db.echo,
                pool_size=db.pool_size,
                max_overflow=db.max_overflow,
                pool_timeout=db.pool_timeout,
            )
            session_factory = get_session_factory()

        coordinator = LedgerCoordinator(session_factory)
        caches = CacheRegistry.from_config(config.cache, clock)
        return cls(
            config=config,
            clock=clock,
            coordinator=coordinator,
            caches=caches,
            stock=StockOrchestrator(coordinator, caches, clock, config),
            analytics=AnalyticsOrchestrator(coordinator, caches, clock, config),
        )
