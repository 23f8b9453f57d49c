"""
Pytest fixtures for the inventory core test suite.

Provides:
- A fresh in-memory SQLite database per test (StaticPool, shared connection)
- A DeterministicClock pinned to 2026-02-01 12:00 (naive, as SQLite stores it)
- Coordinator, cache registry, orchestrators and a wired InventoryCore
- captured_logs: the kernel's structured log lines as parsed dicts

Sessions share one connection, so tests never hold two sessions open at once.
"""

import json
import logging
from datetime import datetime
from decimal import Decimal
from io import StringIO
from uuid import uuid4

import pytest
from sqlalchemy.orm import sessionmaker

from inventory_config import CoreConfig
from inventory_kernel.db.engine import build_engine, create_tables
from inventory_kernel.db.immutability import register_immutability_listeners
from inventory_kernel.domain.clock import DeterministicClock
from inventory_kernel.logging_config import (
    LogContext,
    StructuredFormatter,
    configure_logging,
    reset_logging,
)
from inventory_kernel.services.ledger_coordinator import LedgerCoordinator
from inventory_kernel.utils.cache import CacheRegistry
from inventory_services.analytics_orchestrator import AnalyticsOrchestrator
from inventory_services.core import InventoryCore
from inventory_services.stock_orchestrator import StockOrchestrator

TEST_ACTOR_ID = uuid4()
START_TIME = datetime(2026, 2, 1, 12, 0, 0)


# =============================================================================
# Logging fixtures
# =============================================================================


@pytest.fixture(autouse=True, scope="session")
def _configure_test_logging():
    """Configure structured logging for the test suite."""
    reset_logging()
    configure_logging(level=logging.DEBUG, stream=StringIO())
    yield
    reset_logging()


@pytest.fixture(autouse=True)
def _clear_log_context():
    LogContext.clear()
    yield
    LogContext.clear()


@pytest.fixture
def captured_logs():
    """
    Capture inventory_kernel logs as parsed JSON dicts.

    Usage::

        def test_something(captured_logs, stock):
            stock.record_sale(...)
            assert any(r["message"] == "sale_recorded" for r in captured_logs())
    """
    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(StructuredFormatter())
    root = logging.getLogger("inventory_kernel")
    root.addHandler(handler)

    def _get_records() -> list[dict]:
        lines = stream.getvalue().strip().split("\n")
        return [json.loads(line) for line in lines if line]

    yield _get_records

    root.removeHandler(handler)


# =============================================================================
# Database
# =============================================================================


@pytest.fixture(scope="session", autouse=True)
def _immutability_listeners():
    register_immutability_listeners()
    yield


@pytest.fixture
def engine():
    eng = build_engine("sqlite://")
    create_tables(eng)
    yield eng
    eng.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, expire_on_commit=False)


@pytest.fixture
def session(session_factory):
    """A bare session for kernel-level service tests; rolled back afterwards."""
    sess = session_factory()
    yield sess
    sess.rollback()
    sess.close()


@pytest.fixture
def test_actor_id():
    return TEST_ACTOR_ID


@pytest.fixture
def clock():
    return DeterministicClock(START_TIME)


# =============================================================================
# Core wiring
# =============================================================================


@pytest.fixture
def config():
    return CoreConfig.with_defaults()


@pytest.fixture
def coordinator(session_factory):
    return LedgerCoordinator(session_factory)


@pytest.fixture
def caches(clock):
    return CacheRegistry.with_defaults(clock)


@pytest.fixture
def stock(coordinator, caches, clock, config):
    return StockOrchestrator(coordinator, caches, clock, config)


@pytest.fixture
def analytics(coordinator, caches, clock, config):
    return AnalyticsOrchestrator(coordinator, caches, clock, config)


@pytest.fixture
def core(session_factory, clock, config):
    return InventoryCore.build(config, session_factory=session_factory, clock=clock)


@pytest.fixture
def make_product(stock):
    """Create a product through the orchestrator; returns its snapshot."""
    counter = {"n": 0}

    def _make(
        quantity: int = 50,
        name: str | None = None,
        selling_price: str = "19.99",
        cost_price: str = "8.00",
        low_stock_threshold: int | None = None,
    ):
        counter["n"] += 1
        return stock.create_product(
            name=name or f"Product {counter['n']:03d}",
            quantity=quantity,
            cost_price=Decimal(cost_price),
            selling_price=Decimal(selling_price),
            sku=f"SKU-{counter['n']:03d}",
            low_stock_threshold=low_stock_threshold,
            actor_id=TEST_ACTOR_ID,
        )

    return _make
