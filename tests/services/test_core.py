"""InventoryCore wiring: one coordinator and one cache registry per core."""

from datetime import datetime
from decimal import Decimal

import pytest
from sqlalchemy import select

from inventory_config import CacheConfig, CacheSpec, CoreConfig, DatabaseConfig
from inventory_kernel.db.engine import (
    create_tables,
    get_engine,
    get_session_factory,
    init_engine_from_url,
    reset_engine,
    session_scope,
)
from inventory_kernel.domain.clock import DeterministicClock
from inventory_kernel.models import Product
from inventory_services.core import InventoryCore


class TestBuild:
    def test_orchestrators_share_state(self, core):
        assert core.stock._coordinator is core.coordinator
        assert core.analytics._coordinator is core.coordinator
        assert core.stock._caches is core.caches
        assert core.analytics._caches is core.caches

    def test_caches_follow_config(self, session_factory, clock):
        config = CoreConfig(
            cache=CacheConfig(
                caches=(
                    CacheSpec("default", 60, max_size=5),
                    CacheSpec("reference", 60),
                    CacheSpec("dashboard", 30),
                )
            )
        )

        core = InventoryCore.build(config, session_factory=session_factory, clock=clock)

        assert core.caches.names == ("default", "reference", "dashboard")
        assert core.caches.get("default").max_size == 5

    def test_sale_visible_to_analytics(self, core):
        product = core.stock.create_product(name="Lamp", quantity=12, sku="LAMP-1")

        core.stock.record_sale(product.product_id, 4, Decimal("9.50"), "store")

        alerts = core.analytics.get_active_low_stock_alerts()
        assert [a.product_name for a in alerts] == ["Lamp"]


class TestBuildFromDatabaseConfig:
    def test_initializes_module_engine(self):
        config = CoreConfig(database=DatabaseConfig(url="sqlite://"))
        try:
            clock = DeterministicClock(datetime(2026, 2, 1, 12, 0))
            core = InventoryCore.build(config, clock=clock)
            create_tables()

            product = core.stock.create_product(name="Desk", quantity=3, sku="DESK-1")

            assert core.stock.get_product(product.product_id).quantity == 3
        finally:
            reset_engine()


class TestModuleSessionScope:
    def test_unconfigured_raises(self):
        reset_engine()
        with pytest.raises(RuntimeError, match="init_engine_from_url"):
            get_session_factory()

    def test_commit_and_rollback(self):
        engine = init_engine_from_url("sqlite://")
        try:
            assert get_engine() is engine
            create_tables()
            with session_scope() as session:
                session.add(Product(name="Chair", quantity=1))

            with pytest.raises(ValueError):
                with session_scope() as session:
                    session.add(Product(name="Stool", quantity=1))
                    session.flush()
                    raise ValueError("abort")

            with session_scope() as session:
                names = session.scalars(select(Product.name)).all()
            assert names == ["Chair"]
        finally:
            reset_engine()
