"""
inventory_kernel.db.engine -- Where the core gets its database connection.

Two ways in:

* ``build_engine(url)`` returns a configured Engine and registers nothing.
  Tests and embedding applications use it with their own sessionmaker.
* ``init_engine_from_url(url)`` builds an engine and installs it as the
  process-wide default behind ``get_engine()``, ``get_session_factory()``
  and ``session_scope()``.  ``InventoryCore.build()`` uses this path when it
  is not handed a session factory.

Dialect setup:

* PostgreSQL runs at READ COMMITTED.  The stock write path takes explicit
  ``SELECT ... FOR UPDATE`` row locks.
* SQLite gets one shared connection (StaticPool) usable from any thread.
  pysqlite's implicit transaction handling is switched off so that
  ``BEGIN`` and ``SAVEPOINT`` are issued by SQLAlchemy, and foreign keys are
  enforced.
"""

import atexit
from collections.abc import Iterator
from contextlib import contextmanager

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import QueuePool, StaticPool

from inventory_kernel.logging_config import configure_logging, get_logger

logger = get_logger("db.engine")

_default_engine: Engine | None = None
_default_factory: sessionmaker[Session] | None = None

_NOT_INITIALIZED = "No database configured; call init_engine_from_url() first."


def _on_sqlite_connect(dbapi_connection, connection_record):
    dbapi_connection.isolation_level = None
    cursor = dbapi_connection.cursor()
    try:
        cursor.execute("PRAGMA foreign_keys=ON")
    finally:
        cursor.close()


def _on_sqlite_begin(conn):
    conn.exec_driver_sql("BEGIN")


def build_engine(
    database_url: str,
    echo: bool = False,
    pool_size: int = 10,
    max_overflow: int = 10,
    pool_timeout: int = 30,
) -> Engine:
    """Create an Engine for ``database_url`` with the dialect setup above."""
    if database_url.startswith("sqlite"):
        engine = create_engine(
            database_url,
            echo=echo,
            poolclass=StaticPool,
            connect_args={"check_same_thread": False},
        )
        event.listen(engine, "connect", _on_sqlite_connect)
        event.listen(engine, "begin", _on_sqlite_begin)
        return engine

    return create_engine(
        database_url,
        echo=echo,
        poolclass=QueuePool,
        pool_size=pool_size,
        max_overflow=max_overflow,
        pool_timeout=pool_timeout,
        pool_pre_ping=True,
        isolation_level="READ COMMITTED",
    )


def init_engine_from_url(
    database_url: str,
    echo: bool = False,
    pool_size: int = 10,
    max_overflow: int = 10,
    pool_timeout: int = 30,
) -> Engine:
    """
    Build an engine and make it the process default.  A second call
    replaces the first without disposing it; call reset_engine() for that.
    """
    global _default_engine, _default_factory

    engine = build_engine(
        database_url,
        echo=echo,
        pool_size=pool_size,
        max_overflow=max_overflow,
        pool_timeout=pool_timeout,
    )
    _default_engine = engine
    _default_factory = sessionmaker(bind=engine, expire_on_commit=False)

    configure_logging()
    logger.info(
        "engine_initialized",
        extra={"dialect": engine.dialect.name, "pool_size": pool_size, "echo": echo},
    )
    return engine


def get_engine() -> Engine:
    if _default_engine is None:
        raise RuntimeError(_NOT_INITIALIZED)
    return _default_engine


def get_session_factory() -> sessionmaker[Session]:
    if _default_factory is None:
        raise RuntimeError(_NOT_INITIALIZED)
    return _default_factory


@contextmanager
def session_scope() -> Iterator[Session]:
    """
    Commit-or-rollback scope on the default engine, for scripts and read
    paths.  Stock mutations go through ``LedgerCoordinator.unit()`` instead,
    which serializes units and reports rollback failures.
    """
    session = get_session_factory()()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        logger.warning("session_scope_rolled_back", exc_info=True)
        raise
    finally:
        session.close()


def create_tables(engine: Engine | None = None) -> None:
    """Create every table on ``engine`` (default: the process engine)."""
    from inventory_kernel.db.base import Base
    import inventory_kernel.models  # noqa: F401  (registers every table)

    target = engine if engine is not None else get_engine()
    Base.metadata.create_all(target)
    logger.info("tables_created", extra={"tables": sorted(Base.metadata.tables)})


def reset_engine() -> None:
    """Dispose the default engine and forget it."""
    global _default_engine, _default_factory

    if _default_engine is not None:
        _default_engine.dispose()
    _default_engine = None
    _default_factory = None


atexit.register(reset_engine)
