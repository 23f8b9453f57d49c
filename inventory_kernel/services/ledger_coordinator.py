"""
LedgerCoordinator -- Serialized transactional units over a session factory.

Responsibility:
    Runs stock-affecting work as all-or-nothing units: open a session, hand
    it to the caller, commit on normal exit, roll back on any exception and
    re-raise the ORIGINAL exception.  Units are serialized by a coordinator-
    wide mutex so that read-modify-write sequences on Product.quantity never
    interleave.

Architecture position:
    Kernel > Services -- the single owner of commit/rollback for mutations.
    Orchestrators in inventory_services open units here; kernel services
    inside a unit only flush.

Invariants enforced:
    - Atomicity: every write performed inside a unit commits together or
      not at all.
    - Error fidelity: a failing rollback is logged as
      ``transaction_rollback_failed`` and never replaces the error that
      caused it.
    - Re-entrancy: unit() called while the current context already holds a
      unit from this coordinator joins it (same session; the outer unit owns
      commit/rollback) instead of deadlocking on the mutex.

Failure modes:
    - StorageError when the session cannot be opened or the commit fails
      (chained to the underlying SQLAlchemyError).
    - Any exception raised by the work itself propagates unchanged.

Audit relevance:
    Each unit carries a ``unit_id`` in the log context, so every log line
    emitted by services inside it can be grouped to one transaction.
"""

from __future__ import annotations

import threading
from collections.abc import Callable, Iterator, Sequence
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Any, TypeVar
from uuid import uuid4

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from inventory_kernel.exceptions import StorageError
from inventory_kernel.logging_config import LogContext, get_logger

logger = get_logger("services.ledger_coordinator")

T = TypeVar("T")


class LedgerCoordinator:
    """
    Serializes transactional units over one session factory.

    Contract:
        ``unit()`` yields a Session; callers must not commit or roll it back
        themselves.  ``transaction()`` and ``batch_transaction()`` are thin
        callable-style wrappers over ``unit()``.

    Non-goals:
        - No cancellation of in-flight units.
        - No cross-process locking; the mutex is per coordinator instance,
          and PostgreSQL row locks cover concurrent processes.
    """

    def __init__(self, session_factory: Callable[[], Session]):
        self._session_factory = session_factory
        self._mutex = threading.Lock()
        self._active: ContextVar[Session | None] = ContextVar(
            f"ledger_unit_{id(self)}", default=None
        )

    @property
    def in_unit(self) -> bool:
        """True when the current context holds an open unit."""
        return self._active.get() is not None

    @contextmanager
    def unit(self) -> Iterator[Session]:
        """
        Acquire a transactional unit.

        Usage:
            with coordinator.unit() as session:
                StockLedgerService(session, clock).apply_change(...)
        """
        current = self._active.get()
        if current is not None:
            logger.debug("unit_joined")
            yield current
            return

        with self._mutex:
            try:
                session = self._session_factory()
            except SQLAlchemyError as exc:
                logger.error("unit_begin_failed", exc_info=True)
                raise StorageError("begin", str(exc)) from exc

            token = self._active.set(session)
            unit_id = str(uuid4())
            try:
                with LogContext.bind(unit_id=unit_id):
                    logger.debug("unit_started")
                    try:
                        yield session
                    except Exception as exc:
                        self._rollback(session, exc)
                        raise

                    try:
                        session.commit()
                    except SQLAlchemyError as exc:
                        self._rollback(session, exc)
                        logger.error("unit_commit_failed", exc_info=True)
                        raise StorageError("commit", str(exc)) from exc
                    logger.debug("unit_committed")
            finally:
                self._active.reset(token)
                session.close()

    def _rollback(self, session: Session, original: BaseException) -> None:
        try:
            session.rollback()
        except Exception:
            logger.error(
                "transaction_rollback_failed",
                exc_info=True,
                extra={
                    "original_error_type": type(original).__name__,
                    "original_error": str(original),
                },
            )
            return
        logger.warning(
            "transaction_rolled_back",
            extra={
                "error_type": type(original).__name__,
                "error": str(original),
            },
        )

    def transaction(self, work: Callable[[Session], T]) -> T:
        """Run ``work(session)`` inside one unit and return its result."""
        with self.unit() as session:
            return work(session)

    def batch_transaction(
        self,
        operations: Sequence[Callable[[Session], Any]],
    ) -> list[Any]:
        """
        Run every operation in order inside one unit.

        Returns the results in input order.  Any failure rolls back the
        whole batch and re-raises.
        """
        with self.unit() as session:
            results = [op(session) for op in operations]
        logger.info("batch_transaction_completed", extra={"operations": len(results)})
        return results
