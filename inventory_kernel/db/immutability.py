"""
Append-only tables, enforced in the ORM.

A product's quantity can be audited only if its history stays put.  Three
kinds of rows are written once and never changed:

    InventoryLogEntry   one row per quantity delta
    SaleRecord          a recorded sale; corrected by a return, not an edit
    ReturnActivity      one row per return lifecycle step

Mapper ``before_update`` / ``before_delete`` hooks on those classes raise
ImmutabilityViolationError during ``flush()``, before any SQL reaches the
database.  The surrounding unit of work then rolls back.

Call ``register_immutability_listeners()`` once at startup; repeated calls
do nothing.
"""

from sqlalchemy import event

from inventory_kernel.exceptions import ImmutabilityViolationError
from inventory_kernel.logging_config import get_logger

logger = get_logger("db.immutability")

_VERBS = {"UPDATE": "modified", "DELETE": "deleted"}


def _reject(operation: str, target) -> None:
    entity_type = type(target).__name__
    entity_id = str(target.id)
    logger.error(
        "append_only_write_rejected",
        extra={"entity_type": entity_type, "entity_id": entity_id, "operation": operation},
    )
    raise ImmutabilityViolationError(
        entity_type=entity_type,
        entity_id=entity_id,
        reason=f"{entity_type} rows are append-only and cannot be {_VERBS[operation]}",
    )


def _before_update(mapper, connection, target):
    _reject("UPDATE", target)


def _before_delete(mapper, connection, target):
    _reject("DELETE", target)


_HOOKS = (("before_update", _before_update), ("before_delete", _before_delete))


def _append_only_models():
    # Imported late: the models package imports this package.
    from inventory_kernel.models.inventory_log import InventoryLogEntry
    from inventory_kernel.models.return_record import ReturnActivity
    from inventory_kernel.models.sale import SaleRecord

    return (InventoryLogEntry, SaleRecord, ReturnActivity)


def register_immutability_listeners() -> None:
    for model in _append_only_models():
        for name, hook in _HOOKS:
            if not event.contains(model, name, hook):
                event.listen(model, name, hook)
