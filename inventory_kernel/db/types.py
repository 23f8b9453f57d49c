"""
Module: inventory_kernel.db.types
Responsibility: Coercion of caller-supplied monetary values to Decimal.
Architecture position: Kernel > DB.  May be imported by models/, services/,
    selectors/.  MUST NOT import from any of those layers.

Invariants enforced:
    - No floats for money.  Prices, totals, refunds and revenue are Decimal.
"""

from decimal import Decimal, InvalidOperation


def to_money(value: Decimal | int | float | str) -> Decimal:
    """
    Coerce a caller-supplied amount into a Decimal.

    Floats are converted through ``str()`` so that ``19.99`` becomes
    ``Decimal("19.99")`` rather than its binary expansion.

    Raises:
        ValueError: If the value is not a finite number.
    """
    if isinstance(value, bool):
        raise ValueError(f"Not a monetary amount: {value!r}")
    if isinstance(value, float):
        value = str(value)
    try:
        result = Decimal(value)
    except (InvalidOperation, TypeError) as exc:
        raise ValueError(f"Not a monetary amount: {value!r}") from exc
    if not result.is_finite():
        raise ValueError(f"Not a monetary amount: {value!r}")
    return result

