"""
Lightweight input validation helpers.

Pure checks with no I/O, run before any storage work.  Each raises
ValidationError naming the offending field.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Any

from inventory_kernel.db.types import to_money
from inventory_kernel.exceptions import ValidationError


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def require_positive_int(value: Any, name: str) -> int:
    if not _is_int(value) or value <= 0:
        raise ValidationError(name, f"must be a positive integer, got {value!r}")
    return value


def require_non_negative_int(value: Any, name: str) -> int:
    if not _is_int(value) or value < 0:
        raise ValidationError(name, f"must be a non-negative integer, got {value!r}")
    return value


def require_text(value: Any, name: str) -> str:
    """Non-empty string after stripping whitespace."""
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(name, "is required")
    return value.strip()


def require_amount(value: Any, name: str, *, allow_zero: bool = False) -> Decimal:
    """Coerce to Decimal and check the sign."""
    if value is None:
        raise ValidationError(name, "is required")
    try:
        amount = to_money(value)
    except ValueError as exc:
        raise ValidationError(name, str(exc)) from exc
    if amount < 0 or (amount == 0 and not allow_zero):
        qualifier = "non-negative" if allow_zero else "positive"
        raise ValidationError(name, f"must be {qualifier}, got {value!r}")
    return amount
