"""
Cron expressions for the periodic inventory jobs.

Five fields, ``minute hour day_of_month month day_of_week``, with 0 meaning
Sunday.  Each field accepts ``*``, single values, ranges (``1-5``),
comma lists and steps (``*/5``, ``1-10/2``, ``20/2``).

Everything here is pure: no I/O and no clock reads.  Callers pass every
timestamp in.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta

# (name, lowest, highest) in expression order
_FIELDS = (
    ("minutes", 0, 59),
    ("hours", 0, 23),
    ("days_of_month", 1, 31),
    ("months", 1, 12),
    ("days_of_week", 0, 6),
)

SEARCH_HORIZON = timedelta(days=366)


def _every(low: int, high: int) -> frozenset[int]:
    return frozenset(range(low, high + 1))


@dataclass(frozen=True)
class CronSpec:
    """Allowed values per field; the defaults match every minute."""

    minutes: frozenset[int] = field(default_factory=lambda: _every(0, 59))
    hours: frozenset[int] = field(default_factory=lambda: _every(0, 23))
    days_of_month: frozenset[int] = field(default_factory=lambda: _every(1, 31))
    months: frozenset[int] = field(default_factory=lambda: _every(1, 12))
    days_of_week: frozenset[int] = field(default_factory=lambda: _every(0, 6))


def _number(text: str, low: int, high: int) -> int:
    if not text.isdigit():
        raise ValueError(f"Not a number: '{text}'")
    value = int(text)
    if not low <= value <= high:
        raise ValueError(f"Value {value} outside range [{low}, {high}]")
    return value


def _parse_cron_field(text: str, low: int, high: int) -> frozenset[int]:
    """Expand one field into the set of values it allows."""
    allowed: set[int] = set()
    for element in text.split(","):
        element = element.strip()
        if not element:
            raise ValueError(f"Empty element in cron field '{text}'")

        base, _, step_text = element.partition("/")
        step = 1
        if step_text:
            if not step_text.isdigit():
                raise ValueError(f"Not a number: '{step_text}'")
            step = int(step_text)
            if step == 0:
                raise ValueError(f"Step must be positive: {step}")

        if base == "*":
            first, last = low, high
        elif "-" in base:
            first_text, last_text = base.split("-", 1)
            first, last = _number(first_text, low, high), _number(last_text, low, high)
            if first > last:
                raise ValueError(f"Range start > end: {first}-{last}")
        else:
            first = _number(base, low, high)
            # "20/2" runs from 20 to the top of the field
            last = high if step_text else first

        allowed.update(range(first, last + 1, step))
    return frozenset(allowed)


def parse_cron(expression: str) -> CronSpec:
    """
    Parse a 5-field cron expression.

    Raises:
        ValueError: wrong field count, or a field that does not parse.
    """
    parts = expression.split()
    if len(parts) != len(_FIELDS):
        raise ValueError(
            f"Cron expression must have 5 fields, got {len(parts)}: '{expression}'"
        )
    return CronSpec(
        **{
            name: _parse_cron_field(part, low, high)
            for part, (name, low, high) in zip(parts, _FIELDS)
        }
    )


def _cron_weekday(moment: datetime) -> int:
    # datetime: Monday=0 .. Sunday=6; cron: Sunday=0 .. Saturday=6
    return (moment.weekday() + 1) % 7


def _day_matches(spec: CronSpec, moment: datetime) -> bool:
    return (
        moment.month in spec.months
        and moment.day in spec.days_of_month
        and _cron_weekday(moment) in spec.days_of_week
    )


def matches_cron(spec: CronSpec, moment: datetime) -> bool:
    """True when the minute containing ``moment`` is selected by ``spec``."""
    return (
        _day_matches(spec, moment)
        and moment.hour in spec.hours
        and moment.minute in spec.minutes
    )


def next_cron_match(spec: CronSpec, after: datetime) -> datetime:
    """
    First matching minute strictly after ``after``.

    Whole days and hours that cannot match are skipped, so even a yearly
    expression resolves in a few hundred steps.

    Raises:
        ValueError: nothing matches within 366 days.
    """
    candidate = after.replace(second=0, microsecond=0) + timedelta(minutes=1)
    limit = after + SEARCH_HORIZON
    while candidate <= limit:
        if not _day_matches(spec, candidate):
            candidate = candidate.replace(hour=0, minute=0) + timedelta(days=1)
        elif candidate.hour not in spec.hours:
            candidate = candidate.replace(minute=0) + timedelta(hours=1)
        elif candidate.minute not in spec.minutes:
            candidate += timedelta(minutes=1)
        else:
            return candidate
    raise ValueError(f"No cron match found within 366 days after {after}")
