"""
Pure cron evaluation for the periodic jobs: parsing, minute matching and
next-run computation.
"""

from dataclasses import FrozenInstanceError
from datetime import datetime

import pytest

from inventory_batch.domain.schedule import (
    CronSpec,
    _parse_cron_field,
    matches_cron,
    next_cron_match,
    parse_cron,
)

# 2026-02-01 is a Sunday.
SUNDAY_NOON = datetime(2026, 2, 1, 12, 0)


# =============================================================================
# Field parsing
# =============================================================================


class TestParseCronField:
    @pytest.mark.parametrize(
        "text,expected",
        [
            ("*", frozenset(range(24))),
            ("7", frozenset({7})),
            ("2-4", frozenset({2, 3, 4})),
            ("*/6", frozenset({0, 6, 12, 18})),
            ("1-9/4", frozenset({1, 5, 9})),
            ("3,9,21", frozenset({3, 9, 21})),
            ("20/2", frozenset({20, 22})),
        ],
    )
    def test_valid(self, text, expected):
        assert _parse_cron_field(text, 0, 23) == expected

    @pytest.mark.parametrize(
        "text,message",
        [
            ("24", "outside range"),
            ("*/0", "Step must be positive"),
            ("9-3", "Range start > end"),
            ("x", "Not a number"),
            ("1,,2", "Empty element"),
        ],
    )
    def test_invalid(self, text, message):
        with pytest.raises(ValueError, match=message):
            _parse_cron_field(text, 0, 23)


class TestParseCron:
    def test_default_job_expressions(self):
        hourly = parse_cron("0 * * * *")
        assert hourly.minutes == frozenset({0})
        assert hourly.hours == frozenset(range(24))

        weekly = parse_cron("0 3 * * 0")
        assert weekly.hours == frozenset({3})
        assert weekly.days_of_week == frozenset({0})

        every_five = parse_cron("*/5 * * * *")
        assert len(every_five.minutes) == 12

    @pytest.mark.parametrize("expression", ["", "* * * *", "* * * * * *"])
    def test_field_count(self, expression):
        with pytest.raises(ValueError, match="must have 5 fields"):
            parse_cron(expression)

    def test_day_of_week_bounds(self):
        with pytest.raises(ValueError, match="outside range"):
            parse_cron("0 0 * * 7")

    def test_spec_is_frozen(self):
        spec = parse_cron("* * * * *")
        with pytest.raises(FrozenInstanceError):
            spec.hours = frozenset()  # type: ignore[misc]


# =============================================================================
# Matching
# =============================================================================


class TestMatchesCron:
    def test_sunday_is_zero(self):
        assert matches_cron(parse_cron("0 12 * * 0"), SUNDAY_NOON)
        assert not matches_cron(parse_cron("0 12 * * 1"), SUNDAY_NOON)

    def test_monday_is_one(self):
        monday = datetime(2026, 2, 2, 12, 0)
        assert matches_cron(parse_cron("0 12 * * 1"), monday)

    def test_minute_must_match(self):
        spec = parse_cron("0 * * * *")
        assert matches_cron(spec, SUNDAY_NOON)
        assert not matches_cron(spec, SUNDAY_NOON.replace(minute=1))

    def test_seconds_ignored(self):
        assert matches_cron(parse_cron("0 12 * * *"), SUNDAY_NOON.replace(second=42))

    def test_default_spec_matches_everything(self):
        assert matches_cron(CronSpec(), datetime(2027, 12, 31, 23, 59))


class TestNextCronMatch:
    def test_strictly_after(self):
        spec = parse_cron("0 * * * *")
        assert next_cron_match(spec, SUNDAY_NOON) == datetime(2026, 2, 1, 13, 0)

    def test_rounds_down_seconds(self):
        spec = parse_cron("*/5 * * * *")
        after = datetime(2026, 2, 1, 12, 3, 59)
        assert next_cron_match(spec, after) == datetime(2026, 2, 1, 12, 5)

    def test_daily_rolls_over(self):
        spec = parse_cron("0 2 * * *")
        assert next_cron_match(spec, SUNDAY_NOON) == datetime(2026, 2, 2, 2, 0)

    def test_weekly_seasonal_run(self):
        spec = parse_cron("0 3 * * 0")
        assert next_cron_match(spec, SUNDAY_NOON) == datetime(2026, 2, 8, 3, 0)

    def test_unreachable_date(self):
        with pytest.raises(ValueError, match="No cron match"):
            next_cron_match(parse_cron("0 0 30 2 *"), SUNDAY_NOON)
