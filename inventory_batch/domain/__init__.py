"""Pure schedule evaluation and job result types."""

from inventory_batch.domain.schedule import (
    CronSpec,
    matches_cron,
    next_cron_match,
    parse_cron,
)
from inventory_batch.domain.types import JobRunResult, JobRunStatus

__all__ = [
    "CronSpec",
    "JobRunResult",
    "JobRunStatus",
    "matches_cron",
    "next_cron_match",
    "parse_cron",
]
