"""Periodic job entry points for the inventory core."""

from inventory_batch.core_jobs import build_core_jobs
from inventory_batch.domain.types import JobRunResult, JobRunStatus
from inventory_batch.jobs import GuardedJob, JobRegistry

__all__ = [
    "GuardedJob",
    "JobRegistry",
    "JobRunResult",
    "JobRunStatus",
    "build_core_jobs",
]
