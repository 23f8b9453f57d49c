"""
inventory_batch.domain.types -- Pure frozen dataclasses for periodic jobs.

ZERO I/O.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any


class JobRunStatus(str, Enum):
    """Outcome of one tick of a periodic job."""

    COMPLETED = "completed"
    FAILED = "failed"
    SKIPPED = "skipped"  # previous run still in flight


@dataclass(frozen=True)
class JobRunResult:
    """Immutable record of one job run."""

    job_name: str
    status: JobRunStatus
    started_at: datetime
    finished_at: datetime
    result: Any = None
    error: str | None = None

    @property
    def succeeded(self) -> bool:
        return self.status == JobRunStatus.COMPLETED
