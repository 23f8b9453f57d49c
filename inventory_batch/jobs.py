"""
GuardedJob / JobRegistry -- Periodic entry points for an external clock.

Contract:
    The core owns no thread or loop.  An external scheduler either calls a
    job's ``run()`` on its own cadence or polls ``JobRegistry.due(as_of)``
    once a minute and runs what it returns.

Invariants enforced:
    - No overlap: each job holds a non-blocking lock for the duration of a
      run.  A tick that arrives while the previous run is in flight is
      SKIPPED and logged (``job_skipped_already_running``); it does not
      queue.
    - A failing run is logged (``job_failed``) and reported as FAILED; it
      never raises into the scheduler.
    - All timestamps come from the injected Clock.
"""

from __future__ import annotations

import threading
from collections.abc import Callable, Iterable
from datetime import datetime
from typing import Any

from inventory_batch.domain.schedule import CronSpec, matches_cron, next_cron_match, parse_cron
from inventory_batch.domain.types import JobRunResult, JobRunStatus
from inventory_kernel.domain.clock import Clock, SystemClock
from inventory_kernel.logging_config import LogContext, get_logger

logger = get_logger("batch.jobs")


class GuardedJob:
    """A named periodic action that never runs concurrently with itself."""

    def __init__(
        self,
        name: str,
        cron_expression: str,
        action: Callable[[], Any],
        clock: Clock | None = None,
    ):
        self.name = name
        self.cron_expression = cron_expression
        self.schedule: CronSpec = parse_cron(cron_expression)
        self._action = action
        self._clock = clock or SystemClock()
        self._lock = threading.Lock()
        self.last_result: JobRunResult | None = None

    @property
    def is_running(self) -> bool:
        return self._lock.locked()

    def is_due(self, as_of: datetime) -> bool:
        return matches_cron(self.schedule, as_of)

    def next_run(self, after: datetime) -> datetime:
        return next_cron_match(self.schedule, after)

    def run(self) -> JobRunResult:
        started = self._clock.now()
        if not self._lock.acquire(blocking=False):
            logger.warning("job_skipped_already_running", extra={"job": self.name})
            return JobRunResult(
                job_name=self.name,
                status=JobRunStatus.SKIPPED,
                started_at=started,
                finished_at=started,
            )

        try:
            with LogContext.bind(job_name=self.name):
                logger.info("job_started")
                try:
                    outcome = self._action()
                except Exception as exc:
                    logger.exception("job_failed")
                    result = JobRunResult(
                        job_name=self.name,
                        status=JobRunStatus.FAILED,
                        started_at=started,
                        finished_at=self._clock.now(),
                        error=str(exc),
                    )
                else:
                    result = JobRunResult(
                        job_name=self.name,
                        status=JobRunStatus.COMPLETED,
                        started_at=started,
                        finished_at=self._clock.now(),
                        result=outcome,
                    )
                    logger.info("job_completed")
            self.last_result = result
            return result
        finally:
            self._lock.release()


class JobRegistry:
    """The periodic jobs of one core, by name."""

    def __init__(self, jobs: Iterable[GuardedJob] = ()):
        self._jobs: dict[str, GuardedJob] = {}
        for job in jobs:
            self.register(job)

    def register(self, job: GuardedJob) -> None:
        if job.name in self._jobs:
            raise ValueError(f"Job already registered: {job.name}")
        self._jobs[job.name] = job

    def get(self, name: str) -> GuardedJob:
        try:
            return self._jobs[name]
        except KeyError:
            raise KeyError(f"Unknown job: {name}") from None

    def __contains__(self, name: str) -> bool:
        return name in self._jobs

    def __iter__(self):
        return iter(self._jobs.values())

    def __len__(self) -> int:
        return len(self._jobs)

    @property
    def names(self) -> tuple[str, ...]:
        return tuple(self._jobs)

    def due(self, as_of: datetime) -> list[GuardedJob]:
        """Jobs whose cron expression matches the minute of ``as_of``."""
        return [job for job in self._jobs.values() if job.is_due(as_of)]

    def run(self, name: str) -> JobRunResult:
        return self.get(name).run()

    def run_due(self, as_of: datetime) -> list[JobRunResult]:
        return [job.run() for job in self.due(as_of)]
