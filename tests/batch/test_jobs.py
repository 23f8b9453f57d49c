"""
GuardedJob and JobRegistry: no-overlap skipping, failure capture and the
four core jobs built from configuration.
"""

from datetime import datetime

import pytest

from inventory_batch.core_jobs import (
    CACHE_CLEANUP,
    DEMAND_PREDICTIONS,
    LOW_STOCK_CHECK,
    SEASONAL_ANALYSIS,
    build_core_jobs,
)
from inventory_batch.domain.types import JobRunStatus
from inventory_batch.jobs import GuardedJob, JobRegistry
from inventory_config import CoreConfig, JobConfig
from inventory_kernel.domain.dtos import AlertSweepResult
from inventory_services.core import InventoryCore


def _messages(records):
    return [r["message"] for r in records]


# =============================================================================
# GuardedJob
# =============================================================================


class TestGuardedJob:
    def test_success(self, clock):
        job = GuardedJob("count", "* * * * *", lambda: 42, clock)

        result = job.run()

        assert result.status == JobRunStatus.COMPLETED
        assert result.succeeded
        assert result.result == 42
        assert result.started_at == clock.now()
        assert job.last_result is result
        assert not job.is_running

    def test_failure_is_reported_not_raised(self, clock, captured_logs):
        def boom():
            raise RuntimeError("database unavailable")

        job = GuardedJob("boom", "* * * * *", boom, clock)

        result = job.run()

        assert result.status == JobRunStatus.FAILED
        assert result.error == "database unavailable"
        assert not result.succeeded
        failed = [r for r in captured_logs() if r["message"] == "job_failed"]
        assert failed[0]["job_name"] == "boom"
        assert failed[0]["exc_type"] == "RuntimeError"

    def test_lock_released_after_failure(self, clock):
        calls = []

        def flaky():
            calls.append(1)
            if len(calls) == 1:
                raise RuntimeError("first run fails")
            return "ok"

        job = GuardedJob("flaky", "* * * * *", flaky, clock)

        assert job.run().status == JobRunStatus.FAILED
        assert job.run().status == JobRunStatus.COMPLETED

    def test_overlapping_run_skipped(self, clock, captured_logs):
        calls = []
        job = GuardedJob("slow", "* * * * *", lambda: calls.append(1), clock)

        job._lock.acquire()
        try:
            assert job.is_running
            result = job.run()
        finally:
            job._lock.release()

        assert result.status == JobRunStatus.SKIPPED
        assert calls == []
        assert job.last_result is None
        assert "job_skipped_already_running" in _messages(captured_logs())

    def test_action_can_observe_running_state(self, clock):
        seen = {}

        def reenter():
            seen["nested"] = job.run()

        job = GuardedJob("self", "* * * * *", reenter, clock)

        job.run()

        assert seen["nested"].status == JobRunStatus.SKIPPED

    def test_bad_cron_rejected_at_construction(self, clock):
        with pytest.raises(ValueError):
            GuardedJob("bad", "61 * * * *", lambda: None, clock)

    def test_due_and_next_run(self, clock):
        job = GuardedJob("hourly", "0 * * * *", lambda: None, clock)

        assert job.is_due(datetime(2026, 2, 1, 12, 0))
        assert not job.is_due(datetime(2026, 2, 1, 12, 30))
        assert job.next_run(datetime(2026, 2, 1, 12, 0)) == datetime(2026, 2, 1, 13, 0)


# =============================================================================
# JobRegistry
# =============================================================================


class TestJobRegistry:
    def test_duplicate_name(self, clock):
        registry = JobRegistry([GuardedJob("a", "* * * * *", lambda: None, clock)])
        with pytest.raises(ValueError, match="already registered"):
            registry.register(GuardedJob("a", "0 * * * *", lambda: None, clock))

    def test_unknown_name(self):
        with pytest.raises(KeyError):
            JobRegistry().get("missing")

    def test_due_and_run_due(self, clock):
        ran = []
        registry = JobRegistry(
            [
                GuardedJob("hourly", "0 * * * *", lambda: ran.append("hourly"), clock),
                GuardedJob("nightly", "0 2 * * *", lambda: ran.append("nightly"), clock),
            ]
        )
        noon = datetime(2026, 2, 1, 12, 0)

        assert [j.name for j in registry.due(noon)] == ["hourly"]

        results = registry.run_due(noon)

        assert [r.job_name for r in results] == ["hourly"]
        assert ran == ["hourly"]

    def test_membership(self, clock):
        registry = JobRegistry([GuardedJob("a", "* * * * *", lambda: None, clock)])
        assert "a" in registry
        assert "b" not in registry
        assert len(registry) == 1
        assert registry.names == ("a",)


# =============================================================================
# Core jobs
# =============================================================================


class TestCoreJobs:
    def test_four_jobs(self, core):
        registry = build_core_jobs(core)
        assert registry.names == (
            LOW_STOCK_CHECK,
            DEMAND_PREDICTIONS,
            SEASONAL_ANALYSIS,
            CACHE_CLEANUP,
        )

    def test_top_of_hour(self, core):
        registry = build_core_jobs(core)

        due = {j.name for j in registry.due(datetime(2026, 2, 1, 12, 0))}

        assert due == {LOW_STOCK_CHECK, CACHE_CLEANUP}

    def test_sunday_three_am(self, core):
        registry = build_core_jobs(core)

        due = {j.name for j in registry.due(datetime(2026, 2, 1, 3, 0))}

        assert due == {LOW_STOCK_CHECK, SEASONAL_ANALYSIS, CACHE_CLEANUP}

    def test_low_stock_check_runs_sweep(self, core):
        core.stock.create_product(name="Thin", quantity=50, sku="THIN-1")
        registry = build_core_jobs(core)

        result = registry.run(LOW_STOCK_CHECK)

        assert result.status == JobRunStatus.COMPLETED
        assert isinstance(result.result, AlertSweepResult)
        assert result.result.evaluated == 1

    def test_cache_cleanup_sweeps_expired(self, core, clock):
        core.caches.get("dashboard").set("stale", 1)
        clock.advance(301)

        result = build_core_jobs(core).run(CACHE_CLEANUP)

        assert result.result["dashboard"] == 1
        assert not core.caches.get("dashboard").has("stale")

    def test_crons_from_config(self, session_factory, clock):
        config = CoreConfig(jobs=JobConfig(low_stock_check="*/15 * * * *"))
        core = InventoryCore.build(config, session_factory=session_factory, clock=clock)

        job = build_core_jobs(core).get(LOW_STOCK_CHECK)

        assert job.cron_expression == "*/15 * * * *"
        assert job.is_due(datetime(2026, 2, 1, 12, 45))

    def test_invalid_cron_fails_at_build(self, session_factory, clock):
        config = CoreConfig(jobs=JobConfig(demand_predictions="0 25 * * *"))
        core = InventoryCore.build(config, session_factory=session_factory, clock=clock)

        with pytest.raises(ValueError, match="outside range"):
            build_core_jobs(core)
