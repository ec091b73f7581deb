"""
Tests for scheduling math, due-monitor selection and the check sweep.
"""

from datetime import datetime, timedelta

import pytest
from sqlalchemy import select

from statusboard.checkers import BaseChecker, CheckResult
from statusboard.config import Settings
from statusboard.models import Check
from statusboard.repositories import CheckRepository, MonitorRepository
from statusboard.schemas.monitor import Condition, MonitorDefinition
from statusboard.services.runner import MonitorRunner
from statusboard.services.scheduler import SchedulerService, is_monitor_due, next_run_at


class TestNextRunAt:
    """Tests for next_run_at()."""

    def test_later_today(self) -> None:
        now = datetime(2026, 1, 10, 0, 2, 30)

        assert next_run_at(now, 0, 5) == datetime(2026, 1, 10, 0, 5)

    def test_rolls_over_to_tomorrow(self) -> None:
        now = datetime(2026, 1, 10, 13, 45)

        assert next_run_at(now, 0, 5) == datetime(2026, 1, 11, 0, 5)
        assert next_run_at(now, 0, 30) == datetime(2026, 1, 11, 0, 30)

    def test_exact_time_schedules_next_day(self) -> None:
        now = datetime(2026, 1, 10, 0, 30)

        assert next_run_at(now, 0, 30) == datetime(2026, 1, 11, 0, 30)

    def test_month_boundary(self) -> None:
        assert next_run_at(datetime(2026, 1, 31, 23, 59), 0, 5) == datetime(2026, 2, 1, 0, 5)


class TestIsMonitorDue:
    """Tests for is_monitor_due()."""

    NOW = datetime(2026, 1, 10, 12, 0, 0)

    def test_never_checked(self) -> None:
        assert is_monitor_due(60, None, self.NOW, 5) is True

    def test_interval_elapsed_with_half_tick_slack(self) -> None:
        assert is_monitor_due(60, self.NOW - timedelta(seconds=58), self.NOW, 5) is True
        assert is_monitor_due(60, self.NOW - timedelta(seconds=50), self.NOW, 5) is False


class CountingChecker(BaseChecker):
    def __init__(self):
        super().__init__()
        self.urls = []

    async def check(self, url, timeout=None) -> CheckResult:
        self.urls.append(url)
        return CheckResult(success=True, response_time=12, context={"STATUS_CODE": 200})


def settings(**overrides) -> Settings:
    values = {"backfill_days": 90, "scheduler_tick_seconds": 5}
    values.update(overrides)
    return Settings.model_construct(**values)


@pytest.mark.asyncio
async def test_sweep_checks_due_monitors_and_stores_results(session_factory) -> None:
    monitors = MonitorRepository(session_factory)
    checks = CheckRepository(session_factory)
    checker = CountingChecker()
    first = await monitors.create(MonitorDefinition(
        name="api", type="http", url="http://api", conditions=[Condition.parse("STATUS_CODE == 200")],
    ))
    await monitors.create(MonitorDefinition(name="off", type="http", url="http://off"), enabled=False)
    service = SchedulerService(
        config=settings(),
        runner=MonitorRunner(registry={"http": checker}),
        monitor_repository=monitors,
        check_repository=checks,
    )

    stored = await service.run_sweep()
    again = await service.run_sweep()

    assert stored == 1
    assert again == 0  # interval not elapsed yet
    assert checker.urls == ["http://api"]
    async with session_factory() as session:
        rows = (await session.execute(select(Check))).scalars().all()
    assert [(r.monitor_id, r.success, r.response_time_ms) for r in rows] == [(first, True, 12)]
    assert "STATUS_CODE == 200" in rows[0].condition_results


@pytest.mark.asyncio
async def test_sweep_failure_is_logged(caplog: pytest.LogCaptureFixture) -> None:
    class BrokenMonitors:
        async def list_enabled(self):
            raise RuntimeError("no storage")

    service = SchedulerService(config=settings(), monitor_repository=BrokenMonitors())

    assert await service.run_sweep() == 0
    assert "Error running checks" in caplog.text


def test_invalid_scheduling_config_aborts_construction() -> None:
    with pytest.raises(ValueError):
        SchedulerService(config=settings(backfill_days=0))


@pytest.mark.asyncio
async def test_start_arms_all_jobs() -> None:
    service = SchedulerService(config=settings())
    service.start()
    try:
        jobs = {job.id: job for job in service.scheduler.get_jobs()}

        assert set(jobs) == {
            "run_checks",
            "daily_aggregation",
            "startup_backfill",
            "today_aggregation",
            "data_retention",
        }
        daily = jobs["daily_aggregation"].next_run_time
        retention = jobs["data_retention"].next_run_time
        assert (daily.hour, daily.minute) == (0, 5)
        assert (retention.hour, retention.minute) == (0, 30)
        assert all(job.max_instances == 1 for job in jobs.values())
        assert jobs["run_checks"].misfire_grace_time == 5
        for job_id in ("daily_aggregation", "startup_backfill", "today_aggregation", "data_retention"):
            assert jobs[job_id].misfire_grace_time is None, job_id
    finally:
        service.stop()


def test_configured_check_timeout_reaches_checkers() -> None:
    service = SchedulerService(config=settings(default_check_timeout_seconds=4))

    registry = service.runner.registry
    assert registry["http"].default_timeout == 4
    assert registry["dns"].default_timeout == 4
    assert registry["tcp"].default_timeout == 4
    assert registry["websocket"].default_timeout == 30
