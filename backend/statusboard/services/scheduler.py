"""Scheduler service - check sweeps plus the aggregation and retention jobs.

Jobs:
- run_checks: every tick, checks monitors whose interval has elapsed
- daily_aggregation: next 00:05 local time, then every 24 hours; 00:05
  leaves time for the previous day's last checks to land
- startup_backfill: once, shortly after boot, fills gaps left by downtime
- today_aggregation: shortly after boot, then hourly, so today's row stays fresh
- data_retention: next 00:30 local time, then every 24 hours

Every job is registered with max_instances=1 so a slow run is never
overlapped by the next tick of the same job. Only the sweep may skip a
late tick; the daily, hourly and startup jobs run however late they fire.
"""
import logging
from datetime import datetime, timedelta
from typing import Callable, Iterable, List, Optional

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.date import DateTrigger
from apscheduler.triggers.interval import IntervalTrigger

from ..checkers import default_registry
from ..config import Settings, settings as app_settings
from ..repositories import CheckRepository, MonitorRepository
from ..schemas.monitor import MonitorDefinition
from .aggregation import AggregationService
from .retention import RetentionService
from .runner import MonitorRunner

logger = logging.getLogger(__name__)

DAILY_AGGREGATION_TIME = (0, 5)
DATA_RETENTION_TIME = (0, 30)

# Give storage a moment to become ready before the first boot-time jobs
STARTUP_DELAY_SECONDS = 5


def next_run_at(now: datetime, hour: int, minute: int) -> datetime:
    """Next wall-clock occurrence of ``hour:minute`` strictly after ``now``."""
    candidate = now.replace(hour=hour, minute=minute, second=0, microsecond=0)
    if candidate <= now:
        candidate += timedelta(days=1)
    return candidate


def is_monitor_due(
    interval: int,
    last_check_time: Optional[datetime],
    now: datetime,
    tick_seconds: int,
) -> bool:
    """Whether a monitor should be checked in the sweep running at ``now``.

    Half a tick of slack keeps a monitor from slipping a whole tick late.
    """
    if last_check_time is None:
        return True
    elapsed = (now - last_check_time).total_seconds()
    return elapsed >= (interval - tick_seconds / 2)


class SchedulerService:
    """Arms the periodic jobs on an asyncio scheduler."""

    def __init__(
        self,
        config: Settings = app_settings,
        runner: Optional[MonitorRunner] = None,
        monitor_repository: Optional[MonitorRepository] = None,
        check_repository: Optional[CheckRepository] = None,
        aggregation: Optional[AggregationService] = None,
        retention: Optional[RetentionService] = None,
        clock: Callable[[], datetime] = datetime.now,
    ):
        if config.backfill_days < 1:
            raise ValueError(f"backfill_days must be at least 1, got {config.backfill_days}")
        if config.scheduler_tick_seconds < 1:
            raise ValueError(f"scheduler_tick_seconds must be at least 1, got {config.scheduler_tick_seconds}")

        self.config = config
        self.clock = clock
        self.runner = runner or MonitorRunner(registry=default_registry(config.default_check_timeout_seconds))
        self.monitors = monitor_repository or MonitorRepository()
        self.checks = check_repository or CheckRepository()
        self.aggregation = aggregation or AggregationService(check_repository=self.checks, clock=clock)
        self.retention = retention or RetentionService(
            checks_retention_days=config.checks_retention_days,
            incidents_retention_days=config.incidents_retention_days,
            check_repository=self.checks,
            clock=clock,
        )
        self.scheduler: Optional[AsyncIOScheduler] = None
        self._running = False

    def start(self):
        """Start the scheduler."""
        if self._running:
            return

        now = self.clock()
        tick = self.config.scheduler_tick_seconds
        self.scheduler = AsyncIOScheduler()

        self.scheduler.add_job(
            self.run_sweep,
            trigger=IntervalTrigger(seconds=tick),
            id="run_checks",
            replace_existing=True,
            max_instances=1,
            coalesce=True,
            misfire_grace_time=tick,
        )

        daily_at = next_run_at(now, *DAILY_AGGREGATION_TIME)
        self.scheduler.add_job(
            self._run_daily_aggregation,
            trigger=IntervalTrigger(hours=24, start_date=daily_at),
            id="daily_aggregation",
            replace_existing=True,
            max_instances=1,
            misfire_grace_time=None,
            coalesce=True,
        )
        logger.info(f"Daily aggregation scheduled in {int((daily_at - now).total_seconds() // 60)} minutes")

        boot_at = now + timedelta(seconds=STARTUP_DELAY_SECONDS)
        self.scheduler.add_job(
            self._run_backfill,
            trigger=DateTrigger(run_date=boot_at),
            id="startup_backfill",
            replace_existing=True,
            max_instances=1,
            misfire_grace_time=None,
        )
        self.scheduler.add_job(
            self._run_today_aggregation,
            trigger=IntervalTrigger(hours=1, start_date=boot_at),
            id="today_aggregation",
            replace_existing=True,
            max_instances=1,
            misfire_grace_time=None,
            coalesce=True,
        )

        retention_at = next_run_at(now, *DATA_RETENTION_TIME)
        self.scheduler.add_job(
            self._run_data_retention,
            trigger=IntervalTrigger(hours=24, start_date=retention_at),
            id="data_retention",
            replace_existing=True,
            max_instances=1,
            misfire_grace_time=None,
            coalesce=True,
        )
        logger.info(
            f"Data retention scheduled in {int((retention_at - now).total_seconds() // 60)} minutes "
            f"(checks: {self.retention.checks_retention_days} days, "
            f"incidents: {self.retention.incidents_retention_days} days)"
        )

        self.scheduler.start()
        self._running = True
        logger.info(f"Scheduler started (tick={tick}s)")

    def stop(self):
        """Stop the scheduler."""
        if self.scheduler and self._running:
            self.scheduler.shutdown(wait=False)
            self._running = False
            logger.info("Scheduler stopped")

    def due_monitors(self, monitors: Iterable[MonitorDefinition], last_checked: dict) -> List[MonitorDefinition]:
        now = self.clock()
        tick = self.config.scheduler_tick_seconds
        return [
            monitor for monitor in monitors
            if is_monitor_due(monitor.interval, last_checked.get(monitor.id), now, tick)
        ]

    async def run_sweep(self) -> int:
        """Check every due monitor once and store the results. Returns checks stored."""
        try:
            monitors = await self.monitors.list_enabled()
            if not monitors:
                return 0
            last_checked = await self.monitors.last_checked()
            due = self.due_monitors(monitors, last_checked)
            if not due:
                return 0

            logger.debug(f"Checking {len(due)} due monitors out of {len(monitors)} total")
            results = await self.runner.run_checks(due)
            return await self.checks.add_results(results)
        except Exception as e:
            logger.error(f"Error running checks: {e}")
            return 0

    async def _run_daily_aggregation(self):
        logger.info("Running daily status history aggregation")
        try:
            written = await self.aggregation.aggregate_yesterday()
            logger.info(f"Daily aggregation complete ({written} monitors)")
        except Exception as e:
            logger.error(f"Daily aggregation failed: {e}")

    async def _run_backfill(self):
        logger.info("Checking for missing historical data")
        try:
            count = await self.aggregation.backfill(self.config.backfill_days)
            if count > 0:
                logger.info(f"Backfilled {count} days of historical data")
            else:
                logger.info("Historical data is up to date")
        except Exception as e:
            logger.error(f"Backfill failed: {e}")

    async def _run_today_aggregation(self):
        try:
            await self.aggregation.aggregate_today()
        except Exception as e:
            logger.error(f"Hourly aggregation failed: {e}")

    async def _run_data_retention(self):
        await self.retention.run()


# Global instance
scheduler_service = SchedulerService()
