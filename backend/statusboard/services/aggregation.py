"""Aggregation service - rolls raw checks up into daily status history.

Every write goes through ``StatusHistoryRepository.upsert`` so re-running a
day (daily job, hourly refresh, backfill) converges on the same single row
per monitor.
"""
import logging
from datetime import date, datetime, time, timedelta
from typing import Callable, Optional

from ..repositories import CheckRepository, StatusHistoryRepository

logger = logging.getLogger(__name__)

DEFAULT_BACKFILL_DAYS = 90


def day_bounds(day: date):
    """``[start, end)`` datetimes covering a calendar day."""
    start = datetime.combine(day, time.min)
    return start, start + timedelta(days=1)


class AggregationService:
    """Computes per-monitor daily aggregates from raw checks."""

    def __init__(
        self,
        check_repository: Optional[CheckRepository] = None,
        history_repository: Optional[StatusHistoryRepository] = None,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self.checks = check_repository or CheckRepository()
        self.history = history_repository or StatusHistoryRepository()
        self.clock = clock

    async def aggregate_day(self, day: date) -> int:
        """Upsert aggregates for ``day``. Returns the number of monitors written."""
        start, end = day_bounds(day)
        stats = await self.checks.stats_between(start, end)
        written = await self.history.upsert(day, stats)
        logger.debug(f"Aggregated {written} monitors for {day.isoformat()}")
        return written

    async def aggregate_yesterday(self) -> int:
        return await self.aggregate_day(self.clock().date() - timedelta(days=1))

    async def aggregate_today(self) -> int:
        """Refresh the current, still incomplete day."""
        return await self.aggregate_day(self.clock().date())

    async def backfill(self, days: int = DEFAULT_BACKFILL_DAYS) -> int:
        """Fill missing aggregates for the last ``days`` completed days.

        A day is filled when some monitor has raw checks for it but no
        aggregate row. Days before the lookback window are never touched.

        Returns:
            Number of days that were (re)aggregated
        """
        if days < 1:
            raise ValueError(f"Backfill lookback must be at least 1 day, got {days}")

        today = self.clock().date()
        filled = 0
        for offset in range(1, days + 1):
            day = today - timedelta(days=offset)
            start, end = day_bounds(day)
            with_checks = await self.checks.monitors_with_checks(start, end)
            if not with_checks:
                continue
            aggregated = await self.history.monitors_for_day(day)
            if with_checks - aggregated:
                await self.aggregate_day(day)
                filled += 1
        return filled
