"""Check repository - append-only raw check storage."""
import json
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Iterable, List, Optional, Set

from sqlalchemy import select, delete, func, case
from sqlalchemy.ext.asyncio import async_sessionmaker

from ..database import async_session
from ..models import Check
from ..utils.db_utils import retry_on_lock

logger = logging.getLogger(__name__)


@dataclass
class CheckStats:
    """Raw check statistics for one monitor over a time window."""
    monitor_id: int
    total_checks: int
    successful_checks: int
    avg_response_time: Optional[int]
    min_response_time: Optional[int]
    max_response_time: Optional[int]

    @property
    def uptime_percentage(self) -> float:
        if not self.total_checks:
            return 0.0
        return round(self.successful_checks * 100.0 / self.total_checks, 2)


class CheckRepository:
    """Raw checks are only ever appended or purged by age."""

    def __init__(self, session_factory: async_sessionmaker = async_session):
        self.session_factory = session_factory

    async def add_results(self, results: Iterable) -> int:
        """Append ``MonitorCheckResult`` objects. Results without a monitor id are skipped."""
        rows = [
            Check(
                monitor_id=result.monitor_id,
                checked_at=result.timestamp,
                success=result.success,
                response_time_ms=result.response_time,
                error=result.error,
                condition_results=json.dumps(
                    [{"condition": r.condition, "success": r.success} for r in result.condition_results]
                ),
            )
            for result in results
            if result.monitor_id is not None
        ]
        if not rows:
            return 0
        async with self.session_factory() as session:
            session.add_all(rows)
            await retry_on_lock(session.commit)
        return len(rows)

    async def stats_between(self, start: datetime, end: datetime) -> List[CheckStats]:
        """Per-monitor statistics for checks in ``[start, end)``."""
        async with self.session_factory() as session:
            result = await session.execute(
                select(
                    Check.monitor_id,
                    func.count(Check.id),
                    func.sum(case((Check.success.is_(True), 1), else_=0)),
                    func.avg(Check.response_time_ms),
                    func.min(Check.response_time_ms),
                    func.max(Check.response_time_ms),
                )
                .where(Check.checked_at >= start, Check.checked_at < end)
                .group_by(Check.monitor_id)
                .order_by(Check.monitor_id)
            )
            rows = result.all()

        return [
            CheckStats(
                monitor_id=monitor_id,
                total_checks=total,
                successful_checks=int(successful or 0),
                avg_response_time=int(round(avg)) if avg is not None else None,
                min_response_time=minimum,
                max_response_time=maximum,
            )
            for monitor_id, total, successful, avg, minimum, maximum in rows
        ]

    async def monitors_with_checks(self, start: datetime, end: datetime) -> Set[int]:
        async with self.session_factory() as session:
            result = await session.execute(
                select(Check.monitor_id)
                .where(Check.checked_at >= start, Check.checked_at < end)
                .distinct()
            )
            return set(result.scalars().all())

    async def delete_older_than(self, days: int, now: Optional[datetime] = None) -> int:
        """Delete checks older than ``days`` days. Returns the number removed."""
        cutoff = (now or datetime.now()) - timedelta(days=days)
        async with self.session_factory() as session:
            result = await session.execute(delete(Check).where(Check.checked_at < cutoff))
            await retry_on_lock(session.commit)
            return result.rowcount or 0
