"""Status history repository - daily aggregates, written by upsert."""
import logging
from datetime import date, datetime
from typing import List, Optional, Set

from sqlalchemy import select
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.ext.asyncio import async_sessionmaker

from ..database import async_session
from ..models import StatusHistory
from ..utils.db_utils import retry_on_lock
from .check_repository import CheckStats

logger = logging.getLogger(__name__)

_UPDATABLE_COLUMNS = (
    "total_checks",
    "successful_checks",
    "uptime_percentage",
    "avg_response_time",
    "min_response_time",
    "max_response_time",
    "updated_at",
)


class StatusHistoryRepository:
    """At most one row per (monitor, date); repeated writes overwrite it."""

    def __init__(self, session_factory: async_sessionmaker = async_session):
        self.session_factory = session_factory

    async def upsert(self, day: date, stats: List[CheckStats]) -> int:
        """Insert or update the aggregate rows for ``day``. Returns rows written."""
        if not stats:
            return 0
        now = datetime.now()
        values = [
            {
                "monitor_id": s.monitor_id,
                "date": day,
                "total_checks": s.total_checks,
                "successful_checks": s.successful_checks,
                "uptime_percentage": s.uptime_percentage,
                "avg_response_time": s.avg_response_time,
                "min_response_time": s.min_response_time,
                "max_response_time": s.max_response_time,
                "updated_at": now,
            }
            for s in stats
        ]

        async with self.session_factory() as session:
            dialect = session.bind.dialect.name
            insert = postgresql.insert if dialect == "postgresql" else sqlite.insert
            stmt = insert(StatusHistory).values(values)
            stmt = stmt.on_conflict_do_update(
                index_elements=[StatusHistory.monitor_id, StatusHistory.date],
                set_={column: stmt.excluded[column] for column in _UPDATABLE_COLUMNS},
            )
            await session.execute(stmt)
            await retry_on_lock(session.commit)
        return len(values)

    async def monitors_for_day(self, day: date) -> Set[int]:
        async with self.session_factory() as session:
            result = await session.execute(
                select(StatusHistory.monitor_id).where(StatusHistory.date == day)
            )
            return set(result.scalars().all())

    async def get(self, monitor_id: int, day: date) -> Optional[StatusHistory]:
        async with self.session_factory() as session:
            result = await session.execute(
                select(StatusHistory).where(
                    StatusHistory.monitor_id == monitor_id,
                    StatusHistory.date == day,
                )
            )
            return result.scalar_one_or_none()
