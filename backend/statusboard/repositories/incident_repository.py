"""Incident repository - purge side only; lifecycle lives elsewhere."""
import logging
from datetime import datetime, timedelta
from typing import Optional

from sqlalchemy import delete
from sqlalchemy.ext.asyncio import async_sessionmaker

from ..database import async_session
from ..models import Incident
from ..utils.db_utils import retry_on_lock

logger = logging.getLogger(__name__)


class IncidentRepository:

    def __init__(self, session_factory: async_sessionmaker = async_session):
        self.session_factory = session_factory

    async def delete_old_resolved(self, days: int, now: Optional[datetime] = None) -> int:
        """Delete incidents resolved more than ``days`` days ago.

        Open incidents (``resolved_at`` is NULL) are never matched.
        """
        cutoff = (now or datetime.now()) - timedelta(days=days)
        async with self.session_factory() as session:
            result = await session.execute(
                delete(Incident).where(
                    Incident.resolved_at.is_not(None),
                    Incident.resolved_at < cutoff,
                )
            )
            await retry_on_lock(session.commit)
            return result.rowcount or 0
