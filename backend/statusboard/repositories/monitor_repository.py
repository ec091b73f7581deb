"""Monitor repository - reads monitor configuration for sweeps."""
import json
import logging
from datetime import datetime
from typing import Dict, List, Optional

from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import async_sessionmaker

from ..database import async_session
from ..models import Check, Monitor
from ..schemas.monitor import MonitorDefinition
from ..utils.db_utils import retry_on_lock

logger = logging.getLogger(__name__)


class MonitorRepository:
    """Read access to monitors, plus creation for seeding."""

    def __init__(self, session_factory: async_sessionmaker = async_session):
        self.session_factory = session_factory

    async def create(self, definition: MonitorDefinition, enabled: bool = True) -> int:
        """Store a monitor definition and return its id."""
        async with self.session_factory() as session:
            monitor = Monitor(
                name=definition.name,
                type=definition.type,
                url=definition.url,
                interval=definition.interval,
                conditions=json.dumps([c.model_dump() for c in definition.conditions]),
                public=definition.public,
                group_name=definition.group,
                enabled=enabled,
            )
            session.add(monitor)
            await retry_on_lock(session.commit)
            return monitor.id

    async def list_enabled(self) -> List[MonitorDefinition]:
        async with self.session_factory() as session:
            result = await session.execute(
                select(Monitor).where(Monitor.enabled.is_(True)).order_by(Monitor.id)
            )
            monitors = result.scalars().all()

        definitions = []
        for monitor in monitors:
            try:
                definitions.append(MonitorDefinition.from_model(monitor))
            except ValueError as e:
                # pydantic's ValidationError and json errors are both ValueErrors
                logger.error(f"Skipping monitor {monitor.id} with invalid configuration: {e}")
        return definitions

    async def last_checked(self) -> Dict[int, Optional[datetime]]:
        """Time of the latest check per enabled monitor (None if never checked)."""
        async with self.session_factory() as session:
            result = await session.execute(
                select(Monitor.id, func.max(Check.checked_at))
                .outerjoin(Check, Monitor.id == Check.monitor_id)
                .where(Monitor.enabled.is_(True))
                .group_by(Monitor.id)
            )
            return {monitor_id: last for monitor_id, last in result.all()}
