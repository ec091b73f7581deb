"""
Shared fixtures: a throwaway SQLite database and a few data helpers.
"""

from datetime import datetime

import pytest
import pytest_asyncio

from statusboard.database import create_engine_for_url, create_session_factory, init_db
from statusboard.models import Check, Incident, Monitor


@pytest_asyncio.fixture
async def session_factory(tmp_path):
    """Session factory bound to a fresh SQLite file with all tables created."""
    engine = create_engine_for_url(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}")
    await init_db(engine)
    yield create_session_factory(engine)
    await engine.dispose()


@pytest.fixture
def add_monitor(session_factory):
    async def _add(name: str = "site", type: str = "http", url: str = "http://example.com", **kwargs) -> int:
        async with session_factory() as session:
            monitor = Monitor(name=name, type=type, url=url, **kwargs)
            session.add(monitor)
            await session.commit()
            return monitor.id
    return _add


@pytest.fixture
def add_checks(session_factory):
    async def _add(monitor_id: int, rows) -> None:
        """rows: iterable of (checked_at, success, response_time_ms)."""
        async with session_factory() as session:
            session.add_all([
                Check(monitor_id=monitor_id, checked_at=at, success=ok, response_time_ms=ms)
                for at, ok, ms in rows
            ])
            await session.commit()
    return _add


@pytest.fixture
def add_incident(session_factory):
    async def _add(monitor_id: int, started_at: datetime, resolved_at=None) -> int:
        async with session_factory() as session:
            incident = Incident(monitor_id=monitor_id, title="outage", started_at=started_at, resolved_at=resolved_at)
            session.add(incident)
            await session.commit()
            return incident.id
    return _add
