"""
Tests for daily aggregation, today refresh and backfill.
"""

from datetime import datetime, timedelta

import pytest
from sqlalchemy import func, select

from statusboard.models import StatusHistory
from statusboard.repositories import CheckRepository, StatusHistoryRepository
from statusboard.services.aggregation import AggregationService

NOW = datetime(2026, 3, 15, 10, 30)
TODAY = NOW.date()
YESTERDAY = TODAY - timedelta(days=1)


@pytest.fixture
def service(session_factory) -> AggregationService:
    return AggregationService(
        check_repository=CheckRepository(session_factory),
        history_repository=StatusHistoryRepository(session_factory),
        clock=lambda: NOW,
    )


async def count_rows(session_factory, day=None) -> int:
    query = select(func.count(StatusHistory.id))
    if day is not None:
        query = query.where(StatusHistory.date == day)
    async with session_factory() as session:
        return (await session.execute(query)).scalar_one()


def at(day, hour, minute=0):
    return datetime.combine(day, datetime.min.time()).replace(hour=hour, minute=minute)


@pytest.mark.asyncio
async def test_daily_rollup_values(service, session_factory, add_monitor, add_checks) -> None:
    monitor_id = await add_monitor()
    await add_checks(monitor_id, [
        (at(YESTERDAY, 1), True, 100),
        (at(YESTERDAY, 2), True, 200),
        (at(YESTERDAY, 3), False, 600),
        (at(YESTERDAY, 23, 59), True, 100),
        (at(TODAY, 0, 1), False, 900),  # belongs to today
    ])

    written = await service.aggregate_yesterday()

    row = await StatusHistoryRepository(session_factory).get(monitor_id, YESTERDAY)
    assert written == 1
    assert row.total_checks == 4
    assert row.successful_checks == 3
    assert row.uptime_percentage == 75.0
    assert row.avg_response_time == 250
    assert row.min_response_time == 100
    assert row.max_response_time == 600


@pytest.mark.asyncio
async def test_running_twice_is_idempotent(service, session_factory, add_monitor, add_checks) -> None:
    first = await add_monitor(name="a")
    second = await add_monitor(name="b")
    await add_checks(first, [(at(YESTERDAY, 5), True, 50), (at(YESTERDAY, 6), False, 70)])
    await add_checks(second, [(at(YESTERDAY, 5), True, 10)])
    history = StatusHistoryRepository(session_factory)

    await service.aggregate_yesterday()
    before = await history.get(first, YESTERDAY)
    await service.aggregate_yesterday()
    after = await history.get(first, YESTERDAY)

    assert await count_rows(session_factory, YESTERDAY) == 2
    assert after.id == before.id
    assert (after.total_checks, after.uptime_percentage, after.avg_response_time) == (
        before.total_checks, before.uptime_percentage, before.avg_response_time,
    )


@pytest.mark.asyncio
async def test_today_refresh_updates_row(service, session_factory, add_monitor, add_checks) -> None:
    monitor_id = await add_monitor()
    history = StatusHistoryRepository(session_factory)
    await add_checks(monitor_id, [(at(TODAY, 8), True, 100)])

    await service.aggregate_today()
    await add_checks(monitor_id, [(at(TODAY, 9), False, 300)])
    await service.aggregate_today()

    row = await history.get(monitor_id, TODAY)
    assert await count_rows(session_factory, TODAY) == 1
    assert row.total_checks == 2
    assert row.uptime_percentage == 50.0


@pytest.mark.asyncio
async def test_backfill_fills_only_missing_days(service, session_factory, add_monitor, add_checks) -> None:
    monitor_id = await add_monitor()
    for offset in (1, 2, 3):
        day = TODAY - timedelta(days=offset)
        await add_checks(monitor_id, [(at(day, 12), True, 100)])
    await service.aggregate_day(TODAY - timedelta(days=2))

    filled = await service.backfill(days=90)

    assert filled == 2
    assert await count_rows(session_factory) == 3
    assert await service.backfill(days=90) == 0


@pytest.mark.asyncio
async def test_backfill_respects_lookback_bound(service, session_factory, add_monitor, add_checks) -> None:
    monitor_id = await add_monitor()
    await add_checks(monitor_id, [
        (at(TODAY - timedelta(days=3), 12), True, 100),
        (at(TODAY - timedelta(days=10), 12), True, 100),
        (at(TODAY - timedelta(days=200), 12), True, 100),
    ])

    filled = await service.backfill(days=5)

    assert filled == 1
    async with session_factory() as session:
        dates = (await session.execute(select(StatusHistory.date))).scalars().all()
    assert dates == [TODAY - timedelta(days=3)]
    assert min(dates) >= TODAY - timedelta(days=5)


@pytest.mark.asyncio
async def test_backfill_skips_today(service, session_factory, add_monitor, add_checks) -> None:
    monitor_id = await add_monitor()
    await add_checks(monitor_id, [(at(TODAY, 1), True, 100)])

    assert await service.backfill(days=90) == 0
    assert await count_rows(session_factory) == 0


@pytest.mark.asyncio
async def test_backfill_rejects_empty_window(service) -> None:
    with pytest.raises(ValueError):
        await service.backfill(days=0)
