"""
Tests for MonitorRunner dispatch, verdict folding and fan-out.
"""

import asyncio
import time

import pytest

from statusboard.checkers import BaseChecker, CheckResult
from statusboard.schemas.monitor import Condition, MonitorDefinition
from statusboard.services.runner import MonitorRunner


class StaticChecker(BaseChecker):
    """Returns a canned result, optionally after a delay."""

    default_timeout = 1

    def __init__(self, success: bool = True, context=None, delay: float = 0, error=None):
        super().__init__()
        self.success = success
        self.context = context if context is not None else {"STATUS_CODE": 200}
        self.delay = delay
        self.error = error
        self.calls = []

    async def check(self, url, timeout=None) -> CheckResult:
        self.calls.append(url)
        if self.delay:
            await asyncio.sleep(self.delay)
        return CheckResult(success=self.success, response_time=42, context=dict(self.context), error=self.error)


class HangingChecker(BaseChecker):
    default_timeout = 0.1

    async def check(self, url, timeout=None) -> CheckResult:
        await asyncio.Event().wait()


class BrokenChecker(BaseChecker):
    async def check(self, url, timeout=None) -> CheckResult:
        raise RuntimeError("boom")


def monitor(name="site", type="http", conditions=(), id=1) -> MonitorDefinition:
    return MonitorDefinition(id=id, name=name, type=type, url=f"{type}://{name}", conditions=list(conditions))


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "checker_success,condition_values,expected",
    [
        (True, [200, 200], True),
        (True, [200, 500], False),
        (False, [200], False),
    ],
)
async def test_success_is_checker_and_all_conditions(checker_success, condition_values, expected) -> None:
    runner = MonitorRunner(registry={"http": StaticChecker(success=checker_success)})
    conditions = [Condition(key="STATUS_CODE", operator="==", expected_value=v) for v in condition_values]

    result = await runner.run_check(monitor(conditions=conditions))

    assert result.success is expected
    assert len(result.condition_results) == len(condition_values)


@pytest.mark.asyncio
async def test_result_carries_monitor_identity_and_timing() -> None:
    runner = MonitorRunner(registry={"tcp": StaticChecker()})

    result = await runner.run_check(monitor(name="db", type="tcp", id=7))

    assert result.monitor_id == 7
    assert result.monitor_name == "db"
    assert result.response_time == 42
    assert result.error is None
    assert result.condition_results == []


@pytest.mark.asyncio
async def test_failed_conditions_are_reported_in_error() -> None:
    runner = MonitorRunner(registry={"http": StaticChecker()})
    conditions = [Condition.parse("STATUS_CODE == 201")]

    result = await runner.run_check(monitor(conditions=conditions))

    assert result.success is False
    assert result.error == "Conditions failed: STATUS_CODE == 201"


@pytest.mark.asyncio
async def test_checker_error_is_kept() -> None:
    runner = MonitorRunner(registry={"http": StaticChecker(success=False, error="HTTP 500")})

    result = await runner.run_check(monitor())

    assert result.error == "HTTP 500"


@pytest.mark.asyncio
async def test_unregistered_type_is_labeled_not_implemented() -> None:
    runner = MonitorRunner(registry={})

    result = await runner.run_check(monitor(type="smtp"))

    assert result.success is False
    assert result.error == "Not implemented"
    assert result.response_time == 0


@pytest.mark.asyncio
async def test_checker_exception_is_contained() -> None:
    runner = MonitorRunner(registry={"http": BrokenChecker()})

    result = await runner.run_check(monitor())

    assert result.success is False
    assert result.error == "boom"


@pytest.mark.asyncio
async def test_hung_checker_does_not_block_batch() -> None:
    fast = StaticChecker()
    runner = MonitorRunner(
        registry={"http": fast, "websocket": HangingChecker()},
        grace_seconds=0.1,
    )
    monitors = [
        monitor(name="a", id=1),
        monitor(name="stuck", type="websocket", id=2),
        monitor(name="b", id=3),
    ]

    started = time.monotonic()
    results = await runner.run_checks(monitors)

    assert time.monotonic() - started < 2
    assert [r.monitor_id for r in results] == [1, 2, 3]
    assert results[0].success is True
    assert results[1].success is False
    assert results[1].error == "Check timed out"
    assert results[2].success is True


@pytest.mark.asyncio
async def test_checks_run_concurrently() -> None:
    slow = StaticChecker(delay=0.3)
    runner = MonitorRunner(registry={"http": slow})

    started = time.monotonic()
    results = await runner.run_checks([monitor(name=str(i), id=i) for i in range(5)])

    assert len(results) == 5
    assert len(slow.calls) == 5
    assert time.monotonic() - started < 1.0


@pytest.mark.asyncio
async def test_empty_batch() -> None:
    assert await MonitorRunner(registry={}).run_checks([]) == []
