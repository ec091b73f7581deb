"""Monitor runner - dispatches monitors to checkers and folds in conditions."""
import asyncio
import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, List, Optional, Sequence

from ..checkers import BaseChecker, CheckResult, default_registry, get_checker
from ..schemas.monitor import MonitorDefinition
from .conditions import ConditionResult, evaluate

logger = logging.getLogger(__name__)

# Extra time a checker gets beyond its own timeout before the runner gives up on it
CHECK_GRACE_SECONDS = 5


@dataclass
class MonitorCheckResult:
    """Final verdict for one monitor in one sweep."""
    monitor_id: Optional[int]
    monitor_name: str
    success: bool
    response_time: int
    timestamp: datetime
    error: Optional[str] = None
    condition_results: List[ConditionResult] = field(default_factory=list)


class MonitorRunner:
    """Runs checks for monitors, one checker per monitor type."""

    def __init__(
        self,
        registry: Optional[Dict[str, BaseChecker]] = None,
        grace_seconds: float = CHECK_GRACE_SECONDS,
    ):
        self.registry = default_registry() if registry is None else registry
        self.grace_seconds = grace_seconds

    async def run_check(self, monitor: MonitorDefinition) -> MonitorCheckResult:
        """Check one monitor. Never raises."""
        checker = get_checker(monitor.type, self.registry)
        check_result = await self._guarded_check(checker, monitor)

        condition_results = evaluate(monitor.conditions, check_result.context)
        all_conditions_pass = all(r.success for r in condition_results)

        error = check_result.error
        if error is None and not all_conditions_pass:
            failed = [r.condition for r in condition_results if not r.success]
            error = f"Conditions failed: {', '.join(failed)}"

        result = MonitorCheckResult(
            monitor_id=monitor.id,
            monitor_name=monitor.name,
            success=check_result.success and all_conditions_pass,
            response_time=check_result.response_time,
            timestamp=datetime.now(),
            error=error,
            condition_results=condition_results,
        )
        logger.debug(f"Monitor {monitor.name}: {'up' if result.success else 'down'} ({result.response_time}ms)")
        return result

    async def run_checks(self, monitors: Sequence[MonitorDefinition]) -> List[MonitorCheckResult]:
        """Check all monitors concurrently. Results are in input order."""
        if not monitors:
            return []
        return list(await asyncio.gather(*[self.run_check(monitor) for monitor in monitors]))

    async def _guarded_check(self, checker: BaseChecker, monitor: MonitorDefinition) -> CheckResult:
        """Run the checker with an outer bound so a hung probe cannot stall a sweep."""
        limit = checker.default_timeout + self.grace_seconds
        try:
            return await asyncio.wait_for(checker.check(monitor.url), timeout=limit)
        except asyncio.TimeoutError:
            logger.warning(f"Check for monitor {monitor.name} did not finish within {limit}s")
            return CheckResult(
                success=False,
                response_time=int(limit * 1000),
                context={"ERROR": "Check timed out", "TIMESTAMP": datetime.now().isoformat()},
                error="Check timed out",
            )
        except Exception as e:
            # Checkers report their own failures; this only catches contract violations
            logger.error(f"Checker for monitor {monitor.name} raised: {e}")
            message = str(e) or e.__class__.__name__
            return CheckResult(
                success=False,
                response_time=0,
                context={"ERROR": message, "TIMESTAMP": datetime.now().isoformat()},
                error=message,
            )
