"""Services for running checks, aggregating history, and scheduling jobs."""
from .aggregation import AggregationService
from .conditions import ConditionResult, evaluate
from .retention import RetentionResult, RetentionService
from .runner import MonitorCheckResult, MonitorRunner
from .scheduler import SchedulerService

__all__ = [
    "AggregationService",
    "ConditionResult",
    "MonitorCheckResult",
    "MonitorRunner",
    "RetentionResult",
    "RetentionService",
    "SchedulerService",
    "evaluate",
]
