"""Common result type and base class for protocol checkers."""
import time
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, Optional

from ..schemas.monitor import ContextValue


@dataclass
class CheckResult:
    """Result of a single probe.

    ``success`` reflects the protocol-level outcome only; conditions are
    applied later by the runner. ``context`` holds the values conditions can
    reference (STATUS_CODE, RESPONSE_TIME, DNS_RECORDS, ...).
    """
    success: bool
    response_time: int = 0  # milliseconds
    context: Dict[str, ContextValue] = field(default_factory=dict)
    error: Optional[str] = None


def timestamp() -> str:
    return datetime.now().isoformat()


def error_message(exc: BaseException, fallback: str) -> str:
    """Readable message for an exception; some (timeouts) stringify to ''."""
    return str(exc) or fallback


class BaseChecker:
    """Base class for protocol checkers.

    Subclasses implement ``check`` and must never raise: every failure mode
    is reported as an unsuccessful ``CheckResult``.
    """

    monitor_type: str = ""
    default_timeout: float = 10

    def __init__(self, timeout: Optional[float] = None):
        if timeout is not None:
            self.default_timeout = timeout

    async def check(self, url: str, timeout: Optional[float] = None) -> CheckResult:
        raise NotImplementedError("Subclasses must implement check()")

    def _timeout(self, timeout: Optional[float]) -> float:
        return self.default_timeout if timeout is None else timeout

    @staticmethod
    def _start() -> float:
        return time.perf_counter()

    @staticmethod
    def _elapsed_ms(start: float) -> int:
        return max(0, int(round((time.perf_counter() - start) * 1000)))

    def _failure(self, error: str, response_time: int, **context: ContextValue) -> CheckResult:
        """Build a failed result carrying ``ERROR`` and ``TIMESTAMP``."""
        context.setdefault("RESPONSE_TIME", response_time)
        context["ERROR"] = error
        context["TIMESTAMP"] = timestamp()
        return CheckResult(success=False, response_time=response_time, context=context, error=error)


class UnsupportedChecker(BaseChecker):
    """Fallback for monitor types without a registered checker."""

    def __init__(self, monitor_type: str):
        super().__init__()
        self.monitor_type = monitor_type

    async def check(self, url: str, timeout: Optional[float] = None) -> CheckResult:
        message = f"Checker not implemented for monitor type: {self.monitor_type}"
        return CheckResult(
            success=False,
            response_time=0,
            context={"ERROR": message, "TIMESTAMP": timestamp()},
            error="Not implemented",
        )
