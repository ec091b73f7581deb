"""Retention service - purges raw checks and resolved incidents past their age."""
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Optional

from ..repositories import CheckRepository, IncidentRepository

logger = logging.getLogger(__name__)

DEFAULT_CHECKS_RETENTION_DAYS = 90
DEFAULT_INCIDENTS_RETENTION_DAYS = 365


@dataclass
class RetentionResult:
    deleted_checks: int = 0
    deleted_incidents: int = 0


def _validate_days(name: str, value: Optional[int], default: int) -> int:
    if value is None:
        return default
    if isinstance(value, bool) or not isinstance(value, int) or value < 1:
        raise ValueError(f"{name} must be a positive number of days, got {value!r}")
    return value


class RetentionService:
    """Deletes data older than the configured retention windows."""

    def __init__(
        self,
        checks_retention_days: Optional[int] = None,
        incidents_retention_days: Optional[int] = None,
        check_repository: Optional[CheckRepository] = None,
        incident_repository: Optional[IncidentRepository] = None,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self.checks_retention_days = _validate_days(
            "checks_retention_days", checks_retention_days, DEFAULT_CHECKS_RETENTION_DAYS
        )
        self.incidents_retention_days = _validate_days(
            "incidents_retention_days", incidents_retention_days, DEFAULT_INCIDENTS_RETENTION_DAYS
        )
        self.checks = check_repository or CheckRepository()
        self.incidents = incident_repository or IncidentRepository()
        self.clock = clock

    async def run(self) -> RetentionResult:
        """Run one cleanup pass.

        Errors are logged, not raised, so the schedule keeps firing; counts
        gathered before the failure are still returned.
        """
        logger.info("Running data retention cleanup")
        result = RetentionResult()
        now = self.clock()
        try:
            result.deleted_checks = await self.checks.delete_older_than(self.checks_retention_days, now)
            logger.info(f"Deleted {result.deleted_checks} checks older than {self.checks_retention_days} days")

            result.deleted_incidents = await self.incidents.delete_old_resolved(self.incidents_retention_days, now)
            logger.info(
                f"Deleted {result.deleted_incidents} resolved incidents older than "
                f"{self.incidents_retention_days} days"
            )
        except Exception as e:
            logger.error(f"Data retention cleanup failed: {e}")
        return result
