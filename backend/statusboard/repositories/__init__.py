"""Repositories over the storage layer."""
from .check_repository import CheckRepository, CheckStats
from .incident_repository import IncidentRepository
from .monitor_repository import MonitorRepository
from .status_history_repository import StatusHistoryRepository

__all__ = [
    "CheckRepository",
    "CheckStats",
    "IncidentRepository",
    "MonitorRepository",
    "StatusHistoryRepository",
]
