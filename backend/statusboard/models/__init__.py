"""Database models."""
from .monitor import Monitor
from .check import Check
from .status_history import StatusHistory
from .incident import Incident

__all__ = ["Monitor", "Check", "StatusHistory", "Incident"]
