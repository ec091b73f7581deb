"""Pydantic schemas for monitor configuration."""
from .monitor import (
    Condition,
    ContextValue,
    MonitorDefinition,
    MonitorType,
)

__all__ = [
    "Condition",
    "ContextValue",
    "MonitorDefinition",
    "MonitorType",
]
