"""Incident model - outages recorded by the incident detector."""
from datetime import datetime
from sqlalchemy import Column, Integer, String, DateTime, ForeignKey
from sqlalchemy.orm import relationship

from ..database import Base


class Incident(Base):
    """An outage window. Open while resolved_at is NULL."""

    __tablename__ = "incidents"

    id = Column(Integer, primary_key=True, autoincrement=True)
    monitor_id = Column(Integer, ForeignKey("monitors.id", ondelete="CASCADE"), nullable=False)
    title = Column(String, nullable=True)
    started_at = Column(DateTime, default=datetime.now, nullable=False)
    resolved_at = Column(DateTime, nullable=True)

    # Relationships
    monitor = relationship("Monitor", back_populates="incidents")
