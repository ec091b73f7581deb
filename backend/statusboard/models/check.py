"""Check model - raw result of one probe, append-only."""
from datetime import datetime
from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, Boolean, Text
from sqlalchemy.orm import relationship

from ..database import Base


class Check(Base):
    """Raw check result, rolled up daily into StatusHistory."""

    __tablename__ = "checks"

    id = Column(Integer, primary_key=True, autoincrement=True)
    monitor_id = Column(Integer, ForeignKey("monitors.id", ondelete="CASCADE"), nullable=False, index=True)
    checked_at = Column(DateTime, default=datetime.now, index=True)
    success = Column(Boolean, nullable=False)
    response_time_ms = Column(Integer, nullable=True)
    error = Column(String, nullable=True)
    condition_results = Column(Text, nullable=True)  # JSON list of {condition, success}

    # Relationships
    monitor = relationship("Monitor", back_populates="checks")
