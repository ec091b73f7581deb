"""StatusHistory model - per-monitor daily aggregates."""
from datetime import datetime
from sqlalchemy import Column, Integer, Float, DateTime, Date, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship

from ..database import Base


class StatusHistory(Base):
    """One row per monitor per calendar day, written by upsert only."""

    __tablename__ = "status_history"
    __table_args__ = (
        UniqueConstraint("monitor_id", "date", name="uq_status_history_monitor_date"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    monitor_id = Column(Integer, ForeignKey("monitors.id", ondelete="CASCADE"), nullable=False)
    date = Column(Date, nullable=False)
    total_checks = Column(Integer, nullable=False, default=0)
    successful_checks = Column(Integer, nullable=False, default=0)
    uptime_percentage = Column(Float, nullable=False, default=0.0)
    avg_response_time = Column(Integer, nullable=True)
    min_response_time = Column(Integer, nullable=True)
    max_response_time = Column(Integer, nullable=True)
    updated_at = Column(DateTime, default=datetime.now, onupdate=datetime.now)

    # Relationships
    monitor = relationship("Monitor", back_populates="history")
