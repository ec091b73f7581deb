"""Monitor model - endpoints being probed."""
from datetime import datetime
from sqlalchemy import Column, Integer, String, DateTime, Boolean, Text
from sqlalchemy.orm import relationship

from ..database import Base


class Monitor(Base):
    """A monitored endpoint - http, tcp, dns, ping, or websocket probe."""

    __tablename__ = "monitors"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String, nullable=False)
    type = Column(String, nullable=False)  # http, tcp, dns, ping, websocket
    url = Column(String, nullable=False)  # Protocol-specific address
    interval = Column(Integer, default=60)  # seconds between checks
    conditions = Column(Text, nullable=True)  # JSON list of condition specs
    public = Column(Boolean, default=True)
    group_name = Column(String, nullable=True)
    enabled = Column(Boolean, default=True)
    created_at = Column(DateTime, default=datetime.now)

    # Relationships
    checks = relationship("Check", back_populates="monitor", cascade="all, delete-orphan")
    history = relationship("StatusHistory", back_populates="monitor", cascade="all, delete-orphan")
    incidents = relationship("Incident", back_populates="monitor", cascade="all, delete-orphan")
