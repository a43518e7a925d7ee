from sqlalchemy import Column, Integer, String, DateTime, Float
from sqlalchemy.sql import func
from ..database import Base

class TransitionLog(Base):
    __tablename__ = "transition_events"

    id = Column(Integer, primary_key=True, index=True)
    host = Column(String, nullable=True, index=True)  # NULL for lifecycle records
    kind = Column(String)  # added / up / down / evicted / lifecycle
    start_time = Column(DateTime(timezone=True))
    end_time = Column(DateTime(timezone=True))
    duration_seconds = Column(Float, nullable=True)
    reason = Column(String)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
