"""
Activity log model.

Audit trail of pipeline actions (status changes, applications, archives).
Candidates see their own entries as notifications; staff see them as a
candidate's history.
"""

from sqlalchemy import Column, Integer, String, DateTime, JSON, func
from app.core.database import Base


class ActivityLog(Base):
    __tablename__ = "activity_logs"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(String(36), nullable=False, index=True)  # actor
    action = Column(String, nullable=False)
    entity_type = Column(String, nullable=False)
    entity_id = Column(String(36), nullable=True, index=True)
    details = Column(JSON, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), index=True)
