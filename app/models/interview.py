"""
Interview model.

A scheduled interview between a candidate and a manager. Interviews are
cancelled or archived, never deleted.
"""

import enum
from sqlalchemy import Column, Integer, String, Boolean, DateTime, ForeignKey, Text, func
from sqlalchemy.orm import relationship
from app.core.database import Base


class InterviewStatus(str, enum.Enum):
    SCHEDULED = "scheduled"
    CONFIRMED = "confirmed"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class Interview(Base):
    __tablename__ = "interviews"

    id = Column(Integer, primary_key=True, index=True)
    candidate_id = Column(String(36), ForeignKey("candidates.id", ondelete="CASCADE"), nullable=False, index=True)
    manager_id = Column(String(36), ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False, index=True)
    scheduled_at = Column(DateTime(timezone=True), nullable=False, index=True)
    status = Column(String, nullable=False, default=InterviewStatus.SCHEDULED.value, index=True)

    notes = Column(Text, nullable=True)
    feedback = Column(Text, nullable=True)
    decision = Column(String, nullable=True)
    archived = Column(Boolean, default=False, nullable=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    candidate = relationship("Candidate", back_populates="interviews")
    manager = relationship("Profile")

    def __repr__(self):
        return f"<Interview(id={self.id}, candidate_id={self.candidate_id}, status='{self.status}')>"
