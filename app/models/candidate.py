"""
Candidate database model.

A candidate row extends a profile with hiring-pipeline state. `status` is the
persisted status string and `current_step` the stored pipeline step; both are
reconciled through app.services.pipeline, never interpreted inline.

Whether the application is submitted is NOT stored: it is derived from the
three document columns every time.
"""

from datetime import datetime, timezone
from sqlalchemy import Column, Integer, String, ForeignKey, DateTime, func
from sqlalchemy.orm import relationship
from app.core.database import Base
from app.services.pipeline import CandidateStatus, PROFILE_STEP


def _utcnow():
    return datetime.now(timezone.utc)


class Candidate(Base):
    __tablename__ = "candidates"

    id = Column(String(36), ForeignKey("profiles.id", ondelete="CASCADE"), primary_key=True, index=True)

    status = Column(String, nullable=False, default=CandidateStatus.PROFILE_CREATED.value, index=True)
    current_step = Column(Integer, nullable=False, default=PROFILE_STEP)

    # Public URLs of uploaded documents (null until uploaded)
    resume = Column(String, nullable=True)
    about_me_video = Column(String, nullable=True)
    sales_pitch_video = Column(String, nullable=True)

    assigned_manager = Column(String(36), ForeignKey("profiles.id", ondelete="SET NULL"), nullable=True, index=True)

    location = Column(String, nullable=True)
    phone = Column(String, nullable=True)
    region = Column(String, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    # Set client-side so change events can be ordered by it
    updated_at = Column(DateTime(timezone=True), default=_utcnow, onupdate=_utcnow, nullable=False)

    # Relationships
    profile = relationship("Profile", back_populates="candidate", foreign_keys=[id])
    manager = relationship("Profile", foreign_keys=[assigned_manager])
    applications = relationship("JobApplication", back_populates="candidate", cascade="all, delete-orphan")
    assessment_results = relationship("AssessmentResult", back_populates="candidate", cascade="all, delete-orphan")
    interviews = relationship("Interview", back_populates="candidate", cascade="all, delete-orphan")

    def __repr__(self):
        return f"<Candidate(id={self.id}, status='{self.status}', current_step={self.current_step})>"
