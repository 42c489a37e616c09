"""
Assessment models.

An Assessment is an ordered list of multiple-choice Questions. Each attempt
by a candidate is an AssessmentResult holding the selected option per
question, per-question timings and the computed score.
"""

from sqlalchemy import Column, Integer, String, Boolean, DateTime, ForeignKey, Text, JSON, func
from sqlalchemy.orm import relationship
from app.core.database import Base


class Assessment(Base):
    __tablename__ = "assessments"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    topic = Column(String, nullable=True)
    difficulty = Column(String, nullable=True)
    time_limit = Column(Integer, nullable=True)  # minutes
    archived = Column(Boolean, default=False, nullable=False)

    created_by = Column(String(36), ForeignKey("profiles.id", ondelete="SET NULL"), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    questions = relationship(
        "Question",
        back_populates="assessment",
        order_by="Question.order_number",
        cascade="all, delete-orphan",
    )
    results = relationship("AssessmentResult", back_populates="assessment", cascade="all, delete-orphan")


class Question(Base):
    __tablename__ = "questions"

    id = Column(Integer, primary_key=True, index=True)
    assessment_id = Column(Integer, ForeignKey("assessments.id", ondelete="CASCADE"), nullable=False, index=True)
    text = Column(Text, nullable=False)
    options = Column(JSON, nullable=False)  # list of option strings
    correct_answer = Column(Integer, nullable=False)  # index into options
    time_limit = Column(Integer, nullable=True)  # seconds
    order_number = Column(Integer, nullable=False, default=0)

    assessment = relationship("Assessment", back_populates="questions")


class AssessmentResult(Base):
    __tablename__ = "assessment_results"

    id = Column(Integer, primary_key=True, index=True)
    candidate_id = Column(String(36), ForeignKey("candidates.id", ondelete="CASCADE"), nullable=False, index=True)
    assessment_id = Column(Integer, ForeignKey("assessments.id", ondelete="CASCADE"), nullable=False, index=True)

    score = Column(Integer, nullable=True)  # 0-100, null until scored
    completed = Column(Boolean, default=False, nullable=False)

    # {question_id: selected option index}
    answers = Column(JSON, nullable=True)
    # {question_id: elapsed seconds}
    answer_timings = Column(JSON, nullable=True)

    feedback = Column(Text, nullable=True)
    reviewed_by = Column(String(36), ForeignKey("profiles.id", ondelete="SET NULL"), nullable=True)

    started_at = Column(DateTime(timezone=True), server_default=func.now())
    completed_at = Column(DateTime(timezone=True), nullable=True)
    reviewed_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), index=True)

    candidate = relationship("Candidate", back_populates="assessment_results")
    assessment = relationship("Assessment", back_populates="results")

    def __repr__(self):
        return f"<AssessmentResult(candidate_id={self.candidate_id}, assessment_id={self.assessment_id}, score={self.score})>"
