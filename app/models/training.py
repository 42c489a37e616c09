from sqlalchemy import Column, Integer, String, Boolean, DateTime, ForeignKey, Text, UniqueConstraint, func
from sqlalchemy.orm import relationship
from app.core.database import Base


class TrainingModule(Base):
    """
    Training module. Modules unlock strictly in `order_number` order; the
    optional quiz is an Assessment.
    """
    __tablename__ = "training_modules"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    module = Column(String, nullable=False, index=True)  # e.g. product, sales, customer-service
    order_number = Column(Integer, nullable=False, default=0, index=True)
    quiz_id = Column(Integer, ForeignKey("assessments.id", ondelete="SET NULL"), nullable=True)
    archived = Column(Boolean, default=False, nullable=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now())

    videos = relationship("Video", back_populates="training_module", order_by="Video.id")
    quiz = relationship("Assessment")


class Video(Base):
    __tablename__ = "videos"

    id = Column(Integer, primary_key=True, index=True)
    module_id = Column(Integer, ForeignKey("training_modules.id", ondelete="CASCADE"), nullable=False, index=True)
    title = Column(String, nullable=False)
    url = Column(String, nullable=False)
    duration = Column(String, nullable=True)
    archived = Column(Boolean, default=False, nullable=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now())

    training_module = relationship("TrainingModule", back_populates="videos")


class VideoProgress(Base):
    """A candidate having watched a video (table name kept from the web client)."""
    __tablename__ = "training_progress"
    __table_args__ = (UniqueConstraint("user_id", "video_id", name="uq_training_progress_user_video"),)

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(String(36), ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False, index=True)
    video_id = Column(Integer, ForeignKey("videos.id", ondelete="CASCADE"), nullable=False, index=True)
    completed = Column(Boolean, default=True, nullable=False)
    completed_at = Column(DateTime(timezone=True), server_default=func.now())
