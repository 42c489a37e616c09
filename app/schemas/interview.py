"""
Pydantic schemas for interview scheduling.
"""

from datetime import datetime
from typing import Optional
from pydantic import BaseModel, Field, field_validator
from app.models.interview import InterviewStatus


class InterviewCreateRequest(BaseModel):
    """
    Schedule an interview. Managers may leave manager_id out to schedule
    for themselves; other staff must name the interviewing manager.
    """
    candidate_id: str
    scheduled_at: datetime
    manager_id: Optional[str] = None
    notes: Optional[str] = Field(None, max_length=2000)


class InterviewUpdateRequest(BaseModel):
    """Partial update; only the fields sent are changed."""
    scheduled_at: Optional[datetime] = None
    status: Optional[InterviewStatus] = None
    notes: Optional[str] = Field(None, max_length=2000)
    feedback: Optional[str] = Field(None, max_length=5000)
    decision: Optional[str] = Field(None, max_length=200)

    @field_validator("status", mode="before")
    @classmethod
    def normalize_status(cls, v):
        if isinstance(v, str):
            return v.strip().lower()
        return v


class InterviewResponse(BaseModel):
    id: int
    candidate_id: str
    manager_id: str
    scheduled_at: datetime
    status: str
    notes: Optional[str] = None
    feedback: Optional[str] = None
    decision: Optional[str] = None
    archived: bool
    candidate_name: Optional[str] = None
    manager_name: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
